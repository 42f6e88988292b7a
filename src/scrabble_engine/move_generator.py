import logging
import random
import threading
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np

from .board import BOARD_SIZE, CENTER, Board, Placement, in_bounds, step
from .config import BINGO_BONUS, RACK_CAPACITY, Difficulty
from .dictionary import WordSource, WordValidator
from .ledger import ConfirmedPlay, PlacementLedger
from .scoring import ScoreCalculator
from .tiles import BLANK, Tile, letter_value
from .validator import PositionValidator
from .words import WordFormer

log = logging.getLogger(__name__)

LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class CandidateTile:
    """One rack tile the candidate puts on an empty cell."""

    tile: Tile
    row: int
    col: int
    letter: str

    @property
    def is_blank(self) -> bool:
        return self.tile.is_blank


@dataclass
class Candidate:
    word: str
    row: int
    col: int
    direction: str
    score: int
    tiles: List[CandidateTile] = field(default_factory=list)
    words: List[str] = field(default_factory=list)

    def key(self) -> Tuple:
        return tuple(sorted((t.row, t.col, t.letter, t.is_blank) for t in self.tiles))

    def describe(self) -> str:
        placed = ", ".join(
            f"{t.letter}{'*' if t.is_blank else ''}@({t.row},{t.col})" for t in self.tiles
        )
        return f"{self.word} at ({self.row},{self.col}) {self.direction} score={self.score} [{placed}]"


class Fallback(str, Enum):
    EXCHANGE = "exchange"
    PASS = "pass"


def find_anchors(board: Board) -> List[Tuple[int, int]]:
    """Empty cells orthogonally next to a tile, in row-major order.

    On an empty board the center is the only anchor.
    """
    occ = board.occupancy()
    if not occ.any():
        return [CENTER]
    near = np.zeros_like(occ)
    near[1:, :] |= occ[:-1, :]
    near[:-1, :] |= occ[1:, :]
    near[:, 1:] |= occ[:, :-1]
    near[:, :-1] |= occ[:, 1:]
    rows, cols = np.nonzero(near & ~occ)
    return [(int(r), int(c)) for r, c in zip(rows, cols)]


def _run(board: Board, row: int, col: int, dr: int, dc: int) -> str:
    """Letters on the board walking from next to (row, col) by (dr, dc)."""
    out: List[str] = []
    r, c = row + dr, col + dc
    while in_bounds(r, c) and board.is_occupied(r, c):
        out.append(board.tile_at(r, c).letter.upper())
        r, c = r + dr, c + dc
    return "".join(out)


def prefix_suffix(board: Board, row: int, col: int, dir_: str) -> Tuple[str, str]:
    dr, dc = step(dir_)
    prefix = _run(board, row, col, -dr, -dc)[::-1]
    suffix = _run(board, row, col, dr, dc)
    return prefix, suffix


def assign_rack_tiles(
    needed: Sequence[Tuple[int, int, str]], rack: Sequence[Tile]
) -> Optional[List[CandidateTile]]:
    """Pick a rack tile for each (row, col, letter); exact letters first, then blanks.

    Works on a copy of the rack; returns None when the rack cannot supply them.
    """
    pool: Dict[str, List[Tile]] = {}
    for tile in rack:
        pool.setdefault(tile.face, []).append(tile)
    out: List[CandidateTile] = []
    for r, c, ch in needed:
        if pool.get(ch):
            out.append(CandidateTile(pool[ch].pop(0), r, c, ch))
        elif pool.get(BLANK):
            out.append(CandidateTile(pool[BLANK].pop(0), r, c, ch))
        else:
            return None
    return out


def scratch_placements(tiles: Sequence[CandidateTile]) -> List[Placement]:
    # stand-ins so the real rack tiles never touch the board during evaluation
    out: List[Placement] = []
    for t in tiles:
        if t.is_blank:
            scratch = Tile(BLANK, 0, uid=0, assigned=t.letter)
        else:
            scratch = Tile(t.letter, letter_value(t.letter), uid=0)
        out.append(Placement(scratch, t.row, t.col))
    return out


@contextmanager
def staged(board: Board, placements: Sequence[Placement]) -> Iterator[Optional[List[Placement]]]:
    """Put ``placements`` on the board for the duration of the block.

    Yields None if any cell is already taken. Everything placed here is
    removed again on exit.
    """
    placed: List[Placement] = []
    try:
        for p in placements:
            if not board.place_tile(p.tile, p.row, p.col):
                break
            placed.append(p)
        yield placed if len(placed) == len(placements) else None
    finally:
        for p in reversed(placed):
            board.remove_tile(p.row, p.col)


def select_candidate(candidates: Sequence[Candidate], difficulty: Difficulty) -> Optional[Candidate]:
    """Pick from candidates sorted by ascending score."""
    if not candidates:
        return None
    difficulty = Difficulty.parse(difficulty)
    if difficulty is Difficulty.EASY:
        return candidates[0]
    if difficulty is Difficulty.MEDIUM:
        return candidates[len(candidates) // 2]
    return candidates[-1]


def choose_fallback(rng: random.Random, exchange_probability: float) -> Fallback:
    if rng.random() < exchange_probability:
        return Fallback.EXCHANGE
    return Fallback.PASS


def commit_candidate(
    ledger: PlacementLedger,
    player: int,
    candidate: Candidate,
    word_validator: WordValidator,
    position_validator: Optional[PositionValidator] = None,
) -> Optional[ConfirmedPlay]:
    """Stage the candidate through the ledger and confirm it."""
    for t in candidate.tiles:
        letter = t.letter if t.is_blank else None
        if not ledger.place(player, t.tile, t.row, t.col, letter):
            log.warning("Could not stage %s at (%s,%s); cancelling", t.letter, t.row, t.col)
            ledger.cancel(player)
            return None
    return ledger.confirm_play(player, word_validator, position_validator)


class MoveSearch:
    """Enumerates legal plays for a rack.

    Candidates come from anchors: single-tile gap fills between runs
    already on the board, and whole dictionary words laid across the anchor.
    Each is checked by staging scratch tiles on the real board and running
    the same validator, word former and scorer as a human turn.
    """

    def __init__(
        self,
        dictionary: WordSource,
        bingo_bonus: int = BINGO_BONUS,
        bingo_enabled: bool = True,
        rack_capacity: int = RACK_CAPACITY,
    ):
        self.dictionary = dictionary
        self.bingo_bonus = bingo_bonus
        self.bingo_enabled = bingo_enabled
        self.rack_capacity = rack_capacity
        self._words: List[str] = [w.upper() for w in dictionary.all_words() if 2 <= len(w) <= BOARD_SIZE]

    def search(
        self,
        board: Board,
        rack: Sequence[Tile],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Candidate]:
        rack = list(rack)
        if not rack:
            return []
        validator = PositionValidator(board)
        former = WordFormer(board)
        scorer = ScoreCalculator(board, self.bingo_bonus, self.bingo_enabled, self.rack_capacity)

        rack_faces = "".join(t.face for t in rack)
        blanks = rack_faces.count(BLANK)
        letters_on_rack: Set[str] = set(LETTERS) if blanks else set(rack_faces)
        line_words: Dict[Tuple[str, int], List[str]] = {}

        found: Dict[Tuple, Candidate] = {}
        for anchor in find_anchors(board):
            if cancel_event is not None and cancel_event.is_set():
                log.info("Move search cancelled")
                return []
            for dir_ in ('H', 'V'):
                key = (dir_, anchor[0] if dir_ == 'H' else anchor[1])
                if key not in line_words:
                    line_words[key] = self._plausible_words(board, dir_, key[1], rack_faces)
                raw = self._gap_fills(board, anchor, dir_, rack)
                raw += self._aligned_words(board, anchor, dir_, rack, line_words[key], letters_on_rack)
                for cand in raw:
                    if cancel_event is not None and cancel_event.is_set():
                        log.info("Move search cancelled")
                        return []
                    k = cand.key()
                    if k in found:
                        continue
                    if self._evaluate(board, cand, validator, former, scorer):
                        found[k] = cand

        ordered = sorted(found.values(), key=lambda c: (c.score, c.word, c.row, c.col, c.direction))
        log.debug("Move search found %s candidates", len(ordered))
        return ordered

    def _plausible_words(self, board: Board, dir_: str, line: int, rack: str) -> List[str]:
        """Words whose letters the rack plus this line's tiles could cover."""
        if dir_ == 'H':
            on_line = [board.tile_at(line, c) for c in range(BOARD_SIZE)]
        else:
            on_line = [board.tile_at(r, line) for r in range(BOARD_SIZE)]
        have = Counter(rack.upper()) + Counter(t.letter.upper() for t in on_line if t is not None)
        blanks = have.pop(BLANK, 0)
        out: List[str] = []
        for word in self._words:
            missing = 0
            for ch, n in Counter(word).items():
                missing += max(0, n - have.get(ch, 0))
                if missing > blanks:
                    break
            if missing <= blanks:
                out.append(word)
        return out

    def _gap_fills(self, board: Board, anchor: Tuple[int, int], dir_: str, rack: Sequence[Tile]) -> List[Candidate]:
        prefix, suffix = prefix_suffix(board, anchor[0], anchor[1], dir_)
        if not prefix and not suffix:
            return []
        dr, dc = step(dir_)
        start = (anchor[0] - len(prefix) * dr, anchor[1] - len(prefix) * dc)
        out: List[Candidate] = []
        tried: Set[Tuple[str, bool]] = set()
        for tile in rack:
            choices = LETTERS if tile.is_blank else tile.face
            for ch in choices:
                if (ch, tile.is_blank) in tried:
                    continue
                tried.add((ch, tile.is_blank))
                word = prefix + ch + suffix
                if not self.dictionary.is_valid_word(word):
                    continue
                out.append(Candidate(word, start[0], start[1], dir_, 0, [CandidateTile(tile, anchor[0], anchor[1], ch)]))
        return out

    def _aligned_words(
        self,
        board: Board,
        anchor: Tuple[int, int],
        dir_: str,
        rack: Sequence[Tile],
        words: Sequence[str],
        letters_on_rack: Set[str],
    ) -> List[Candidate]:
        dr, dc = step(dir_)
        first_move = board.is_empty()
        out: List[Candidate] = []
        for word in words:
            n = len(word)
            for i, ch in enumerate(word):
                if ch not in letters_on_rack:
                    continue
                r0, c0 = anchor[0] - i * dr, anchor[1] - i * dc
                if not (in_bounds(r0, c0) and in_bounds(r0 + (n - 1) * dr, c0 + (n - 1) * dc)):
                    continue
                needed: List[Tuple[int, int, str]] = []
                touches = first_move
                ok = True
                for j, wch in enumerate(word):
                    r, c = r0 + j * dr, c0 + j * dc
                    tile = board.tile_at(r, c)
                    if tile is None:
                        needed.append((r, c, wch))
                    elif tile.letter.upper() != wch:
                        ok = False
                        break
                    else:
                        touches = True
                if not ok or not needed or len(needed) > len(rack):
                    continue
                if not touches:
                    touches = any(
                        board.is_occupied(nr, nc) for r, c, _ in needed for nr, nc in board.neighbors(r, c)
                    )
                if not touches:
                    continue
                tiles = assign_rack_tiles(needed, rack)
                if tiles is None:
                    continue
                out.append(Candidate(word, r0, c0, dir_, 0, tiles))
        return out

    def _evaluate(
        self,
        board: Board,
        cand: Candidate,
        validator: PositionValidator,
        former: WordFormer,
        scorer: ScoreCalculator,
    ) -> bool:
        with staged(board, scratch_placements(cand.tiles)) as placed:
            if placed is None or not validator.is_valid(placed):
                return False
            words = former.form_words(placed)
            if not words or not all(self.dictionary.is_valid_word(w.text) for w in words):
                return False
            cand.score = scorer.calculate(words, placed)
            cand.words = [w.text for w in words]
            main = words[0]
            if all(p.pos in main.cells for p in placed):
                cand.word, cand.row, cand.col, cand.direction = main.text, main.row, main.col, main.direction
        return True
