"""Word extraction from this turn's placements.

Only strings are produced here; dictionary membership is the caller's job.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .board import BoardView, Placement, in_bounds, other, step
from .validator import has_preexisting_tiles


@dataclass(frozen=True)
class FormedWord:
    text: str
    row: int
    col: int
    direction: str  # 'H' or 'V'
    cells: Tuple[Tuple[int, int], ...]

    def __str__(self) -> str:
        return self.text


def word_span(
    board: BoardView, row: int, col: int, direction: str
) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Extend from (row, col) both ways along ``direction`` over occupied cells.

    Returns (start, end) cells of the run containing (row, col).
    """
    dr, dc = step(direction)
    start_r, start_c = row, col
    while in_bounds(start_r - dr, start_c - dc) and board.is_occupied(start_r - dr, start_c - dc):
        start_r, start_c = start_r - dr, start_c - dc
    end_r, end_c = row, col
    while in_bounds(end_r + dr, end_c + dc) and board.is_occupied(end_r + dr, end_c + dc):
        end_r, end_c = end_r + dr, end_c + dc
    return (start_r, start_c), (end_r, end_c)


def primary_direction(board: BoardView, placements: Sequence[Placement]) -> str:
    if len(placements) == 1:
        r, c = placements[0].pos
        horizontal = board.is_occupied(r, c - 1) or board.is_occupied(r, c + 1)
        vertical = board.is_occupied(r - 1, c) or board.is_occupied(r + 1, c)
        if vertical and not horizontal:
            return 'V'
        return 'H'
    if len({p.row for p in placements}) == 1:
        return 'H'
    return 'V'


class WordFormer:
    """Finds the main word and every cross word implied by the placements.

    The placements must already be on ``board``; nothing is mutated.
    """

    def __init__(self, board: BoardView):
        self.board = board

    def form_words(self, placements: Sequence[Placement]) -> List[FormedWord]:
        if not placements:
            return []
        staged: Dict[Tuple[int, int], Placement] = {p.pos: p for p in placements}
        first_move = not has_preexisting_tiles(self.board, placements)
        direction = primary_direction(self.board, placements)

        words: List[FormedWord] = []
        seen: Set[Tuple[Tuple[int, int], ...]] = set()

        ordered = sorted(placements, key=lambda p: p.pos)
        main = self._read(ordered[0].pos, ordered[-1].pos, direction, staged)
        if main is not None and len(main.text) >= 2:
            new = sum(1 for pos in main.cells if pos in staged)
            old = len(main.cells) - new
            if new and (old or first_move):
                words.append(main)
                seen.add(main.cells)

        cross = other(direction)
        for p in ordered:
            word = self._read(p.pos, p.pos, cross, staged)
            if word is None or len(word.text) < 2 or word.cells in seen:
                continue
            if not any(pos not in staged for pos in word.cells):
                continue
            words.append(word)
            seen.add(word.cells)
        return words

    def word_strings(self, placements: Sequence[Placement]) -> Set[str]:
        return {w.text for w in self.form_words(placements)}

    def _read(
        self,
        first: Tuple[int, int],
        last: Tuple[int, int],
        direction: str,
        staged: Dict[Tuple[int, int], Placement],
    ) -> Optional[FormedWord]:
        (start_r, start_c), _ = word_span(self.board, first[0], first[1], direction)
        _, (end_r, end_c) = word_span(self.board, last[0], last[1], direction)
        dr, dc = step(direction)
        letters: List[str] = []
        cells: List[Tuple[int, int]] = []
        r, c = start_r, start_c
        while True:
            tile = self.board.tile_at(r, c)
            if tile is None and (r, c) in staged:
                tile = staged[(r, c)].tile
            if tile is None:
                # gap inside the run: no word here
                return None
            letters.append(tile.letter.upper())
            cells.append((r, c))
            if (r, c) == (end_r, end_c):
                break
            r, c = r + dr, c + dc
        return FormedWord("".join(letters), start_r, start_c, direction, tuple(cells))
