import logging
from typing import Iterable, Sequence

from .board import BoardView, Placement
from .config import BINGO_BONUS, RACK_CAPACITY
from .tiles import Tile
from .words import FormedWord

log = logging.getLogger(__name__)


def tile_score(tile: Tile) -> int:
    # blanks are worth 0 whatever letter they stand for
    if tile.is_blank:
        return 0
    return tile.value


class ScoreCalculator:
    """Scores formed words.

    Rules implemented:
    - Letter/word premiums apply only for cells filled this turn.
    - A premium under a newly placed tile applies to every word through that
      tile (main word and cross-words).
    - Existing tiles contribute their face value (0 for blanks).
    - Placing exactly ``rack_capacity`` tiles adds the bingo bonus once.
    """

    def __init__(
        self,
        board: BoardView,
        bingo_bonus: int = BINGO_BONUS,
        bingo_enabled: bool = True,
        rack_capacity: int = RACK_CAPACITY,
    ):
        self.board = board
        self.bingo_bonus = bingo_bonus
        self.bingo_enabled = bingo_enabled
        self.rack_capacity = rack_capacity

    def is_bingo(self, placements: Sequence[Placement]) -> bool:
        return len(placements) == self.rack_capacity

    def word_score(self, word: FormedWord, placements: Sequence[Placement]) -> int:
        staged = {p.pos: p for p in placements}
        total = 0
        word_mult = 1
        for r, c in word.cells:
            cell = self.board.cell(r, c)
            if (r, c) in staged:
                total += tile_score(staged[(r, c)].tile) * cell.letter_multiplier
                word_mult *= cell.word_multiplier
            elif cell.tile is not None:
                total += tile_score(cell.tile)
        return total * word_mult

    def calculate(self, words: Iterable[FormedWord], placements: Sequence[Placement]) -> int:
        words = list(words)
        if not words or not placements:
            return 0
        total = sum(self.word_score(w, placements) for w in words)
        if self.bingo_enabled and self.is_bingo(placements):
            log.debug("Bingo: +%s", self.bingo_bonus)
            total += self.bingo_bonus
        return total
