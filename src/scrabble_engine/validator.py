import logging
from typing import Sequence

from .board import CENTER, BoardView, Placement, BOARD_SIZE

log = logging.getLogger(__name__)

_ORTHOGONAL = ((-1, 0), (1, 0), (0, -1), (0, 1))

def has_preexisting_tiles(board: BoardView, placements: Sequence[Placement]) -> bool:
    """True if any occupied cell on the board is not one of ``placements``."""
    staged = {p.pos for p in placements}
    for r in range(BOARD_SIZE):
        for c in range(BOARD_SIZE):
            if board.is_occupied(r, c) and (r, c) not in staged:
                return True
    return False

class PositionValidator:
    """Checks that this turn's placements form a legal move shape.

    Placements are expected to already sit on ``board``; "pre-existing"
    means occupied by anything that is not one of the placements.
    """

    def __init__(self, board: BoardView):
        self.board = board

    def is_valid(self, placements: Sequence[Placement]) -> bool:
        if not placements:
            return False

        rows = {p.row for p in placements}
        cols = {p.col for p in placements}
        if len(rows) > 1 and len(cols) > 1:
            log.info("Placement rejected: tiles are not in one line")
            return False
        if len({p.pos for p in placements}) != len(placements):
            return False

        staged = {p.pos for p in placements}
        if not self._contiguous(placements, horizontal=len(rows) == 1):
            log.info("Placement rejected: gap between placed tiles")
            return False

        if not has_preexisting_tiles(self.board, placements):
            if CENTER not in staged:
                log.info("Placement rejected: first move must cover the center")
                return False
            return True

        for p in placements:
            for dr, dc in _ORTHOGONAL:
                nr, nc = p.row + dr, p.col + dc
                if (nr, nc) not in staged and self.board.is_occupied(nr, nc):
                    return True
        log.info("Placement rejected: not connected to existing tiles")
        return False

    def _contiguous(self, placements: Sequence[Placement], horizontal: bool) -> bool:
        if horizontal:
            row = placements[0].row
            line = sorted(p.col for p in placements)
            return all(
                self.board.is_occupied(row, c)
                for a, b in zip(line, line[1:])
                for c in range(a + 1, b)
            )
        col = placements[0].col
        line = sorted(p.row for p in placements)
        return all(
            self.board.is_occupied(r, col)
            for a, b in zip(line, line[1:])
            for r in range(a + 1, b)
        )
