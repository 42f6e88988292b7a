from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Protocol, Tuple

import numpy as np

from .tiles import Tile

BOARD_SIZE = 15
CENTER = (BOARD_SIZE // 2, BOARD_SIZE // 2)

# Standard Scrabble premium squares layout
# Codes: ".." normal, "TW" triple word, "DW" double word, "TL" triple letter,
# "DL" double letter, "**" center star
PREMIUMS: List[List[str]] = [
    ["TW","..","..","DL","..","..","..","TW","..","..","..","DL","..","..","TW"],
    ["..","DW","..","..","..","TL","..","..","..","TL","..","..","..","DW",".."],
    ["..","..","DW","..","..","..","DL","..","DL","..","..","..","DW","..",".."],
    ["DL","..","..","DW","..","..","..","DL","..","..","..","DW","..","..","DL"],
    ["..","..","..","..","DW","..","..","..","..","..","DW","..","..","..",".."],
    ["..","TL","..","..","..","TL","..","..","..","TL","..","..","..","TL",".."],
    ["..","..","DL","..","..","..","DL","..","DL","..","..","..","DL","..",".."],
    ["TW","..","..","DL","..","..","..","**","..","..","..","DL","..","..","TW"],
    ["..","..","DL","..","..","..","DL","..","DL","..","..","..","DL","..",".."],
    ["..","TL","..","..","..","TL","..","..","..","TL","..","..","..","TL",".."],
    ["..","..","..","..","DW","..","..","..","..","..","DW","..","..","..",".."],
    ["DL","..","..","DW","..","..","..","DL","..","..","..","DW","..","..","DL"],
    ["..","..","DW","..","..","..","DL","..","DL","..","..","..","DW","..",".."],
    ["..","DW","..","..","..","TL","..","..","..","TL","..","..","..","DW",".."],
    ["TW","..","..","DL","..","..","..","TW","..","..","..","DL","..","..","TW"],
]


class BonusKind(str, Enum):
    NONE = ".."
    DOUBLE_LETTER = "DL"
    TRIPLE_LETTER = "TL"
    DOUBLE_WORD = "DW"
    TRIPLE_WORD = "TW"
    CENTER = "**"

    @property
    def letter_multiplier(self) -> int:
        return {BonusKind.DOUBLE_LETTER: 2, BonusKind.TRIPLE_LETTER: 3}.get(self, 1)

    @property
    def word_multiplier(self) -> int:
        # the center star doubles the first word
        return {
            BonusKind.DOUBLE_WORD: 2,
            BonusKind.TRIPLE_WORD: 3,
            BonusKind.CENTER: 2,
        }.get(self, 1)


def _multiplier_table(attr: str) -> np.ndarray:
    table = np.ones((BOARD_SIZE, BOARD_SIZE), dtype=np.int64)
    for r in range(BOARD_SIZE):
        for c in range(BOARD_SIZE):
            table[r, c] = getattr(BonusKind(PREMIUMS[r][c]), attr)
    return table


LETTER_MULTIPLIERS = _multiplier_table("letter_multiplier")
WORD_MULTIPLIERS = _multiplier_table("word_multiplier")


@dataclass
class Cell:
    row: int
    col: int
    bonus: BonusKind
    tile: Optional[Tile] = None

    @property
    def letter_multiplier(self) -> int:
        return int(LETTER_MULTIPLIERS[self.row, self.col])

    @property
    def word_multiplier(self) -> int:
        return int(WORD_MULTIPLIERS[self.row, self.col])

    @property
    def is_occupied(self) -> bool:
        return self.tile is not None


@dataclass(frozen=True)
class Placement:
    """A tile staged on the board this turn and the rack slot it left.

    ``rack_slot`` is -1 for hypothetical tiles that never sat on a rack.
    """

    tile: Tile
    row: int
    col: int
    rack_slot: int = -1

    @property
    def pos(self) -> Tuple[int, int]:
        return (self.row, self.col)


class BoardView(Protocol):
    """What validators, word formation and scoring need from a board."""

    def is_occupied(self, row: int, col: int) -> bool: ...

    def tile_at(self, row: int, col: int) -> Optional[Tile]: ...

    def cell(self, row: int, col: int) -> Cell: ...

    def place_tile(self, tile: Tile, row: int, col: int) -> bool: ...

    def remove_tile(self, row: int, col: int) -> Optional[Tile]: ...


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def step(direction: str) -> Tuple[int, int]:
    return (0, 1) if direction == 'H' else (1, 0)


def other(direction: str) -> str:
    return 'V' if direction == 'H' else 'H'


class Board:
    """15x15 grid of cells. Bonus layout is fixed; only tiles move."""

    def __init__(self) -> None:
        self.cells: List[List[Cell]] = [
            [Cell(r, c, BonusKind(PREMIUMS[r][c])) for c in range(BOARD_SIZE)]
            for r in range(BOARD_SIZE)
        ]

    @staticmethod
    def empty() -> "Board":
        return Board()

    @staticmethod
    def from_string(multiline: str) -> "Board":
        # 15 lines of 15 chars; '.' empty, 'A-Z' letter, 'a-z' blank
        rows = [line.strip() for line in multiline.strip().splitlines() if line.strip()]
        if len(rows) != BOARD_SIZE or any(len(r) != BOARD_SIZE for r in rows):
            raise ValueError("Board string must be 15 lines of 15 characters")
        board = Board()
        for r, line in enumerate(rows):
            for c, ch in enumerate(line):
                if ch == '.':
                    continue
                if 'A' <= ch <= 'Z':
                    board.place_tile(Tile.of(ch), r, c)
                elif 'a' <= ch <= 'z':
                    board.place_tile(Tile.blank(ch), r, c)
                else:
                    raise ValueError(f"Invalid board character: {ch}")
        return board

    def to_string(self) -> str:
        return "\n".join("".join(row) for row in self.letters('.'))

    def letters(self, empty: Optional[str] = None) -> List[List[Optional[str]]]:
        """Letter grid; blanks are lowercase."""
        grid: List[List[Optional[str]]] = []
        for row in self.cells:
            out: List[Optional[str]] = []
            for cell in row:
                tile = cell.tile
                if tile is None:
                    out.append(empty)
                elif tile.is_blank:
                    out.append(tile.letter.lower())
                else:
                    out.append(tile.letter)
            grid.append(out)
        return grid

    def cell(self, row: int, col: int) -> Cell:
        if not in_bounds(row, col):
            raise IndexError(f"cell out of range: ({row},{col})")
        return self.cells[row][col]

    def tile_at(self, row: int, col: int) -> Optional[Tile]:
        if not in_bounds(row, col):
            return None
        return self.cells[row][col].tile

    def is_occupied(self, row: int, col: int) -> bool:
        return self.tile_at(row, col) is not None

    def place_tile(self, tile: Tile, row: int, col: int) -> bool:
        if not in_bounds(row, col) or self.cells[row][col].tile is not None:
            return False
        self.cells[row][col].tile = tile
        return True

    def remove_tile(self, row: int, col: int) -> Optional[Tile]:
        if not in_bounds(row, col):
            return None
        cell = self.cells[row][col]
        tile, cell.tile = cell.tile, None
        return tile

    def occupancy(self) -> np.ndarray:
        return np.array(
            [[cell.tile is not None for cell in row] for row in self.cells], dtype=bool
        )

    def occupied_count(self) -> int:
        return int(self.occupancy().sum())

    def is_empty(self) -> bool:
        return not self.occupancy().any()

    def occupied_cells(self) -> Iterator[Cell]:
        for row in self.cells:
            for cell in row:
                if cell.tile is not None:
                    yield cell

    def neighbors(self, row: int, col: int) -> List[Tuple[int, int]]:
        return [
            (row + dr, col + dc)
            for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1))
            if in_bounds(row + dr, col + dc)
        ]

    def __str__(self) -> str:
        return self.to_string()
