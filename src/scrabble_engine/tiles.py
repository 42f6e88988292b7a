import random
import threading
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

BLANK = "?"

LETTER_SCORES_EN = {
    **{c: 1 for c in list("AEILNORSTU")},
    **{c: 2 for c in list("DG")},
    **{c: 3 for c in list("BCMP")},
    **{c: 4 for c in list("FHVWY")},
    "K": 5,
    **{c: 8 for c in list("JX")},
    **{c: 10 for c in list("QZ")},
}

# letter -> number of tiles in a fresh bag (100 tiles, 2 blanks)
TILE_DISTRIBUTION = {
    "A": 9, "B": 2, "C": 2, "D": 4, "E": 12, "F": 2, "G": 3,
    "H": 2, "I": 9, "J": 1, "K": 1, "L": 4, "M": 2, "N": 6,
    "O": 8, "P": 2, "Q": 1, "R": 6, "S": 4, "T": 6, "U": 4,
    "V": 2, "W": 2, "X": 1, "Y": 2, "Z": 1, BLANK: 2,
}

class _UidCounter:
    """Hands out tile ids. Restored games bump it past the ids they load."""

    def __init__(self) -> None:
        self._next = 1
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            uid = self._next
            self._next += 1
            return uid

    def bump(self, floor: int) -> None:
        with self._lock:
            self._next = max(self._next, floor + 1)


next_uid = _UidCounter()


def letter_value(letter: str) -> int:
    if letter == BLANK:
        return 0
    return LETTER_SCORES_EN.get(letter.upper(), 0)


@dataclass(eq=False)
class Tile:
    """A physical tile. Equality is identity: two 'E' tiles are different tiles.

    ``face`` never changes. A blank (face ``?``) gets an ``assigned`` letter
    while it sits on the board and is always worth 0.
    """

    face: str
    value: int
    uid: int = field(default_factory=next_uid)
    assigned: Optional[str] = None

    @staticmethod
    def of(letter: str) -> "Tile":
        letter = letter.upper()
        return Tile(letter, letter_value(letter))

    @staticmethod
    def blank(assigned: Optional[str] = None) -> "Tile":
        return Tile(BLANK, 0, assigned=assigned.upper() if assigned else None)

    @property
    def is_blank(self) -> bool:
        return self.face == BLANK

    @property
    def letter(self) -> str:
        if self.is_blank:
            return self.assigned or BLANK
        return self.face

    def assign(self, letter: str) -> bool:
        if not self.is_blank or len(letter) != 1 or not letter.isalpha():
            return False
        self.assigned = letter.upper()
        return True

    def clear_assignment(self) -> None:
        if self.is_blank:
            self.assigned = None

    def __repr__(self) -> str:
        if self.is_blank:
            return f"Tile(?{self.assigned or ''}#{self.uid})"
        return f"Tile({self.face}{self.value}#{self.uid})"


def make_bag() -> List[Tile]:
    bag: List[Tile] = []
    for letter, count in TILE_DISTRIBUTION.items():
        for _ in range(count):
            bag.append(Tile.blank() if letter == BLANK else Tile.of(letter))
    return bag


class Rack:
    """Fixed-size row of tile slots. Slot indices are stable for the whole turn."""

    def __init__(self, capacity: int = 7):
        self.capacity = capacity
        self.slots: List[Optional[Tile]] = [None] * capacity
        self._selected: List[Tile] = []

    def tiles(self) -> List[Tile]:
        return [t for t in self.slots if t is not None]

    def letters(self) -> str:
        return "".join(t.face for t in self.tiles())

    def __len__(self) -> int:
        return len(self.tiles())

    def __contains__(self, tile: Tile) -> bool:
        return self.index_of(tile) is not None

    def index_of(self, tile: Tile) -> Optional[int]:
        for i, t in enumerate(self.slots):
            if t is tile:
                return i
        return None

    def empty_slots(self) -> List[int]:
        return [i for i, t in enumerate(self.slots) if t is None]

    def is_full(self) -> bool:
        return not self.empty_slots()

    def remove(self, tile: Tile) -> Optional[int]:
        """Take ``tile`` off the rack, returning the slot it vacated."""
        idx = self.index_of(tile)
        if idx is None:
            return None
        self.slots[idx] = None
        self.unselect(tile)
        return idx

    def put(self, slot: int, tile: Tile) -> None:
        if self.slots[slot] is not None:
            raise ValueError(f"rack slot {slot} is taken")
        self.slots[slot] = tile

    def add(self, tile: Tile) -> bool:
        free = self.empty_slots()
        if not free:
            return False
        self.slots[free[0]] = tile
        return True

    def insert(self, tile: Tile, slot: int) -> bool:
        """Put ``tile`` at ``slot``, relocating any occupant to a free slot.

        The occupant goes to the first free slot after ``slot``, else the
        nearest one before it. Returns False (rack untouched) when the rack
        has no free slot at all or ``slot`` is past the end. A negative
        ``slot`` means any free slot.
        """
        if slot >= self.capacity:
            return False
        if slot < 0:
            return self.add(tile)
        occupant = self.slots[slot]
        if occupant is None:
            self.slots[slot] = tile
            return True
        forward = [i for i in range(slot + 1, self.capacity) if self.slots[i] is None]
        backward = [i for i in range(slot - 1, -1, -1) if self.slots[i] is None]
        free = forward + backward
        if not free:
            return False
        self.slots[free[0]] = occupant
        self.slots[slot] = tile
        return True

    def swap(self, i: int, j: int) -> None:
        if not (0 <= i < self.capacity and 0 <= j < self.capacity):
            raise IndexError(f"rack slot out of range: {i}, {j}")
        self.slots[i], self.slots[j] = self.slots[j], self.slots[i]

    # selection

    def select(self, tile: Tile) -> bool:
        if tile not in self:
            return False
        if not any(t is tile for t in self._selected):
            self._selected.append(tile)
        return True

    def unselect(self, tile: Tile) -> None:
        self._selected = [t for t in self._selected if t is not tile]

    def clear_selection(self) -> None:
        self._selected = []

    @property
    def selected(self) -> List[Tile]:
        return list(self._selected)

    def selected_index(self) -> Optional[int]:
        """Slot of the selected tile when exactly one tile is selected."""
        if len(self._selected) != 1:
            return None
        return self.index_of(self._selected[0])


class TilePool:
    """The bag. Tiles are drawn without replacement, so letter frequencies
    follow TILE_DISTRIBUTION."""

    def __init__(self, seed: Optional[int] = None, tiles: Optional[Iterable[Tile]] = None):
        self.rng = random.Random(seed)
        if tiles is None:
            self.bag = make_bag()
            self.rng.shuffle(self.bag)
        else:
            self.bag = list(tiles)

    @property
    def remaining(self) -> int:
        return len(self.bag)

    def draw(self, count: int) -> List[Tile]:
        drawn = self.bag[:count]
        del self.bag[:count]
        return drawn

    def draw_up_to(self, rack: Rack, capacity: Optional[int] = None) -> List[Tile]:
        """Fill the empty slots of ``rack`` in slot order; only called at turn start."""
        capacity = rack.capacity if capacity is None else min(capacity, rack.capacity)
        missing = max(0, capacity - len(rack))
        drawn = self.draw(missing)
        for tile in drawn:
            rack.add(tile)
        return drawn

    def exchange(self, rack: Rack, tiles: Sequence[Tile]) -> List[Tile]:
        """Swap ``tiles`` from ``rack`` for fresh ones, keeping their slots.

        Returns the new tiles, or an empty list when the bag is too small or a
        tile is not on the rack.
        """
        if not tiles or len(tiles) > len(self.bag):
            return []
        if any(t not in rack for t in tiles):
            return []
        fresh = self.draw(len(tiles))
        for old, new in zip(tiles, fresh):
            slot = rack.remove(old)
            old.clear_assignment()
            rack.put(slot, new)
            self.bag.append(old)
        self.rng.shuffle(self.bag)
        return fresh
