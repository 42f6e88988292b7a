import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

import pytest

from scrabble_engine.tiles import BLANK, Rack, Tile, TilePool, make_bag


def _rack(letters):
    rack = Rack()
    tiles = [Tile.blank() if ch == BLANK else Tile.of(ch) for ch in letters]
    for t in tiles:
        rack.add(t)
    return rack, tiles


def test_full_bag():
    bag = make_bag()
    assert len(bag) == 100
    assert sum(1 for t in bag if t.is_blank) == 2
    assert sum(1 for t in bag if t.face == "E") == 12


def test_tiles_are_distinct_instances():
    a1, a2 = Tile.of("A"), Tile.of("A")
    assert a1 != a2
    assert a1.uid != a2.uid
    rack, _ = _rack("")
    rack.add(a1)
    assert a1 in rack
    assert a2 not in rack


def test_blank_assignment():
    blank = Tile.blank()
    assert blank.letter == BLANK
    assert blank.assign("z")
    assert blank.letter == "Z"
    assert blank.value == 0
    blank.clear_assignment()
    assert blank.assigned is None
    assert not Tile.of("A").assign("B")


def test_insert_relocates_occupant_forward():
    rack, (a, b, c) = _rack("ABC")
    x = Tile.of("X")
    assert rack.insert(x, 1)
    assert rack.slots[1] is x
    assert rack.slots[3] is b
    assert rack.slots[0] is a and rack.slots[2] is c


def test_insert_relocates_occupant_backward():
    rack, tiles = _rack("ABCDEFG")
    rack.remove(tiles[2])
    x = Tile.of("X")
    assert rack.insert(x, 6)
    assert rack.slots[6] is x
    assert rack.slots[2] is tiles[6]


def test_insert_into_full_rack_fails():
    rack, tiles = _rack("ABCDEFG")
    before = list(rack.slots)
    assert not rack.insert(Tile.of("X"), 3)
    assert rack.slots == before


def test_insert_past_the_end_fails():
    rack, (a, b) = _rack("AB")
    before = list(rack.slots)
    x = Tile.of("X")
    assert not rack.insert(x, 7)
    assert not rack.insert(x, 9)
    assert rack.slots == before
    assert rack.insert(x, -1)
    assert rack.slots[2] is x


def test_swap_slots():
    rack, (a, b) = _rack("AB")
    rack.swap(0, 1)
    assert rack.slots[0] is b and rack.slots[1] is a
    with pytest.raises(IndexError):
        rack.swap(0, 9)


def test_selection_is_idempotent():
    rack, (a, b, c) = _rack("ABC")
    assert rack.select(b)
    assert rack.select(b)
    assert rack.selected == [b]
    assert rack.selected_index() == 1
    rack.select(c)
    assert rack.selected_index() is None
    rack.clear_selection()
    assert rack.selected == []
    assert not rack.select(Tile.of("Z"))


def test_draw_up_to_fills_empty_slots_only():
    pool = TilePool(seed=3)
    rack, _ = _rack("AB")
    drawn = pool.draw_up_to(rack)
    assert len(drawn) == 5
    assert rack.is_full()
    assert pool.remaining == 95


def test_draw_when_bag_runs_out():
    pool = TilePool(tiles=[Tile.of("A"), Tile.of("B")])
    rack = Rack()
    assert len(pool.draw_up_to(rack)) == 2
    assert pool.remaining == 0
    assert len(rack) == 2


def test_exchange_keeps_slots():
    pool = TilePool(seed=11)
    rack = Rack()
    pool.draw_up_to(rack)
    old = [rack.slots[1], rack.slots[4]]
    fresh = pool.exchange(rack, old)
    assert len(fresh) == 2
    assert rack.slots[1] is fresh[0]
    assert rack.slots[4] is fresh[1]
    assert pool.remaining == 93
    assert all(any(t is o for t in pool.bag) for o in old)


def test_exchange_refused_when_bag_too_small():
    pool = TilePool(tiles=[Tile.of("E")])
    rack, tiles = _rack("AB")
    assert pool.exchange(rack, tiles) == []
    assert rack.slots[0] is tiles[0]
    assert pool.remaining == 1


def test_seeded_pools_match():
    assert [t.face for t in TilePool(seed=5).bag] == [t.face for t in TilePool(seed=5).bag]
