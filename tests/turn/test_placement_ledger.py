import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

import pytest

from scrabble_engine.board import Board
from scrabble_engine.dictionary import WordList
from scrabble_engine.events import GameEventType, RecordingEventSink
from scrabble_engine.exceptions import LedgerCorruptionError
from scrabble_engine.ledger import PlacementLedger
from scrabble_engine.tiles import BLANK, Rack, Tile


def _setup(letters, events=None):
    board = Board.empty()
    rack = Rack()
    tiles = [Tile.blank() if ch == BLANK else Tile.of(ch) for ch in letters]
    for t in tiles:
        rack.add(t)
    ledger = PlacementLedger(board, {0: rack}, events=events)
    return board, rack, tiles, ledger


def test_confirm_cat_on_center_scores_10():
    events = RecordingEventSink()
    board, rack, (c, a, t), ledger = _setup("CAT", events)
    assert ledger.place(0, c, 7, 7)
    assert ledger.place(0, a, 7, 8)
    assert ledger.place(0, t, 7, 9)
    assert ledger.confirm(0, WordList(["CAT"])) == 10
    assert not ledger.has_placements(0)
    assert board.tile_at(7, 8) is a
    assert len(rack) == 0
    types = events.types()
    assert types.count(GameEventType.TILE_PLACEMENT) == 3
    assert types[-1] == GameEventType.PLACEMENT_CONFIRM


def test_second_confirm_scores_nothing():
    board, rack, (c, a, t), ledger = _setup("CAT")
    for tile, col in ((c, 7), (a, 8), (t, 9)):
        ledger.place(0, tile, 7, col)
    assert ledger.confirm(0, WordList(["CAT"])) == 10
    assert ledger.confirm(0, WordList(["CAT"])) == 0
    assert board.occupied_count() == 3


def test_invalid_word_rolls_back_everything():
    board, rack, tiles, ledger = _setup("CAT")
    before = list(rack.slots)
    ledger.place(0, tiles[2], 7, 7)
    ledger.place(0, tiles[0], 7, 8)
    ledger.place(0, tiles[1], 7, 9)
    assert ledger.confirm(0, WordList(["CAT"])) == 0
    assert board.is_empty()
    assert all(x is y for x, y in zip(rack.slots, before))
    assert not ledger.has_placements(0)


def test_first_move_must_cover_center():
    board, rack, (a, t), ledger = _setup("AT")
    ledger.place(0, a, 0, 0)
    ledger.place(0, t, 0, 1)
    assert ledger.confirm_play(0, WordList(["AT"])) is None
    assert board.is_empty()
    assert len(rack) == 2


def test_place_rejects_occupied_cell_and_foreign_tile():
    board, rack, (a, t), ledger = _setup("AT")
    assert ledger.place(0, a, 7, 7)
    assert not ledger.place(0, t, 7, 7)
    assert not ledger.place(0, Tile.of("Z"), 7, 8)
    assert not ledger.place(0, a, 7, 8)
    assert not ledger.place(0, t, 15, 2)
    assert rack.slots[1] is t


def test_move_within_turn():
    board, rack, (c, a), ledger = _setup("CA")
    ledger.place(0, c, 7, 7)
    assert ledger.move_within_turn(0, 7, 7, 7, 8)
    assert board.tile_at(7, 8) is c
    assert not board.is_occupied(7, 7)
    assert ledger.placements(0)[0].pos == (7, 8)
    assert ledger.placements(0)[0].rack_slot == 0

    ledger.place(0, a, 7, 9)
    assert not ledger.move_within_turn(0, 7, 8, 7, 9)
    assert board.tile_at(7, 8) is c
    assert not ledger.move_within_turn(0, 3, 3, 4, 4)


def test_move_within_turn_cannot_touch_old_tiles():
    board, rack, (c,), ledger = _setup("C")
    old = Tile.of("X")
    board.place_tile(old, 7, 7)
    assert not ledger.move_within_turn(0, 7, 7, 7, 8)
    assert board.tile_at(7, 7) is old


def test_return_to_original_slot():
    board, rack, (c, a, t), ledger = _setup("CAT")
    ledger.place(0, a, 7, 7)
    assert ledger.return_to_rack(0, 7, 7, -1)
    assert rack.slots[1] is a
    assert board.is_empty()


def test_return_to_taken_slot_relocates_occupant():
    board, rack, (c, a, t), ledger = _setup("CAT")
    ledger.place(0, c, 7, 7)
    assert ledger.return_to_rack(0, 7, 7, 2)
    assert rack.slots[2] is c
    assert rack.slots[3] is t
    assert rack.slots[0] is None


def test_cancel_returns_all_tiles():
    events = RecordingEventSink()
    board, rack, tiles, ledger = _setup("CAT", events)
    before = list(rack.slots)
    for i, t in enumerate(tiles):
        ledger.place(0, t, 7, 7 + i)
    assert ledger.cancel(0)
    assert board.is_empty()
    assert all(x is y for x, y in zip(rack.slots, before))
    assert events.types()[-1] == GameEventType.PLACEMENT_CANCEL
    assert not ledger.cancel(0)


def test_cancel_after_moves_restores_rack_and_board():
    board, rack, (c, a, t), ledger = _setup("CAT")
    before = list(rack.slots)
    ledger.place(0, c, 7, 7)
    ledger.place(0, a, 7, 8)
    ledger.place(0, t, 7, 9)
    assert ledger.move_within_turn(0, 7, 7, 6, 7)
    assert ledger.move_within_turn(0, 7, 9, 8, 9)
    assert ledger.move_within_turn(0, 6, 7, 3, 3)
    assert ledger.cancel(0)
    assert board.is_empty()
    assert all(x is y for x, y in zip(rack.slots, before))
    assert not ledger.has_placements(0)


def test_blank_needs_a_letter_and_scores_zero():
    board, rack, (blank, e, d), ledger = _setup("?ED")
    assert not ledger.place(0, blank, 7, 7)
    assert ledger.place(0, blank, 7, 7, letter="z")
    assert blank.letter == "Z"
    ledger.place(0, e, 7, 8)
    ledger.place(0, d, 7, 9)
    assert ledger.confirm(0, WordList(["ZED"])) == 6


def test_returned_blank_loses_its_letter():
    board, rack, (blank,), ledger = _setup("?")
    ledger.place(0, blank, 7, 7, letter="Q")
    assert ledger.return_to_rack(0, 7, 7)
    assert blank.assigned is None


def test_place_selected_uses_the_selected_instance():
    board, rack, (a1, a2), ledger = _setup("AA")
    rack.select(a2)
    assert ledger.place_selected(0, 7, 7)
    assert board.tile_at(7, 7) is a2
    assert rack.selected == []
    assert not ledger.place_selected(0, 7, 8)


def test_board_tampering_is_a_hard_failure():
    board, rack, (c,), ledger = _setup("C")
    ledger.place(0, c, 7, 7)
    board.remove_tile(7, 7)
    with pytest.raises(LedgerCorruptionError):
        ledger.confirm(0, WordList(["C"]))


def test_last_words_after_confirm():
    board, rack, (c, a, t), ledger = _setup("CAT")
    assert ledger.last_words(0) == []
    for tile, col in ((c, 7), (a, 8), (t, 9)):
        ledger.place(0, tile, 7, col)
    ledger.confirm(0, WordList(["CAT"]))
    assert ledger.last_words(0) == ["CAT"]
