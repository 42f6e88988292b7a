import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from scrabble_engine.board import Board, Placement
from scrabble_engine.tiles import Tile
from scrabble_engine.validator import PositionValidator
from scrabble_engine.words import WordFormer, primary_direction


def _cat_board():
    rows = ["." * 15 for _ in range(15)]
    rows[7] = ".......CAT....."
    return Board.from_string("\n".join(rows))


def _stage(board, *cells):
    placements = []
    for r, c, ch in cells:
        t = Tile.of(ch)
        assert board.place_tile(t, r, c)
        placements.append(Placement(t, r, c))
    return placements


def test_extending_a_word():
    board = _cat_board()
    placed = _stage(board, (7, 10, "S"))
    assert PositionValidator(board).is_valid(placed)
    assert [w.text for w in WordFormer(board).form_words(placed)] == ["CATS"]


def test_parallel_play_counts_only_cross_words():
    board = _cat_board()
    placed = _stage(board, (8, 8, "T"), (8, 9, "O"))
    assert PositionValidator(board).is_valid(placed)
    words = WordFormer(board).form_words(placed)
    assert [w.text for w in words] == ["AT", "TO"]
    assert all(w.direction == "V" for w in words)


def test_single_tile_with_only_vertical_neighbour_reads_down():
    board = _cat_board()
    placed = _stage(board, (8, 9, "O"))
    assert primary_direction(board, placed) == "V"
    words = WordFormer(board).form_words(placed)
    assert [w.text for w in words] == ["TO"]
    assert words[0].cells == ((7, 9), (8, 9))


def test_word_extraction_is_deterministic():
    board = _cat_board()
    placed = _stage(board, (8, 8, "T"), (8, 9, "O"))
    former = WordFormer(board)
    assert former.form_words(placed) == former.form_words(placed)
    assert former.word_strings(placed) == {"AT", "TO"}


def test_gap_is_rejected():
    board = Board.empty()
    placed = _stage(board, (7, 7, "C"), (7, 9, "T"))
    assert not PositionValidator(board).is_valid(placed)
    assert WordFormer(board).form_words(placed) == []


def test_gap_filled_by_existing_tile_is_fine():
    board = _cat_board()
    board.remove_tile(7, 7)
    board.remove_tile(7, 9)
    placed = _stage(board, (7, 7, "C"), (7, 9, "T"))
    assert PositionValidator(board).is_valid(placed)
    assert [w.text for w in WordFormer(board).form_words(placed)] == ["CAT"]


def test_tiles_must_share_a_line():
    board = Board.empty()
    placed = _stage(board, (7, 7, "A"), (8, 8, "T"))
    assert not PositionValidator(board).is_valid(placed)


def test_first_move_needs_center():
    board = Board.empty()
    assert not PositionValidator(board).is_valid(_stage(board, (0, 0, "A"), (0, 1, "T")))
    board = Board.empty()
    assert PositionValidator(board).is_valid(_stage(board, (7, 6, "A"), (7, 7, "T")))


def test_later_move_must_touch_old_tiles():
    board = _cat_board()
    placed = _stage(board, (0, 0, "A"), (0, 1, "T"))
    assert not PositionValidator(board).is_valid(placed)


def test_empty_placement_is_invalid():
    assert not PositionValidator(Board.empty()).is_valid([])
    assert WordFormer(Board.empty()).form_words([]) == []


def test_blank_letters_come_out_uppercase():
    board = Board.empty()
    blank = Tile.blank("t")
    board.place_tile(blank, 7, 8)
    placed = _stage(board, (7, 7, "A")) + [Placement(blank, 7, 8)]
    assert [w.text for w in WordFormer(board).form_words(placed)] == ["AT"]
