import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from scrabble_engine.board import Board, Placement
from scrabble_engine.scoring import ScoreCalculator, tile_score
from scrabble_engine.tiles import Tile
from scrabble_engine.words import WordFormer


def _stage_word(board, word, row, col):
    placements = []
    for i, ch in enumerate(word):
        t = Tile.blank(ch) if ch.islower() else Tile.of(ch)
        board.place_tile(t, row, col + i)
        placements.append(Placement(t, row, col + i))
    return placements


def _score(board, placed, **kwargs):
    words = WordFormer(board).form_words(placed)
    return ScoreCalculator(board, **kwargs).calculate(words, placed)


def test_cat_on_center():
    board = Board.empty()
    assert _score(board, _stage_word(board, "CAT", 7, 7)) == 10


def test_blank_scores_zero():
    board = Board.empty()
    placed = _stage_word(board, "zED", 7, 7)
    assert tile_score(placed[0].tile) == 0
    assert _score(board, placed) == 6


def test_old_tiles_score_face_value_only():
    rows = ["." * 15 for _ in range(15)]
    rows[7] = ".......CAT....."
    board = Board.from_string("\n".join(rows))
    placed = _stage_word(board, "S", 7, 10)
    assert _score(board, placed) == 6


def test_letter_premium_counts_in_both_words():
    board = Board.empty()
    board.place_tile(Tile.of("A"), 5, 6)
    board.place_tile(Tile.of("O"), 6, 7)
    x = Tile.of("X")
    board.place_tile(x, 6, 6)
    placed = [Placement(x, 6, 6)]
    words = WordFormer(board).form_words(placed)
    assert [w.text for w in words] == ["XO", "AX"]
    # X sits on the double letter at (6,6): 16 in each word
    assert ScoreCalculator(board).calculate(words, placed) == 17 + 17


def test_bingo_bonus_added_once():
    board = Board.empty()
    placed = _stage_word(board, "READING", 7, 4)
    words = WordFormer(board).form_words(placed)
    calc = ScoreCalculator(board)
    assert calc.calculate(words, placed) == 18 + 50
    assert ScoreCalculator(board, bingo_enabled=False).calculate(words, placed) == 18
    assert ScoreCalculator(board, bingo_bonus=35).calculate(words, placed) == 18 + 35


def test_no_words_no_score():
    board = Board.empty()
    placed = _stage_word(board, "A", 7, 7)
    assert ScoreCalculator(board).calculate([], placed) == 0


def test_bingo_with_hook_and_cross_word():
    board = Board.empty()
    board.place_tile(Tile.of("S"), 7, 11)
    board.place_tile(Tile.of("A"), 6, 5)
    placed = _stage_word(board, "READING", 7, 4)
    words = WordFormer(board).form_words(placed)
    assert [w.text for w in words] == ["READINGS", "AE"]
    # READINGS 10 doubled on the center, AE 2, bingo once
    assert ScoreCalculator(board).calculate(words, placed) == 20 + 2 + 50
