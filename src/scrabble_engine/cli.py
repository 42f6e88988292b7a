import argparse
import logging
import sys
from typing import List, Optional

from .board import Board
from .config import Difficulty, GameConfig
from .dictionary import load_dictionary
from .events import LoggingEventSink
from .exceptions import ScrabbleEngineError
from .game import Game
from .move_generator import MoveSearch, select_candidate
from .tiles import BLANK, Tile


def _parse_board_string(board_string: Optional[str]) -> Board:
    if not board_string:
        return Board.empty()
    return Board.from_string(board_string)


def _rack_tiles(rack: str) -> List[Tile]:
    tiles: List[Tile] = []
    for ch in rack.strip().upper():
        if ch == BLANK:
            tiles.append(Tile.blank())
        elif 'A' <= ch <= 'Z':
            tiles.append(Tile.of(ch))
        else:
            raise ValueError(f"Invalid rack character: {ch}")
    return tiles


def _suggest(args: argparse.Namespace) -> int:
    board = _parse_board_string(args.board_string)
    rack = _rack_tiles(args.rack)
    search = MoveSearch(load_dictionary(args.dict_path))
    candidates = search.search(board, rack)
    if not candidates:
        print("No valid moves found.")
        return 1

    for cand in candidates[-args.top:][::-1]:
        print("  " + cand.describe())
    move = select_candidate(candidates, Difficulty.parse(args.difficulty))
    print(f"Selected: {move.word} at ({move.row},{move.col}) {move.direction} score={move.score}")

    # Print the board with the move applied ('.' empty, A-Z tile, a-z blank tile).
    out_grid = board.letters('.')
    for t in move.tiles:
        out_grid[t.row][t.col] = t.letter.lower() if t.is_blank else t.letter
    print("Board after move:")
    print("\n".join("".join(row) for row in out_grid))
    return 0


def _play(args: argparse.Namespace) -> int:
    config = GameConfig(
        target_score=args.target_score,
        ai_difficulty=Difficulty.parse(args.difficulty),
        seed=args.seed,
    )
    events = LoggingEventSink() if args.verbose else None
    game = Game([f"bot{i}" for i in range(args.players)], load_dictionary(args.dict_path), config, events)
    for p in game.players:
        game.enable_ai(p.index)
    game.start()

    passes = 0
    while not game.is_over and passes < 2 * len(game.players):
        turn = game.play_ai_turn()
        if turn is None:
            break
        passes = passes + 1 if turn.is_pass or turn.is_exchange else 0
        if turn.words:
            print(f"{game.players[turn.player_index].name}: {','.join(turn.words)} +{turn.score}")
    if not game.is_over:
        game.end_game()

    print(game.board.to_string())
    for p in game.players:
        print(f"{p.name}: {p.score}")
    winner = game.winner()
    print(f"Winner: {winner.name if winner else 'tie'}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Scrabble move search and self-play")
    p.add_argument("-v", "--verbose", action="store_true", help="Log game events")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("suggest", help="Suggest a move for a rack on a board")
    s.add_argument("--board-string", type=str, help="15 lines of 15 chars; '.' empty; A-Z tiles; a-z blank")
    s.add_argument("--rack", required=True, type=str, help="Your rack letters (use '?' for blanks)")
    s.add_argument("--dict", required=True, type=str, dest="dict_path", help="Path to dictionary file (one word per line)")
    s.add_argument("--difficulty", default="HARD", help="EASY, MEDIUM or HARD")
    s.add_argument("--top", type=int, default=5, help="How many of the best candidates to list")
    s.set_defaults(func=_suggest)

    g = sub.add_parser("play", help="Run a game between automated players")
    g.add_argument("--dict", required=True, type=str, dest="dict_path", help="Path to dictionary file (one word per line)")
    g.add_argument("--players", type=int, default=2)
    g.add_argument("--difficulty", default="MEDIUM", help="EASY, MEDIUM or HARD")
    g.add_argument("--target-score", type=int, default=200)
    g.add_argument("--seed", type=int)
    g.set_defaults(func=_play)

    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (ScrabbleEngineError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
