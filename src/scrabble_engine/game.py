"""A whole game: players, turn order, end conditions and automated players.

Every method that touches the board, a rack or the ledger holds the game's
re-entrant lock, so a timer thread or an automated player running on a
worker thread never interleaves with a human action.
"""

import functools
import logging
import random
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set

from .board import Board, Placement
from .config import Difficulty, GameConfig
from .dictionary import WordSource
from .events import EventSink, GameEventType, notify
from .ledger import ConfirmedPlay, PlacementLedger
from .move_generator import Fallback, MoveSearch, choose_fallback, commit_candidate, select_candidate
from .scoring import ScoreCalculator
from .tiles import Rack, Tile, TilePool

log = logging.getLogger(__name__)


class GameState(str, Enum):
    INITIALIZED = "INITIALIZED"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"


@dataclass
class Player:
    index: int
    name: str
    is_human: bool = True
    score: int = 0

    def add_score(self, points: int) -> None:
        if points > 0:
            self.score += points


@dataclass
class Turn:
    player_index: int
    placements: List[Placement] = field(default_factory=list)
    words: List[str] = field(default_factory=list)
    score: int = 0
    is_pass: bool = False
    is_exchange: bool = False
    confirmed: bool = False

    def record(self, play: ConfirmedPlay) -> bool:
        if self.confirmed:
            return False
        self.placements = list(play.placements)
        self.words = play.word_strings
        self.score = play.score
        return True

    def confirm(self, player: Player) -> bool:
        """Credit the score to ``player``; a second call changes nothing."""
        if self.confirmed:
            return False
        self.confirmed = True
        player.add_score(self.score)
        return True


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.lock:
            return method(self, *args, **kwargs)
    return wrapper


class Game:
    def __init__(
        self,
        players: Sequence[str],
        dictionary: WordSource,
        config: Optional[GameConfig] = None,
        events: Optional[EventSink] = None,
        pool: Optional[TilePool] = None,
    ):
        if not players:
            raise ValueError("a game needs at least one player")
        self.config = config or GameConfig()
        self.dictionary = dictionary
        self.events = events
        self.players: List[Player] = [Player(i, name) for i, name in enumerate(players)]
        self.board = Board()
        self.pool = pool or TilePool(seed=self.config.seed)
        self.racks: Dict[int, Rack] = {p.index: Rack(self.config.rack_capacity) for p in self.players}
        self.scorer = ScoreCalculator(
            self.board,
            bingo_bonus=self.config.bingo_bonus,
            bingo_enabled=self.config.bingo_enabled,
            rack_capacity=self.config.rack_capacity,
        )
        self.ledger = PlacementLedger(self.board, self.racks, self.scorer, events)
        self.lock = threading.RLock()
        self.rng = random.Random(self.config.seed)

        self.state = GameState.INITIALIZED
        self.current = 0
        self.turn: Optional[Turn] = None
        self._history: List[Turn] = []
        self.keep_rack: Set[int] = set()
        self.ai_players: Dict[int, Difficulty] = {}
        self._search: Optional[MoveSearch] = None
        self._cancel_search = threading.Event()

    # lifecycle

    @_locked
    def start(self) -> bool:
        if self.state is not GameState.INITIALIZED:
            return False
        self.state = GameState.RUNNING
        notify(self.events, GameEventType.GAME_START, players=len(self.players), seed=self.config.seed)
        self._begin_turn(0)
        return True

    @_locked
    def pause(self) -> bool:
        if self.state is not GameState.RUNNING:
            return False
        self.state = GameState.PAUSED
        return True

    @_locked
    def resume(self) -> bool:
        if self.state is not GameState.PAUSED:
            return False
        self.state = GameState.RUNNING
        return True

    def end_game(self) -> None:
        """Stop the game from outside, e.g. a game clock running out."""
        self._cancel_search.set()
        with self.lock:
            if self.state is GameState.FINISHED:
                return
            if self.ledger.has_placements(self.current):
                self.ledger.cancel(self.current)
            self._finish("ended")

    @property
    def is_over(self) -> bool:
        return self.state is GameState.FINISHED

    @property
    def current_player(self) -> Player:
        return self.players[self.current]

    @property
    def history(self) -> List[Turn]:
        with self.lock:
            return list(self._history)

    def rack(self, player: int) -> Rack:
        return self.racks[player]

    def winner(self) -> Optional[Player]:
        """Highest scorer, or None while nobody leads outright."""
        with self.lock:
            best = max(p.score for p in self.players)
            leaders = [p for p in self.players if p.score == best]
            if len(leaders) != 1:
                return None
            return leaders[0]

    # human actions

    def _acting(self, player: int) -> bool:
        if self.state is not GameState.RUNNING:
            log.info("Game is %s; action ignored", self.state.value)
            return False
        if player != self.current:
            log.info("Player %s acted out of turn", player)
            return False
        return True

    @_locked
    def select_tile(self, player: int, tile: Tile) -> bool:
        return self.racks[player].select(tile)

    @_locked
    def place_tile(self, player: int, tile: Tile, row: int, col: int, letter: Optional[str] = None) -> bool:
        if not self._acting(player):
            return False
        return self.ledger.place(player, tile, row, col, letter)

    @_locked
    def place_selected(self, player: int, row: int, col: int, letter: Optional[str] = None) -> bool:
        if not self._acting(player):
            return False
        return self.ledger.place_selected(player, row, col, letter)

    @_locked
    def move_tile(self, player: int, from_row: int, from_col: int, to_row: int, to_col: int) -> bool:
        if not self._acting(player):
            return False
        return self.ledger.move_within_turn(player, from_row, from_col, to_row, to_col)

    @_locked
    def return_tile(self, player: int, row: int, col: int, rack_slot: int = -1) -> bool:
        if not self._acting(player):
            return False
        return self.ledger.return_to_rack(player, row, col, rack_slot)

    @_locked
    def cancel_placement(self, player: int) -> bool:
        if not self._acting(player):
            return False
        return self.ledger.cancel(player)

    @_locked
    def confirm_placement(self, player: int) -> int:
        """Confirm the staged tiles; returns the points scored, 0 if rejected."""
        if not self._acting(player):
            return 0
        play = self.ledger.confirm_play(player, self.dictionary)
        if play is None:
            return 0
        self._complete_play(player, play)
        return play.score

    @_locked
    def pass_turn(self, player: int) -> bool:
        if not self._acting(player):
            return False
        if self.ledger.has_placements(player):
            self.ledger.cancel(player)
        self._pass(player, reason="pass")
        return True

    @_locked
    def exchange_tiles(self, player: int, tiles: Optional[Sequence[Tile]] = None) -> bool:
        """Swap ``tiles`` (default: the selected ones) for fresh tiles and end the turn."""
        if not self._acting(player):
            return False
        if self.ledger.has_placements(player):
            log.info("Return placed tiles before exchanging")
            return False
        rack = self.racks[player]
        tiles = rack.selected if tiles is None else list(tiles)
        fresh = self.pool.exchange(rack, tiles)
        if not fresh:
            log.info("Exchange of %s tiles refused (bag holds %s)", len(tiles), self.pool.remaining)
            return False
        rack.clear_selection()
        self.keep_rack.discard(player)
        self.turn.is_exchange = True
        notify(self.events, GameEventType.TILE_EXCHANGE, player, count=len(fresh))
        self._end_turn(player)
        return True

    def timeout_turn(self, player: Optional[int] = None) -> bool:
        """Time ran out for ``player`` (default: whoever is to move).

        Staged tiles go back to the rack first, then the turn counts as a
        pass and the rack is not refilled next time.
        """
        # each turn has its own event, so a late timer cannot stop a later search
        cancel = self._cancel_search
        if self.state is GameState.RUNNING and player in (None, self.current):
            cancel.set()
        with self.lock:
            if self.state is not GameState.RUNNING or player not in (None, self.current):
                return False
            player = self.current
            if self.ledger.has_placements(player):
                self.ledger.cancel(player)
            self._pass(player, reason="timeout")
            return True

    # automated players

    @_locked
    def enable_ai(self, player: int, difficulty: Optional[Difficulty] = None) -> None:
        self.players[player].is_human = False
        self.ai_players[player] = Difficulty.parse(difficulty or self.config.ai_difficulty)

    @property
    def search(self) -> MoveSearch:
        if self._search is None:
            self._search = MoveSearch(
                self.dictionary,
                bingo_bonus=self.config.bingo_bonus,
                bingo_enabled=self.config.bingo_enabled,
                rack_capacity=self.config.rack_capacity,
            )
        return self._search

    @_locked
    def play_ai_turn(self) -> Optional[Turn]:
        """Let the automated player to move take its turn.

        Returns the finished turn, or None if it is not an automated
        player's move or the search was cancelled.
        """
        player = self.current
        if self.state is not GameState.RUNNING or player not in self.ai_players:
            return None
        turn = self.turn
        rack = self.racks[player]
        cancel = self._cancel_search
        candidates = self.search.search(self.board, rack.tiles(), cancel)
        if cancel.is_set():
            return None

        chosen = select_candidate(candidates, self.ai_players[player])
        if chosen is not None:
            log.info("Player %s plays %s", player, chosen.describe())
            play = commit_candidate(self.ledger, player, chosen, self.dictionary)
            if play is not None:
                self._complete_play(player, play)
                return turn
            log.warning("Committing %s failed for player %s", chosen.word, player)

        action = choose_fallback(self.rng, self.config.exchange_probability)
        if action is Fallback.EXCHANGE and self.exchange_tiles(player, rack.tiles()):
            return turn
        self._pass(player, reason="no move")
        return turn

    def play_ai_turn_async(self) -> threading.Thread:
        worker = threading.Thread(
            target=self.play_ai_turn, name=f"ai-player-{self.current}", daemon=True
        )
        worker.start()
        return worker

    # turn bookkeeping

    def _begin_turn(self, player: int) -> None:
        self.current = player
        self._cancel_search = threading.Event()
        if player not in self.keep_rack:
            drawn = self.pool.draw_up_to(self.racks[player])
            log.debug("Player %s drew %s tiles", player, len(drawn))
        self.turn = Turn(player)
        notify(self.events, GameEventType.TURN_START, player, bag=self.pool.remaining)

    def _complete_play(self, player: int, play: ConfirmedPlay) -> None:
        self.turn.record(play)
        self.turn.confirm(self.players[player])
        self.keep_rack.discard(player)
        self._end_turn(player)

    def _pass(self, player: int, reason: str) -> None:
        self.turn.is_pass = True
        self.keep_rack.add(player)
        notify(self.events, GameEventType.TURN_PASS, player, reason=reason)
        self._end_turn(player)

    def _end_turn(self, player: int) -> None:
        turn = self.turn
        turn.confirmed = True
        self._history.append(turn)
        self.turn = None
        notify(self.events, GameEventType.TURN_END, player, score=turn.score, total=self.players[player].score)

        if self.players[player].score >= self.config.target_score:
            self._finish("target score")
        elif self.pool.remaining == 0 and len(self.racks[player]) == 0:
            self._finish("out of tiles")
        else:
            self._begin_turn((player + 1) % len(self.players))

    def _finish(self, reason: str) -> None:
        self.state = GameState.FINISHED
        self.turn = None
        winner = self.winner()
        log.info("Game over (%s); winner: %s", reason, winner.name if winner else "none")
        notify(
            self.events, GameEventType.GAME_END,
            reason=reason, scores=[p.score for p in self.players],
            winner=None if winner is None else winner.index,
        )
