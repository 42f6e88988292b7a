"""Plain-data snapshots of a game.

A snapshot holds the board, racks, bag, staged placements, players, turn
order and history. The dictionary, event sink, lock and any search
threads are not part of it; they are supplied again on restore.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .board import BOARD_SIZE, Placement
from .config import Difficulty, GameConfig
from .dictionary import WordSource
from .events import EventSink
from .exceptions import LedgerCorruptionError, SnapshotError
from .game import Game, GameState, Turn
from .tiles import Tile, TilePool, next_uid

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def _tile(tile: Tile) -> Dict[str, Any]:
    return {"uid": tile.uid, "face": tile.face, "value": tile.value, "assigned": tile.assigned}


def _rng_state(rng) -> List[Any]:
    version, internal, gauss = rng.getstate()
    return [version, list(internal), gauss]


def _placement(p: Placement) -> Dict[str, Any]:
    return {"uid": p.tile.uid, "row": p.row, "col": p.col, "rack_slot": p.rack_slot}


def _turn(turn: Turn) -> Dict[str, Any]:
    return {
        "player": turn.player_index,
        "placements": [_placement(p) for p in turn.placements],
        "words": list(turn.words),
        "score": turn.score,
        "is_pass": turn.is_pass,
        "is_exchange": turn.is_exchange,
        "confirmed": turn.confirmed,
    }


def game_to_dict(game: Game) -> Dict[str, Any]:
    with game.lock:
        cfg = game.config
        return {
            "version": SNAPSHOT_VERSION,
            "config": {
                "rack_capacity": cfg.rack_capacity,
                "bingo_bonus": cfg.bingo_bonus,
                "bingo_enabled": cfg.bingo_enabled,
                "target_score": cfg.target_score,
                "ai_difficulty": cfg.ai_difficulty.value,
                "exchange_probability": cfg.exchange_probability,
                "seed": cfg.seed,
            },
            "state": game.state.value,
            "current": game.current,
            "players": [
                {"name": p.name, "is_human": p.is_human, "score": p.score} for p in game.players
            ],
            "ai_players": {str(i): d.value for i, d in game.ai_players.items()},
            "board": [
                {"row": cell.row, "col": cell.col, "tile": _tile(cell.tile)}
                for cell in game.board.occupied_cells()
            ],
            "racks": {
                str(i): [None if t is None else _tile(t) for t in rack.slots]
                for i, rack in game.racks.items()
            },
            "bag": [_tile(t) for t in game.pool.bag],
            "pool_rng": _rng_state(game.pool.rng),
            "rng": _rng_state(game.rng),
            "ledger": {
                str(p.index): [_placement(pl) for pl in game.ledger.placements(p.index)]
                for p in game.players
                if game.ledger.has_placements(p.index)
            },
            "turn": None if game.turn is None else _turn(game.turn),
            "history": [_turn(t) for t in game.history],
            "keep_rack": sorted(game.keep_rack),
        }


class _Restorer:
    """Rebuilds tiles once each so that board, racks and ledger share instances."""

    def __init__(self) -> None:
        self.by_uid: Dict[int, Tile] = {}

    def tile(self, data: Dict[str, Any]) -> Tile:
        uid = int(data["uid"])
        if uid in self.by_uid:
            raise SnapshotError(f"tile {uid} appears twice")
        tile = Tile(data["face"], int(data["value"]), uid=uid, assigned=data.get("assigned"))
        self.by_uid[uid] = tile
        return tile

    def placement(self, data: Dict[str, Any]) -> Placement:
        uid = int(data["uid"])
        if uid not in self.by_uid:
            raise SnapshotError(f"placement refers to unknown tile {uid}")
        return Placement(self.by_uid[uid], int(data["row"]), int(data["col"]), int(data["rack_slot"]))

    def turn(self, data: Dict[str, Any]) -> Turn:
        return Turn(
            int(data["player"]),
            [self.placement(p) for p in data["placements"]],
            list(data["words"]),
            int(data["score"]),
            bool(data["is_pass"]),
            bool(data["is_exchange"]),
            bool(data["confirmed"]),
        )


def _set_rng(rng, state: List[Any]) -> None:
    rng.setstate((state[0], tuple(state[1]), state[2]))


def game_from_dict(
    data: Dict[str, Any],
    dictionary: WordSource,
    events: Optional[EventSink] = None,
) -> Game:
    if data.get("version") != SNAPSHOT_VERSION:
        raise SnapshotError(f"unsupported snapshot version: {data.get('version')!r}")
    try:
        cfg = data["config"]
        config = GameConfig(
            rack_capacity=cfg["rack_capacity"],
            bingo_bonus=cfg["bingo_bonus"],
            bingo_enabled=cfg["bingo_enabled"],
            target_score=cfg["target_score"],
            ai_difficulty=Difficulty.parse(cfg["ai_difficulty"]),
            exchange_probability=cfg["exchange_probability"],
            seed=cfg["seed"],
        )
        restorer = _Restorer()
        bag = [restorer.tile(t) for t in data["bag"]]
        pool = TilePool(seed=config.seed, tiles=bag)
        _set_rng(pool.rng, data["pool_rng"])

        game = Game([p["name"] for p in data["players"]], dictionary, config, events, pool)
        for player, saved in zip(game.players, data["players"]):
            player.is_human = saved["is_human"]
            player.score = int(saved["score"])
        game.ai_players = {int(i): Difficulty.parse(d) for i, d in data["ai_players"].items()}
        _set_rng(game.rng, data["rng"])

        for cell in data["board"]:
            r, c = int(cell["row"]), int(cell["col"])
            if not (0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE):
                raise SnapshotError(f"cell out of range: ({r},{c})")
            game.board.place_tile(restorer.tile(cell["tile"]), r, c)
        for index, slots in data["racks"].items():
            rack = game.racks[int(index)]
            if len(slots) != rack.capacity:
                raise SnapshotError(f"rack {index} has {len(slots)} slots, expected {rack.capacity}")
            rack.slots = [None if s is None else restorer.tile(s) for s in slots]

        for index, records in data["ledger"].items():
            game.ledger.restore(int(index), [restorer.placement(p) for p in records])
        game.turn = None if data["turn"] is None else restorer.turn(data["turn"])
        game._history = [restorer.turn(t) for t in data["history"]]
        game.keep_rack = {int(i) for i in data["keep_rack"]}
        game.current = int(data["current"])
        game.state = GameState(data["state"])
    except (KeyError, TypeError, ValueError, IndexError, LedgerCorruptionError) as e:
        raise SnapshotError(f"malformed snapshot: {e}") from e

    if restorer.by_uid:
        next_uid.bump(max(restorer.by_uid))
    log.info("Restored game with %s players, %s tiles in bag", len(game.players), game.pool.remaining)
    return game


def dumps(game: Game, **kwargs: Any) -> str:
    return json.dumps(game_to_dict(game), **kwargs)


def loads(text: str, dictionary: WordSource, events: Optional[EventSink] = None) -> Game:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"snapshot is not valid JSON: {e}") from e
    return game_from_dict(data, dictionary, events)
