"""One-way game notifications.

The engine emits; it never reads anything back from a sink. A sink that
raises is logged and otherwise ignored.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

log = logging.getLogger(__name__)


class GameEventType(str, Enum):
    GAME_START = "GAME_START"
    GAME_END = "GAME_END"
    TURN_START = "TURN_START"
    TURN_END = "TURN_END"
    TILE_PLACEMENT = "TILE_PLACEMENT"
    TILE_MOVEMENT = "TILE_MOVEMENT"
    TILE_RETURN = "TILE_RETURN"
    PLACEMENT_CONFIRM = "PLACEMENT_CONFIRM"
    PLACEMENT_CANCEL = "PLACEMENT_CANCEL"
    WORD_VALIDATED = "WORD_VALIDATED"
    SCORE_CALCULATED = "SCORE_CALCULATED"
    TILE_EXCHANGE = "TILE_EXCHANGE"
    TURN_PASS = "TURN_PASS"
    BLANK_ASSIGNED = "BLANK_ASSIGNED"


@dataclass
class GameEvent:
    type: GameEventType
    player: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class EventSink(Protocol):
    def emit(self, event: GameEvent) -> None: ...


class LoggingEventSink:
    """Writes each event as one log line on the ``scrabble_engine.events`` logger."""

    def __init__(self, level: int = logging.INFO, logger: Optional[logging.Logger] = None):
        self.level = level
        self.logger = logger or log

    def emit(self, event: GameEvent) -> None:
        details = " ".join(f"{k}={v}" for k, v in event.data.items())
        who = "-" if event.player is None else f"player{event.player}"
        self.logger.log(self.level, "%s %s %s", event.type.value, who, details)


class RecordingEventSink:
    """Keeps every event in memory."""

    def __init__(self) -> None:
        self.events: List[GameEvent] = []

    def emit(self, event: GameEvent) -> None:
        self.events.append(event)

    def types(self) -> List[GameEventType]:
        return [e.type for e in self.events]


def notify(sink: Optional[EventSink], type_: GameEventType, player: Optional[int] = None, **data: Any) -> None:
    if sink is None:
        return
    try:
        sink.emit(GameEvent(type_, player, dict(data)))
    except Exception:
        log.exception("Event sink failed on %s", type_.value)
