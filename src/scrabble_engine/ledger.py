"""Turn staging: tiles moved from a rack onto the board during the current,
unconfirmed turn, with rollback to the exact rack slots they came from."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .board import Board, Placement, in_bounds
from .dictionary import WordValidator
from .events import EventSink, GameEventType, notify
from .exceptions import LedgerCorruptionError
from .scoring import ScoreCalculator
from .tiles import Rack, Tile
from .validator import PositionValidator
from .words import FormedWord, WordFormer

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmedPlay:
    placements: List[Placement]
    words: List[FormedWord]
    score: int

    @property
    def word_strings(self) -> List[str]:
        return [w.text for w in self.words]


class PlacementLedger:
    def __init__(
        self,
        board: Board,
        racks: Dict[int, Rack],
        scorer: Optional[ScoreCalculator] = None,
        events: Optional[EventSink] = None,
    ):
        self.board = board
        self.racks = racks
        self.word_former = WordFormer(board)
        self.scorer = scorer or ScoreCalculator(board)
        self.events = events
        self._staged: Dict[int, List[Placement]] = {}
        self._last_words: Dict[int, List[str]] = {}

    def placements(self, player: int) -> List[Placement]:
        return list(self._staged.get(player, []))

    def has_placements(self, player: int) -> bool:
        return bool(self._staged.get(player))

    def last_words(self, player: int) -> List[str]:
        """Words of the player's most recent confirmed play."""
        return list(self._last_words.get(player, []))

    def _find(self, player: int, row: int, col: int) -> Optional[int]:
        for i, p in enumerate(self._staged.get(player, [])):
            if p.row == row and p.col == col:
                return i
        return None

    def _check(self, placement: Placement) -> None:
        on_board = self.board.tile_at(placement.row, placement.col)
        if on_board is not placement.tile:
            raise LedgerCorruptionError(
                f"ledger expects {placement.tile!r} at ({placement.row},{placement.col}), "
                f"board holds {on_board!r}"
            )

    # staging operations

    def place(self, player: int, tile: Tile, row: int, col: int, letter: Optional[str] = None) -> bool:
        rack = self.racks.get(player)
        if rack is None or tile not in rack:
            log.info("Tile %r is not on player %s's rack", tile, player)
            return False
        if not in_bounds(row, col) or self.board.is_occupied(row, col):
            log.info("Target cell (%s,%s) is unavailable", row, col)
            return False
        if tile.is_blank:
            if letter is not None and not tile.assign(letter):
                return False
            if tile.assigned is None:
                log.info("Blank tile needs a letter before it is placed")
                return False
            notify(self.events, GameEventType.BLANK_ASSIGNED, player, letter=tile.assigned)

        slot = rack.remove(tile)
        if not self.board.place_tile(tile, row, col):
            rack.put(slot, tile)
            return False
        self._staged.setdefault(player, []).append(Placement(tile, row, col, slot))
        rack.clear_selection()
        notify(self.events, GameEventType.TILE_PLACEMENT, player, letter=tile.letter, row=row, col=col, slot=slot)
        return True

    def place_selected(self, player: int, row: int, col: int, letter: Optional[str] = None) -> bool:
        rack = self.racks.get(player)
        if rack is None or not rack.selected:
            log.info("No tile selected by player %s", player)
            return False
        return self.place(player, rack.selected[0], row, col, letter)

    def move_within_turn(self, player: int, from_row: int, from_col: int, to_row: int, to_col: int) -> bool:
        idx = self._find(player, from_row, from_col)
        if idx is None:
            log.info("No tile placed this turn at (%s,%s)", from_row, from_col)
            return False
        if not in_bounds(to_row, to_col) or self.board.is_occupied(to_row, to_col):
            log.info("Target cell (%s,%s) is unavailable", to_row, to_col)
            return False

        record = self._staged[player][idx]
        self._check(record)
        tile = self.board.remove_tile(from_row, from_col)
        if not self.board.place_tile(tile, to_row, to_col):
            self.board.place_tile(tile, from_row, from_col)
            log.warning("Failed to move tile from (%s,%s) to (%s,%s)", from_row, from_col, to_row, to_col)
            return False
        self._staged[player][idx] = Placement(tile, to_row, to_col, record.rack_slot)
        notify(
            self.events, GameEventType.TILE_MOVEMENT, player,
            letter=tile.letter, frm=(from_row, from_col), to=(to_row, to_col),
        )
        return True

    def return_to_rack(self, player: int, row: int, col: int, rack_slot: int = -1) -> bool:
        idx = self._find(player, row, col)
        if idx is None:
            log.info("No tile placed this turn at (%s,%s)", row, col)
            return False
        record = self._staged[player][idx]
        self._check(record)

        tile = self.board.remove_tile(row, col)
        slot = rack_slot if rack_slot >= 0 else record.rack_slot
        if not self.racks[player].insert(tile, slot):
            self.board.place_tile(tile, row, col)
            log.warning("Rack of player %s has no room; tile stays at (%s,%s)", player, row, col)
            return False

        tile.clear_assignment()
        del self._staged[player][idx]
        if not self._staged[player]:
            del self._staged[player]
        notify(self.events, GameEventType.TILE_RETURN, player, row=row, col=col, slot=slot)
        return True

    def cancel(self, player: int) -> bool:
        """Return every staged tile to the rack; True only if all came back.

        The ledger is cleared either way. Tiles that could not be returned
        stay on the board and are logged. With nothing staged there is
        nothing to cancel and the result is False.
        """
        staged = self.placements(player)
        if not staged:
            return False
        all_returned = True
        for p in staged:
            if not self.return_to_rack(player, p.row, p.col, p.rack_slot):
                all_returned = False
                log.warning("Failed to return tile at (%s,%s) to rack", p.row, p.col)
        self._staged.pop(player, None)
        notify(self.events, GameEventType.PLACEMENT_CANCEL, player, complete=all_returned)
        return all_returned

    # confirmation

    def confirm_play(
        self,
        player: int,
        word_validator: WordValidator,
        position_validator: Optional[PositionValidator] = None,
    ) -> Optional[ConfirmedPlay]:
        """Validate and score the staged tiles. On any failure the whole turn
        is rolled back and None is returned."""
        staged = self.placements(player)
        if not staged:
            log.info("No placements to confirm for player %s", player)
            return None
        for p in staged:
            self._check(p)

        position_validator = position_validator or PositionValidator(self.board)
        if not position_validator.is_valid(staged):
            self.cancel(player)
            return None

        words = self.word_former.form_words(staged)
        if not words:
            log.info("No word formed by the placement")
            self.cancel(player)
            return None

        for w in words:
            if not word_validator.is_valid_word(w.text):
                log.info("Invalid word formed: %s", w.text)
                self.cancel(player)
                return None
            notify(self.events, GameEventType.WORD_VALIDATED, player, word=w.text)

        score = self.scorer.calculate(words, staged)
        notify(self.events, GameEventType.SCORE_CALCULATED, player, score=score, tiles=len(staged))
        self._last_words[player] = [w.text for w in words]
        del self._staged[player]
        notify(
            self.events, GameEventType.PLACEMENT_CONFIRM, player,
            words=",".join(w.text for w in words), score=score,
        )
        return ConfirmedPlay(staged, words, score)

    def confirm(
        self,
        player: int,
        word_validator: WordValidator,
        position_validator: Optional[PositionValidator] = None,
    ) -> int:
        play = self.confirm_play(player, word_validator, position_validator)
        return 0 if play is None else play.score

    def restore(self, player: int, placements: Sequence[Placement]) -> None:
        """Reinstate ledger records for tiles already on the board (snapshots)."""
        for p in placements:
            self._check(p)
        if placements:
            self._staged[player] = list(placements)
