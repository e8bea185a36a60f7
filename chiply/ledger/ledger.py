"""In-memory ledger of one session's buy-ins and cash-outs."""
import math
import time as time_module
import uuid
from typing import Any, Mapping, Optional

from chiply.ledger.errors import DataIntegrityError, InvalidStateError, ValidationError
from chiply.ledger.models import BuyinEvent, CashoutEvent, Player, SessionDetails, SessionStatus
from chiply.ledger.status import LedgerEvent, ParticipationStatus, advance
from chiply.utils.logger import get_logger

logger = get_logger(__name__)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time_module.time() * 1000)


def validate_money(value: Any, label: str) -> float:
    """Check a caller-supplied amount.

    Args:
        value: Amount to check.
        label: Field name used in the error message.

    Returns:
        The amount as a float.

    Raises:
        ValidationError: If the value is not a finite non-negative number.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{label} must be a number")
    if not math.isfinite(value):
        raise ValidationError(f"{label} must be finite")
    if value < 0:
        raise ValidationError(f"{label} cannot be negative")
    return float(value)


class SessionLedger:
    """Authoritative buy-in and cash-out collections for a session.

    The session record owns every event; players are only referenced by id.
    A player_id -> event_id index over the cash-outs enforces at most one
    cash-out per player.
    """

    def __init__(
        self,
        session: SessionDetails,
        roster: Mapping[str, Player],
        can_edit: bool = False,
    ):
        """Initialize ledger for a session.

        Args:
            session: Session snapshot. The ledger works on its own copy.
            roster: Club players keyed by id, in declaration order.
            can_edit: Whether the caller may mutate cash-outs.

        Raises:
            DataIntegrityError: If the stored data holds two cash-outs for one player.
        """
        self._session = session.copy()
        self.roster = dict(roster)
        self.can_edit = can_edit
        self._cashout_index: dict[str, str] = {}
        for event_id, event in self._session.data.cashouts.items():
            if event.player_id in self._cashout_index:
                raise DataIntegrityError(
                    f"Session {session.id} has more than one cash-out for player {event.player_id}"
                )
            self._cashout_index[event.player_id] = event_id

    @property
    def session_id(self) -> str:
        return self._session.id

    @property
    def is_closed(self) -> bool:
        return self._session.is_closed

    @property
    def version(self) -> int:
        return self._session.version

    def snapshot(self) -> SessionDetails:
        """Copy of the current session state."""
        return self._session.copy()

    # Queries

    def buyins_for(self, player_id: str) -> list[BuyinEvent]:
        """All buy-ins of a player, in recorded order."""
        return [b for b in self._session.data.buyins.values() if b.player_id == player_id]

    def total_buyins(self, player_id: str) -> float:
        """Sum of a player's buy-in amounts (0 when there are none)."""
        return sum((b.amount for b in self.buyins_for(player_id)), 0.0)

    def find_cashout(self, player_id: str) -> Optional[CashoutEvent]:
        """The player's cash-out, if any."""
        event_id = self._cashout_index.get(player_id)
        if event_id is None:
            return None
        return self._session.data.cashouts[event_id]

    def players_with_buyins(self) -> list[Player]:
        """Roster players with at least one buy-in, in roster order."""
        buyer_ids = {b.player_id for b in self._session.data.buyins.values()}
        return [p for p in self.roster.values() if p.id in buyer_ids]

    def eligible_for_cashout(self) -> list[Player]:
        """Players with buy-ins who have not cashed out yet."""
        return [p for p in self.players_with_buyins() if p.id not in self._cashout_index]

    def has_cashouts(self) -> bool:
        return bool(self._cashout_index)

    def participation_status(self, player_id: str) -> ParticipationStatus:
        """Current status of a player in this session."""
        return ParticipationStatus.derive(
            has_buyins=bool(self.buyins_for(player_id)),
            has_cashout=player_id in self._cashout_index,
        )

    # Mutations

    def _require_mutable(self, action: str) -> None:
        if self.is_closed:
            raise InvalidStateError(f"Cannot {action}: session {self.session_id} is closed")
        if not self.can_edit:
            raise InvalidStateError(f"Cannot {action}: no edit permission for session {self.session_id}")

    def record_cashout(
        self,
        player_id: str,
        cashout_amount: Any,
        stack_value: Any = None,
        *,
        is_miscalculation: bool = False,
        time: Optional[int] = None,
        event_id: Optional[str] = None,
    ) -> tuple[str, CashoutEvent]:
        """Record a player's cash-out.

        Args:
            player_id: Player cashing out.
            cashout_amount: Settled amount paid to the player.
            stack_value: Measured chip stack. Only used when is_miscalculation is set.
            is_miscalculation: Record stack_value separately from the payout.
            time: Event time in epoch ms (defaults to now).
            event_id: Event id (defaults to a new uuid).

        Returns:
            Tuple of (event id, recorded event).

        Raises:
            ValidationError: If the player id or amounts are invalid.
            InvalidStateError: If the session is closed, the caller cannot edit,
                or the player is not eligible.
            DataIntegrityError: If the player is not on the roster.
        """
        if not player_id:
            raise ValidationError("Player id is required")
        self._require_mutable("record cash-out")

        cashout = validate_money(cashout_amount, "Cashout amount")
        if is_miscalculation:
            if stack_value is None:
                raise ValidationError("Stack value is required for a miscalculation")
            stack = validate_money(stack_value, "Stack value")
        else:
            stack = cashout

        if player_id not in self.roster:
            raise DataIntegrityError(f"Player {player_id} is not on the club roster")

        status = self.participation_status(player_id)
        if status == ParticipationStatus.COMPLETED:
            raise InvalidStateError(f"Player {player_id} has already cashed out")
        if status == ParticipationStatus.SCHEDULED:
            raise InvalidStateError(f"Player {player_id} has no buy-ins")
        advance(status, LedgerEvent.CASHOUT)

        event_id = event_id or uuid.uuid4().hex
        event = CashoutEvent(
            player_id=player_id,
            stack_value=stack,
            cashout=cashout,
            time=now_ms() if time is None else time,
        )
        self._session.data.cashouts[event_id] = event
        self._cashout_index[player_id] = event_id

        logger.info(
            f"Recorded cash-out for {self.roster[player_id].name} in session {self.session_id}: "
            f"{cashout}" + (f" (stack {stack})" if is_miscalculation else "")
        )
        return event_id, event

    def reset_cashout(self, player_id: str) -> str:
        """Delete a player's cash-out.

        Args:
            player_id: Player whose cash-out is removed.

        Returns:
            Id of the removed event.

        Raises:
            InvalidStateError: If the session is closed, the caller cannot edit,
                or the player has no cash-out.
        """
        self._require_mutable("reset cash-out")
        event_id = self._cashout_index.get(player_id)
        if event_id is None:
            raise InvalidStateError(f"Player {player_id} has no cash-out to reset")

        del self._session.data.cashouts[event_id]
        del self._cashout_index[player_id]
        logger.info(f"Reset cash-out {event_id} for player {player_id} in session {self.session_id}")
        return event_id

    def reset_all_cashouts(self) -> list[str]:
        """Delete every cash-out in the session.

        Returns:
            Ids of the removed events.

        Raises:
            InvalidStateError: If the session is closed or the caller cannot edit.
        """
        self._require_mutable("reset all cash-outs")
        removed = list(self._session.data.cashouts)
        self._session.data.cashouts.clear()
        self._cashout_index.clear()
        logger.info(f"Reset {len(removed)} cash-outs in session {self.session_id}")
        return removed

    def close(self) -> None:
        """Close the session. Cash-outs are frozen from then on.

        Raises:
            InvalidStateError: If already closed or the caller cannot edit.
        """
        self._require_mutable("close session")
        self._session.status = SessionStatus.CLOSE
        logger.info(f"Closed session {self.session_id}")

    def mark_saved(self, version: int) -> None:
        """Adopt the version the store assigned to the last write."""
        self._session.version = version
