"""Per-player participation status within a session."""
from enum import Enum

from chiply.ledger.errors import InvalidStateError


class ParticipationStatus(str, Enum):
    """Where a player stands in a session."""
    SCHEDULED = "Scheduled"
    PLAYING = "Playing"
    COMPLETED = "Completed"

    @classmethod
    def derive(cls, has_buyins: bool, has_cashout: bool) -> "ParticipationStatus":
        """Replay a player's events to get their status.

        A cash-out with no buy-in can only come from corrupt data and is
        ignored, leaving the player Scheduled.

        Args:
            has_buyins: Player has at least one buy-in.
            has_cashout: Player has a cash-out.

        Returns:
            The resulting status.
        """
        status = cls.SCHEDULED
        if has_buyins:
            status = advance(status, LedgerEvent.BUYIN)
            if has_cashout:
                status = advance(status, LedgerEvent.CASHOUT)
        return status


class LedgerEvent(str, Enum):
    """Events that move a player between statuses."""
    BUYIN = "buyin"
    CASHOUT = "cashout"
    RESET_CASHOUT = "reset_cashout"


# Nothing leads back to SCHEDULED: a buy-in, once made, keeps a player Playing.
TRANSITIONS: dict[tuple[ParticipationStatus, LedgerEvent], ParticipationStatus] = {
    (ParticipationStatus.SCHEDULED, LedgerEvent.BUYIN): ParticipationStatus.PLAYING,
    (ParticipationStatus.PLAYING, LedgerEvent.BUYIN): ParticipationStatus.PLAYING,
    (ParticipationStatus.PLAYING, LedgerEvent.CASHOUT): ParticipationStatus.COMPLETED,
    (ParticipationStatus.COMPLETED, LedgerEvent.RESET_CASHOUT): ParticipationStatus.PLAYING,
}


def advance(status: ParticipationStatus, event: LedgerEvent) -> ParticipationStatus:
    """Apply an event to a status.

    Args:
        status: Current status.
        event: Event being applied.

    Returns:
        The next status.

    Raises:
        InvalidStateError: If the event is not allowed from this status.
    """
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidStateError(f"Cannot apply {event.value} to a {status.value} player")
