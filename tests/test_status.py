"""Tests for the participation state machine."""
import pytest

from chiply.ledger.errors import InvalidStateError
from chiply.ledger.status import LedgerEvent, ParticipationStatus, advance

SCHEDULED = ParticipationStatus.SCHEDULED
PLAYING = ParticipationStatus.PLAYING
COMPLETED = ParticipationStatus.COMPLETED


class TestAdvance:
    """Test status transitions."""

    @pytest.mark.parametrize("status,event,expected", [
        (SCHEDULED, LedgerEvent.BUYIN, PLAYING),
        (PLAYING, LedgerEvent.BUYIN, PLAYING),
        (PLAYING, LedgerEvent.CASHOUT, COMPLETED),
        (COMPLETED, LedgerEvent.RESET_CASHOUT, PLAYING),
    ])
    def test_allowed(self, status, event, expected):
        """Test every allowed transition."""
        assert advance(status, event) == expected

    @pytest.mark.parametrize("status,event", [
        (SCHEDULED, LedgerEvent.CASHOUT),
        (SCHEDULED, LedgerEvent.RESET_CASHOUT),
        (PLAYING, LedgerEvent.RESET_CASHOUT),
        (COMPLETED, LedgerEvent.CASHOUT),
        (COMPLETED, LedgerEvent.BUYIN),
    ])
    def test_rejected(self, status, event):
        """Test transitions outside the table fail."""
        with pytest.raises(InvalidStateError):
            advance(status, event)

    def test_never_returns_to_scheduled(self):
        """Test no event leads back to Scheduled."""
        for status in ParticipationStatus:
            for event in LedgerEvent:
                try:
                    assert advance(status, event) != SCHEDULED
                except InvalidStateError:
                    pass


class TestDerive:
    """Test deriving status from a player's events."""

    def test_derive(self):
        """Test each combination of events."""
        assert ParticipationStatus.derive(has_buyins=False, has_cashout=False) == SCHEDULED
        assert ParticipationStatus.derive(has_buyins=True, has_cashout=False) == PLAYING
        assert ParticipationStatus.derive(has_buyins=True, has_cashout=True) == COMPLETED

    def test_cashout_without_buyin(self):
        """Test a stray cash-out leaves the player scheduled."""
        assert ParticipationStatus.derive(has_buyins=False, has_cashout=True) == SCHEDULED

    def test_values(self):
        """Test display values."""
        assert [s.value for s in ParticipationStatus] == ["Scheduled", "Playing", "Completed"]
