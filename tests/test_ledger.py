"""Tests for the session ledger (queries and cash-out mutations)."""
import math

import pytest

from chiply.ledger.errors import DataIntegrityError, InvalidStateError, ValidationError
from chiply.ledger.ledger import SessionLedger
from chiply.ledger.models import CashoutEvent, SessionStatus
from chiply.ledger.status import ParticipationStatus

MINUTE = 60 * 1000
T0 = 1_704_067_200_000


class TestLedgerQueries:
    """Test read-only ledger queries."""

    @pytest.fixture
    def ledger(self, session_with_buyins, roster):
        return SessionLedger(session_with_buyins, roster, can_edit=True)

    def test_total_buyins(self, ledger):
        """Test buy-ins are summed per player."""
        assert ledger.total_buyins("p1") == 150.0
        assert ledger.total_buyins("p2") == 200.0

    def test_total_buyins_none(self, ledger):
        """Test a player without buy-ins totals zero."""
        assert ledger.total_buyins("p3") == 0
        assert ledger.total_buyins("unknown") == 0

    def test_buyins_for_keeps_order(self, ledger):
        """Test buy-ins come back in recorded order."""
        amounts = [b.amount for b in ledger.buyins_for("p1")]
        assert amounts == [100.0, 50.0]

    def test_players_with_buyins_roster_order(self, ledger):
        """Test only players with buy-ins are listed, in roster order."""
        assert [p.id for p in ledger.players_with_buyins()] == ["p1", "p2"]

    def test_find_cashout_missing(self, ledger):
        """Test no cash-out is found before one is recorded."""
        assert ledger.find_cashout("p1") is None

    def test_eligible_excludes_cashed_out(self, make_session, session_with_buyins, roster, cashout_event):
        """Test players who cashed out are not eligible again."""
        session = make_session(
            buyins=session_with_buyins.data.buyins,
            cashouts={"c1": cashout_event},
        )
        ledger = SessionLedger(session, roster)

        assert ledger.find_cashout("p1") == cashout_event
        assert [p.id for p in ledger.eligible_for_cashout()] == ["p2"]

    def test_participation_status(self, ledger):
        """Test status is derived from the player's events."""
        assert ledger.participation_status("p1") == ParticipationStatus.PLAYING
        assert ledger.participation_status("p3") == ParticipationStatus.SCHEDULED

    def test_duplicate_cashouts_in_data(self, make_session, session_with_buyins, roster, cashout_event):
        """Test two stored cash-outs for one player are a data error."""
        session = make_session(
            buyins=session_with_buyins.data.buyins,
            cashouts={"c1": cashout_event, "c2": cashout_event},
        )
        with pytest.raises(DataIntegrityError):
            SessionLedger(session, roster)

    def test_ledger_does_not_share_state(self, session_with_buyins, roster):
        """Test mutations never leak into the caller's snapshot."""
        ledger = SessionLedger(session_with_buyins, roster, can_edit=True)
        ledger.record_cashout("p1", 200.0, time=T0)

        assert session_with_buyins.data.cashouts == {}
        snapshot = ledger.snapshot()
        snapshot.data.cashouts.clear()
        assert ledger.find_cashout("p1") is not None


class TestRecordCashout:
    """Test recording cash-outs."""

    @pytest.fixture
    def ledger(self, session_with_buyins, roster):
        return SessionLedger(session_with_buyins, roster, can_edit=True)

    def test_record_cashout(self, ledger):
        """Test a cash-out is appended once."""
        event_id, event = ledger.record_cashout("p1", 200.0, time=T0 + 40 * MINUTE)

        assert event == CashoutEvent(player_id="p1", stack_value=200.0, cashout=200.0, time=T0 + 40 * MINUTE)
        assert ledger.snapshot().data.cashouts == {event_id: event}
        assert ledger.participation_status("p1") == ParticipationStatus.COMPLETED

    def test_stack_value_ignored_without_miscalculation(self, ledger):
        """Test stack value equals the payout unless flagged."""
        _, event = ledger.record_cashout("p1", 180.0, 200.0)
        assert event.stack_value == 180.0

    def test_miscalculation_keeps_stack_value(self, ledger):
        """Test a flagged miscalculation records both amounts."""
        _, event = ledger.record_cashout("p1", 180.0, 200.0, is_miscalculation=True)
        assert event.cashout == 180.0
        assert event.stack_value == 200.0

    def test_miscalculation_requires_stack_value(self, ledger):
        """Test a miscalculation without a stack value is rejected."""
        with pytest.raises(ValidationError):
            ledger.record_cashout("p1", 180.0, is_miscalculation=True)

    def test_zero_cashout_allowed(self, ledger):
        """Test a player can bust and cash out nothing."""
        _, event = ledger.record_cashout("p2", 0)
        assert event.cashout == 0.0

    def test_second_cashout_rejected(self, ledger):
        """Test a player cannot cash out twice."""
        ledger.record_cashout("p1", 200.0)

        with pytest.raises(InvalidStateError) as exc_info:
            ledger.record_cashout("p1", 200.0)
        assert "already cashed out" in str(exc_info.value)
        assert len(ledger.snapshot().data.cashouts) == 1

    def test_player_without_buyins_rejected(self, ledger):
        """Test a seated player with no buy-in cannot cash out."""
        with pytest.raises(InvalidStateError) as exc_info:
            ledger.record_cashout("p3", 10.0)
        assert "no buy-ins" in str(exc_info.value)

    def test_unknown_player(self, ledger):
        """Test a player outside the roster is a data error."""
        with pytest.raises(DataIntegrityError):
            ledger.record_cashout("ghost", 10.0)

    def test_empty_player_id(self, ledger):
        """Test an empty player id is a validation error."""
        with pytest.raises(ValidationError):
            ledger.record_cashout("", 10.0)

    @pytest.mark.parametrize("amount", [-1, math.nan, math.inf, "100", None, True])
    def test_invalid_amount(self, ledger, amount):
        """Test non-numeric, negative and non-finite amounts are rejected."""
        with pytest.raises(ValidationError):
            ledger.record_cashout("p1", amount)
        assert ledger.find_cashout("p1") is None

    def test_invalid_stack_value(self, ledger):
        """Test a negative stack value is rejected."""
        with pytest.raises(ValidationError):
            ledger.record_cashout("p1", 100.0, -5, is_miscalculation=True)

    def test_closed_session(self, make_session, session_with_buyins, roster):
        """Test closed sessions reject cash-outs."""
        session = make_session(buyins=session_with_buyins.data.buyins, status=SessionStatus.CLOSE)
        ledger = SessionLedger(session, roster, can_edit=True)

        with pytest.raises(InvalidStateError) as exc_info:
            ledger.record_cashout("p1", 100.0)
        assert "closed" in str(exc_info.value)

    def test_without_edit_permission(self, session_with_buyins, roster):
        """Test read-only callers cannot cash out."""
        ledger = SessionLedger(session_with_buyins, roster, can_edit=False)

        with pytest.raises(InvalidStateError) as exc_info:
            ledger.record_cashout("p1", 100.0)
        assert "permission" in str(exc_info.value)


class TestResetCashout:
    """Test single and bulk resets."""

    @pytest.fixture
    def ledger(self, session_with_buyins, roster):
        ledger = SessionLedger(session_with_buyins, roster, can_edit=True)
        ledger.record_cashout("p1", 200.0, time=T0 + 40 * MINUTE)
        ledger.record_cashout("p2", 150.0, time=T0 + 45 * MINUTE)
        return ledger

    def test_reset_cashout(self, ledger):
        """Test resetting moves the player back to Playing."""
        ledger.reset_cashout("p1")

        assert ledger.find_cashout("p1") is None
        assert ledger.find_cashout("p2") is not None
        assert ledger.participation_status("p1") == ParticipationStatus.PLAYING
        assert [p.id for p in ledger.eligible_for_cashout()] == ["p1"]

    def test_reset_then_record_round_trip(self, ledger):
        """Test re-recording after a reset reproduces the event."""
        original = ledger.find_cashout("p1")
        ledger.reset_cashout("p1")

        _, event = ledger.record_cashout("p1", 200.0, time=T0 + 40 * MINUTE)
        assert event == original

    def test_reset_missing_cashout(self, ledger):
        """Test resetting a player with no cash-out fails."""
        with pytest.raises(InvalidStateError):
            ledger.reset_cashout("p3")

    def test_reset_all(self, ledger):
        """Test bulk reset removes every cash-out."""
        removed = ledger.reset_all_cashouts()

        assert len(removed) == 2
        assert ledger.snapshot().data.cashouts == {}
        assert not ledger.has_cashouts()
        assert [p.id for p in ledger.eligible_for_cashout()] == ["p1", "p2"]

    def test_reset_all_on_closed_session(self, make_session, session_with_buyins, roster, cashout_event):
        """Test bulk reset is rejected outright once closed."""
        session = make_session(
            buyins=session_with_buyins.data.buyins,
            cashouts={"c1": cashout_event},
            status=SessionStatus.CLOSE,
        )
        ledger = SessionLedger(session, roster, can_edit=True)

        with pytest.raises(InvalidStateError):
            ledger.reset_all_cashouts()
        with pytest.raises(InvalidStateError):
            ledger.reset_cashout("p1")
        assert ledger.find_cashout("p1") == cashout_event

    def test_close(self, ledger):
        """Test closing freezes cash-outs."""
        ledger.close()

        assert ledger.is_closed
        with pytest.raises(InvalidStateError):
            ledger.reset_cashout("p1")
        with pytest.raises(InvalidStateError):
            ledger.close()
