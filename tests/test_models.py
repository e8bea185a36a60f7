"""Tests for parsing stored session records."""
import pytest

from chiply.ledger.errors import DataIntegrityError
from chiply.ledger.models import (
    BuyinEvent,
    CashoutEvent,
    Player,
    SessionDetails,
    SessionStatus,
    Stakes,
    parse_number,
    parse_timestamp,
)


@pytest.fixture
def stored_session():
    """A session record in the nested camelCase layout."""
    return {
        "clubId": "club1",
        "status": "open",
        "details": {
            "startTime": 1_704_067_200_000,
            "type": "cash",
            "stakes": {"smallBlind": 1, "bigBlind": 2, "ante": 0},
        },
        "data": {
            "players": {"p1": True, "p2": True},
            "buyins": {
                "b1": {"playerId": "p1", "amount": 100, "time": 1_704_067_200_000},
                "b2": {"playerId": "p2", "amount": "50.5", "time": "not a time"},
            },
            "cashouts": {
                "c1": {"playerId": "p1", "stackValue": 200, "cashout": 180, "time": 1_704_069_600_000},
            },
        },
    }


class TestParseHelpers:
    """Test value coercion helpers."""

    @pytest.mark.parametrize("value,expected", [
        (2, 2.0),
        (0.5, 0.5),
        ("3.25", 3.25),
        ("abc", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        ([1], None),
    ])
    def test_parse_number(self, value, expected):
        """Test only finite numbers survive."""
        assert parse_number(value) == expected

    def test_parse_timestamp(self):
        """Test timestamps become whole milliseconds."""
        assert parse_timestamp(1_704_067_200_000.0) == 1_704_067_200_000
        assert parse_timestamp("garbage") is None


class TestSessionDetails:
    """Test SessionDetails.from_dict."""

    def test_nested_layout(self, stored_session):
        """Test the nested camelCase layout."""
        session = SessionDetails.from_dict("s1", stored_session)

        assert session.id == "s1"
        assert session.club_id == "club1"
        assert session.start_time == 1_704_067_200_000
        assert session.type == "cash"
        assert session.stakes == Stakes(small_blind=1.0, big_blind=2.0, ante=0.0)
        assert session.status == SessionStatus.OPEN
        assert session.data.players == {"p1", "p2"}
        assert session.data.buyins["b2"] == BuyinEvent(player_id="p2", amount=50.5, time=None)
        assert session.data.cashouts["c1"] == CashoutEvent(
            player_id="p1", stack_value=200.0, cashout=180.0, time=1_704_069_600_000
        )

    def test_flat_layout_round_trip(self, stored_session):
        """Test to_dict output parses back to the same session."""
        session = SessionDetails.from_dict("s1", stored_session)
        session.version = 4

        assert SessionDetails.from_dict("s1", session.to_dict()) == session

    def test_missing_big_blind(self, stored_session):
        """Test malformed stakes are kept as unknown."""
        stored_session["details"]["stakes"] = {"smallBlind": 1, "bigBlind": "?"}

        session = SessionDetails.from_dict("s1", stored_session)

        assert session.stakes.big_blind is None
        assert session.stakes.small_blind == 1.0

    def test_missing_player_id(self, stored_session):
        """Test an event without a player is a data error."""
        stored_session["data"]["buyins"]["b3"] = {"amount": 20}

        with pytest.raises(DataIntegrityError):
            SessionDetails.from_dict("s1", stored_session)

    def test_missing_cashout_amount(self, stored_session):
        """Test a cash-out without an amount is a data error."""
        del stored_session["data"]["cashouts"]["c1"]["cashout"]

        with pytest.raises(DataIntegrityError):
            SessionDetails.from_dict("s1", stored_session)

    def test_unknown_status(self, stored_session):
        """Test an unknown status is a data error."""
        stored_session["status"] = "archived"

        with pytest.raises(DataIntegrityError):
            SessionDetails.from_dict("s1", stored_session)

    def test_empty_record(self):
        """Test a bare record defaults to an empty open session."""
        session = SessionDetails.from_dict("s1", {})

        assert session.status == SessionStatus.OPEN
        assert not session.is_closed
        assert session.data.buyins == {}
        assert session.stakes == Stakes()

    def test_copy_is_deep(self, stored_session):
        """Test copies do not share event maps."""
        session = SessionDetails.from_dict("s1", stored_session)
        clone = session.copy()
        clone.data.cashouts.clear()

        assert "c1" in session.data.cashouts


class TestPlayer:
    """Test Player parsing."""

    def test_from_dict(self):
        """Test snake and camel case club ids."""
        assert Player.from_dict("p1", {"name": "Alice", "clubId": "c1"}).club_id == "c1"
        assert Player.from_dict("p1", {"name": "Alice", "club_id": "c2"}).club_id == "c2"

    def test_missing_id(self):
        """Test a player without an id is a data error."""
        with pytest.raises(DataIntegrityError):
            Player.from_dict("", {"name": "Ghost"})
