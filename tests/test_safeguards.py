"""Tests for confirmation and form guards."""
import pytest

from chiply.ledger.safeguards import (
    RESET_ALL_CONFIRMATION,
    can_submit_cashout,
    confirms_player_reset,
    confirms_reset_all,
)


class TestConfirmations:
    """Test typed confirmations."""

    def test_player_reset_exact_name(self):
        """Test only the exact name confirms."""
        assert confirms_player_reset("Alice", "Alice")
        assert not confirms_player_reset("alice", "Alice")
        assert not confirms_player_reset("Alice ", "Alice")
        assert not confirms_player_reset("", "Alice")
        assert not confirms_player_reset(None, "Alice")

    def test_player_reset_empty_name(self):
        """Test an unnamed player can never be confirmed."""
        assert not confirms_player_reset("", "")

    def test_reset_all(self):
        """Test the literal phrase is required."""
        assert RESET_ALL_CONFIRMATION == "DELETE ALL"
        assert confirms_reset_all("DELETE ALL")
        assert not confirms_reset_all("delete all")
        assert not confirms_reset_all("DELETE")
        assert not confirms_reset_all(None)


class TestCanSubmitCashout:
    """Test the add-cash-out form guard."""

    @pytest.fixture
    def form(self):
        return {
            "session_closed": False,
            "can_edit": True,
            "player_id": "p1",
            "amount": 100,
        }

    def test_complete_form(self, form):
        """Test a filled form can be submitted."""
        assert can_submit_cashout(**form)

    def test_zero_amount(self, form):
        """Test a zero payout is a real amount."""
        form["amount"] = 0
        assert can_submit_cashout(**form)

    @pytest.mark.parametrize("field,value", [
        ("session_closed", True),
        ("can_edit", False),
        ("player_id", ""),
        ("player_id", None),
        ("amount", None),
        ("amount", ""),
    ])
    def test_blocked(self, form, field, value):
        """Test any missing piece disables the form."""
        form[field] = value
        assert not can_submit_cashout(**form)

    def test_miscalculation_needs_stack(self, form):
        """Test the stack value is required for a correction."""
        assert not can_submit_cashout(**form, is_miscalculation=True)
        assert can_submit_cashout(**form, is_miscalculation=True, stack_value=120)
