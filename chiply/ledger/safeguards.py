"""Predicates guarding cash-out actions before they are dispatched.

A failed check disables the action. It is never reported as an error.
"""
from typing import Any, Optional

RESET_ALL_CONFIRMATION = "DELETE ALL"


def confirms_player_reset(typed: Optional[str], player_name: str) -> bool:
    """The typed text must equal the player's name exactly."""
    return typed is not None and bool(player_name) and typed == player_name


def confirms_reset_all(typed: Optional[str]) -> bool:
    """The typed text must be exactly DELETE ALL."""
    return typed == RESET_ALL_CONFIRMATION


def can_submit_cashout(
    *,
    session_closed: bool,
    can_edit: bool,
    player_id: Optional[str],
    amount: Any,
    is_miscalculation: bool = False,
    stack_value: Any = None,
) -> bool:
    """Whether the add-cash-out form may be submitted."""
    if session_closed or not can_edit:
        return False
    if not player_id or amount in (None, ""):
        return False
    if is_miscalculation and stack_value in (None, ""):
        return False
    return True
