"""Pydantic schemas for the HTTP API."""
from typing import Optional, Union
from pydantic import BaseModel, Field, StrictFloat, StrictInt

# JSON booleans and numeric strings are rejected instead of coerced.
Money = Union[StrictInt, StrictFloat]


# ============= Requests =============

class CashoutRequest(BaseModel):
    """Record a player's cash-out."""
    player_id: str
    amount: Money
    stack_value: Optional[Money] = None
    is_miscalculation: bool = False


class ConfirmationRequest(BaseModel):
    """Typed confirmation for a destructive action."""
    confirmation: str = ""


# ============= Responses =============

class StakesItem(BaseModel):
    small_blind: Optional[float] = None
    big_blind: Optional[float] = None
    ante: Optional[float] = None


class PlayerItem(BaseModel):
    id: str
    name: str


class CashoutRowItem(BaseModel):
    """A player's line in the cash-out view."""
    player_id: str
    name: str
    text: str
    buyin_total: float
    cashout: Optional[float] = None
    stack_value: Optional[float] = None
    profit_loss: Optional[float] = None
    is_miscalculation: bool = False
    can_reset: bool = False


class CashoutViewResponse(BaseModel):
    """Single-session cash-out view."""
    session_id: str
    club_id: Optional[str] = None
    status: str
    is_closed: bool
    can_edit: bool
    version: int
    rows: list[CashoutRowItem] = Field(default_factory=list)
    eligible_players: list[PlayerItem] = Field(default_factory=list)
    can_reset_all: bool = False


class MutationResponse(BaseModel):
    """Outcome of a cash-out action plus the refreshed view."""
    success: bool
    applied: bool
    message: Optional[str] = None
    event_id: Optional[str] = None
    view: CashoutViewResponse


class SessionSummaryItem(BaseModel):
    """One row of the my-sessions report."""
    id: str
    date: Optional[int] = None
    date_display: str
    club_name: str
    stakes: StakesItem
    stakes_display: str
    status: str
    player_count: int
    play_time: Optional[str] = None
    hands: Optional[int] = None
    hands_display: str
    buyin_count: int
    buyin_total: float
    final_stack: Optional[float] = None
    profit_loss: Optional[float] = None
    profit_loss_display: str
    profit_loss_bb: Optional[float] = None
    profit_loss_bb_display: str


class MySessionsResponse(BaseModel):
    sessions: list[SessionSummaryItem] = Field(default_factory=list)


class ClubResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    role: Optional[str] = None
