"""Session ledger and reconciliation of buy-ins and cash-outs."""
from .cashout_manager import CashoutManager, MutationResult
from .errors import (
    DataIntegrityError,
    InvalidStateError,
    LedgerError,
    SessionNotFoundError,
    StaleSessionError,
    ValidationError,
)
from .ledger import SessionLedger
from .models import BuyinEvent, CashoutEvent, Club, Player, SessionData, SessionDetails, SessionStatus, Stakes
from .reconciliation import (
    SessionSummary,
    SummaryText,
    cashout_view,
    player_cashout_status,
    relevant_player_ids,
    sort_by_date_descending,
    summarize_session,
    summarize_sessions,
)
from .status import ParticipationStatus

__all__ = [
    "CashoutManager",
    "MutationResult",
    "LedgerError",
    "InvalidStateError",
    "ValidationError",
    "DataIntegrityError",
    "StaleSessionError",
    "SessionNotFoundError",
    "SessionLedger",
    "BuyinEvent",
    "CashoutEvent",
    "Club",
    "Player",
    "SessionData",
    "SessionDetails",
    "SessionStatus",
    "Stakes",
    "SessionSummary",
    "SummaryText",
    "cashout_view",
    "player_cashout_status",
    "relevant_player_ids",
    "sort_by_date_descending",
    "summarize_session",
    "summarize_sessions",
    "ParticipationStatus",
]
