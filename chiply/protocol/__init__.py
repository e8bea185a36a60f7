"""HTTP API schemas and response builders."""
from .messages import (
    CashoutRequest,
    ConfirmationRequest,
    CashoutViewResponse,
    MutationResponse,
    MySessionsResponse,
    SessionSummaryItem,
    ClubResponse,
)

__all__ = [
    "CashoutRequest",
    "ConfirmationRequest",
    "CashoutViewResponse",
    "MutationResponse",
    "MySessionsResponse",
    "SessionSummaryItem",
    "ClubResponse",
]
