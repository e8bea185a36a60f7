"""Errors raised by the session ledger and the session store."""


class LedgerError(Exception):
    """Base class for ledger failures surfaced to the caller."""
    pass


class InvalidStateError(LedgerError):
    """Mutation not allowed in the session's current state.

    Raised for closed sessions, missing edit capability, duplicate
    cash-outs and resets of cash-outs that do not exist.
    """
    pass


class ValidationError(LedgerError):
    """Input rejected before touching the ledger (bad amount, empty id)."""
    pass


class DataIntegrityError(LedgerError):
    """Stored data references something that does not exist or is malformed."""
    pass


class StaleSessionError(InvalidStateError):
    """The session changed in the store since the snapshot was fetched."""
    pass


class SessionNotFoundError(LedgerError):
    """The requested session does not exist."""
    pass
