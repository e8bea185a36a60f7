"""Cash-out mutations for a session, persisted through the session store."""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TYPE_CHECKING

from chiply.ledger.errors import LedgerError, SessionNotFoundError
from chiply.ledger.ledger import SessionLedger
from chiply.ledger.models import SessionDetails
from chiply.ledger.safeguards import confirms_player_reset, confirms_reset_all
from chiply.utils.logger import get_logger

if TYPE_CHECKING:
    from chiply.state.session_store import SessionStore

logger = get_logger(__name__)


@dataclass
class MutationResult:
    """Outcome of a cash-out action.

    applied is False when a confirmation did not match; nothing was
    attempted in that case and error stays None.
    """
    success: bool
    applied: bool
    session: SessionDetails
    error: Optional[LedgerError] = None
    event_id: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        if self.error is not None:
            return str(self.error)
        if not self.applied:
            return "Confirmation text does not match"
        return None


class CashoutManager:
    """Records and resets cash-outs for one session."""

    def __init__(self, session_id: str, store: "SessionStore", can_edit: bool = False):
        """Initialize cash-out manager.

        Args:
            session_id: Session identifier.
            store: Persistence collaborator.
            can_edit: Whether the caller may change cash-outs.
        """
        self.session_id = session_id
        self.store = store
        self.can_edit = can_edit
        self.ledger: Optional[SessionLedger] = None

    async def load(self) -> SessionLedger:
        """Fetch the session and its club roster and build a fresh ledger.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        session = await self.store.fetch_session(self.session_id, use_cache=False)
        if session is None:
            raise SessionNotFoundError(f"Session {self.session_id} not found")
        roster = await self.store.fetch_club_players(session.club_id) if session.club_id else {}
        self.ledger = SessionLedger(session, roster, can_edit=self.can_edit)
        return self.ledger

    async def _ledger(self) -> SessionLedger:
        if self.ledger is None:
            return await self.load()
        return self.ledger

    async def _apply(
        self,
        action: str,
        mutate: Callable[[SessionLedger], Any],
        persist: Callable[[SessionLedger, Any], Awaitable[int]],
    ) -> MutationResult:
        """Run a ledger mutation, then persist it.

        A rejected mutation leaves the ledger untouched. A rejected write
        reloads the ledger from the store so it matches what was saved.
        Any other failure of the write drops the ledger, so the next call
        reloads it instead of working on an unsaved change.
        """
        ledger = await self._ledger()
        try:
            outcome = mutate(ledger)
        except LedgerError as e:
            logger.warning(f"Rejected {action} in session {self.session_id}: {e}")
            return MutationResult(success=False, applied=True, session=ledger.snapshot(), error=e)

        try:
            version = await persist(ledger, outcome)
        except LedgerError as e:
            logger.warning(f"Store rejected {action} in session {self.session_id}: {e}")
            ledger = await self.load()
            return MutationResult(success=False, applied=True, session=ledger.snapshot(), error=e)
        except Exception:
            logger.error(f"Failed to save {action} in session {self.session_id}; discarding unsaved ledger")
            self.ledger = None
            raise

        ledger.mark_saved(version)
        event_id = outcome[0] if isinstance(outcome, tuple) else outcome
        return MutationResult(
            success=True,
            applied=True,
            session=ledger.snapshot(),
            event_id=event_id if isinstance(event_id, str) else None,
        )

    async def record_cashout(
        self,
        player_id: str,
        cashout_amount: Any,
        stack_value: Any = None,
        is_miscalculation: bool = False,
        time: Optional[int] = None,
    ) -> MutationResult:
        """Cash out a player.

        Args:
            player_id: Player cashing out.
            cashout_amount: Settled amount.
            stack_value: Measured stack, used with is_miscalculation.
            is_miscalculation: Record the stack separately from the payout.
            time: Event time in epoch ms (defaults to now).

        Returns:
            The mutation result with the updated snapshot.
        """
        expected = (await self._ledger()).version
        return await self._apply(
            "cash-out",
            lambda ledger: ledger.record_cashout(
                player_id,
                cashout_amount,
                stack_value,
                is_miscalculation=is_miscalculation,
                time=time,
            ),
            lambda ledger, recorded: self.store.persist_cashout(
                self.session_id, recorded[0], recorded[1], expected_version=expected
            ),
        )

    async def reset_cashout(self, player_id: str, confirmation: Optional[str]) -> MutationResult:
        """Remove a player's cash-out once their name has been typed.

        Args:
            player_id: Player whose cash-out is removed.
            confirmation: Text typed by the user; must equal the player's name.

        Returns:
            The mutation result with the updated snapshot.
        """
        ledger = await self._ledger()
        player = ledger.roster.get(player_id)
        if not confirms_player_reset(confirmation, player.name if player else ""):
            logger.debug(f"Reset of {player_id} in session {self.session_id} not confirmed")
            return MutationResult(success=False, applied=False, session=ledger.snapshot())

        expected = ledger.version
        return await self._apply(
            "cash-out reset",
            lambda ledger: ledger.reset_cashout(player_id),
            lambda ledger, event_id: self.store.delete_cashout(
                self.session_id, event_id, expected_version=expected
            ),
        )

    async def reset_all_cashouts(self, confirmation: Optional[str]) -> MutationResult:
        """Remove every cash-out once DELETE ALL has been typed.

        Args:
            confirmation: Text typed by the user.

        Returns:
            The mutation result with the updated snapshot.
        """
        ledger = await self._ledger()
        if not confirms_reset_all(confirmation):
            logger.debug(f"Reset of all cash-outs in session {self.session_id} not confirmed")
            return MutationResult(success=False, applied=False, session=ledger.snapshot())

        expected = ledger.version
        return await self._apply(
            "reset of all cash-outs",
            lambda ledger: ledger.reset_all_cashouts(),
            lambda ledger, _removed: self.store.delete_all_cashouts(
                self.session_id, expected_version=expected
            ),
        )

    async def close_session(self) -> MutationResult:
        """Close the session for good."""
        expected = (await self._ledger()).version
        return await self._apply(
            "close",
            lambda ledger: ledger.close(),
            lambda ledger, _none: self.store.close_session(self.session_id, expected_version=expected),
        )
