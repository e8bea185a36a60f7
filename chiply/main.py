"""FastAPI application exposing the cash-out view, mutations and reports."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from chiply.auth.access import can_edit_sessions, club_role, has_club_access
from chiply.auth.jwt_handler import TokenError, TokenPayload, verify_token
from chiply.auth.roles import SystemRole
from chiply.config import config
from chiply.db.connection import db
from chiply.db.models import init_db
from chiply.ledger.cashout_manager import CashoutManager, MutationResult
from chiply.ledger.errors import (
    DataIntegrityError,
    InvalidStateError,
    LedgerError,
    SessionNotFoundError,
    ValidationError,
)
from chiply.ledger.reconciliation import relevant_player_ids, summarize_sessions
from chiply.protocol.messages import (
    CashoutRequest,
    CashoutViewResponse,
    ClubResponse,
    ConfirmationRequest,
    MutationResponse,
    MySessionsResponse,
)
from chiply.protocol.views import build_cashout_view, build_mutation_response, build_summary_item
from chiply.state.redis_client import redis_client
from chiply.state.session_store import SessionStore, session_store
from chiply.utils.logger import get_logger

logger = get_logger(__name__)


def status_code_for(error: LedgerError) -> int:
    """HTTP status for a ledger failure."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, SessionNotFoundError):
        return 404
    if isinstance(error, InvalidStateError):
        return 409
    if isinstance(error, DataIntegrityError):
        return 422
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    await db.connect()
    await redis_client.connect()
    await init_db()
    logger.info("Chiply API started")
    yield
    await redis_client.disconnect()
    await db.disconnect()
    logger.info("Chiply API shutdown complete")


app = FastAPI(
    title="Chiply",
    description="Buy-in and cash-out ledger for poker club sessions",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"http://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> SessionStore:
    """Session store dependency."""
    return session_store


async def get_current_user(authorization: Optional[str] = Header(None)) -> TokenPayload:
    """Resolve the bearer token into the caller's identity."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing authorization header")
    try:
        return verify_token(authorization.split(" ", 1)[1])
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))


async def open_manager(session_id: str, user: TokenPayload, store: SessionStore) -> CashoutManager:
    """Load a session for the caller, enforcing club access.

    Raises:
        HTTPException: 404 for unknown sessions, 403 without club access.
    """
    try:
        session = await store.fetch_session(session_id)
    except DataIntegrityError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")

    if session.club_id is None:
        allowed = user.system_role == SystemRole.ADMIN
    else:
        allowed = has_club_access(user, session.club_id)
    if not allowed:
        raise HTTPException(status_code=403, detail="You don't have permission to access this club")

    manager = CashoutManager(session_id, store, can_edit=can_edit_sessions(user, session.club_id))
    try:
        await manager.load()
    except LedgerError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
    return manager


def mutation_response(result: MutationResult, manager: CashoutManager, response: Response) -> MutationResponse:
    """Mutation outcome; rejected mutations keep the refreshed view in the body."""
    if result.error is not None:
        response.status_code = status_code_for(result.error)
    return build_mutation_response(result, manager.ledger)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/clubs/{club_id}", response_model=ClubResponse)
async def get_club(
    club_id: str,
    user: TokenPayload = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
):
    """Club details, for members and system admins."""
    if not has_club_access(user, club_id):
        raise HTTPException(status_code=403, detail="You don't have permission to access this club")
    club = await store.fetch_club(club_id)
    if club is None:
        raise HTTPException(status_code=404, detail="Club not found")
    role = club_role(user, club_id)
    return ClubResponse(
        id=club.id,
        name=club.name,
        description=club.description,
        role=role.value if role else None,
    )


@app.get("/api/sessions/{session_id}/cashouts", response_model=CashoutViewResponse)
async def get_cashouts(
    session_id: str,
    user: TokenPayload = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
):
    """Cash-out view of a session."""
    manager = await open_manager(session_id, user, store)
    return build_cashout_view(manager.ledger)


@app.post("/api/sessions/{session_id}/cashouts", response_model=MutationResponse)
async def record_cashout(
    session_id: str,
    request: CashoutRequest,
    response: Response,
    user: TokenPayload = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
):
    """Cash out a player."""
    manager = await open_manager(session_id, user, store)
    result = await manager.record_cashout(
        request.player_id,
        request.amount,
        request.stack_value,
        is_miscalculation=request.is_miscalculation,
    )
    return mutation_response(result, manager, response)


@app.post("/api/sessions/{session_id}/cashouts/reset-all", response_model=MutationResponse)
async def reset_all_cashouts(
    session_id: str,
    request: ConfirmationRequest,
    response: Response,
    user: TokenPayload = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
):
    """Remove every cash-out; requires the text DELETE ALL."""
    manager = await open_manager(session_id, user, store)
    result = await manager.reset_all_cashouts(request.confirmation)
    return mutation_response(result, manager, response)


@app.post("/api/sessions/{session_id}/cashouts/{player_id}/reset", response_model=MutationResponse)
async def reset_cashout(
    session_id: str,
    player_id: str,
    request: ConfirmationRequest,
    response: Response,
    user: TokenPayload = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
):
    """Remove a player's cash-out; requires the player's name."""
    manager = await open_manager(session_id, user, store)
    result = await manager.reset_cashout(player_id, request.confirmation)
    return mutation_response(result, manager, response)


@app.post("/api/sessions/{session_id}/close", response_model=MutationResponse)
async def close_session(
    session_id: str,
    response: Response,
    user: TokenPayload = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
):
    """Close a session. Cash-outs cannot change afterwards."""
    manager = await open_manager(session_id, user, store)
    result = await manager.close_session()
    return mutation_response(result, manager, response)


@app.get("/api/me/sessions", response_model=MySessionsResponse)
async def my_sessions(
    user: TokenPayload = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
):
    """Every session the caller took part in, newest first."""
    players = await store.fetch_all_players()
    player_ids = relevant_player_ids(players, user.email)
    if not player_ids:
        return MySessionsResponse()

    try:
        sessions = await store.fetch_all_sessions()
    except DataIntegrityError as e:
        raise HTTPException(status_code=422, detail=str(e))
    clubs = await store.fetch_all_clubs()
    summaries = summarize_sessions(sessions, player_ids, clubs=clubs)
    logger.debug(f"Built report of {len(summaries)} sessions for {user.email}")
    return MySessionsResponse(sessions=[build_summary_item(s) for s in summaries])


# Entry point
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "chiply.main:app",
        host=config.host,
        port=config.port,
        reload=True,
    )
