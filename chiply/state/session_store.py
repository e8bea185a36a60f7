"""Session, roster and club persistence.

PostgreSQL holds the records; Redis caches session snapshots for a short
TTL. Every cash-out mutation bumps the session's version inside the same
transaction, so concurrent writers working from the same snapshot are
detected instead of silently overwriting each other.
"""
from collections import defaultdict
from typing import Any, Optional

import asyncpg
from redis.exceptions import RedisError

from chiply.config import config
from chiply.db.connection import Database, db
from chiply.ledger.errors import DataIntegrityError, InvalidStateError, StaleSessionError
from chiply.ledger.models import (
    BuyinEvent,
    CashoutEvent,
    Club,
    Player,
    SessionData,
    SessionDetails,
    SessionStatus,
    Stakes,
)
from chiply.state.redis_client import RedisClient, redis_client
from chiply.utils.logger import get_logger

logger = get_logger(__name__)


def _player_from_record(record: Any) -> Player:
    return Player(
        id=record["id"],
        name=record["name"],
        email=record["email"],
        club_id=record["club_id"],
    )


def _session_from_records(
    record: Any,
    player_ids: list[str],
    buyins: list[Any],
    cashouts: list[Any],
) -> SessionDetails:
    """Assemble a SessionDetails from its table rows."""
    try:
        status = SessionStatus(record["status"])
    except ValueError:
        raise DataIntegrityError(f"Session {record['id']} has unknown status {record['status']!r}")
    return SessionDetails(
        id=record["id"],
        club_id=record["club_id"],
        start_time=record["start_time"],
        type=record["type"],
        stakes=Stakes(
            small_blind=record["small_blind"],
            big_blind=record["big_blind"],
            ante=record["ante"],
        ),
        status=status,
        data=SessionData(
            players=set(player_ids),
            buyins={
                b["id"]: BuyinEvent(player_id=b["player_id"], amount=b["amount"], time=b["time"])
                for b in buyins
            },
            cashouts={
                c["id"]: CashoutEvent(
                    player_id=c["player_id"],
                    stack_value=c["stack_value"],
                    cashout=c["cashout"],
                    time=c["time"],
                )
                for c in cashouts
            },
        ),
        version=record["version"],
    )


class SessionStore:
    """Reads and writes sessions, rosters and clubs."""

    def __init__(self, database: Optional[Database] = None, cache: Optional[RedisClient] = None):
        """Initialize store.

        Args:
            database: PostgreSQL pool (defaults to the global one).
            cache: Redis client for snapshots (defaults to the global one).
        """
        self.db = database or db
        self.cache = cache or redis_client

    def _session_key(self, session_id: str) -> str:
        """Get Redis key for a cached session snapshot."""
        return f"session:{session_id}"

    async def _cached_session(self, session_id: str) -> Optional[SessionDetails]:
        try:
            data = await self.cache.get_json(self._session_key(session_id))
        except RedisError as e:
            logger.warning(f"Session cache read failed for {session_id}: {e}")
            return None
        if data is None:
            return None
        logger.debug(f"Session cache hit for {session_id}")
        return SessionDetails.from_dict(session_id, data)

    async def _cache_session(self, session: SessionDetails) -> None:
        try:
            await self.cache.set_json(
                self._session_key(session.id),
                session.to_dict(),
                ex=config.session_cache_ttl_seconds,
            )
        except RedisError as e:
            logger.warning(f"Session cache write failed for {session.id}: {e}")

    async def invalidate(self, session_id: str) -> None:
        """Drop a cached snapshot after the session changed."""
        try:
            await self.cache.delete(self._session_key(session_id))
        except RedisError as e:
            logger.warning(f"Session cache invalidation failed for {session_id}: {e}")

    # Reads

    async def fetch_session(self, session_id: str, use_cache: bool = True) -> Optional[SessionDetails]:
        """Fetch one session with its events.

        Args:
            session_id: Session identifier.
            use_cache: Serve and store the Redis snapshot. Writers pass False
                so a snapshot cached by a slower reader cannot hide a newer
                version from them.

        Returns:
            The session, or None if it does not exist.
        """
        if use_cache:
            cached = await self._cached_session(session_id)
            if cached is not None:
                return cached

        record = await self.db.fetchrow("SELECT * FROM sessions WHERE id = $1", session_id)
        if record is None:
            return None

        seated = await self.db.fetch(
            "SELECT player_id FROM session_players WHERE session_id = $1", session_id
        )
        buyins = await self.db.fetch(
            "SELECT * FROM buyins WHERE session_id = $1 ORDER BY time NULLS LAST, id", session_id
        )
        cashouts = await self.db.fetch(
            "SELECT * FROM cashouts WHERE session_id = $1 ORDER BY time NULLS LAST, id", session_id
        )
        session = _session_from_records(record, [r["player_id"] for r in seated], buyins, cashouts)
        if use_cache:
            await self._cache_session(session)
        return session

    async def fetch_all_sessions(self) -> dict[str, SessionDetails]:
        """Fetch every session with its events, keyed by id."""
        records = await self.db.fetch("SELECT * FROM sessions ORDER BY start_time NULLS LAST, id")
        seated: dict[str, list[str]] = defaultdict(list)
        for r in await self.db.fetch("SELECT session_id, player_id FROM session_players"):
            seated[r["session_id"]].append(r["player_id"])
        buyins: dict[str, list[Any]] = defaultdict(list)
        for r in await self.db.fetch("SELECT * FROM buyins ORDER BY time NULLS LAST, id"):
            buyins[r["session_id"]].append(r)
        cashouts: dict[str, list[Any]] = defaultdict(list)
        for r in await self.db.fetch("SELECT * FROM cashouts ORDER BY time NULLS LAST, id"):
            cashouts[r["session_id"]].append(r)

        return {
            r["id"]: _session_from_records(r, seated[r["id"]], buyins[r["id"]], cashouts[r["id"]])
            for r in records
        }

    async def fetch_all_players(self) -> dict[str, Player]:
        """Fetch every roster entry across clubs, in declaration order."""
        records = await self.db.fetch("SELECT * FROM players ORDER BY position")
        return {r["id"]: _player_from_record(r) for r in records}

    async def fetch_club_players(self, club_id: str) -> dict[str, Player]:
        """Fetch a club's roster, in declaration order."""
        records = await self.db.fetch(
            "SELECT * FROM players WHERE club_id = $1 ORDER BY position", club_id
        )
        return {r["id"]: _player_from_record(r) for r in records}

    async def fetch_all_clubs(self) -> dict[str, Club]:
        """Fetch every club, keyed by id."""
        records = await self.db.fetch("SELECT * FROM clubs ORDER BY name")
        return {
            r["id"]: Club(id=r["id"], name=r["name"], description=r["description"])
            for r in records
        }

    async def fetch_club(self, club_id: str) -> Optional[Club]:
        """Fetch one club."""
        record = await self.db.fetchrow("SELECT * FROM clubs WHERE id = $1", club_id)
        if record is None:
            return None
        return Club(id=record["id"], name=record["name"], description=record["description"])

    # Writes

    async def _bump_version(
        self,
        conn: asyncpg.Connection,
        session_id: str,
        expected_version: Optional[int],
    ) -> int:
        """Increment an open session's version, checking the caller's snapshot.

        Raises:
            StaleSessionError: If the session is closed, missing, or was
                changed since expected_version.
        """
        version = await conn.fetchval(
            """
            UPDATE sessions SET version = version + 1
            WHERE id = $1 AND status = 'open' AND ($2::INTEGER IS NULL OR version = $2)
            RETURNING version
            """,
            session_id,
            expected_version,
        )
        if version is None:
            raise StaleSessionError(
                f"Session {session_id} was closed or modified by someone else; reload and try again"
            )
        return version

    async def persist_cashout(
        self,
        session_id: str,
        event_id: str,
        event: CashoutEvent,
        expected_version: Optional[int] = None,
    ) -> int:
        """Store a new cash-out.

        Args:
            session_id: Session identifier.
            event_id: Id of the new event.
            event: The cash-out.
            expected_version: Version of the snapshot the caller worked on.

        Returns:
            The session's new version.

        Raises:
            StaleSessionError: If the session changed underneath the caller.
            InvalidStateError: If the player already has a cash-out.
        """
        async with self.db.transaction() as conn:
            version = await self._bump_version(conn, session_id, expected_version)
            try:
                await conn.execute(
                    """
                    INSERT INTO cashouts (id, session_id, player_id, stack_value, cashout, time)
                    VALUES ($1, $2, $3, $4, $5, $6)
                    """,
                    event_id,
                    session_id,
                    event.player_id,
                    event.stack_value,
                    event.cashout,
                    event.time,
                )
            except asyncpg.UniqueViolationError:
                raise InvalidStateError(f"Player {event.player_id} has already cashed out")
        await self.invalidate(session_id)
        logger.debug(f"Persisted cash-out {event_id} in session {session_id} (version {version})")
        return version

    async def delete_cashout(
        self,
        session_id: str,
        event_id: str,
        expected_version: Optional[int] = None,
    ) -> int:
        """Delete one cash-out.

        Returns:
            The session's new version.

        Raises:
            StaleSessionError: If the session changed underneath the caller.
            InvalidStateError: If the cash-out does not exist.
        """
        async with self.db.transaction() as conn:
            version = await self._bump_version(conn, session_id, expected_version)
            result = await conn.execute(
                "DELETE FROM cashouts WHERE id = $1 AND session_id = $2", event_id, session_id
            )
            if result == "DELETE 0":
                raise InvalidStateError(f"Cash-out {event_id} does not exist")
        await self.invalidate(session_id)
        logger.debug(f"Deleted cash-out {event_id} in session {session_id} (version {version})")
        return version

    async def delete_all_cashouts(self, session_id: str, expected_version: Optional[int] = None) -> int:
        """Delete every cash-out of a session.

        Returns:
            The session's new version.

        Raises:
            StaleSessionError: If the session changed underneath the caller.
        """
        async with self.db.transaction() as conn:
            version = await self._bump_version(conn, session_id, expected_version)
            result = await conn.execute("DELETE FROM cashouts WHERE session_id = $1", session_id)
        await self.invalidate(session_id)
        logger.debug(f"Deleted all cash-outs in session {session_id} ({result}, version {version})")
        return version

    async def close_session(self, session_id: str, expected_version: Optional[int] = None) -> int:
        """Mark a session closed. Closing is terminal.

        Returns:
            The session's new version.

        Raises:
            StaleSessionError: If the session is already closed or changed.
        """
        async with self.db.transaction() as conn:
            await self._bump_version(conn, session_id, expected_version)
            version = await conn.fetchval(
                "UPDATE sessions SET status = 'close' WHERE id = $1 RETURNING version", session_id
            )
        await self.invalidate(session_id)
        logger.debug(f"Closed session {session_id} (version {version})")
        return version


session_store = SessionStore()
