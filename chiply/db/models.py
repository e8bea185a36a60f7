"""Database schema and initialization."""
from chiply.db.connection import db
from chiply.utils.logger import get_logger

logger = get_logger(__name__)

# Ids are opaque text keys so records imported from the old realtime store keep theirs.
SCHEMA = """
-- Clubs
CREATE TABLE IF NOT EXISTS clubs (
    id TEXT PRIMARY KEY,
    name VARCHAR(100) NOT NULL,
    description TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

-- Club roster (position keeps declaration order)
CREATE TABLE IF NOT EXISTS players (
    id TEXT PRIMARY KEY,
    club_id TEXT REFERENCES clubs(id) ON DELETE CASCADE,
    name VARCHAR(100) NOT NULL,
    email VARCHAR(255),
    position SERIAL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_players_club ON players(club_id);
CREATE INDEX IF NOT EXISTS idx_players_email ON players(LOWER(email));

-- Sessions (version is bumped by every cash-out mutation)
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    club_id TEXT REFERENCES clubs(id) ON DELETE CASCADE,
    start_time BIGINT,
    type VARCHAR(50),
    small_blind DOUBLE PRECISION,
    big_blind DOUBLE PRECISION,
    ante DOUBLE PRECISION,
    status VARCHAR(10) NOT NULL DEFAULT 'open' CHECK (status IN ('open', 'close')),
    version INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_sessions_club ON sessions(club_id);

-- Players seated in a session
CREATE TABLE IF NOT EXISTS session_players (
    session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
    player_id TEXT NOT NULL REFERENCES players(id) ON DELETE CASCADE,
    PRIMARY KEY (session_id, player_id)
);

-- Buy-ins (append-only)
CREATE TABLE IF NOT EXISTS buyins (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
    player_id TEXT NOT NULL REFERENCES players(id),
    amount DOUBLE PRECISION NOT NULL CHECK (amount >= 0),
    time BIGINT
);

CREATE INDEX IF NOT EXISTS idx_buyins_session ON buyins(session_id);

-- Cash-outs (at most one per player per session)
CREATE TABLE IF NOT EXISTS cashouts (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
    player_id TEXT NOT NULL REFERENCES players(id),
    stack_value DOUBLE PRECISION NOT NULL CHECK (stack_value >= 0),
    cashout DOUBLE PRECISION NOT NULL CHECK (cashout >= 0),
    time BIGINT,
    UNIQUE (session_id, player_id)
);

CREATE INDEX IF NOT EXISTS idx_cashouts_session ON cashouts(session_id);
"""


async def init_db() -> None:
    """Initialize database schema."""
    logger.info("Initializing database schema...")
    await db.execute(SCHEMA)
    logger.info("Database schema initialized")
