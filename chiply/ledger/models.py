"""Session, player and event records."""
import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from chiply.ledger.errors import DataIntegrityError


class SessionStatus(str, Enum):
    """Lifecycle of a session record."""
    OPEN = "open"
    CLOSE = "close"


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present key; records come in camelCase or snake_case."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def parse_number(value: Any) -> Optional[float]:
    """Coerce a stored value to a finite number, or None if it is not one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_timestamp(value: Any) -> Optional[int]:
    """Epoch milliseconds, or None for anything non-numeric."""
    number = parse_number(value)
    if number is None:
        return None
    return int(number)


def _required_player_id(data: dict, event_id: str) -> str:
    player_id = _pick(data, "playerId", "player_id")
    if not player_id:
        raise DataIntegrityError(f"Event {event_id} has no player id")
    return str(player_id)


def _required_amount(data: dict, event_id: str, *keys: str) -> float:
    amount = parse_number(_pick(data, *keys))
    if amount is None:
        raise DataIntegrityError(f"Event {event_id} has no valid {keys[0]}")
    return amount


@dataclass
class Player:
    """A club roster entry."""
    id: str
    name: str
    email: Optional[str] = None
    club_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "club_id": self.club_id,
        }

    @classmethod
    def from_dict(cls, player_id: str, data: dict) -> "Player":
        """Create from a stored player record."""
        if not player_id:
            raise DataIntegrityError("Player record has no id")
        return cls(
            id=str(player_id),
            name=str(data.get("name") or ""),
            email=data.get("email"),
            club_id=_pick(data, "clubId", "club_id"),
        )


@dataclass(frozen=True)
class BuyinEvent:
    """A single buy-in. Immutable once recorded."""
    player_id: str
    amount: float
    time: Optional[int]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"player_id": self.player_id, "amount": self.amount, "time": self.time}

    @classmethod
    def from_dict(cls, data: dict, event_id: str = "") -> "BuyinEvent":
        """Create from a stored buy-in record.

        Raises:
            DataIntegrityError: If the player id or amount is missing.
        """
        return cls(
            player_id=_required_player_id(data, event_id),
            amount=_required_amount(data, event_id, "amount"),
            time=parse_timestamp(data.get("time")),
        )


@dataclass(frozen=True)
class CashoutEvent:
    """A player's settlement.

    stack_value is the measured chip stack, cashout the amount actually paid.
    They differ only for a recorded miscalculation correction.
    """
    player_id: str
    stack_value: float
    cashout: float
    time: Optional[int]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "player_id": self.player_id,
            "stack_value": self.stack_value,
            "cashout": self.cashout,
            "time": self.time,
        }

    @classmethod
    def from_dict(cls, data: dict, event_id: str = "") -> "CashoutEvent":
        """Create from a stored cash-out record.

        Raises:
            DataIntegrityError: If the player id or either amount is missing.
        """
        return cls(
            player_id=_required_player_id(data, event_id),
            stack_value=_required_amount(data, event_id, "stackValue", "stack_value"),
            cashout=_required_amount(data, event_id, "cashout"),
            time=parse_timestamp(data.get("time")),
        )


@dataclass
class Stakes:
    """Blind structure. Malformed values are kept as None."""
    small_blind: Optional[float] = None
    big_blind: Optional[float] = None
    ante: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
            "ante": self.ante,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Stakes":
        """Create from a stored stakes record."""
        data = data or {}
        return cls(
            small_blind=parse_number(_pick(data, "smallBlind", "small_blind")),
            big_blind=parse_number(_pick(data, "bigBlind", "big_blind")),
            ante=parse_number(data.get("ante")),
        )


@dataclass
class SessionData:
    """Event arena of a session, keyed by opaque event ids."""
    players: set[str] = field(default_factory=set)
    buyins: dict[str, BuyinEvent] = field(default_factory=dict)
    cashouts: dict[str, CashoutEvent] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "players": sorted(self.players),
            "buyins": {eid: e.to_dict() for eid, e in self.buyins.items()},
            "cashouts": {eid: e.to_dict() for eid, e in self.cashouts.items()},
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SessionData":
        """Create from a stored data record.

        Seated players may be stored as a list or as a {player_id: flag} map.
        """
        data = data or {}
        return cls(
            players={str(pid) for pid in (data.get("players") or {})},
            buyins={
                eid: BuyinEvent.from_dict(raw, eid)
                for eid, raw in (data.get("buyins") or {}).items()
            },
            cashouts={
                eid: CashoutEvent.from_dict(raw, eid)
                for eid, raw in (data.get("cashouts") or {}).items()
            },
        )


@dataclass
class SessionDetails:
    """A poker session and its buy-in/cash-out log."""
    id: str
    club_id: Optional[str]
    start_time: Optional[int]
    type: Optional[str]
    stakes: Stakes
    status: SessionStatus = SessionStatus.OPEN
    data: SessionData = field(default_factory=SessionData)
    version: int = 0

    @property
    def is_closed(self) -> bool:
        """Closed sessions accept no cash-out mutations."""
        return self.status == SessionStatus.CLOSE

    def copy(self) -> "SessionDetails":
        """Deep copy, used for snapshots handed to callers."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "club_id": self.club_id,
            "start_time": self.start_time,
            "type": self.type,
            "stakes": self.stakes.to_dict(),
            "status": self.status.value,
            "data": self.data.to_dict(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, session_id: str, data: dict) -> "SessionDetails":
        """Create from a stored session record.

        Accepts the nested layout ({"details": {"startTime", "type",
        "stakes"}}) as well as the flat layout produced by to_dict().

        Raises:
            DataIntegrityError: If any event lacks a player id.
        """
        details = data.get("details") or data
        status = data.get("status") or SessionStatus.OPEN.value
        try:
            session_status = SessionStatus(status)
        except ValueError:
            raise DataIntegrityError(f"Session {session_id} has unknown status {status!r}")
        return cls(
            id=str(session_id),
            club_id=_pick(data, "clubId", "club_id"),
            start_time=parse_timestamp(_pick(details, "startTime", "start_time")),
            type=details.get("type"),
            stakes=Stakes.from_dict(details.get("stakes")),
            status=session_status,
            data=SessionData.from_dict(data.get("data")),
            version=int(data.get("version") or 0),
        )


@dataclass
class Club:
    """A poker club."""
    id: str
    name: str
    description: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, club_id: str, data: dict) -> "Club":
        """Create from a stored club record."""
        return cls(id=str(club_id), name=str(data.get("name") or ""), description=data.get("description"))
