"""Shared fixtures for ledger tests."""
import pytest

from chiply.ledger.models import (
    BuyinEvent,
    CashoutEvent,
    Player,
    SessionData,
    SessionDetails,
    SessionStatus,
    Stakes,
)

MINUTE = 60 * 1000
HOUR = 60 * MINUTE
T0 = 1_704_067_200_000  # 2024-01-01 00:00 UTC


def _make_session(
    session_id: str = "s1",
    buyins: dict = None,
    cashouts: dict = None,
    players: set = None,
    status: SessionStatus = SessionStatus.OPEN,
    big_blind: float = 2.0,
    start_time: int = T0,
    club_id: str = "club1",
    version: int = 0,
) -> SessionDetails:
    buyins = buyins or {}
    if players is None:
        players = {b.player_id for b in buyins.values()}
    return SessionDetails(
        id=session_id,
        club_id=club_id,
        start_time=start_time,
        type="cash",
        stakes=Stakes(small_blind=1.0, big_blind=big_blind),
        status=status,
        data=SessionData(players=set(players), buyins=dict(buyins), cashouts=dict(cashouts or {})),
        version=version,
    )


@pytest.fixture
def make_session():
    """Factory for session snapshots."""
    return _make_session


@pytest.fixture
def roster():
    """Club roster in declaration order."""
    return {
        "p1": Player(id="p1", name="Alice", email="alice@example.com", club_id="club1"),
        "p2": Player(id="p2", name="Bob", email="bob@example.com", club_id="club1"),
        "p3": Player(id="p3", name="Carol", email=None, club_id="club1"),
    }


@pytest.fixture
def session_with_buyins(make_session):
    """Alice bought in twice, Bob once, Carol is seated without buying in."""
    return make_session(
        buyins={
            "b1": BuyinEvent(player_id="p1", amount=100.0, time=T0),
            "b2": BuyinEvent(player_id="p2", amount=200.0, time=T0 + 5 * MINUTE),
            "b3": BuyinEvent(player_id="p1", amount=50.0, time=T0 + 10 * MINUTE),
        },
        players={"p1", "p2", "p3"},
    )


@pytest.fixture
def cashout_event():
    """Alice cashing out 200 with no correction."""
    return CashoutEvent(player_id="p1", stack_value=200.0, cashout=200.0, time=T0 + 40 * MINUTE)
