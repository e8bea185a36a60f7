"""Read-only summaries derived from session ledgers.

Two profit/loss figures live here on purpose:

* player_cashout_status() reports what was settled: cashout - buy-ins.
* summarize_session() reports what the chips were worth:
  stack_value - buy-ins.

They only differ for a miscalculation correction.
"""
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from chiply.config import config
from chiply.ledger.ledger import SessionLedger, now_ms
from chiply.ledger.models import BuyinEvent, CashoutEvent, Club, Player, SessionDetails, Stakes
from chiply.ledger.status import ParticipationStatus
from chiply.utils.formatters import MS_PER_MINUTE, format_currency, format_play_time
from chiply.utils.hands import estimate_hands

UNKNOWN_CLUB = "Unknown Club"


@dataclass(frozen=True)
class SummaryText:
    """A player's line in the cash-out view."""
    player_id: str
    buyin_total: float
    cashout: Optional[float]
    stack_value: Optional[float]
    profit_loss: Optional[float]
    is_miscalculation: bool
    text: str

    def __str__(self) -> str:
        return self.text

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "player_id": self.player_id,
            "buyin_total": self.buyin_total,
            "cashout": self.cashout,
            "stack_value": self.stack_value,
            "profit_loss": self.profit_loss,
            "is_miscalculation": self.is_miscalculation,
            "text": self.text,
        }


@dataclass(frozen=True)
class PlayerCashoutRow:
    """One row of the single-session cash-out view."""
    player: Player
    status: SummaryText
    can_reset: bool


@dataclass(frozen=True)
class SessionSummary:
    """A viewer's result in one session, for the my-sessions report."""
    id: str
    date: Optional[int]
    status: ParticipationStatus
    play_time: Optional[str]
    elapsed_minutes: Optional[int]
    buyin_count: int
    buyin_total: float
    final_stack: Optional[float]
    profit_loss: Optional[float]
    profit_loss_bb: Optional[float]
    club_name: str
    player_count: int
    hands: Optional[int]
    stakes: Stakes

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "date": self.date,
            "status": self.status.value,
            "play_time": self.play_time,
            "elapsed_minutes": self.elapsed_minutes,
            "buyin_count": self.buyin_count,
            "buyin_total": self.buyin_total,
            "final_stack": self.final_stack,
            "profit_loss": self.profit_loss,
            "profit_loss_bb": self.profit_loss_bb,
            "club_name": self.club_name,
            "player_count": self.player_count,
            "hands": self.hands,
            "stakes": self.stakes.to_dict(),
        }


def is_miscalculation(event: CashoutEvent, epsilon: Optional[float] = None) -> bool:
    """True when the settled amount differs from the measured stack."""
    if epsilon is None:
        epsilon = config.money_epsilon
    return abs(event.cashout - event.stack_value) > epsilon


def player_cashout_status(
    player: Player,
    ledger: SessionLedger,
    epsilon: Optional[float] = None,
) -> SummaryText:
    """Build a player's buy-in/cash-out line.

    Args:
        player: Roster player.
        ledger: Ledger of the session being viewed.
        epsilon: Tolerance when comparing cashout and stack value.

    Returns:
        "Buy-ins: ₪X" before cash-out, otherwise
        "Buy-ins: ₪X | Cashout: ₪Y (₪Z) | Profit: ₪W", where the stack
        value Z only appears for a miscalculation.
    """
    total = ledger.total_buyins(player.id)
    buyins_text = f"Buy-ins: {format_currency(total)}"

    event = ledger.find_cashout(player.id)
    if event is None:
        return SummaryText(
            player_id=player.id,
            buyin_total=total,
            cashout=None,
            stack_value=None,
            profit_loss=None,
            is_miscalculation=False,
            text=buyins_text,
        )

    profit_loss = event.cashout - total
    corrected = is_miscalculation(event, epsilon)
    cashout_text = format_currency(event.cashout)
    if corrected:
        cashout_text += f" ({format_currency(event.stack_value)})"
    label = "Profit" if profit_loss >= 0 else "Loss"

    return SummaryText(
        player_id=player.id,
        buyin_total=total,
        cashout=event.cashout,
        stack_value=event.stack_value,
        profit_loss=profit_loss,
        is_miscalculation=corrected,
        text=f"{buyins_text} | Cashout: {cashout_text} | {label}: {format_currency(abs(profit_loss))}",
    )


def cashout_view(ledger: SessionLedger) -> list[PlayerCashoutRow]:
    """Rows for every player with a buy-in, in roster order."""
    editable = ledger.can_edit and not ledger.is_closed
    return [
        PlayerCashoutRow(
            player=player,
            status=player_cashout_status(player, ledger),
            can_reset=editable and ledger.find_cashout(player.id) is not None,
        )
        for player in ledger.players_with_buyins()
    ]


def _elapsed_ms(
    buyins: list[BuyinEvent],
    cashout: Optional[CashoutEvent],
    now: int,
) -> Optional[int]:
    """Time from the first buy-in to the cash-out (or now), None if unknown."""
    times = [b.time for b in buyins if b.time is not None]
    if not times:
        return None
    end = now if cashout is None else cashout.time
    if end is None:
        return None
    return max(end - min(times), 0)


def _club_name(clubs: Optional[Mapping[str, Club]], club_id: Optional[str]) -> str:
    if not clubs or club_id is None:
        return UNKNOWN_CLUB
    club = clubs.get(club_id)
    if club is None or not club.name:
        return UNKNOWN_CLUB
    return club.name


def summarize_session(
    session: SessionDetails,
    relevant_player_ids: Iterable[str],
    *,
    clubs: Optional[Mapping[str, Club]] = None,
    now: Optional[int] = None,
) -> Optional[SessionSummary]:
    """Summarize a session from one viewer's point of view.

    Args:
        session: Session snapshot.
        relevant_player_ids: Roster ids belonging to the viewer.
        clubs: Clubs by id, for the club name.
        now: Epoch ms used as the end time while still playing.

    Returns:
        The summary, or None when the viewer has no buy-in and no seat.
    """
    relevant = set(relevant_player_ids)
    buyins = [b for b in session.data.buyins.values() if b.player_id in relevant]
    cashout = next((c for c in session.data.cashouts.values() if c.player_id in relevant), None)
    seated = any(pid in relevant for pid in session.data.players)

    if not buyins and not seated:
        return None

    player_count = len(session.data.players)
    play_time = None
    elapsed_minutes = None
    hands = None
    if buyins:
        elapsed = _elapsed_ms(buyins, cashout, now_ms() if now is None else now)
        if elapsed is not None:
            play_time = format_play_time(elapsed)
            elapsed_minutes = elapsed // MS_PER_MINUTE
            if player_count > 0:
                hands = estimate_hands(player_count, elapsed_minutes)

    buyin_total = sum((b.amount for b in buyins), 0.0)
    final_stack = None
    profit_loss = None
    profit_loss_bb = None
    if cashout is not None:
        final_stack = cashout.stack_value
        profit_loss = cashout.stack_value - buyin_total
        big_blind = session.stakes.big_blind
        if big_blind:
            profit_loss_bb = profit_loss / big_blind

    return SessionSummary(
        id=session.id,
        date=session.start_time,
        status=ParticipationStatus.derive(bool(buyins), cashout is not None),
        play_time=play_time,
        elapsed_minutes=elapsed_minutes,
        buyin_count=len(buyins),
        buyin_total=buyin_total,
        final_stack=final_stack,
        profit_loss=profit_loss,
        profit_loss_bb=profit_loss_bb,
        club_name=_club_name(clubs, session.club_id),
        player_count=player_count,
        hands=hands,
        stakes=session.stakes,
    )


def sort_by_date_descending(summaries: Iterable[SessionSummary]) -> list[SessionSummary]:
    """Newest first. Ties keep their order; undated sessions go last."""
    return sorted(
        summaries,
        key=lambda s: (s.date is not None, s.date or 0),
        reverse=True,
    )


def summarize_sessions(
    sessions: Mapping[str, SessionDetails],
    relevant_player_ids: Iterable[str],
    *,
    clubs: Optional[Mapping[str, Club]] = None,
    now: Optional[int] = None,
) -> list[SessionSummary]:
    """Build the my-sessions report.

    Args:
        sessions: All sessions by id.
        relevant_player_ids: Roster ids belonging to the viewer.
        clubs: Clubs by id.
        now: Epoch ms used for sessions still in progress.

    Returns:
        Summaries of sessions the viewer took part in, newest first.
    """
    relevant = set(relevant_player_ids)
    if now is None:
        now = now_ms()
    summaries = []
    for session in sessions.values():
        summary = summarize_session(session, relevant, clubs=clubs, now=now)
        if summary is not None:
            summaries.append(summary)
    return sort_by_date_descending(summaries)


def relevant_player_ids(players: Mapping[str, Player], email: Optional[str]) -> list[str]:
    """Roster ids registered under the viewer's email."""
    if not email:
        return []
    wanted = email.strip().lower()
    return [
        player_id
        for player_id, player in players.items()
        if player.email and player.email.strip().lower() == wanted
    ]
