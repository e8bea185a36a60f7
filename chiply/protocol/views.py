"""Build API responses from ledger state."""
from chiply.ledger.cashout_manager import MutationResult
from chiply.ledger.ledger import SessionLedger
from chiply.ledger.reconciliation import SessionSummary, cashout_view
from chiply.protocol.messages import (
    CashoutRowItem,
    CashoutViewResponse,
    MutationResponse,
    PlayerItem,
    SessionSummaryItem,
    StakesItem,
)
from chiply.utils.formatters import (
    format_bb,
    format_date,
    format_hands,
    format_profit_loss,
    format_stakes,
)


def build_cashout_view(ledger: SessionLedger) -> CashoutViewResponse:
    """Cash-out view for a session as seen by the ledger's caller."""
    snapshot = ledger.snapshot()
    rows = [
        CashoutRowItem(
            player_id=row.player.id,
            name=row.player.name,
            text=row.status.text,
            buyin_total=row.status.buyin_total,
            cashout=row.status.cashout,
            stack_value=row.status.stack_value,
            profit_loss=row.status.profit_loss,
            is_miscalculation=row.status.is_miscalculation,
            can_reset=row.can_reset,
        )
        for row in cashout_view(ledger)
    ]
    editable = ledger.can_edit and not ledger.is_closed
    return CashoutViewResponse(
        session_id=snapshot.id,
        club_id=snapshot.club_id,
        status=snapshot.status.value,
        is_closed=snapshot.is_closed,
        can_edit=ledger.can_edit,
        version=snapshot.version,
        rows=rows,
        eligible_players=[
            PlayerItem(id=p.id, name=p.name) for p in ledger.eligible_for_cashout()
        ] if editable else [],
        can_reset_all=editable and ledger.has_cashouts(),
    )


def build_mutation_response(result: MutationResult, ledger: SessionLedger) -> MutationResponse:
    """Mutation outcome with the view of the ledger after it."""
    return MutationResponse(
        success=result.success,
        applied=result.applied,
        message=result.message,
        event_id=result.event_id,
        view=build_cashout_view(ledger),
    )


def build_summary_item(summary: SessionSummary) -> SessionSummaryItem:
    """Report row with display strings next to the raw numbers."""
    stakes = summary.stakes
    return SessionSummaryItem(
        id=summary.id,
        date=summary.date,
        date_display=format_date(summary.date),
        club_name=summary.club_name,
        stakes=StakesItem(**stakes.to_dict()),
        stakes_display=format_stakes(stakes.small_blind, stakes.big_blind, stakes.ante),
        status=summary.status.value,
        player_count=summary.player_count,
        play_time=summary.play_time,
        hands=summary.hands,
        hands_display=format_hands(summary.hands),
        buyin_count=summary.buyin_count,
        buyin_total=summary.buyin_total,
        final_stack=summary.final_stack,
        profit_loss=summary.profit_loss,
        profit_loss_display=format_profit_loss(summary.profit_loss),
        profit_loss_bb=summary.profit_loss_bb,
        profit_loss_bb_display=format_bb(summary.profit_loss_bb),
    )
