"""Plain-text tables for the admin CLI."""
from chiply.ledger.reconciliation import PlayerCashoutRow, SessionSummary
from chiply.utils.formatters import (
    format_bb,
    format_currency,
    format_date,
    format_hands,
    format_profit_loss,
    format_stakes,
)


def format_cashout_table(rows: list[PlayerCashoutRow]) -> str:
    """Format a session's cash-out view as a text table.

    Args:
        rows: Rows from cashout_view().

    Returns:
        Formatted table string.
    """
    if not rows:
        return "No buy-ins recorded."

    width = max(len("Player"), *(len(r.player.name) for r in rows))
    lines = [f"{'Player':<{width}} | Status", f"{'-' * width}-+-{'-' * 40}"]
    for row in rows:
        lines.append(f"{row.player.name:<{width}} | {row.status.text}")
    return "\n".join(lines)


def format_sessions_table(summaries: list[SessionSummary]) -> str:
    """Format a my-sessions report as a text table.

    Args:
        summaries: Summaries, already sorted.

    Returns:
        Formatted table string.
    """
    if not summaries:
        return "No sessions found."

    lines = [
        "| Date       | Club            | Stakes     | Status    | Time    | Hands | Buy-in    | Final     | P&L       | BB     |",
        "|------------|-----------------|------------|-----------|---------|-------|-----------|-----------|-----------|--------|",
    ]
    for s in summaries:
        stakes = format_stakes(s.stakes.small_blind, s.stakes.big_blind, s.stakes.ante)
        final = format_currency(s.final_stack) if s.final_stack is not None else "-"
        lines.append(
            f"| {format_date(s.date):<10} | {s.club_name[:15]:<15} | {stakes:<10} "
            f"| {s.status.value:<9} | {s.play_time or '-':>7} | {format_hands(s.hands):>5} "
            f"| {format_currency(s.buyin_total):>9} | {final:>9} "
            f"| {format_profit_loss(s.profit_loss):>9} | {format_bb(s.profit_loss_bb):>6} |"
        )
    return "\n".join(lines)
