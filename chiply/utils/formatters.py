"""Display formatting, applied only at presentation time."""
from datetime import datetime, timezone
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Optional

from chiply.config import config

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE

# Wide enough for any finite float (about 309 integer digits) plus cents.
MONEY_CONTEXT = Context(prec=400)


def format_money(amount: float) -> str:
    """Round to two decimals and drop trailing zeros.

    >>> format_money(200.0)
    '200'
    >>> format_money(12.345)
    '12.35'
    """
    rounded = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP, context=MONEY_CONTEXT)
    text = f"{rounded:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_currency(amount: float, symbol: Optional[str] = None) -> str:
    """Money with the currency symbol, e.g. ₪150.5."""
    if symbol is None:
        symbol = config.currency_symbol
    if amount < 0:
        return f"-{symbol}{format_money(-amount)}"
    return f"{symbol}{format_money(amount)}"


def format_profit_loss(amount: Optional[float]) -> str:
    """Signed currency amount: +₪50, -₪20, ₪0, or - when unknown."""
    if amount is None:
        return "-"
    prefix = "+" if amount > 0 else ""
    return prefix + format_currency(amount)


def format_bb(amount: Optional[float]) -> str:
    """Big-blind result with one decimal, e.g. +2.5."""
    if amount is None:
        return "-"
    prefix = "+" if amount > 0 else ""
    return f"{prefix}{amount:.1f}"


def format_hands(hands: Optional[int]) -> str:
    """Approximate hand count, e.g. ~45."""
    if hands is None:
        return "-"
    return f"~{hands}"


def format_play_time(elapsed_ms: int) -> str:
    """Whole hours and minutes, rounded down: 2h 5m."""
    hours = elapsed_ms // MS_PER_HOUR
    minutes = (elapsed_ms % MS_PER_HOUR) // MS_PER_MINUTE
    return f"{hours}h {minutes}m"


def format_stakes(small_blind: Optional[float], big_blind: Optional[float], ante: Optional[float] = None) -> str:
    """Blinds as 1/2, with the ante in parentheses when there is one."""
    sb = format_money(small_blind) if small_blind is not None else "?"
    bb = format_money(big_blind) if big_blind is not None else "?"
    text = f"{sb}/{bb}"
    if ante:
        text += f" ({format_money(ante)})"
    return text


def format_date(timestamp_ms: Optional[int]) -> str:
    """Session date as dd/mm/yyyy (UTC)."""
    if timestamp_ms is None:
        return "-"
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%d/%m/%Y")
