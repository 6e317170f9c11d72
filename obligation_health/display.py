"""Human-readable rendering of health reports.

Rounding happens here only; report values themselves stay exact.
"""
from __future__ import annotations

import decimal
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Iterable

from .models import BorrowValuation, DepositValuation, HealthReport
from .risk import HealthStatus

_DISPLAY_PRECISION = 60

_STATUS_LABELS = {
    HealthStatus.HEALTHY: "✅ Healthy",
    HealthStatus.WARNING: "⚠️ WARNING",
    HealthStatus.CRITICAL: "🚨 CRITICAL",
    HealthStatus.LIMIT_REACHED: "🚨 BORROW LIMIT REACHED",
    HealthStatus.LIQUIDATABLE: "💀 LIQUIDATABLE",
}


def _quantize(value: Decimal, places: int, rounding: str) -> Decimal:
    with decimal.localcontext() as ctx:
        ctx.prec = max(_DISPLAY_PRECISION, value.adjusted() + places + 2)
        return value.quantize(Decimal(1).scaleb(-places), rounding=rounding)


def format_usd(value: Decimal, omit_prefix: bool = False, rounded: bool = False) -> str:
    """Format a USD amount, e.g. ``$1,234.57`` or ``< $0.01``."""
    prefix = "" if omit_prefix else "$"
    if Decimal(0) < value < Decimal("0.01"):
        return f"< {prefix}0.01"
    # Price conversions rarely net back to exactly zero.
    if abs(value) < Decimal("0.0001"):
        return f"{prefix}0" if rounded else f"{prefix}0.00"

    places = 0 if rounded else 2
    sign = "-" if value < 0 else ""
    amount = _quantize(abs(value), places, ROUND_HALF_UP)
    return f"{sign}{prefix}{amount:,.{places}f}"


def format_percent(value: Decimal, limit: Decimal = Decimal("0.0001")) -> str:
    """Format a fraction as a percentage, e.g. ``Decimal("0.3125")`` → ``31.25%``."""
    if Decimal(0) < value < limit:
        return "< 0.01%"
    percent = _quantize(value * 100, 2, ROUND_HALF_UP)
    return f"{percent:,.2f}%"


def format_token(value: Decimal, digits: int = 4, round_half_up: bool = False) -> str:
    """Format a token amount; truncates by default."""
    smallest = Decimal(1).scaleb(-digits)
    if Decimal(0) < value < smallest:
        return f"< {smallest:f}"
    rounding = ROUND_HALF_UP if round_half_up else ROUND_DOWN
    amount = _quantize(value, digits, rounding)
    return f"{amount:,.{digits}f}"


def status_label(status: HealthStatus) -> str:
    return _STATUS_LABELS[status]


def _position_line(position: DepositValuation | BorrowValuation) -> str:
    return (
        f"    - {position.symbol}: {format_token(position.amount)} x "
        f"{format_usd(position.price)} = {format_usd(position.amount_usd)}"
    )


def build_position_summary(report: HealthReport, status: HealthStatus) -> str:
    """Build a multi-line summary of one obligation."""
    lines = [
        f"Obligation {report.address} · {status_label(status)}",
        "  Deposits:",
    ]
    lines.extend(_position_line(d) for d in report.deposits)
    lines.append(f"  Total Supply:          {format_usd(report.total_supply_value)}")
    lines.append("  Borrows:")
    lines.extend(_position_line(b) for b in report.borrows)
    lines.extend(
        [
            f"  Total Borrow:          {format_usd(report.total_borrow_value)}",
            f"  Net Account Value:     {format_usd(report.net_account_value)}",
            f"  Borrow Limit:          {format_usd(report.borrow_limit)}",
            f"  Liquidation Threshold: {format_usd(report.liquidation_threshold_value)}",
            f"  Borrow Utilization:    {format_percent(report.borrow_utilization)}",
            f"  Weighted Conservative Utilization: "
            f"{format_percent(report.weighted_conservative_borrow_utilization)}",
        ]
    )
    return "\n".join(lines)


def build_report_summary(results: Iterable[tuple[HealthReport, HealthStatus]]) -> str:
    """Build a report covering many obligations."""
    sections = [build_position_summary(report, status) for report, status in results]
    body = "\n\n".join(sections) if sections else "No active obligations found."
    return f"📋 Obligation Health Report\n\n{body}"
