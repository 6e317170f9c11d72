"""Obligation health calculator — pure functions, no I/O.

Raw on-chain integers are converted with exact decimal shifts, positions are
valued at spot and conservative prices, then folded into obligation-level
aggregates. Every ratio uses the zero-if-denominator-zero policy; only
reserve resolution and malformed input can fail a calculation.
"""
from __future__ import annotations

import decimal
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .errors import DataIntegrityViolation, NegativeAmount, ZeroBorrowRateSnapshot
from .fixed_point import (
    DEFAULT_PRECISION,
    ONE,
    WAD_DECIMALS,
    ZERO,
    calculation_context,
    decimal_amount,
    safe_divide,
    wad_amount,
)
from .models import (
    BorrowPosition,
    BorrowValuation,
    DepositPosition,
    DepositValuation,
    HealthReport,
    ObligationSnapshot,
    Reserve,
    ReserveSet,
)

logger = logging.getLogger(__name__)


@dataclass
class ConservativeTotals:
    """Running worst-case accumulators, kept apart from display totals."""

    min_price_total_supply: Decimal = ZERO
    min_price_borrow_limit: Decimal = ZERO
    max_price_weighted_borrow: Decimal = ZERO


# ---------------------------------------------------------------------------
# Per-position valuation
# ---------------------------------------------------------------------------


def accrue_interest(
    amount: Decimal, current_rate: Decimal, snapshot_rate_wads: int
) -> Decimal:
    """Rescale a debt snapshot from its recorded interest index to the current one."""
    if snapshot_rate_wads <= 0:
        raise ZeroBorrowRateSnapshot(
            f"Cumulative borrow rate snapshot must be positive, got {snapshot_rate_wads}"
        )
    return amount * current_rate / decimal_amount(snapshot_rate_wads, WAD_DECIMALS)


def value_deposit(position: DepositPosition, reserve: Reserve) -> DepositValuation:
    """Value one collateral deposit in underlying units and USD."""
    amount = (
        decimal_amount(position.deposited_amount, reserve.decimals)
        * reserve.c_token_exchange_rate
    )
    return DepositValuation(
        reserve_address=reserve.address,
        symbol=reserve.symbol,
        loan_to_value_ratio=reserve.loan_to_value_ratio,
        liquidation_threshold=reserve.liquidation_threshold,
        price=reserve.price,
        amount=amount,
        amount_usd=amount * reserve.price,
    )


def value_borrow(position: BorrowPosition, reserve: Reserve) -> BorrowValuation:
    """Value one debt position with interest accrued to the reserve's index."""
    raw_amount = wad_amount(position.borrowed_amount_wads, reserve.decimals)
    amount = accrue_interest(
        raw_amount, reserve.cumulative_borrow_rate, position.cumulative_borrow_rate_wads
    )
    amount_usd = amount * reserve.price
    return BorrowValuation(
        reserve_address=reserve.address,
        symbol=reserve.symbol,
        loan_to_value_ratio=reserve.loan_to_value_ratio,
        liquidation_threshold=reserve.liquidation_threshold,
        price=reserve.price,
        amount=amount,
        amount_usd=amount_usd,
        weighted_amount_usd=reserve.effective_borrow_weight * amount_usd,
    )


def value_deposits(
    obligation: ObligationSnapshot,
    reserves: ReserveSet,
    totals: ConservativeTotals,
) -> tuple[DepositValuation, ...]:
    """Value all non-zero deposits and feed the conservative supply totals."""
    valuations: list[DepositValuation] = []
    for position in obligation.deposits:
        if position.deposited_amount < 0:
            raise NegativeAmount(
                f"Deposit in {position.reserve_address} has negative amount "
                f"{position.deposited_amount}"
            )
        if position.deposited_amount == 0:
            continue

        reserve = reserves.resolve(position.reserve_address, obligation.address)
        valuation = value_deposit(position, reserve)

        min_price_value = valuation.amount * reserve.supply_price
        totals.min_price_total_supply += min_price_value
        totals.min_price_borrow_limit += min_price_value * reserve.loan_to_value_ratio

        valuations.append(valuation)
    return tuple(valuations)


def value_borrows(
    obligation: ObligationSnapshot,
    reserves: ReserveSet,
    totals: ConservativeTotals,
) -> tuple[BorrowValuation, ...]:
    """Value all non-zero borrows and feed the conservative debt total."""
    valuations: list[BorrowValuation] = []
    for position in obligation.borrows:
        if position.borrowed_amount_wads < 0:
            raise NegativeAmount(
                f"Borrow in {position.reserve_address} has negative amount "
                f"{position.borrowed_amount_wads}"
            )
        if position.borrowed_amount_wads == 0:
            continue

        reserve = reserves.resolve(position.reserve_address, obligation.address)
        valuation = value_borrow(position, reserve)

        totals.max_price_weighted_borrow += (
            valuation.amount * reserve.borrow_price * reserve.effective_borrow_weight
        )

        valuations.append(valuation)
    return tuple(valuations)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate(
    obligation: ObligationSnapshot,
    deposits: tuple[DepositValuation, ...],
    borrows: tuple[BorrowValuation, ...],
    totals: ConservativeTotals,
) -> HealthReport:
    """Fold per-position valuations into obligation-level metrics."""
    total_supply_value = sum((d.amount_usd for d in deposits), ZERO)
    total_borrow_value = sum((b.amount_usd for b in borrows), ZERO)
    weighted_total_borrow_value = sum((b.weighted_amount_usd for b in borrows), ZERO)

    borrow_limit = sum((d.amount_usd * d.loan_to_value_ratio for d in deposits), ZERO)
    liquidation_threshold_value = sum(
        (d.amount_usd * d.liquidation_threshold for d in deposits), ZERO
    )

    borrow_utilization = safe_divide(total_borrow_value, borrow_limit)

    # Guarded on the conservative limit, divided by the nominal one.
    if totals.min_price_borrow_limit.is_zero():
        weighted_borrow_utilization = ZERO
    else:
        weighted_borrow_utilization = safe_divide(
            weighted_total_borrow_value, borrow_limit
        )

    return HealthReport(
        address=obligation.address,
        market_address=obligation.market_address,
        position_count=len(deposits) + len(borrows),
        total_supply_value=total_supply_value,
        total_borrow_value=total_borrow_value,
        weighted_total_borrow_value=weighted_total_borrow_value,
        borrow_limit=borrow_limit,
        liquidation_threshold_value=liquidation_threshold_value,
        net_account_value=total_supply_value - total_borrow_value,
        liquidation_threshold_factor=safe_divide(
            liquidation_threshold_value, total_supply_value
        ),
        borrow_limit_factor=safe_divide(borrow_limit, total_supply_value),
        borrow_utilization=borrow_utilization,
        weighted_borrow_utilization=weighted_borrow_utilization,
        weighted_conservative_borrow_utilization=safe_divide(
            totals.max_price_weighted_borrow, totals.min_price_borrow_limit
        ),
        is_borrow_limit_reached=borrow_utilization >= ONE,
        borrow_over_supply=safe_divide(total_borrow_value, total_supply_value),
        min_price_total_supply=totals.min_price_total_supply,
        min_price_borrow_limit=totals.min_price_borrow_limit,
        max_price_weighted_borrow=totals.max_price_weighted_borrow,
        deposits=deposits,
        borrows=borrows,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def calculate_health(
    obligation: ObligationSnapshot,
    reserves: ReserveSet,
    precision: int = DEFAULT_PRECISION,
) -> HealthReport:
    """Compute the health report of one obligation.

    Args:
        obligation: Decoded obligation snapshot.
        reserves: Reserve set every position must resolve against.
        precision: Significant digits of the decimal context used for the
            calculation.

    Raises:
        ReserveNotFound: A position references a reserve absent from ``reserves``.
        DataIntegrityViolation: Negative amounts or a non-positive interest
            index snapshot.
    """
    with decimal.localcontext(calculation_context(precision)):
        totals = ConservativeTotals()
        deposits = value_deposits(obligation, reserves, totals)
        borrows = value_borrows(obligation, reserves, totals)
        report = aggregate(obligation, deposits, borrows, totals)

    logger.debug(
        "Obligation %s: %d positions, supply %s, borrow %s, utilization %s",
        report.address,
        report.position_count,
        report.total_supply_value,
        report.total_borrow_value,
        report.borrow_utilization,
    )
    return report


def calculate_many(
    obligations: Iterable[ObligationSnapshot],
    reserves: ReserveSet,
    precision: int = DEFAULT_PRECISION,
) -> dict[str, HealthReport]:
    """Compute health reports for many obligations, keyed by address.

    All-or-nothing: the first failing obligation aborts the batch, and a
    repeated obligation address raises DataIntegrityViolation.
    """
    reports: dict[str, HealthReport] = {}
    for obligation in obligations:
        if obligation.address in reports:
            raise DataIntegrityViolation(
                f"Duplicate obligation address {obligation.address}"
            )
        reports[obligation.address] = calculate_health(obligation, reserves, precision)
    return reports
