"""Risk classification over computed health reports."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum

from .config import ThresholdsConfig
from .fixed_point import safe_divide
from .models import HealthReport


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    LIMIT_REACHED = "limit_reached"
    LIQUIDATABLE = "liquidatable"


def liquidation_utilization(report: HealthReport) -> Decimal:
    """Debt as a fraction of the liquidation threshold value (0 without collateral)."""
    return safe_divide(report.total_borrow_value, report.liquidation_threshold_value)


def is_liquidatable(report: HealthReport) -> bool:
    """True when debt exists and reaches the liquidation threshold value."""
    if report.total_borrow_value.is_zero():
        return False
    return report.total_borrow_value >= report.liquidation_threshold_value


def classify(report: HealthReport, thresholds: ThresholdsConfig) -> HealthStatus:
    """Map a report to the most severe status it qualifies for."""
    if is_liquidatable(report):
        return HealthStatus.LIQUIDATABLE
    if report.is_borrow_limit_reached:
        return HealthStatus.LIMIT_REACHED
    if report.borrow_utilization >= thresholds.utilization_critical:
        return HealthStatus.CRITICAL
    if report.borrow_utilization >= thresholds.utilization_warning:
        return HealthStatus.WARNING
    return HealthStatus.HEALTHY
