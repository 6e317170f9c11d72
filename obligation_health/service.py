"""Health checking orchestration — load snapshots, compute, classify, log."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .calculator import calculate_health
from .config import AppConfig
from .display import build_report_summary, format_percent, format_usd
from .loader import find_obligations, load_snapshot
from .models import HealthReport, ObligationSnapshot, ReserveSet
from .risk import HealthStatus, classify

logger = logging.getLogger(__name__)

_RISKY = (
    HealthStatus.WARNING,
    HealthStatus.CRITICAL,
    HealthStatus.LIMIT_REACHED,
    HealthStatus.LIQUIDATABLE,
)


class HealthChecker:
    """Computes and classifies health reports for a set of obligations."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._thresholds = config.thresholds
        self._precision = config.calculator.precision

    def evaluate(
        self,
        reserves: ReserveSet,
        obligations: Iterable[ObligationSnapshot],
    ) -> list[tuple[HealthReport, HealthStatus]]:
        """Compute and classify every obligation against ``reserves``."""
        results: list[tuple[HealthReport, HealthStatus]] = []

        for obligation in obligations:
            if (
                reserves.market_address
                and obligation.market_address
                and obligation.market_address != reserves.market_address
            ):
                logger.warning(
                    "Obligation %s belongs to market %s, reserves are from %s",
                    obligation.address,
                    obligation.market_address,
                    reserves.market_address,
                )

            report = calculate_health(obligation, reserves, self._precision)
            status = classify(report, self._thresholds)

            logger.info(
                "Obligation %s · %s · Supply: %s  Borrow: %s  Utilization: %s",
                report.address,
                status.value,
                format_usd(report.total_supply_value),
                format_usd(report.total_borrow_value),
                format_percent(report.borrow_utilization),
            )
            if status in _RISKY:
                logger.warning(
                    "Obligation %s is %s (limit %s, liquidation threshold %s)",
                    report.address,
                    status.value,
                    format_usd(report.borrow_limit),
                    format_usd(report.liquidation_threshold_value),
                )

            results.append((report, status))

        return results

    def check(
        self,
        snapshot_path: str | Path | None = None,
        addresses: list[str] | None = None,
    ) -> list[tuple[HealthReport, HealthStatus]]:
        """Load a snapshot file and evaluate its obligations.

        Args:
            snapshot_path: Snapshot document. Defaults to ``snapshots.path``
                from the configuration.
            addresses: Optional obligation addresses to restrict the check to.
        """
        path = snapshot_path or self._config.snapshots.path
        if not path:
            raise ValueError("No snapshot path given and none configured")

        reserves, obligations = load_snapshot(path)
        if addresses:
            obligations = find_obligations(obligations, addresses)
            missing = set(addresses) - {o.address for o in obligations}
            for address in sorted(missing):
                logger.warning("Obligation %s not found in %s", address, path)

        return self.evaluate(reserves, obligations)

    @staticmethod
    def build_summary(results: list[tuple[HealthReport, HealthStatus]]) -> str:
        return build_report_summary(results)
