"""Obligation health engine — solvency metrics for lending positions."""
from .calculator import calculate_health, calculate_many
from .errors import (
    DataIntegrityViolation,
    HealthCalculationError,
    ReserveNotFound,
    ZeroBorrowRateSnapshot,
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

__all__ = [
    "BorrowPosition",
    "BorrowValuation",
    "DataIntegrityViolation",
    "DepositPosition",
    "DepositValuation",
    "HealthCalculationError",
    "HealthReport",
    "ObligationSnapshot",
    "Reserve",
    "ReserveNotFound",
    "ReserveSet",
    "ZeroBorrowRateSnapshot",
    "calculate_health",
    "calculate_many",
]
