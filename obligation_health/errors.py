"""Exceptions raised while computing obligation health."""
from __future__ import annotations


class HealthCalculationError(Exception):
    """Base class for all obligation health failures."""


class ReserveNotFound(HealthCalculationError):
    """A position references a reserve missing from the reserve set."""

    def __init__(self, reserve_address: str, obligation_address: str = "") -> None:
        self.reserve_address = reserve_address
        self.obligation_address = obligation_address
        where = f" (obligation {obligation_address})" if obligation_address else ""
        super().__init__(f"Reserve {reserve_address} not found in reserve set{where}")


class DataIntegrityViolation(HealthCalculationError):
    """Input data breaks an arithmetic or structural precondition."""


class ZeroBorrowRateSnapshot(DataIntegrityViolation):
    """A borrow carries a non-positive cumulative borrow rate snapshot."""


class NegativeAmount(DataIntegrityViolation):
    """A deposit or borrow carries a negative raw amount."""


class InvalidReserveParameters(DataIntegrityViolation):
    """Reserve risk parameters are out of range."""


class MalformedSnapshot(DataIntegrityViolation):
    """A decoded document is missing a field or holds a non-numeric value."""
