"""Snapshot loader — turns decoded documents into reserve sets and obligations.

Documents are the already-decoded form of on-chain accounts (YAML or JSON):

    market: "<market address>"
    reserves:
      - address: "..."
        symbol: USDC
        decimals: 6
        price: "1.0001"
        ...
    obligations:
      - address: "..."
        deposits: [{reserve: "...", deposited_amount: 100000000}]
        borrows: [{reserve: "...", borrowed_amount_wads: ..., cumulative_borrow_rate_wads: ...}]
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable

import yaml

from .errors import InvalidReserveParameters, MalformedSnapshot, NegativeAmount
from .fixed_point import ONE, ZERO
from .models import (
    BorrowPosition,
    DepositPosition,
    ObligationSnapshot,
    Reserve,
    ReserveSet,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _require(raw: dict[str, Any], key: str, context: str) -> Any:
    if not isinstance(raw, dict):
        raise MalformedSnapshot(f"{context}: expected a mapping, got {raw!r}")
    if key not in raw or raw[key] is None:
        raise MalformedSnapshot(f"{context}: missing field '{key}'")
    return raw[key]


def _entries(value: Any, context: str) -> list[Any]:
    """Return a list field, treating an absent field as empty."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedSnapshot(f"{context}: expected a list, got {value!r}")
    return value


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Parse a decimal from its string form (YAML floats included)."""
    if isinstance(value, bool):
        raise MalformedSnapshot(f"{field_name}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise MalformedSnapshot(f"{field_name}: expected a number, got {value!r}") from None
    if not result.is_finite():
        raise MalformedSnapshot(f"{field_name}: expected a finite number, got {value!r}")
    return result


def to_int(value: Any, field_name: str = "value") -> int:
    """Parse a raw on-chain integer; decimal strings are rejected."""
    if isinstance(value, bool):
        raise MalformedSnapshot(f"{field_name}: expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise MalformedSnapshot(f"{field_name}: expected an integer, got {value!r}") from None


def _optional_decimal(raw: dict[str, Any], key: str) -> Decimal | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    return to_decimal(value, key)


# ---------------------------------------------------------------------------
# Reserves
# ---------------------------------------------------------------------------


def validate_reserve(reserve: Reserve) -> None:
    """Raise InvalidReserveParameters when risk parameters are out of range."""
    name = reserve.symbol or reserve.address
    if reserve.decimals < 0:
        raise InvalidReserveParameters(f"Reserve {name}: negative decimals")
    if reserve.price < ZERO:
        raise InvalidReserveParameters(f"Reserve {name}: negative price")
    for label, value in (
        ("ema_price", reserve.ema_price),
        ("min_price", reserve.min_price),
        ("max_price", reserve.max_price),
    ):
        if value is not None and value < ZERO:
            raise InvalidReserveParameters(f"Reserve {name}: negative {label}")
    if reserve.c_token_exchange_rate < ZERO:
        raise InvalidReserveParameters(f"Reserve {name}: negative exchange rate")
    if reserve.cumulative_borrow_rate <= ZERO:
        raise InvalidReserveParameters(
            f"Reserve {name}: cumulative_borrow_rate "
            f"{reserve.cumulative_borrow_rate} must be positive"
        )
    if not ZERO <= reserve.loan_to_value_ratio <= ONE:
        raise InvalidReserveParameters(
            f"Reserve {name}: loan_to_value_ratio {reserve.loan_to_value_ratio} outside [0, 1]"
        )
    if not reserve.loan_to_value_ratio <= reserve.liquidation_threshold <= ONE:
        raise InvalidReserveParameters(
            f"Reserve {name}: liquidation_threshold {reserve.liquidation_threshold} "
            f"must be between loan_to_value_ratio and 1"
        )
    if reserve.borrow_weight is not None and reserve.borrow_weight < ONE:
        raise InvalidReserveParameters(
            f"Reserve {name}: borrow_weight {reserve.borrow_weight} below 1"
        )


def parse_reserve(raw: dict[str, Any]) -> Reserve:
    """Parse and validate one decoded reserve entry."""
    address = str(_require(raw, "address", "reserve"))
    context = f"reserve {address}"
    reserve = Reserve(
        address=address,
        symbol=str(raw.get("symbol", "")),
        decimals=to_int(_require(raw, "decimals", context), "decimals"),
        price=to_decimal(_require(raw, "price", context), "price"),
        c_token_exchange_rate=to_decimal(
            _require(raw, "c_token_exchange_rate", context), "c_token_exchange_rate"
        ),
        cumulative_borrow_rate=to_decimal(
            _require(raw, "cumulative_borrow_rate", context), "cumulative_borrow_rate"
        ),
        loan_to_value_ratio=to_decimal(
            _require(raw, "loan_to_value_ratio", context), "loan_to_value_ratio"
        ),
        liquidation_threshold=to_decimal(
            _require(raw, "liquidation_threshold", context), "liquidation_threshold"
        ),
        ema_price=_optional_decimal(raw, "ema_price"),
        min_price=_optional_decimal(raw, "min_price"),
        max_price=_optional_decimal(raw, "max_price"),
        borrow_weight=_optional_decimal(raw, "borrow_weight"),
    )
    validate_reserve(reserve)
    return reserve


def parse_reserve_set(
    raw_reserves: Iterable[dict[str, Any]], market_address: str = ""
) -> ReserveSet:
    """Parse a list of decoded reserves into a ReserveSet."""
    reserves = [parse_reserve(r) for r in raw_reserves]
    seen: set[str] = set()
    for reserve in reserves:
        if reserve.address in seen:
            raise MalformedSnapshot(f"Duplicate reserve address {reserve.address}")
        seen.add(reserve.address)
    return ReserveSet(reserves, market_address=market_address)


# ---------------------------------------------------------------------------
# Obligations
# ---------------------------------------------------------------------------


def parse_deposit(raw: dict[str, Any]) -> DepositPosition:
    """Parse one decoded deposit entry."""
    reserve = str(_require(raw, "reserve", "deposit"))
    amount = to_int(_require(raw, "deposited_amount", f"deposit {reserve}"), "deposited_amount")
    if amount < 0:
        raise NegativeAmount(f"Deposit in {reserve} has negative amount {amount}")
    return DepositPosition(reserve_address=reserve, deposited_amount=amount)


def parse_borrow(raw: dict[str, Any]) -> BorrowPosition:
    """Parse one decoded borrow entry."""
    reserve = str(_require(raw, "reserve", "borrow"))
    context = f"borrow {reserve}"
    amount = to_int(_require(raw, "borrowed_amount_wads", context), "borrowed_amount_wads")
    if amount < 0:
        raise NegativeAmount(f"Borrow in {reserve} has negative amount {amount}")
    return BorrowPosition(
        reserve_address=reserve,
        borrowed_amount_wads=amount,
        cumulative_borrow_rate_wads=to_int(
            _require(raw, "cumulative_borrow_rate_wads", context),
            "cumulative_borrow_rate_wads",
        ),
    )


def parse_obligation(raw: dict[str, Any], market_address: str = "") -> ObligationSnapshot:
    """Parse one decoded obligation, defaulting its market to ``market_address``."""
    address = str(_require(raw, "address", "obligation"))
    return ObligationSnapshot(
        address=address,
        deposits=tuple(
            parse_deposit(d)
            for d in _entries(raw.get("deposits"), f"obligation {address} deposits")
        ),
        borrows=tuple(
            parse_borrow(b)
            for b in _entries(raw.get("borrows"), f"obligation {address} borrows")
        ),
        market_address=str(raw.get("market") or market_address),
    )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def find_obligation(
    obligations: Iterable[ObligationSnapshot], address: str
) -> ObligationSnapshot | None:
    """Return the obligation at ``address``, or None."""
    for obligation in obligations:
        if obligation.address == address:
            return obligation
    return None


def find_obligations(
    obligations: Iterable[ObligationSnapshot], addresses: Iterable[str]
) -> tuple[ObligationSnapshot, ...]:
    """Batched lookup in request order; unknown addresses are skipped."""
    by_address = {o.address: o for o in obligations}
    found: list[ObligationSnapshot] = []
    for address in addresses:
        obligation = by_address.get(address)
        if obligation is None:
            logger.debug("Obligation %s not present in snapshot", address)
            continue
        found.append(obligation)
    return tuple(found)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def load_document(path: str | Path) -> dict[str, Any]:
    """Read a YAML or JSON snapshot document."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise MalformedSnapshot(f"{path}: top-level document must be a mapping")
    return raw


def parse_snapshot(
    raw: dict[str, Any],
) -> tuple[ReserveSet, tuple[ObligationSnapshot, ...]]:
    """Parse a whole decoded document into reserves and obligations."""
    if not isinstance(raw, dict):
        raise MalformedSnapshot(f"Snapshot document must be a mapping, got {raw!r}")
    market_address = str(raw.get("market") or "")
    reserves = parse_reserve_set(_entries(raw.get("reserves"), "reserves"), market_address)
    obligations = tuple(
        parse_obligation(o, market_address) for o in _entries(raw.get("obligations"), "obligations")
    )
    return reserves, obligations


def load_snapshot(
    path: str | Path,
) -> tuple[ReserveSet, tuple[ObligationSnapshot, ...]]:
    """Load a snapshot file into a ReserveSet and its obligations."""
    reserves, obligations = parse_snapshot(load_document(path))
    logger.info(
        "Loaded %d reserves and %d obligations from %s",
        len(reserves),
        len(obligations),
        path,
    )
    return reserves, obligations
