"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Iterator

from .errors import ReserveNotFound
from .fixed_point import MAX_BORROW_WEIGHT


@dataclass(frozen=True)
class Reserve:
    """One lending market asset with its price and risk parameters."""

    address: str
    symbol: str
    decimals: int
    price: Decimal
    c_token_exchange_rate: Decimal
    cumulative_borrow_rate: Decimal
    loan_to_value_ratio: Decimal
    liquidation_threshold: Decimal
    ema_price: Decimal | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    borrow_weight: Decimal | None = None

    @property
    def supply_price(self) -> Decimal:
        """Downside price used for conservative collateral valuation."""
        if self.min_price is None:
            return self.price
        return self.min_price

    @property
    def borrow_price(self) -> Decimal:
        """Upside price used for conservative debt valuation."""
        if self.ema_price is None:
            return self.price
        return max(self.ema_price, self.price)

    @property
    def effective_borrow_weight(self) -> Decimal:
        """Configured borrow weight, or the maximal weight when unset."""
        if self.borrow_weight is None:
            return MAX_BORROW_WEIGHT
        return self.borrow_weight


class ReserveSet:
    """Reserves of one market, indexed by address."""

    def __init__(self, reserves: Iterable[Reserve], market_address: str = "") -> None:
        self.market_address = market_address
        self._by_address: dict[str, Reserve] = {}
        for reserve in reserves:
            self._by_address[reserve.address] = reserve

    def resolve(self, address: str, obligation_address: str = "") -> Reserve:
        """Return the reserve at ``address`` or raise ReserveNotFound."""
        try:
            return self._by_address[address]
        except KeyError:
            raise ReserveNotFound(address, obligation_address) from None

    def __contains__(self, address: object) -> bool:
        return address in self._by_address

    def __iter__(self) -> Iterator[Reserve]:
        return iter(self._by_address.values())

    def __len__(self) -> int:
        return len(self._by_address)

    def __repr__(self) -> str:
        return f"ReserveSet(market={self.market_address!r}, reserves={len(self)})"


@dataclass(frozen=True)
class DepositPosition:
    """Collateral deposit, in raw collateral-share base units."""

    reserve_address: str
    deposited_amount: int


@dataclass(frozen=True)
class BorrowPosition:
    """Debt snapshot in WAD scale plus the interest index it was taken at."""

    reserve_address: str
    borrowed_amount_wads: int
    cumulative_borrow_rate_wads: int


@dataclass(frozen=True)
class ObligationSnapshot:
    """Decoded borrower account: deposits and borrows in one market."""

    address: str
    deposits: tuple[DepositPosition, ...] = ()
    borrows: tuple[BorrowPosition, ...] = ()
    market_address: str = ""


@dataclass(frozen=True)
class DepositValuation:
    """Valued collateral position."""

    reserve_address: str
    symbol: str
    loan_to_value_ratio: Decimal
    liquidation_threshold: Decimal
    price: Decimal
    amount: Decimal
    amount_usd: Decimal


@dataclass(frozen=True)
class BorrowValuation:
    """Valued debt position, interest accrued to the current index."""

    reserve_address: str
    symbol: str
    loan_to_value_ratio: Decimal
    liquidation_threshold: Decimal
    price: Decimal
    amount: Decimal
    amount_usd: Decimal
    weighted_amount_usd: Decimal


@dataclass(frozen=True)
class HealthReport:
    """Per-position valuations and obligation-level aggregates."""

    address: str
    market_address: str
    position_count: int
    total_supply_value: Decimal
    total_borrow_value: Decimal
    weighted_total_borrow_value: Decimal
    borrow_limit: Decimal
    liquidation_threshold_value: Decimal
    net_account_value: Decimal
    liquidation_threshold_factor: Decimal
    borrow_limit_factor: Decimal
    borrow_utilization: Decimal
    weighted_borrow_utilization: Decimal
    weighted_conservative_borrow_utilization: Decimal
    is_borrow_limit_reached: bool
    borrow_over_supply: Decimal
    min_price_total_supply: Decimal
    min_price_borrow_limit: Decimal
    max_price_weighted_borrow: Decimal
    deposits: tuple[DepositValuation, ...] = field(default=())
    borrows: tuple[BorrowValuation, ...] = field(default=())
