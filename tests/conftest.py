"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from obligation_health.config import (
    AppConfig,
    CalculatorConfig,
    SnapshotsConfig,
    ThresholdsConfig,
)
from obligation_health.models import (
    BorrowPosition,
    DepositPosition,
    ObligationSnapshot,
    Reserve,
    ReserveSet,
)

WAD = 10**18

COLLATERAL_ADDRESS = "CoLLateRaL1111111111111111111111111111111111"
DEBT_ADDRESS = "DebT222222222222222222222222222222222222222"
MARKET_ADDRESS = "MarKet33333333333333333333333333333333333333"


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def collateral_reserve() -> Reserve:
    return Reserve(
        address=COLLATERAL_ADDRESS,
        symbol="USDC",
        decimals=6,
        price=Decimal("2"),
        c_token_exchange_rate=Decimal("1"),
        cumulative_borrow_rate=Decimal("1"),
        loan_to_value_ratio=Decimal("0.8"),
        liquidation_threshold=Decimal("0.85"),
        borrow_weight=Decimal("1"),
    )


@pytest.fixture()
def debt_reserve() -> Reserve:
    return Reserve(
        address=DEBT_ADDRESS,
        symbol="SOL",
        decimals=6,
        price=Decimal("1"),
        c_token_exchange_rate=Decimal("1"),
        cumulative_borrow_rate=Decimal("1"),
        loan_to_value_ratio=Decimal("0.75"),
        liquidation_threshold=Decimal("0.8"),
    )


@pytest.fixture()
def reserves(collateral_reserve: Reserve, debt_reserve: Reserve) -> ReserveSet:
    return ReserveSet([collateral_reserve, debt_reserve], market_address=MARKET_ADDRESS)


@pytest.fixture()
def deposit_100() -> DepositPosition:
    # 100 tokens at 6 decimals
    return DepositPosition(reserve_address=COLLATERAL_ADDRESS, deposited_amount=100_000_000)


@pytest.fixture()
def borrow_50() -> BorrowPosition:
    # 50 tokens at 6 decimals, WAD scaled, taken at index 1.0
    return BorrowPosition(
        reserve_address=DEBT_ADDRESS,
        borrowed_amount_wads=50 * 10**6 * WAD,
        cumulative_borrow_rate_wads=WAD,
    )


@pytest.fixture()
def supply_only_obligation(deposit_100: DepositPosition) -> ObligationSnapshot:
    return ObligationSnapshot(
        address="ObLigation1",
        deposits=(deposit_100,),
        market_address=MARKET_ADDRESS,
    )


@pytest.fixture()
def borrowing_obligation(
    deposit_100: DepositPosition, borrow_50: BorrowPosition
) -> ObligationSnapshot:
    return ObligationSnapshot(
        address="ObLigation2",
        deposits=(deposit_100,),
        borrows=(borrow_50,),
        market_address=MARKET_ADDRESS,
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_thresholds() -> ThresholdsConfig:
    return ThresholdsConfig(
        utilization_warning=Decimal("0.8"), utilization_critical=Decimal("0.95")
    )


@pytest.fixture()
def sample_app_config(sample_thresholds: ThresholdsConfig) -> AppConfig:
    return AppConfig(
        calculator=CalculatorConfig(precision=60),
        thresholds=sample_thresholds,
        snapshots=SnapshotsConfig(path=""),
    )


SAMPLE_CONFIG_YAML = textwrap.dedent("""\
    calculator:
      precision: 50
    thresholds:
      utilization_warning: 0.7
      utilization_critical: 0.9
    snapshots:
      path: "/data/snapshot.yaml"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_CONFIG_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Snapshot document fixtures
# ---------------------------------------------------------------------------

SAMPLE_SNAPSHOT_YAML = textwrap.dedent(f"""\
    market: "{MARKET_ADDRESS}"
    reserves:
      - address: "{COLLATERAL_ADDRESS}"
        symbol: USDC
        decimals: 6
        price: "2"
        c_token_exchange_rate: "1"
        cumulative_borrow_rate: "1"
        loan_to_value_ratio: 0.8
        liquidation_threshold: 0.85
        borrow_weight: "1"
      - address: "{DEBT_ADDRESS}"
        symbol: SOL
        decimals: 6
        price: "1"
        ema_price: "1.1"
        c_token_exchange_rate: "1"
        cumulative_borrow_rate: "1"
        loan_to_value_ratio: 0.75
        liquidation_threshold: 0.8
        borrow_weight: "1.5"
    obligations:
      - address: healthy
        deposits:
          - reserve: "{COLLATERAL_ADDRESS}"
            deposited_amount: 100000000
        borrows:
          - reserve: "{DEBT_ADDRESS}"
            borrowed_amount_wads: "{50 * 10**6 * WAD}"
            cumulative_borrow_rate_wads: "{WAD}"
      - address: underwater
        deposits:
          - reserve: "{COLLATERAL_ADDRESS}"
            deposited_amount: 100000000
        borrows:
          - reserve: "{DEBT_ADDRESS}"
            borrowed_amount_wads: "{180 * 10**6 * WAD}"
            cumulative_borrow_rate_wads: "{WAD}"
      - address: empty
""")


@pytest.fixture()
def sample_snapshot_path(tmp_path: Path) -> Path:
    snapshot_file = tmp_path / "snapshot.yaml"
    snapshot_file.write_text(SAMPLE_SNAPSHOT_YAML)
    return snapshot_file
