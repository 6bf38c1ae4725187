# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Shared fixtures for the storage-funding tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import pytest

from storage_funding.client import InMemoryAccountClient
from storage_funding.config import DEFAULT_CONFIG, ONE_TOKEN
from storage_funding.floor_pricing import get_floor_allowances
from storage_funding.types import AccountSnapshot, AllowancePair, AllowanceState

# 2.5 tokens per TiB per 30-day month, expressed per epoch.
PRICE_PER_TIB_PER_EPOCH = (5 * ONE_TOKEN // 2) // DEFAULT_CONFIG.epoch.per_month

# A spend rate with a whole number of tokens burnt per hour.
RATE_USED = 10**12
DAILY_BURN = RATE_USED * DEFAULT_CONFIG.epoch.per_day

ADDRESS = "0x00000000000000000000000000000000000000a1"

SnapshotFactory = Callable[..., AccountSnapshot]


def build_snapshot(
    deposited: int = 0,
    rate_used: int = 0,
    lockup_used: int = 0,
    wallet: int = 100 * ONE_TOKEN,
    gas: int = ONE_TOKEN,
    rate_allowance: int = 0,
    lockup_allowance: int = 0,
    network: str = "calibration",
) -> AccountSnapshot:
    return AccountSnapshot(
        network=network,
        address=ADDRESS,
        native_gas_balance=gas,
        wallet_token_balance=wallet,
        deposited_balance=deposited,
        allowance_state=AllowanceState(
            rate_allowance=rate_allowance,
            lockup_allowance=lockup_allowance,
            rate_used=rate_used,
            lockup_used=lockup_used,
            max_lockup_period=DEFAULT_CONFIG.lockup_epochs,
        ),
    )


@pytest.fixture
def make_snapshot() -> SnapshotFactory:
    """Factory for account snapshots with keyword overrides."""
    return build_snapshot


@pytest.fixture
def floor() -> AllowancePair:
    """Floor allowances under the default configuration."""
    return get_floor_allowances()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def client() -> InMemoryAccountClient:
    """An in-memory client holding one account with a running spend."""
    return InMemoryAccountClient(
        snapshots=[build_snapshot(deposited=2 * DAILY_BURN, rate_used=RATE_USED)],
        price_per_tib_per_epoch=PRICE_PER_TIB_PER_EPOCH,
    )
