# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Runway and deposit adjustments for an account snapshot.

The spendable balance is ``deposited - lockup_used`` (never below zero) and
it burns at ``rate_used`` per epoch. All functions are pure: they read a
snapshot and return a new value.
"""
from __future__ import annotations

import math
from typing import Optional

from storage_funding.config import BillingConfig, resolve_config
from storage_funding.errors import InvalidArgumentError
from storage_funding.types import (
    AccountSnapshot,
    ExactDaysAdjustment,
    ExactDepositAdjustment,
    RunwaySummary,
    TopUpForDuration,
)


def available_balance(deposited: int, lockup_used: int) -> int:
    """Spendable part of a deposit: ``max(0, deposited - lockup_used)``."""
    return deposited - lockup_used if deposited > lockup_used else 0


def hourly_safety_margin(daily_burn: int) -> int:
    """One hour of burn, and at least one unit, so a target never lands on empty."""
    per_hour = daily_burn // 24
    return per_hour if per_hour > 0 else 1


def _require_finite_days(days: float) -> None:
    if not math.isfinite(days):
        raise InvalidArgumentError(f"days must be finite, got {days}", argument="days")


def calculate_storage_runway(
    snapshot: Optional[AccountSnapshot],
    config: BillingConfig | None = None,
) -> RunwaySummary:
    """
    Summarise how long the spendable balance lasts at the current burn rate.

    Returns:
        ``state='unknown'`` without a snapshot, ``state='no-spend'`` with
        zero runway when nothing is being charged, otherwise
        ``state='active'`` with whole days and the remaining whole hours.
    """
    if snapshot is None:
        return RunwaySummary(state="unknown")

    allowances = snapshot.allowance_state
    rate_used = allowances.rate_used
    lockup_used = allowances.lockup_used
    available = available_balance(snapshot.deposited_balance, lockup_used)
    daily_burn = rate_used * resolve_config(config).epoch.per_day

    if daily_burn == 0:
        return RunwaySummary(
            state="no-spend",
            available_balance=available,
            rate_used=rate_used,
            daily_burn=0,
            lockup_used=lockup_used,
        )

    days, leftover = divmod(available, daily_burn)
    return RunwaySummary(
        state="active",
        available_balance=available,
        rate_used=rate_used,
        daily_burn=daily_burn,
        lockup_used=lockup_used,
        days=days,
        hours=(leftover * 24) // daily_burn,
    )


def compute_top_up_for_duration(
    snapshot: AccountSnapshot,
    days: float,
    config: BillingConfig | None = None,
) -> TopUpForDuration:
    """
    Additional deposit needed so current spend lasts ``days`` (rounded up).

    Never negative. Zero when ``days`` <= 0 or nothing is being charged.
    """
    _require_finite_days(days)
    allowances = snapshot.allowance_state
    rate_used = allowances.rate_used
    lockup_used = allowances.lockup_used
    available = available_balance(snapshot.deposited_balance, lockup_used)
    epochs_per_day = resolve_config(config).epoch.per_day
    daily_burn = rate_used * epochs_per_day

    if days <= 0 or rate_used == 0:
        return TopUpForDuration(
            top_up=0,
            available_balance=available,
            rate_used=rate_used,
            daily_burn=daily_burn,
            lockup_used=lockup_used,
        )

    spend_needed = daily_burn * math.ceil(days)
    return TopUpForDuration(
        top_up=spend_needed - available if spend_needed > available else 0,
        available_balance=available,
        rate_used=rate_used,
        daily_burn=daily_burn,
        lockup_used=lockup_used,
    )


def compute_adjustment_for_exact_days(
    snapshot: AccountSnapshot,
    days: float,
    config: BillingConfig | None = None,
) -> ExactDaysAdjustment:
    """
    Deposit change that leaves exactly ``days`` (rounded down) of runway plus
    one hour of margin.

    Unlike :func:`compute_top_up_for_duration` the delta is negative when the
    account holds more than the target needs.

    Raises:
        InvalidArgumentError: If ``days`` is negative or not finite.
    """
    _require_finite_days(days)
    if days < 0:
        raise InvalidArgumentError("days must be non-negative", argument="days")

    allowances = snapshot.allowance_state
    rate_used = allowances.rate_used
    lockup_used = allowances.lockup_used
    available = available_balance(snapshot.deposited_balance, lockup_used)
    daily_burn = rate_used * resolve_config(config).epoch.per_day

    if rate_used == 0:
        return ExactDaysAdjustment(
            delta=0,
            target_available=0,
            available_balance=available,
            rate_used=rate_used,
            daily_burn=daily_burn,
            lockup_used=lockup_used,
        )

    target_available = math.floor(days) * daily_burn + hourly_safety_margin(daily_burn)
    return ExactDaysAdjustment(
        delta=target_available - available,
        target_available=target_available,
        available_balance=available,
        rate_used=rate_used,
        daily_burn=daily_burn,
        lockup_used=lockup_used,
    )


def compute_adjustment_for_exact_deposit(
    snapshot: AccountSnapshot,
    target_deposit: int,
) -> ExactDepositAdjustment:
    """
    Deposit change that reaches ``target_deposit``.

    The target is raised to ``lockup_used`` first: funds already committed
    on-chain are never recommended for withdrawal.

    Raises:
        InvalidArgumentError: If ``target_deposit`` is negative.
    """
    if target_deposit < 0:
        raise InvalidArgumentError("target deposit cannot be negative", argument="target_deposit")
    lockup_used = snapshot.allowance_state.lockup_used
    clamped_target = max(target_deposit, lockup_used)
    return ExactDepositAdjustment(
        delta=clamped_target - snapshot.deposited_balance,
        clamped_target=clamped_target,
        lockup_used=lockup_used,
    )
