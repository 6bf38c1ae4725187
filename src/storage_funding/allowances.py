# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Conversions between a storage target and the allowances it needs.

Three representations meet here: a rate per epoch, a total lockup (the
rate held for the mandatory lockup period) and a human-facing capacity in
TiB per month. Prices are quoted per TiB per epoch. Every fractional step
goes through :mod:`storage_funding.scaling`.
"""
from __future__ import annotations

import math

from storage_funding.config import BillingConfig, resolve_config
from storage_funding.errors import InvalidArgumentError
from storage_funding.scaling import (
    calculate_rate,
    get_scale,
    ratio_to_number,
)
from storage_funding.types import AllowancePair, DepositCapacity
from storage_funding.units import TIB


def _require_amount(name: str, value: int) -> None:
    if value < 0:
        raise InvalidArgumentError(f"{name} must be >= 0, got {value}", argument=name)


def with_buffer(amount: int, config: BillingConfig | None = None) -> int:
    """Apply the safety buffer (10% by default) to ``amount``."""
    pricing = resolve_config(config).pricing
    return (amount * pricing.buffer_numerator) // pricing.buffer_denominator


def without_buffer(amount: int, config: BillingConfig | None = None) -> int:
    """Remove the safety buffer; inverse of :func:`with_buffer` up to rounding."""
    pricing = resolve_config(config).pricing
    return (amount * pricing.buffer_denominator) // pricing.buffer_numerator


def get_storage_scale(storage_tib: float, config: BillingConfig | None = None) -> int:
    """Precision scale for a fractional TiB (or day) count."""
    return get_scale(float(storage_tib), resolve_config(config).scale_max)


def calculate_storage_allowances(
    capacity_tib_per_month: float,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> AllowancePair:
    """
    Allowances needed to keep ``capacity_tib_per_month`` stored.

    ``rate_allowance`` is ``price * capacity``; ``lockup_allowance`` is that
    rate held for the lockup period.

    Args:
        capacity_tib_per_month: Storage target, may be fractional.
        price_per_tib_per_epoch: Current network price.
        config: Network parameters. Defaults to :data:`DEFAULT_CONFIG`.

    Returns:
        An :class:`AllowancePair` echoing the requested capacity.

    Raises:
        InvalidArgumentError: On a negative or non-finite capacity or a
            negative price.
    """
    resolved = resolve_config(config)
    _require_amount("price_per_tib_per_epoch", price_per_tib_per_epoch)
    rate_allowance = calculate_rate(
        price_per_tib_per_epoch, capacity_tib_per_month, scale_max=resolved.scale_max
    )
    return AllowancePair(
        rate_allowance=rate_allowance,
        lockup_allowance=rate_allowance * resolved.lockup_epochs,
        capacity_tib_per_month=capacity_tib_per_month,
    )


def calculate_actual_capacity(
    rate_allowance: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> float:
    """
    TiB/month a rate allowance supports at the given price. Inverse of
    :func:`calculate_storage_allowances`; 0 when the price is 0.

    The quotient is taken in integer arithmetic at ``config.scale_max`` and
    only the final division produces a float, so maximal allowances (e.g.
    ``2**256 - 1``) give a large but finite capacity instead of failing the
    safe-integer check. Capacities beyond the float range are ``math.inf``.
    Quotients below one scale step fall back to the plain ``rate / price``.
    """
    _require_amount("rate_allowance", rate_allowance)
    _require_amount("price_per_tib_per_epoch", price_per_tib_per_epoch)
    if price_per_tib_per_epoch == 0 or rate_allowance == 0:
        return 0.0

    scale_max = resolve_config(config).scale_max
    scaled_quotient = (rate_allowance * scale_max) // price_per_tib_per_epoch
    try:
        if scaled_quotient > 0:
            return scaled_quotient / scale_max
        return rate_allowance / price_per_tib_per_epoch
    except OverflowError:
        return math.inf


def calculate_storage_from_token_amount(
    token_amount: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> float:
    """TiB/month purchasable by ``token_amount`` once the lockup period is reserved."""
    _require_amount("token_amount", token_amount)
    _require_amount("price_per_tib_per_epoch", price_per_tib_per_epoch)
    if price_per_tib_per_epoch == 0:
        return 0.0
    rate_per_epoch = token_amount // resolve_config(config).lockup_epochs
    return calculate_actual_capacity(rate_per_epoch, price_per_tib_per_epoch, config)


def calculate_required_allowances(
    size_bytes: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> AllowancePair:
    """Allowances needed to store ``size_bytes`` at the current price."""
    _require_amount("size_bytes", size_bytes)
    storage_tib = ratio_to_number(size_bytes, TIB, scale_max=resolve_config(config).scale_max)
    return calculate_storage_allowances(storage_tib, price_per_tib_per_epoch, config)


def calculate_deposit_capacity(
    deposit_amount: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> DepositCapacity:
    """
    Storage a deposit can sustain assuming unrestricted service allowances.

    The deposit must cover the lockup for the chosen rate plus the safety
    buffer, so the largest sustainable rate is
    ``deposit / (lockup_epochs * buffer)``.
    """
    resolved = resolve_config(config)
    _require_amount("deposit_amount", deposit_amount)
    _require_amount("price_per_tib_per_epoch", price_per_tib_per_epoch)
    if price_per_tib_per_epoch == 0:
        return DepositCapacity(
            tib_per_month=0.0,
            gib_per_month=0.0,
            monthly_payment=0,
            required_lockup=0,
            total_required=0,
            is_deposit_sufficient=True,
        )

    pricing = resolved.pricing
    max_rate_per_epoch = (deposit_amount * pricing.buffer_denominator) // (
        resolved.lockup_epochs * pricing.buffer_numerator
    )
    tib_per_month = calculate_actual_capacity(max_rate_per_epoch, price_per_tib_per_epoch, resolved)
    required_lockup = max_rate_per_epoch * resolved.lockup_epochs
    total_required = with_buffer(required_lockup, resolved)

    return DepositCapacity(
        tib_per_month=tib_per_month,
        gib_per_month=tib_per_month * 1024,
        monthly_payment=max_rate_per_epoch * resolved.epoch.per_month,
        required_lockup=required_lockup,
        total_required=total_required,
        is_deposit_sufficient=deposit_amount >= total_required,
    )
