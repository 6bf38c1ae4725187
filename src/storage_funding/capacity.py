# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Time-bounded capacity projections.

Given allowances and a price, answer "how much can be stored for N days",
"what is the largest file the allowances accept" and "how long can this
file be kept". Functions return 0 for a zero price rather than dividing by
it.
"""
from __future__ import annotations

import math

from storage_funding.allowances import calculate_actual_capacity, get_storage_scale
from storage_funding.config import BillingConfig, resolve_config
from storage_funding.errors import InvalidArgumentError
from storage_funding.scaling import (
    calculate_rate,
    calculate_ratio_as_number,
    calculate_ratio_safe,
    ratio_to_number,
)
from storage_funding.types import LimitingFactor, MaxDurationForFileSize, MaxUploadableFileSize
from storage_funding.units import TIB

# Rate and lockup limits closer than this (in TiB) both bind.
LIMIT_EPSILON_TIB = 0.0001


def calculate_capacity_for_duration(
    allowance: int,
    price_per_tib_per_epoch: int,
    duration_days: float,
    config: BillingConfig | None = None,
) -> float:
    """
    TiB that ``allowance`` pays for over ``duration_days``.

    Durations of one epoch or less are billed as exactly one epoch. Longer
    durations are scaled to integer epochs before pricing.
    """
    resolved = resolve_config(config)
    if not math.isfinite(duration_days) or duration_days < 0:
        raise InvalidArgumentError(
            f"duration_days must be a finite number >= 0, got {duration_days}",
            argument="duration_days",
        )

    epochs_per_day = resolved.epoch.per_day
    if duration_days <= 1 / epochs_per_day:
        return calculate_actual_capacity(allowance, price_per_tib_per_epoch, resolved)

    scale = get_storage_scale(duration_days, resolved)
    scaled_duration = math.floor(duration_days * scale)
    epochs_in_duration = (scaled_duration * epochs_per_day) // scale
    return calculate_actual_capacity(allowance, price_per_tib_per_epoch * epochs_in_duration, resolved)


def calculate_max_uploadable_file_size(
    rate_allowance: int,
    lockup_allowance: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> MaxUploadableFileSize:
    """
    Largest file the allowances accept.

    The rate allowance is treated as open-ended in time; the lockup
    allowance has to cover the lockup period. The smaller limit wins and is
    reported as the limiting factor (``'both'`` when they agree).
    """
    resolved = resolve_config(config)
    rate_limit_tib = calculate_actual_capacity(rate_allowance, price_per_tib_per_epoch, resolved)
    lockup_limit_tib = calculate_capacity_for_duration(
        lockup_allowance,
        price_per_tib_per_epoch,
        resolved.pricing.lockup_days,
        resolved,
    )

    max_size_tib = min(rate_limit_tib, lockup_limit_tib)

    limiting_factor: LimitingFactor
    if abs(rate_limit_tib - lockup_limit_tib) < LIMIT_EPSILON_TIB:
        limiting_factor = "both"
    elif rate_limit_tib < lockup_limit_tib:
        limiting_factor = "rate"
    else:
        limiting_factor = "lockup"

    return MaxUploadableFileSize(
        max_size_bytes=max_size_tib * TIB,
        max_size_tib=max_size_tib,
        limiting_factor=limiting_factor,
        rate_limit_tib=rate_limit_tib,
        lockup_limit_tib=lockup_limit_tib,
    )


def calculate_max_duration_for_file_size(
    file_size: int,
    rate_allowance: int,
    lockup_allowance: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> MaxDurationForFileSize:
    """
    Days the allowances keep a file of ``file_size`` bytes stored.

    The rate-based figure is ``rate_allowance / required_rate``. The
    lockup-based figure is ``lockup_allowance / required_per_day``, capped at
    the lockup period. A file that costs nothing (zero size or zero price)
    reports 0 days with limiting factor ``'none'``.
    """
    resolved = resolve_config(config)
    if file_size < 0:
        raise InvalidArgumentError(f"file_size must be >= 0, got {file_size}", argument="file_size")

    storage_tib = ratio_to_number(file_size, TIB, scale_max=resolved.scale_max)
    required_rate = calculate_rate(price_per_tib_per_epoch, storage_tib, scale_max=resolved.scale_max)
    if required_rate == 0:
        return MaxDurationForFileSize(max_duration_days=0.0, limiting_factor="none")

    lockup_days = resolved.pricing.lockup_days
    epochs_per_day = resolved.epoch.per_day

    rate_based_days = calculate_ratio_safe(rate_allowance, required_rate, scale_max=resolved.scale_max)
    if rate_based_days is None:
        # Past the safe-integer range the rate allowance never binds.
        rate_based_days = math.inf
    if lockup_allowance >= required_rate * resolved.lockup_epochs:
        lockup_based_days = float(lockup_days)
    else:
        lockup_based_days = calculate_ratio_as_number(
            lockup_allowance, required_rate * epochs_per_day, scale_max=resolved.scale_max
        )

    return MaxDurationForFileSize(
        max_duration_days=min(rate_based_days, lockup_based_days),
        limiting_factor="rate" if rate_based_days < lockup_based_days else "lockup",
    )
