# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Per-piece floor price.

Every piece costs at least the floor price (0.06 token per 30 days by
default) regardless of its size. The floor is converted to a per-epoch rate
and a matching lockup, and an allowance is raised to it componentwise:
``max(base.rate, floor.rate)`` and ``max(base.lockup, floor.lockup)``.
"""
from __future__ import annotations

from storage_funding.config import BillingConfig, resolve_config
from storage_funding.types import AllowancePair


def get_floor_allowances(config: BillingConfig | None = None) -> AllowancePair:
    """The minimum viable allowance for one piece, independent of size."""
    resolved = resolve_config(config)
    rate_allowance = resolved.pricing.floor_price // resolved.floor_period_epochs
    return AllowancePair(
        rate_allowance=rate_allowance,
        lockup_allowance=rate_allowance * resolved.lockup_epochs,
        capacity_tib_per_month=0.0,
    )


def apply_floor_pricing(
    base_allowances: AllowancePair,
    config: BillingConfig | None = None,
) -> AllowancePair:
    """
    Raise ``base_allowances`` to the floor where it falls below it.

    Rate and lockup are compared independently; the reported capacity is
    the base capacity.
    """
    floor = get_floor_allowances(config)
    return AllowancePair(
        rate_allowance=max(base_allowances.rate_allowance, floor.rate_allowance),
        lockup_allowance=max(base_allowances.lockup_allowance, floor.lockup_allowance),
        capacity_tib_per_month=base_allowances.capacity_tib_per_month,
    )
