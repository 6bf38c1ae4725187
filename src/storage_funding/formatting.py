# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Human-facing strings.

This is the only place fractional token values appear: amounts stay
integers through every calculation and are rendered here, at the edge.
"""
from __future__ import annotations

import re
from typing import Optional

from storage_funding.config import TOKEN_DECIMALS
from storage_funding.errors import InvalidArgumentError
from storage_funding.types import (
    FundingPlan,
    FundingReasonCode,
    RunwaySummary,
    TopUpCalculation,
)
from storage_funding.units import StorageUnit, storage_unit_to_number

_DECIMAL_PATTERN = re.compile(r"^(\d+)(?:\.(\d+))?$")


def _format_days(days: float) -> str:
    return f"{days:g}"


# ─── Token amounts ────────────────────────────────────────────────────────────


def format_token_amount(amount: int, decimals: int = TOKEN_DECIMALS, precision: int = 4) -> str:
    """
    Render an integer amount as a decimal string, truncated to ``precision``
    fractional digits with trailing zeros removed.

    >>> format_token_amount(1_500_000_000_000_000_000)
    '1.5'
    """
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10**decimals)
    digits = str(fraction).rjust(decimals, "0")[:precision].rstrip("0")
    if not digits:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{digits}"


def parse_token_amount(text: str, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Parse a non-negative decimal string such as ``"12.34"`` into an integer
    amount without going through a float.

    Raises:
        InvalidArgumentError: If ``text`` is not a plain decimal number or
            has more fractional digits than ``decimals``.
    """
    match = _DECIMAL_PATTERN.match(text.strip())
    if match is None:
        raise InvalidArgumentError(f"{text!r} is not a decimal token amount", argument="text")
    whole, fraction = match.group(1), match.group(2) or ""
    if len(fraction) > decimals:
        raise InvalidArgumentError(
            f"{text!r} has more than {decimals} fractional digits", argument="text"
        )
    return int(whole) * 10**decimals + int(fraction.ljust(decimals, "0") or "0")


# ─── Runway and reasons ───────────────────────────────────────────────────────


def format_runway(summary: RunwaySummary) -> str:
    if summary.state == "unknown":
        return "Runway unknown"
    if summary.state == "no-spend":
        return "No active spend"
    day_label = "day" if summary.days == 1 else "days"
    hour_label = "hour" if summary.hours == 1 else "hours"
    return f"{summary.days} {day_label}, {summary.hours} {hour_label}"


def format_top_up_reason(calculation: TopUpCalculation) -> str:
    """One-line explanation of why a top-up is (or is not) required."""
    if calculation.required_top_up == 0:
        return "No top-up required"

    days = _format_days(calculation.details.min_storage_days)
    if calculation.reason_code == "piece-upload":
        return "Required top-up for file upload (lockup requirement)"
    if calculation.reason_code == "required-runway":
        return f"Required top-up for {days} days of storage"
    if calculation.reason_code == "required-runway-plus-upload":
        return f"Required top-up for {days} days of storage (including upcoming upload)"
    return "Required top-up"


def format_funding_reason(
    reason_code: FundingReasonCode,
    plan: Optional[FundingPlan] = None,
) -> str:
    """One-line explanation of a funding reason code, using ``plan`` for the day count."""
    days = plan.target_runway_days if plan is not None else None
    if reason_code == "none":
        return "No funding adjustment needed"
    if reason_code == "piece-upload":
        return "Required funding for file upload (lockup requirement)"
    if reason_code == "runway-insufficient":
        if days is None:
            return "Required funding to meet runway target"
        return f"Required funding for {_format_days(days)} days of storage"
    if reason_code == "runway-with-piece":
        if days is None:
            return "Required funding for storage runway (including upcoming upload)"
        return f"Required funding for {_format_days(days)} days of storage (including upcoming upload)"
    if reason_code == "target-deposit":
        return "Required funding to reach target deposit amount"
    if reason_code == "withdrawal-excess":
        return "Excess funds available for withdrawal"
    return "Required funding"


# ─── Storage sizes ────────────────────────────────────────────────────────────


def _is_empty(storage_unit: StorageUnit) -> bool:
    remainder = storage_unit.remainder.bytes if storage_unit.remainder else 0
    return storage_unit.value <= 0 and remainder <= 0


def format_storage_size(storage_unit: StorageUnit, precision: int = 2) -> str:
    """E.g. ``"1.50 TiB"``; ``"0 B"`` for an empty size."""
    if _is_empty(storage_unit):
        return "0 B"
    number = storage_unit_to_number(storage_unit)
    return f"{number.value:,.{precision}f} {number.unit}"


def format_storage_capacity(storage_unit: StorageUnit, precision: int = 1) -> str:
    """E.g. ``"1.5 TiB/month"``."""
    if _is_empty(storage_unit):
        return "0 B/month"
    return f"{format_storage_size(storage_unit, precision)}/month"
