# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Safe ratio scaling for token arithmetic.

Token amounts are integers with 18 fractional digits, so converting them
straight to ``float`` silently drops precision once they pass 2**53. Every
ratio the package computes goes through this module instead: the ratio is
kept as an integer ``scaled`` value together with the ``scale`` it was
multiplied by, and only converted to ``float`` when both halves fit inside
the safe-integer range.

Example::

    scaled, scale = scale_ratio(deposited, required)
    covered = (capacity_bytes * scaled) // scale

All functions accept non-negative inputs only and raise
:class:`~storage_funding.errors.InvalidArgumentError` otherwise.
"""
from __future__ import annotations

import math
from fractions import Fraction
from typing import Literal, NamedTuple, get_args

from storage_funding.config import MAX_SAFE_INTEGER
from storage_funding.errors import InvalidArgumentError, PrecisionLimitError

Rounding = Literal["floor", "ceil", "trunc", "half-up", "half-down", "half-even"]

ROUNDING_MODES: frozenset[str] = frozenset(get_args(Rounding))

STORAGE_SCALE_MAX = 10_000_000


class ScaledRatio(NamedTuple):
    """An integer ``scaled`` value standing for ``scaled / scale``."""

    scaled: int
    scale: int


# ---------------------------------------------------------------------------
# Argument checks
# ---------------------------------------------------------------------------


def _require_non_negative(name: str, value: int) -> None:
    if value < 0:
        raise InvalidArgumentError(f"{name} must be >= 0, got {value}", argument=name)


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise InvalidArgumentError(f"{name} must be > 0, got {value}", argument=name)


def _require_finite_non_negative(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise InvalidArgumentError(
            f"{name} must be a finite number >= 0, got {value}", argument=name
        )


def _half_up(value: float) -> int:
    # Nearest integer, ties away from zero for non-negative input.
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# Integer division
# ---------------------------------------------------------------------------


def div_round(numerator: int, denominator: int, mode: Rounding = "half-up") -> int:
    """
    Divide two non-negative integers with an explicit rounding policy.

    Args:
        numerator: Dividend. Must be >= 0.
        denominator: Divisor. Must be > 0.
        mode: One of ``'floor'``, ``'ceil'``, ``'trunc'``, ``'half-up'``,
            ``'half-down'`` or ``'half-even'``.

    Returns:
        The rounded quotient.

    Raises:
        InvalidArgumentError: On a negative numerator, non-positive
            denominator or unknown rounding mode.

    Example::

        div_round(7, 3)           # 2
        div_round(7, 3, "ceil")   # 3
        div_round(5, 2, "half-even")  # 2
    """
    _require_positive("denominator", denominator)
    _require_non_negative("numerator", numerator)
    if mode not in ROUNDING_MODES:
        raise InvalidArgumentError(f"Unknown rounding mode {mode!r}.", argument="mode")

    if mode in ("floor", "trunc"):
        return numerator // denominator
    if mode == "ceil":
        return -(-numerator // denominator)

    quotient, remainder = divmod(numerator, denominator)
    if remainder == 0:
        return quotient

    twice_remainder = 2 * remainder
    if mode == "half-up":
        return quotient + 1 if twice_remainder >= denominator else quotient
    if mode == "half-down":
        return quotient + 1 if twice_remainder > denominator else quotient

    # half-even
    if twice_remainder > denominator:
        return quotient + 1
    if twice_remainder < denominator:
        return quotient
    return quotient if quotient % 2 == 0 else quotient + 1


# ---------------------------------------------------------------------------
# Scale selection
# ---------------------------------------------------------------------------


def get_scale(value: int | float, scale_max: int = STORAGE_SCALE_MAX) -> int:
    """
    Pick the largest scale (at most ``scale_max``) for which
    ``value * scale`` stays within the safe-integer range.

    Returns 1 for zero and for values already at or beyond the safe range.
    """
    if isinstance(value, int):
        _require_non_negative("value", value)
        if value == 0 or value >= MAX_SAFE_INTEGER:
            return 1
        return min(MAX_SAFE_INTEGER // value, scale_max)

    _require_finite_non_negative("value", value)
    if value == 0:
        return 1
    max_scale_by_value = math.floor(MAX_SAFE_INTEGER / value)
    return max(1, min(scale_max, max_scale_by_value))


def choose_scale_for_ratio(
    numerator: int,
    denominator: int,
    scale_max: int = STORAGE_SCALE_MAX,
) -> int:
    """
    Pick a scale such that ``numerator * scale / denominator`` and the scale
    itself both fit within the safe-integer range.
    """
    _require_non_negative("numerator", numerator)
    _require_positive("denominator", denominator)
    if numerator == 0:
        return 1

    bound_by_result = (MAX_SAFE_INTEGER * denominator) // numerator
    scale = min(MAX_SAFE_INTEGER, bound_by_result, scale_max)
    return max(1, scale)


# ---------------------------------------------------------------------------
# Exact fractions
# ---------------------------------------------------------------------------


def gcd(a: int, b: int) -> int:
    """Greatest common divisor of two non-negative integers."""
    _require_non_negative("a", a)
    _require_non_negative("b", b)
    return math.gcd(a, b)


def ratio(numerator: int, denominator: int) -> Fraction:
    """
    Return ``numerator / denominator`` as an exact, reduced fraction.

    ``ratio(6, 9)`` is ``Fraction(2, 3)``; ``ratio(0, n)`` is ``Fraction(0, 1)``.
    """
    _require_non_negative("numerator", numerator)
    _require_positive("denominator", denominator)
    return Fraction(numerator, denominator)


def ratio_to_fixed(
    p: int,
    q: int,
    decimals: int = 6,
    rounding: Rounding = "half-up",
) -> str:
    """
    Render ``p / q`` as a fixed-point decimal string.

    ``ratio_to_fixed(22, 7)`` is ``'3.142857'``; ``ratio_to_fixed(1, 3, 4)``
    is ``'0.3333'``.
    """
    _require_positive("q", q)
    if decimals < 0:
        raise InvalidArgumentError("decimals must be >= 0", argument="decimals")

    scaled = div_round(p * 10**decimals, q, rounding)
    digits = str(scaled)
    if decimals == 0:
        return digits

    integer_part = digits[:-decimals] if len(digits) > decimals else "0"
    fractional_part = digits.rjust(decimals + 1, "0")[-decimals:]
    return f"{integer_part}.{fractional_part}"


# ---------------------------------------------------------------------------
# Scaled ratios
# ---------------------------------------------------------------------------


def scale_ratio(
    numerator: int,
    denominator: int,
    rounding: Rounding = "half-up",
    scale_max: int = STORAGE_SCALE_MAX,
) -> ScaledRatio:
    """
    Scale ``numerator / denominator`` using a scale chosen from the numerator.

    Suited to results that stay in integer arithmetic, e.g.
    ``value * scaled // scale``. A zero numerator yields ``(0, 1)``.
    """
    _require_non_negative("numerator", numerator)
    _require_positive("denominator", denominator)
    if numerator == 0:
        return ScaledRatio(0, 1)

    scale = get_scale(numerator, scale_max)
    return ScaledRatio(div_round(numerator * scale, denominator, rounding), scale)


def scale_ratio_for_number(
    numerator: int,
    denominator: int,
    rounding: Rounding = "half-up",
    scale_max: int = STORAGE_SCALE_MAX,
) -> ScaledRatio:
    """
    Scale ``numerator / denominator`` so that the result converts to
    ``float`` through :func:`scaled_to_number` whenever the ratio itself is
    below the safe-integer range.
    """
    _require_non_negative("numerator", numerator)
    _require_positive("denominator", denominator)
    if numerator == 0:
        return ScaledRatio(0, 1)

    scale = choose_scale_for_ratio(numerator, denominator, scale_max)
    return ScaledRatio(div_round(numerator * scale, denominator, rounding), scale)


def scale_number_ratio(
    numerator: float,
    denominator: float,
    rounding: Rounding = "half-up",
    scale_max: int = STORAGE_SCALE_MAX,
) -> ScaledRatio:
    """
    Scale a ratio of two floats into integer form.

    Both operands are brought to a common integer scale first, so
    ``price * scaled // scale`` applies a fractional quantity to an integer
    amount without a float multiplication.
    """
    _require_finite_non_negative("numerator", numerator)
    _require_finite_non_negative("denominator", denominator)
    if denominator == 0:
        raise InvalidArgumentError("denominator must be > 0", argument="denominator")
    if numerator == 0:
        return ScaledRatio(0, 1)

    common_scale = min(get_scale(float(numerator), scale_max), get_scale(float(denominator), scale_max))
    scaled_numerator = _half_up(numerator * common_scale)
    # Rounding a tiny positive denominator must not produce a zero divisor.
    scaled_denominator = max(1, _half_up(denominator * common_scale))

    scaled = div_round(scaled_numerator * common_scale, scaled_denominator, rounding)
    return ScaledRatio(scaled, common_scale)


# ---------------------------------------------------------------------------
# Conversion to float
# ---------------------------------------------------------------------------


def scaled_to_number(scaled: int, scale: int) -> float:
    """
    Convert ``scaled / scale`` to ``float``.

    Raises:
        InvalidArgumentError: If ``scaled`` < 0 or ``scale`` <= 0.
        PrecisionLimitError: If either operand exceeds the safe-integer range.
    """
    _require_non_negative("scaled", scaled)
    _require_positive("scale", scale)
    if scaled > MAX_SAFE_INTEGER:
        raise PrecisionLimitError(
            f"Scaled value {scaled} too large for safe float conversion", value=scaled
        )
    if scale > MAX_SAFE_INTEGER:
        raise PrecisionLimitError(
            f"Scale {scale} too large for safe float conversion", value=scale
        )
    return scaled / scale


def try_scaled_to_number(scaled: int, scale: int) -> float | None:
    """Like :func:`scaled_to_number` but returns ``None`` at the precision limit."""
    try:
        return scaled_to_number(scaled, scale)
    except PrecisionLimitError:
        return None


def ratio_to_number(
    p: int,
    q: int,
    rounding: Rounding = "half-up",
    scale_max: int = STORAGE_SCALE_MAX,
) -> float:
    """Convert the exact fraction ``p / q`` to ``float`` through safe scaling."""
    scaled, scale = scale_ratio_for_number(p, q, rounding, scale_max)
    return scaled_to_number(scaled, scale)


def calculate_ratio_as_number(
    numerator: int,
    denominator: int,
    rounding: Rounding = "half-up",
    scale_max: int = STORAGE_SCALE_MAX,
) -> float:
    """
    Return ``numerator / denominator`` as ``float``.

    Use this instead of ``float(a) / float(b)`` for token amounts.

    Raises:
        PrecisionLimitError: If the ratio is too large to represent safely.
    """
    _require_non_negative("numerator", numerator)
    _require_positive("denominator", denominator)
    scaled, scale = scale_ratio_for_number(numerator, denominator, rounding, scale_max)
    return scaled_to_number(scaled, scale)


def calculate_ratio_safe(
    numerator: int,
    denominator: int,
    rounding: Rounding = "half-up",
    scale_max: int = STORAGE_SCALE_MAX,
) -> float | None:
    """Like :func:`calculate_ratio_as_number` but returns ``None`` at the precision limit."""
    _require_non_negative("numerator", numerator)
    _require_positive("denominator", denominator)
    scaled, scale = scale_ratio_for_number(numerator, denominator, rounding, scale_max)
    return try_scaled_to_number(scaled, scale)


def calculate_rate(
    price: int,
    quantity: float,
    scale_max: int = STORAGE_SCALE_MAX,
) -> int:
    """
    Multiply an integer price by a fractional quantity without a float product.

    ``calculate_rate(price_per_tib, 1.5)`` is ``price_per_tib * 3 // 2``.
    """
    _require_non_negative("price", price)
    _require_finite_non_negative("quantity", quantity)
    scaled, scale = scale_number_ratio(quantity, 1.0, scale_max=scale_max)
    return (price * scaled) // scale


def apply_ratio(
    base_value: float,
    numerator: int,
    denominator: int,
    rounding: Rounding = "half-up",
    scale_max: int = STORAGE_SCALE_MAX,
) -> float:
    """Return ``base_value * numerator / denominator`` as ``float``."""
    _require_finite_non_negative("base_value", base_value)
    return base_value * calculate_ratio_as_number(numerator, denominator, rounding, scale_max)
