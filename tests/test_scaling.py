# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for safe ratio scaling and integer rounding."""

from __future__ import annotations

from fractions import Fraction

import pytest

from storage_funding.config import MAX_SAFE_INTEGER
from storage_funding.errors import InvalidArgumentError, PrecisionLimitError
from storage_funding.scaling import (
    apply_ratio,
    calculate_rate,
    calculate_ratio_as_number,
    calculate_ratio_safe,
    choose_scale_for_ratio,
    div_round,
    get_scale,
    ratio,
    ratio_to_fixed,
    ratio_to_number,
    scale_number_ratio,
    scale_ratio,
    scaled_to_number,
    try_scaled_to_number,
)


# ---------------------------------------------------------------------------
# TestDivRound
# ---------------------------------------------------------------------------


class TestDivRound:
    @pytest.mark.parametrize(
        ("numerator", "denominator", "mode", "expected"),
        [
            (7, 3, "floor", 2),
            (7, 3, "trunc", 2),
            (7, 3, "ceil", 3),
            (7, 3, "half-up", 2),
            (5, 2, "half-up", 3),
            (5, 2, "half-down", 2),
            (5, 2, "half-even", 2),
            (7, 2, "half-even", 4),
            (8, 3, "half-down", 3),
            (0, 9, "ceil", 0),
            (9, 3, "ceil", 3),
        ],
    )
    def test_rounding_modes(self, numerator: int, denominator: int, mode: str, expected: int) -> None:
        assert div_round(numerator, denominator, mode) == expected  # type: ignore[arg-type]

    def test_zero_denominator_raises(self) -> None:
        with pytest.raises(InvalidArgumentError, match="denominator must be > 0"):
            div_round(1, 0)

    def test_negative_numerator_raises(self) -> None:
        with pytest.raises(InvalidArgumentError, match="numerator must be >= 0"):
            div_round(-1, 2)

    def test_unknown_mode_raises(self) -> None:
        with pytest.raises(InvalidArgumentError, match="Unknown rounding mode"):
            div_round(1, 2, "banker")  # type: ignore[arg-type]

    def test_exact_for_values_beyond_float_range(self) -> None:
        big = 10**40 + 1
        assert div_round(big, 10, "ceil") == 10**39 + 1


# ---------------------------------------------------------------------------
# TestScaleSelection
# ---------------------------------------------------------------------------


class TestScaleSelection:
    def test_zero_gets_unit_scale(self) -> None:
        assert get_scale(0) == 1
        assert get_scale(0.0) == 1

    def test_small_values_use_ceiling(self) -> None:
        assert get_scale(1.5) == 10_000_000
        assert get_scale(3) == 10_000_000

    def test_large_values_shrink_scale(self) -> None:
        assert get_scale(MAX_SAFE_INTEGER // 4) == 4
        assert get_scale(MAX_SAFE_INTEGER) == 1

    def test_non_finite_float_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            get_scale(float("inf"))

    def test_choose_scale_for_ratio_keeps_result_safe(self) -> None:
        numerator = 10**20
        denominator = 10**6
        scale = choose_scale_for_ratio(numerator, denominator)
        assert numerator * scale // denominator <= MAX_SAFE_INTEGER


# ---------------------------------------------------------------------------
# TestScaleRatio
# ---------------------------------------------------------------------------


class TestScaleRatio:
    def test_zero_numerator_is_zero_over_one(self) -> None:
        assert scale_ratio(0, 17) == (0, 1)

    def test_one_third(self) -> None:
        assert scale_ratio(1, 3) == (3_333_333, 10_000_000)

    def test_negative_numerator_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            scale_ratio(-1, 3)

    def test_non_positive_denominator_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            scale_ratio(1, 0)

    @pytest.mark.parametrize(
        ("numerator", "denominator"),
        [
            (1, 3),
            (22, 7),
            (5, 4),
            (123_456_789, 1_000),
            (10**15, 3),
            (MAX_SAFE_INTEGER, 2**20),
        ],
    )
    def test_round_trip_within_relative_error(self, numerator: int, denominator: int) -> None:
        value = scaled_to_number(*scale_ratio(numerator, denominator))
        exact = Fraction(numerator, denominator)
        assert abs(Fraction(value) - exact) / exact < Fraction(1, 10**6)

    def test_number_ratio_of_floats(self) -> None:
        scaled, scale = scale_number_ratio(1.5, 1.0)
        assert scaled / scale == 1.5

    def test_number_ratio_tiny_denominator_does_not_divide_by_zero(self) -> None:
        scaled, scale = scale_number_ratio(1.0, 1e-12)
        assert scaled > 0
        assert scale >= 1


# ---------------------------------------------------------------------------
# TestScaledToNumber
# ---------------------------------------------------------------------------


class TestScaledToNumber:
    def test_plain_conversion(self) -> None:
        assert scaled_to_number(5, 10) == 0.5

    def test_negative_scaled_raises(self) -> None:
        with pytest.raises(InvalidArgumentError, match="scaled must be >= 0"):
            scaled_to_number(-1, 10)

    def test_zero_scale_raises(self) -> None:
        with pytest.raises(InvalidArgumentError, match="scale must be > 0"):
            scaled_to_number(1, 0)

    def test_beyond_safe_range_raises(self) -> None:
        with pytest.raises(PrecisionLimitError) as exc_info:
            scaled_to_number(MAX_SAFE_INTEGER + 1, 1)
        assert exc_info.value.code == "PRECISION_LIMIT"
        assert exc_info.value.value == MAX_SAFE_INTEGER + 1

    def test_try_variant_returns_none_at_limit(self) -> None:
        assert try_scaled_to_number(MAX_SAFE_INTEGER + 1, 1) is None

    def test_try_variant_still_rejects_invalid_input(self) -> None:
        with pytest.raises(InvalidArgumentError):
            try_scaled_to_number(1, 0)


# ---------------------------------------------------------------------------
# TestExactRatios
# ---------------------------------------------------------------------------


class TestExactRatios:
    def test_ratio_reduces(self) -> None:
        assert ratio(6, 9) == Fraction(2, 3)
        assert ratio(0, 5) == Fraction(0, 1)

    def test_ratio_rejects_zero_denominator(self) -> None:
        with pytest.raises(InvalidArgumentError):
            ratio(1, 0)

    @pytest.mark.parametrize(
        ("p", "q", "decimals", "expected"),
        [
            (22, 7, 6, "3.142857"),
            (1, 3, 4, "0.3333"),
            (2, 3, 2, "0.67"),
            (5, 1, 0, "5"),
            (1, 200, 2, "0.01"),
        ],
    )
    def test_ratio_to_fixed(self, p: int, q: int, decimals: int, expected: str) -> None:
        assert ratio_to_fixed(p, q, decimals) == expected

    def test_ratio_to_number(self) -> None:
        assert ratio_to_number(1, 4) == 0.25

    def test_ratio_to_number_honours_scale_max(self) -> None:
        assert ratio_to_number(1, 3, scale_max=10) == 0.3


# ---------------------------------------------------------------------------
# TestRatioHelpers
# ---------------------------------------------------------------------------


class TestRatioHelpers:
    def test_calculate_ratio_as_number(self) -> None:
        assert calculate_ratio_as_number(3, 4) == 0.75

    def test_calculate_ratio_as_number_raises_beyond_safe_range(self) -> None:
        with pytest.raises(PrecisionLimitError):
            calculate_ratio_as_number(2**80, 1)

    def test_calculate_ratio_safe_returns_none_beyond_safe_range(self) -> None:
        assert calculate_ratio_safe(2**80, 1) is None
        assert calculate_ratio_safe(1, 2) == 0.5

    def test_ratio_helpers_honour_scale_max(self) -> None:
        assert calculate_ratio_as_number(2, 3, scale_max=100) == 0.67
        assert calculate_ratio_safe(2, 3, scale_max=100) == 0.67
        assert apply_ratio(2.0, 1, 4, scale_max=10) == pytest.approx(0.6)

    def test_calculate_rate_applies_fractional_quantity(self) -> None:
        assert calculate_rate(1_000, 1.5) == 1_500
        assert calculate_rate(1_000, 0) == 0

    def test_calculate_rate_keeps_large_prices_exact(self) -> None:
        price = 10**30
        assert calculate_rate(price, 2.0) == 2 * price
