# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Network and pricing parameters for the storage-funding calculations.

Every calculation takes an optional ``config`` argument; ``None`` selects
:data:`DEFAULT_CONFIG`. Substitute a different :class:`BillingConfig` to
model another network without touching process-wide state::

    fast_epochs = BillingConfig(epoch=EpochConfig(duration_seconds=15))
    summary = calculate_storage_runway(snapshot, config=fast_epochs)
"""
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, model_validator

SECONDS_PER_DAY = 86_400
DAYS_PER_BILLING_MONTH = 30

# 10**18 smallest units make up one whole token.
TOKEN_DECIMALS = 18
ONE_TOKEN = 10**TOKEN_DECIMALS

# Largest integer a binary64 float represents exactly (2**53 - 1).
MAX_SAFE_INTEGER = 9_007_199_254_740_991


class EpochConfig(BaseModel, frozen=True):
    """
    Network timing.

    Attributes:
        duration_seconds: Wall-clock length of one billing epoch. Must divide
            a day evenly.
    """

    duration_seconds: Annotated[int, Field(gt=0)] = 30

    @model_validator(mode="after")
    def _divides_day(self) -> EpochConfig:
        if SECONDS_PER_DAY % self.duration_seconds != 0:
            raise ValueError(
                f"epoch duration must divide {SECONDS_PER_DAY} seconds; "
                f"got {self.duration_seconds}."
            )
        return self

    @property
    def per_day(self) -> int:
        """Number of epochs in one day."""
        return SECONDS_PER_DAY // self.duration_seconds

    @property
    def per_hour(self) -> int:
        """Number of epochs in one hour (rounded down)."""
        return self.per_day // 24

    @property
    def per_month(self) -> int:
        """Number of epochs in one 30-day billing month."""
        return self.per_day * DAYS_PER_BILLING_MONTH


class PricingConfig(BaseModel, frozen=True):
    """
    Business rules applied on top of the network's price per TiB per epoch.

    Attributes:
        lockup_days: Mandatory lockup period the storage service reserves
            against future spend.
        floor_price: Minimum charge per piece for ``floor_price_days``, in
            the token's smallest unit (0.06 token by default).
        floor_price_days: Period the floor price covers.
        buffer_numerator: Numerator of the safety buffer applied to lockup
            requirements (11/10 is a 10% buffer).
        buffer_denominator: Denominator of the safety buffer.
    """

    lockup_days: Annotated[int, Field(gt=0)] = 10
    floor_price: Annotated[int, Field(ge=0)] = 6 * 10**16
    floor_price_days: Annotated[int, Field(gt=0)] = 30
    buffer_numerator: Annotated[int, Field(gt=0)] = 11
    buffer_denominator: Annotated[int, Field(gt=0)] = 10

    @model_validator(mode="after")
    def _buffer_not_discount(self) -> PricingConfig:
        if self.buffer_numerator < self.buffer_denominator:
            raise ValueError("buffer_numerator must be >= buffer_denominator.")
        return self


class BillingConfig(BaseModel, frozen=True):
    """
    Top-level configuration threaded through every calculation.

    Attributes:
        epoch: Network timing.
        pricing: Lockup, floor price and buffer rules.
        scale_max: Ceiling on the precision scale used when converting
            fractional quantities to integer arithmetic.
        pdp_leaf_size: Piece sizes are billed in multiples of this many bytes.
        min_gas_balance: Native-token balance below which transactions cannot
            be paid for (0.1 native token by default).
    """

    epoch: EpochConfig = Field(default_factory=EpochConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    scale_max: Annotated[int, Field(gt=0, le=MAX_SAFE_INTEGER)] = 10_000_000
    pdp_leaf_size: Annotated[int, Field(gt=0)] = 32
    min_gas_balance: Annotated[int, Field(ge=0)] = 10**17

    @property
    def lockup_epochs(self) -> int:
        """Length of the mandatory lockup period in epochs."""
        return self.pricing.lockup_days * self.epoch.per_day

    @property
    def floor_period_epochs(self) -> int:
        """Length of the floor-price period in epochs."""
        return self.pricing.floor_price_days * self.epoch.per_day


DEFAULT_CONFIG = BillingConfig()


def resolve_config(config: BillingConfig | None) -> BillingConfig:
    """Return ``config`` or the default configuration when ``None``."""
    return config if config is not None else DEFAULT_CONFIG
