# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
What a single piece upload needs, and whether the account can afford it.

A piece is billed on its size padded to whole PDP leaves, raised to the
floor price. The deposit must cover the existing lockup plus the piece's
lockup with the safety buffer applied. Shortfalls are reported as result
fields; nothing here raises for a business condition.
"""
from __future__ import annotations

import math

from storage_funding.allowances import calculate_required_allowances, with_buffer
from storage_funding.config import BillingConfig, resolve_config
from storage_funding.errors import InvalidArgumentError
from storage_funding.floor_pricing import apply_floor_pricing
from storage_funding.formatting import format_token_amount
from storage_funding.runway import hourly_safety_margin
from storage_funding.scaling import ratio_to_number
from storage_funding.types import (
    AccountSnapshot,
    AllowancePair,
    CapacityIssues,
    PaymentCapacityCheck,
    PaymentValidationResult,
    PieceRunwayAdjustment,
    PieceUploadRequirements,
)
from storage_funding.units import TIB, pad_size_to_pdp_leaves


def calculate_piece_allowances(
    piece_size_bytes: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> AllowancePair:
    """Floor-adjusted allowances for one piece of ``piece_size_bytes``."""
    resolved = resolve_config(config)
    padded_size = pad_size_to_pdp_leaves(piece_size_bytes, resolved)
    base = calculate_required_allowances(padded_size, price_per_tib_per_epoch, resolved)
    return apply_floor_pricing(base, resolved)


def calculate_piece_upload_requirements(
    snapshot: AccountSnapshot,
    piece_size_bytes: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> PieceUploadRequirements:
    """
    Deposit needed before uploading one piece.

    ``total_deposit_needed`` is the lockup already in use plus the buffered
    lockup of the new piece; ``insufficient_deposit`` is whatever the
    current deposit lacks of that.
    """
    resolved = resolve_config(config)
    required = calculate_piece_allowances(piece_size_bytes, price_per_tib_per_epoch, resolved)
    total_deposit_needed = snapshot.allowance_state.lockup_used + with_buffer(
        required.lockup_allowance, resolved
    )
    deposited = snapshot.deposited_balance
    insufficient_deposit = total_deposit_needed - deposited if deposited < total_deposit_needed else 0
    return PieceUploadRequirements(
        required=required,
        total_deposit_needed=total_deposit_needed,
        insufficient_deposit=insufficient_deposit,
        can_upload=insufficient_deposit == 0,
    )


def compute_adjustment_for_exact_days_with_piece(
    snapshot: AccountSnapshot,
    days: float,
    piece_size_bytes: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> PieceRunwayAdjustment:
    """
    Deposit change covering a new piece and ``days`` of runway afterwards.

    The runway is computed at the spend rate the account will have once the
    piece is added. The target deposit is the existing lockup, the buffered
    piece lockup and the runway cost (plus one hour of margin).

    Raises:
        InvalidArgumentError: If ``days`` is negative or not finite.
    """
    if not math.isfinite(days) or days < 0:
        raise InvalidArgumentError("days must be a finite number >= 0", argument="days")

    resolved = resolve_config(config)
    allowances = snapshot.allowance_state
    required = calculate_piece_allowances(piece_size_bytes, price_per_tib_per_epoch, resolved)

    new_rate_used = allowances.rate_used + required.rate_allowance
    new_lockup_used = allowances.lockup_used + required.lockup_allowance
    daily_burn = new_rate_used * resolved.epoch.per_day

    runway_cost = math.floor(days) * daily_burn + hourly_safety_margin(daily_burn)
    target_deposit = (
        allowances.lockup_used + with_buffer(required.lockup_allowance, resolved) + runway_cost
    )

    return PieceRunwayAdjustment(
        delta=target_deposit - snapshot.deposited_balance,
        target_deposit=target_deposit,
        new_rate_used=new_rate_used,
        new_lockup_used=new_lockup_used,
        daily_burn=daily_burn,
        required=required,
    )


def validate_payment_capacity(
    snapshot: AccountSnapshot,
    size_bytes: int,
    price_per_tib_per_epoch: int,
    config: BillingConfig | None = None,
) -> PaymentCapacityCheck:
    """
    Check whether a write of ``size_bytes`` is affordable right now.

    Compares the piece's requirements against the deposit and against the
    unused part of both service allowances. Every shortfall is listed with a
    suggestion; ``can_upload`` is True only when there is none.
    """
    resolved = resolve_config(config)
    requirements = calculate_piece_upload_requirements(
        snapshot, size_bytes, price_per_tib_per_epoch, resolved
    )
    required = requirements.required
    allowances = snapshot.allowance_state

    rate_needed = allowances.rate_used + required.rate_allowance
    lockup_needed = allowances.lockup_used + required.lockup_allowance
    rate_shortfall = rate_needed - allowances.rate_allowance
    lockup_shortfall = lockup_needed - allowances.lockup_allowance

    suggestions: list[str] = []
    insufficient_deposit = None
    insufficient_rate = None
    insufficient_lockup = None

    if requirements.insufficient_deposit > 0:
        insufficient_deposit = requirements.insufficient_deposit
        suggestions.append(
            f"Deposit at least {format_token_amount(insufficient_deposit)} more tokens."
        )
    if rate_shortfall > 0:
        insufficient_rate = rate_shortfall
        suggestions.append(
            f"Increase the rate allowance by {format_token_amount(rate_shortfall)} per epoch."
        )
    if lockup_shortfall > 0:
        insufficient_lockup = lockup_shortfall
        suggestions.append(
            f"Increase the lockup allowance by {format_token_amount(lockup_shortfall)}."
        )

    return PaymentCapacityCheck(
        can_upload=not suggestions,
        storage_tib=ratio_to_number(size_bytes, TIB, scale_max=resolved.scale_max),
        required=required,
        issues=CapacityIssues(
            insufficient_deposit=insufficient_deposit,
            insufficient_rate_allowance=insufficient_rate,
            insufficient_lockup_allowance=insufficient_lockup,
        ),
        suggestions=tuple(suggestions),
    )


def validate_payment_requirements(
    has_sufficient_gas: bool,
    wallet_token_balance: int,
    is_testnet: bool,
) -> PaymentValidationResult:
    """
    Preconditions for moving funds: enough native balance for gas and some
    tokens in the wallet.
    """
    if not has_sufficient_gas:
        return PaymentValidationResult(
            is_valid=False,
            error_message="Insufficient native balance for gas fees.",
            help_message=(
                "Request test funds from the network faucet."
                if is_testnet
                else "Acquire native tokens to pay for transaction fees."
            ),
        )
    if wallet_token_balance == 0:
        return PaymentValidationResult(
            is_valid=False,
            error_message="No tokens found in the wallet.",
            help_message=(
                "Mint test tokens from the network faucet."
                if is_testnet
                else "Acquire tokens before depositing."
            ),
        )
    return PaymentValidationResult(is_valid=True)
