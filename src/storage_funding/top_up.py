# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Top-up sizing and the balance-limited deposit executor.

:func:`calculate_required_top_up` is pure and never recommends a withdrawal.
:func:`execute_top_up` is the only function here that talks to an
:class:`~storage_funding.client.AccountClient`.
"""
from __future__ import annotations

import logging
from typing import Optional

from storage_funding.client.interface import AccountClient
from storage_funding.config import BillingConfig, resolve_config
from storage_funding.formatting import format_token_amount
from storage_funding.requirements import (
    calculate_piece_upload_requirements,
    compute_adjustment_for_exact_days_with_piece,
)
from storage_funding.runway import compute_top_up_for_duration
from storage_funding.types import (
    AccountSnapshot,
    TopUpCalculation,
    TopUpDetails,
    TopUpReasonCode,
    TopUpResult,
)

logger = logging.getLogger("storage_funding.top_up")


def calculate_required_top_up(
    snapshot: AccountSnapshot,
    min_storage_days: float = 0,
    piece_size_bytes: Optional[int] = None,
    price_per_tib_per_epoch: Optional[int] = None,
    config: BillingConfig | None = None,
) -> TopUpCalculation:
    """
    Deposit required for an upcoming piece, a runway target, or both.

    The piece requirement is the deposit the piece's buffered lockup lacks.
    The runway requirement is the top-up for ``min_storage_days`` at current
    spend; when nothing is being spent yet and a piece is given, it is
    computed at the rate the piece will add. The larger of the two wins.

    Returns:
        A :class:`TopUpCalculation` whose ``reason_code`` names the winning
        requirement (``'none'`` when neither needs a deposit).
    """
    resolved = resolve_config(config)
    allowances = snapshot.allowance_state
    has_piece = (
        piece_size_bytes is not None and piece_size_bytes > 0 and price_per_tib_per_epoch is not None
    )

    piece_top_up = 0
    if has_piece:
        requirements = calculate_piece_upload_requirements(
            snapshot, piece_size_bytes, price_per_tib_per_epoch, resolved  # type: ignore[arg-type]
        )
        piece_top_up = requirements.insufficient_deposit

    runway_top_up = 0
    runway_includes_piece = False
    if min_storage_days > 0:
        if allowances.rate_used == 0 and has_piece:
            adjustment = compute_adjustment_for_exact_days_with_piece(
                snapshot,
                min_storage_days,
                piece_size_bytes,  # type: ignore[arg-type]
                price_per_tib_per_epoch,  # type: ignore[arg-type]
                resolved,
            )
            runway_top_up = max(adjustment.delta, 0)
            runway_includes_piece = True
        else:
            runway_top_up = compute_top_up_for_duration(snapshot, min_storage_days, resolved).top_up

    required_top_up = 0
    reason_code: TopUpReasonCode = "none"
    if runway_top_up > piece_top_up:
        required_top_up = runway_top_up
        reason_code = "required-runway-plus-upload" if runway_includes_piece else "required-runway"
    elif piece_top_up > 0:
        required_top_up = piece_top_up
        reason_code = "piece-upload"

    return TopUpCalculation(
        required_top_up=required_top_up,
        reason_code=reason_code,
        details=TopUpDetails(
            min_storage_days=min_storage_days,
            piece_size_bytes=piece_size_bytes,
            price_per_tib_per_epoch=price_per_tib_per_epoch,
            current_rate_used=allowances.rate_used,
            current_lockup_used=allowances.lockup_used,
            current_deposited=snapshot.deposited_balance,
        ),
    )


def execute_top_up(
    client: AccountClient,
    address: str,
    top_up_amount: int,
    balance_limit: Optional[int] = None,
) -> TopUpResult:
    """
    Deposit ``top_up_amount``, respecting an optional ceiling on the deposit.

    A deposit that would push the balance over ``balance_limit`` is reduced
    to fit, with a warning. Being over the limit already, or lacking wallet
    funds, is reported in the result rather than raised. Errors from the
    deposit itself propagate; a failed balance re-check afterwards only adds
    a warning.
    """
    warnings: list[str] = []

    if top_up_amount <= 0:
        return TopUpResult(
            success=True,
            deposited=0,
            message="No deposit required - sufficient balance available",
        )

    current = client.fetch_account_snapshot(address)
    deposited = current.deposited_balance

    if balance_limit is not None and balance_limit >= 0:
        if deposited >= balance_limit:
            message = (
                f"Current balance ({format_token_amount(deposited)}) already equals or exceeds "
                f"the configured balance limit ({format_token_amount(balance_limit)}). "
                "No additional deposits will be made."
            )
            logger.warning(
                "top_up_over_limit",
                extra={"address": address, "deposited": deposited, "balance_limit": balance_limit},
            )
            return TopUpResult(success=True, deposited=0, message=message)

        if deposited + top_up_amount > balance_limit:
            allowed = balance_limit - deposited
            warning = (
                f"Required top-up ({format_token_amount(top_up_amount)}) would exceed the "
                f"configured balance limit ({format_token_amount(balance_limit)}). "
                f"Reducing to {format_token_amount(allowed)}."
            )
            logger.warning(
                "top_up_clamped",
                extra={"address": address, "requested": top_up_amount, "allowed": allowed},
            )
            warnings.append(warning)
            top_up_amount = allowed

    if current.wallet_token_balance < top_up_amount:
        message = (
            f"Insufficient tokens in wallet for deposit. Needed {format_token_amount(top_up_amount)}, "
            f"available {format_token_amount(current.wallet_token_balance)}."
        )
        logger.warning(
            "top_up_wallet_shortfall",
            extra={
                "address": address,
                "needed": top_up_amount,
                "wallet_balance": current.wallet_token_balance,
            },
        )
        return TopUpResult(success=False, deposited=0, message=message, warnings=tuple(warnings))

    transaction_ref = client.submit_deposit(address, top_up_amount)
    logger.info(
        "top_up_submitted",
        extra={"address": address, "amount": top_up_amount, "transaction_ref": transaction_ref},
    )

    try:
        refreshed = client.fetch_account_snapshot(address)
    except Exception as exc:  # re-check only; the deposit itself went through
        warnings.append(f"Could not verify the new balance: {exc}")
        return TopUpResult(
            success=True,
            deposited=top_up_amount,
            transaction_ref=transaction_ref,
            message="Deposit transaction submitted; balance not verified",
            warnings=tuple(warnings),
        )

    difference = refreshed.deposited_balance - deposited
    if difference > 0:
        message = f"Deposit verified: {format_token_amount(difference)} tokens added to the deposit"
    else:
        message = "Deposit transaction submitted but not yet reflected in balance"
        warnings.append("Transaction may take a moment to process")
        logger.warning(
            "top_up_unreconciled",
            extra={"address": address, "transaction_ref": transaction_ref},
        )

    return TopUpResult(
        success=True,
        deposited=difference,
        transaction_ref=transaction_ref,
        message=message,
        warnings=tuple(warnings),
    )
