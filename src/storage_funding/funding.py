# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Funding plan engine.

A plan turns one :data:`~storage_funding.types.FundingTarget` into a signed
deposit change, the reason for it, and before/after insights. Planning is
pure; :func:`plan_funding` and :func:`execute_funding_plan` are the two
entry points that reach the chain through an
:class:`~storage_funding.client.AccountClient`.

Quick start::

    from storage_funding import RunwayTarget, plan_for_target

    plan = plan_for_target(snapshot, RunwayTarget(days=30), mode="minimum")
    if plan.wallet_shortfall:
        print("wallet needs", plan.wallet_shortfall, "more")
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from storage_funding.client.interface import AccountClient
from storage_funding.config import SECONDS_PER_DAY, BillingConfig, resolve_config
from storage_funding.errors import FundingTargetError
from storage_funding.requirements import (
    compute_adjustment_for_exact_days_with_piece,
    validate_payment_requirements,
)
from storage_funding.runway import (
    calculate_storage_runway,
    compute_adjustment_for_exact_days,
    compute_adjustment_for_exact_deposit,
)
from storage_funding.types import (
    AccountSnapshot,
    DepositTarget,
    FundingAction,
    FundingExecutionResult,
    FundingInsights,
    FundingMode,
    FundingPlan,
    FundingPlanResult,
    FundingReasonCode,
    FundingTarget,
    RunwayTarget,
    RunwayWithPieceTarget,
)

logger = logging.getLogger("storage_funding.funding")

MAINNET = "mainnet"


# ─── Insights ─────────────────────────────────────────────────────────────────


def _depletion(
    available: int, daily_burn: int, now: datetime
) -> tuple[Optional[int], Optional[datetime]]:
    if available <= 0 or daily_burn <= 0:
        return None, None
    seconds = (available * SECONDS_PER_DAY) // daily_burn
    if seconds <= 0:
        return None, None
    try:
        return seconds, now + timedelta(seconds=seconds)
    except OverflowError:
        return seconds, None


def get_funding_insights(
    snapshot: AccountSnapshot,
    deposited_balance: Optional[int] = None,
    rate_used: Optional[int] = None,
    lockup_used: Optional[int] = None,
    config: BillingConfig | None = None,
    now: Optional[datetime] = None,
) -> FundingInsights:
    """
    Spend rate, runway and depletion timing for ``snapshot``, or for the
    state it would be in with the given overrides applied.

    Depletion is reported twice: for the spendable deposit alone and for the
    deposit plus the wallet balance. A timestamp is omitted when it would
    fall outside the representable date range.
    """
    resolved = resolve_config(config)
    moment = now or datetime.now(timezone.utc)
    state = snapshot.with_overrides(
        deposited_balance=deposited_balance,
        rate_used=rate_used,
        lockup_used=lockup_used,
    )
    runway = calculate_storage_runway(state, resolved)
    available = runway.available_balance
    deposit_seconds, deposit_at = _depletion(available, runway.daily_burn, moment)
    owner_seconds, owner_at = _depletion(
        available + state.wallet_token_balance, runway.daily_burn, moment
    )

    return FundingInsights(
        spend_rate_per_epoch=state.allowance_state.rate_used,
        spend_rate_per_day=runway.daily_burn,
        deposited_balance=state.deposited_balance,
        available_deposited=available,
        wallet_token_balance=state.wallet_token_balance,
        runway=runway,
        deposit_depletion_seconds=deposit_seconds,
        deposit_depletion_at=deposit_at,
        owner_depletion_seconds=owner_seconds,
        owner_depletion_at=owner_at,
    )


# ─── Planning ─────────────────────────────────────────────────────────────────


def _check_target_options(
    target_runway_days: Optional[float],
    target_deposit: Optional[int],
    piece_size_bytes: Optional[int],
    price_per_tib_per_epoch: Optional[int],
    price_will_be_fetched: bool = False,
) -> None:
    if target_runway_days is not None and target_deposit is not None:
        raise FundingTargetError("Specify either target_runway_days or target_deposit, not both")
    if target_runway_days is None and target_deposit is None:
        raise FundingTargetError("A funding target is required")
    if piece_size_bytes is not None and price_per_tib_per_epoch is None and not price_will_be_fetched:
        raise FundingTargetError("price_per_tib_per_epoch is required when piece_size_bytes is given")
    if target_runway_days is not None and not target_runway_days >= 0:
        raise FundingTargetError(f"target_runway_days must be >= 0, got {target_runway_days}")
    if target_deposit is not None and target_deposit < 0:
        raise FundingTargetError(f"target_deposit must be >= 0, got {target_deposit}")
    if target_deposit is not None and piece_size_bytes is not None:
        raise FundingTargetError("piece_size_bytes only applies to a runway target")


def resolve_funding_target(
    target_runway_days: Optional[float] = None,
    target_deposit: Optional[int] = None,
    piece_size_bytes: Optional[int] = None,
    price_per_tib_per_epoch: Optional[int] = None,
) -> FundingTarget:
    """
    Build the target variant for a flat set of options.

    Raises:
        FundingTargetError: When both or neither of ``target_runway_days``
            and ``target_deposit`` are given, when a piece size comes
            without a price, or when a piece is combined with a deposit
            target.
    """
    _check_target_options(target_runway_days, target_deposit, piece_size_bytes, price_per_tib_per_epoch)

    if target_deposit is not None:
        return DepositTarget(amount=target_deposit)
    if piece_size_bytes is not None:
        return RunwayWithPieceTarget(
            days=target_runway_days,
            piece_size_bytes=piece_size_bytes,
            price_per_tib_per_epoch=price_per_tib_per_epoch,
        )
    return RunwayTarget(days=target_runway_days)


def _reason_for_delta(delta: int, increase: FundingReasonCode) -> FundingReasonCode:
    if delta > 0:
        return increase
    if delta < 0:
        return "withdrawal-excess"
    return "none"


def plan_for_target(
    snapshot: AccountSnapshot,
    target: FundingTarget,
    mode: FundingMode = "exact",
    allow_withdraw: bool = True,
    config: BillingConfig | None = None,
    now: Optional[datetime] = None,
) -> FundingPlan:
    """
    Compute the deposit change that meets ``target``.

    In ``'exact'`` mode an over-funded account gets a withdrawal; in
    ``'minimum'`` mode (or with ``allow_withdraw=False``) a negative change
    is clamped to zero and the plan does nothing. A deposit larger than the
    wallet balance is still planned, with ``wallet_shortfall`` set.
    """
    resolved = resolve_config(config)
    allowances = snapshot.allowance_state
    deposited = snapshot.deposited_balance
    projected_rate_used = allowances.rate_used
    projected_lockup_used = allowances.lockup_used
    piece_size_bytes: Optional[int] = None
    price: Optional[int] = None
    target_runway_days: Optional[float] = None

    if isinstance(target, RunwayWithPieceTarget):
        target_runway_days = target.days
        piece_size_bytes = target.piece_size_bytes
        price = target.price_per_tib_per_epoch
        piece_adjustment = compute_adjustment_for_exact_days_with_piece(
            snapshot, target.days, piece_size_bytes, price, resolved
        )
        delta = piece_adjustment.delta
        resolved_target_deposit = piece_adjustment.target_deposit
        projected_rate_used = piece_adjustment.new_rate_used
        projected_lockup_used = piece_adjustment.new_lockup_used
        reason_code = _reason_for_delta(
            delta, "piece-upload" if target.days == 0 else "runway-with-piece"
        )
    elif isinstance(target, RunwayTarget):
        target_runway_days = target.days
        days_adjustment = compute_adjustment_for_exact_days(snapshot, target.days, resolved)
        delta = days_adjustment.delta
        resolved_target_deposit = deposited + delta
        reason_code = _reason_for_delta(delta, "runway-insufficient")
    else:
        deposit_adjustment = compute_adjustment_for_exact_deposit(snapshot, target.amount)
        delta = deposit_adjustment.delta
        resolved_target_deposit = deposit_adjustment.clamped_target
        reason_code = _reason_for_delta(delta, "target-deposit")

    if delta < 0 and (mode == "minimum" or not allow_withdraw):
        delta = 0
        reason_code = "none"

    projected_deposit = max(deposited + delta, 0)
    wallet_balance = snapshot.wallet_token_balance
    wallet_shortfall = delta - wallet_balance if delta > 0 and delta > wallet_balance else None

    action: FundingAction = "deposit" if delta > 0 else "withdraw" if delta < 0 else "none"
    moment = now or datetime.now(timezone.utc)

    plan = FundingPlan(
        target_type="deposit" if isinstance(target, DepositTarget) else "runway-days",
        target=target,
        target_runway_days=target_runway_days,
        target_deposit=resolved_target_deposit,
        delta=delta,
        action=action,
        reason_code=reason_code,
        mode=mode,
        piece_size_bytes=piece_size_bytes,
        price_per_tib_per_epoch=price,
        projected_deposit=projected_deposit,
        projected_rate_used=projected_rate_used,
        projected_lockup_used=projected_lockup_used,
        wallet_shortfall=wallet_shortfall,
        current=get_funding_insights(snapshot, config=resolved, now=moment),
        projected=get_funding_insights(
            snapshot,
            deposited_balance=projected_deposit,
            rate_used=projected_rate_used,
            lockup_used=projected_lockup_used,
            config=resolved,
            now=moment,
        ),
    )

    logger.info(
        "funding_plan",
        extra={
            "address": snapshot.address,
            "target_type": plan.target_type,
            "action": plan.action,
            "delta": plan.delta,
            "reason_code": plan.reason_code,
            "mode": plan.mode,
        },
    )
    if wallet_shortfall is not None:
        logger.warning(
            "funding_wallet_shortfall",
            extra={"address": snapshot.address, "wallet_shortfall": wallet_shortfall},
        )
    return plan


def calculate_funding_plan(
    snapshot: AccountSnapshot,
    target_runway_days: Optional[float] = None,
    target_deposit: Optional[int] = None,
    piece_size_bytes: Optional[int] = None,
    price_per_tib_per_epoch: Optional[int] = None,
    mode: FundingMode = "exact",
    allow_withdraw: bool = True,
    config: BillingConfig | None = None,
    now: Optional[datetime] = None,
) -> FundingPlan:
    """
    Flat-argument form of :func:`plan_for_target`.

    Exactly one of ``target_runway_days`` and ``target_deposit`` must be
    given; see :func:`resolve_funding_target` for the accepted combinations.
    """
    target = resolve_funding_target(
        target_runway_days=target_runway_days,
        target_deposit=target_deposit,
        piece_size_bytes=piece_size_bytes,
        price_per_tib_per_epoch=price_per_tib_per_epoch,
    )
    return plan_for_target(
        snapshot, target, mode=mode, allow_withdraw=allow_withdraw, config=config, now=now
    )


def plan_funding(
    client: AccountClient,
    address: str,
    target_runway_days: Optional[float] = None,
    target_deposit: Optional[int] = None,
    piece_size_bytes: Optional[int] = None,
    price_per_tib_per_epoch: Optional[int] = None,
    mode: FundingMode = "exact",
    allow_withdraw: bool = True,
    config: BillingConfig | None = None,
) -> FundingPlanResult:
    """
    Fetch a fresh snapshot (and the price, when a piece is given without
    one) and plan against it.

    Gas and wallet preconditions are checked and returned in
    ``validation``; a failed check does not stop planning.
    """
    resolved = resolve_config(config)
    # Reject a malformed request before any network call.
    _check_target_options(
        target_runway_days,
        target_deposit,
        piece_size_bytes,
        price_per_tib_per_epoch,
        price_will_be_fetched=True,
    )

    snapshot = client.fetch_account_snapshot(address)
    validation = validate_payment_requirements(
        has_sufficient_gas=snapshot.native_gas_balance >= resolved.min_gas_balance,
        wallet_token_balance=snapshot.wallet_token_balance,
        is_testnet=snapshot.network != MAINNET,
    )

    price = price_per_tib_per_epoch
    if piece_size_bytes is not None and price is None:
        price = client.fetch_current_price()

    plan = calculate_funding_plan(
        snapshot,
        target_runway_days=target_runway_days,
        target_deposit=target_deposit,
        piece_size_bytes=piece_size_bytes,
        price_per_tib_per_epoch=price,
        mode=mode,
        allow_withdraw=allow_withdraw,
        config=resolved,
    )
    return FundingPlanResult(plan=plan, snapshot=snapshot, validation=validation)


# ─── Execution ────────────────────────────────────────────────────────────────


def execute_funding_plan(
    client: AccountClient,
    address: str,
    plan: FundingPlan,
    config: BillingConfig | None = None,
) -> FundingExecutionResult:
    """
    Apply ``plan`` and reconcile against a snapshot fetched afterwards.

    A plan with action ``'none'`` submits nothing. Otherwise the deposit or
    withdrawal is submitted and the new balance and runway come from the
    fresh snapshot, not from the plan's projection. A balance change that
    differs from the plan is reported with ``reconciled=False``.
    Collaborator errors propagate unchanged.
    """
    if plan.action == "none":
        return FundingExecutionResult(
            adjusted=False,
            delta=0,
            new_deposited_amount=plan.projected.deposited_balance,
            new_runway_days=plan.projected.runway.days,
            new_runway_hours=plan.projected.runway.hours,
            plan=plan,
            updated_insights=plan.projected,
        )

    if plan.action == "deposit":
        transaction_ref = client.submit_deposit(address, plan.delta)
    else:
        transaction_ref = client.submit_withdraw(address, -plan.delta)
    logger.info(
        "funding_submitted",
        extra={
            "address": address,
            "action": plan.action,
            "delta": plan.delta,
            "transaction_ref": transaction_ref,
        },
    )

    updated = client.fetch_account_snapshot(address)
    insights = get_funding_insights(updated, config=config)
    observed_delta = updated.deposited_balance - plan.current.deposited_balance
    reconciled = observed_delta == plan.delta

    warnings: tuple[str, ...] = ()
    if not reconciled:
        warnings = (
            f"Observed balance change {observed_delta} differs from the requested {plan.delta}; "
            "the transaction may still be pending.",
        )
        logger.warning(
            "funding_unreconciled",
            extra={
                "address": address,
                "requested_delta": plan.delta,
                "observed_delta": observed_delta,
                "transaction_ref": transaction_ref,
            },
        )

    return FundingExecutionResult(
        adjusted=True,
        delta=plan.delta,
        transaction_ref=transaction_ref,
        new_deposited_amount=updated.deposited_balance,
        new_runway_days=insights.runway.days,
        new_runway_hours=insights.runway.hours,
        observed_delta=observed_delta,
        reconciled=reconciled,
        warnings=warnings,
        plan=plan,
        updated_insights=insights,
    )
