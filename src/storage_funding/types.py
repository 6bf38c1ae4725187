# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer

# ─── Amount ───────────────────────────────────────────────────────────────────


def _coerce_amount(value: Any) -> Any:
    """Accept ints and base-10 integer strings; refuse anything float-like."""
    if isinstance(value, (bool, float)):
        raise ValueError("token amounts must be integers or base-10 integer strings")
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text.startswith("-") else text
        if not digits.isdigit():
            raise ValueError(f"{value!r} is not a base-10 integer string")
        return int(text)
    return value


def _amount_to_wire(value: int) -> str:
    return str(value)


Amount = Annotated[
    int,
    BeforeValidator(_coerce_amount),
    Field(ge=0),
    PlainSerializer(_amount_to_wire, return_type=str, when_used="json"),
]
"""Non-negative token quantity in the smallest unit. JSON form is a decimal string."""

SignedAmount = Annotated[
    int,
    BeforeValidator(_coerce_amount),
    PlainSerializer(_amount_to_wire, return_type=str, when_used="json"),
]
"""Token delta that may be negative (a withdrawal). JSON form is a decimal string."""

# ─── Account state ────────────────────────────────────────────────────────────


class AllowanceState(BaseModel, frozen=True):
    """What the storage service may commit on the account, and has committed."""

    rate_allowance: Amount = 0
    lockup_allowance: Amount = 0
    lockup_used: Amount = 0
    rate_used: Amount = 0
    max_lockup_period: int = Field(default=0, ge=0, description="Maximum lockup period in epochs.")


class AccountSnapshot(BaseModel, frozen=True):
    """
    Point-in-time view of an account, fetched fresh before every planning call.

    Never patched in place; :meth:`with_overrides` returns a new snapshot.
    """

    network: str
    address: str
    native_gas_balance: Amount = 0
    wallet_token_balance: Amount = 0
    deposited_balance: Amount = 0
    allowance_state: AllowanceState = Field(default_factory=AllowanceState)

    def with_overrides(
        self,
        deposited_balance: int | None = None,
        rate_used: int | None = None,
        lockup_used: int | None = None,
    ) -> AccountSnapshot:
        """Return a validated copy with the given balance or usage replaced."""
        allowance_update: dict[str, int] = {}
        if rate_used is not None:
            allowance_update["rate_used"] = rate_used
        if lockup_used is not None:
            allowance_update["lockup_used"] = lockup_used
        data = self.model_dump()
        data["allowance_state"].update(allowance_update)
        if deposited_balance is not None:
            data["deposited_balance"] = deposited_balance
        return AccountSnapshot.model_validate(data)


# ─── Allowances and capacity ──────────────────────────────────────────────────


class AllowancePair(BaseModel, frozen=True):
    """Rate and lockup allowance needed for a storage target."""

    rate_allowance: Amount
    lockup_allowance: Amount
    capacity_tib_per_month: float = Field(default=0.0, ge=0.0)


class DepositCapacity(BaseModel, frozen=True):
    """What a deposit sustains when the service allowances are unrestricted."""

    tib_per_month: float = Field(..., ge=0.0)
    gib_per_month: float = Field(..., ge=0.0)
    monthly_payment: Amount
    required_lockup: Amount
    total_required: Amount
    is_deposit_sufficient: bool


LimitingFactor = Literal["rate", "lockup", "both"]


class MaxUploadableFileSize(BaseModel, frozen=True):
    """Largest file the current allowances accept, and which allowance binds."""

    max_size_bytes: float = Field(..., ge=0.0)
    max_size_tib: float = Field(..., ge=0.0)
    limiting_factor: LimitingFactor
    rate_limit_tib: float = Field(..., ge=0.0)
    lockup_limit_tib: float = Field(..., ge=0.0)


class MaxDurationForFileSize(BaseModel, frozen=True):
    """How many days the current allowances keep one file stored."""

    max_duration_days: float = Field(..., ge=0.0)
    limiting_factor: Literal["rate", "lockup", "none"]


# ─── Runway ───────────────────────────────────────────────────────────────────

RunwayState = Literal["unknown", "no-spend", "active"]


class RunwaySummary(BaseModel, frozen=True):
    """
    Time until the spendable part of the deposit is exhausted.

    ``no-spend`` means nothing is being charged; its runway is reported as
    zero rather than as an unbounded number. ``unknown`` means no snapshot
    was available.
    """

    state: RunwayState
    available_balance: Amount = 0
    rate_used: Amount = 0
    daily_burn: Amount = 0
    lockup_used: Amount = 0
    days: int = Field(default=0, ge=0)
    hours: int = Field(default=0, ge=0, lt=24)


class TopUpForDuration(BaseModel, frozen=True):
    """Deposit needed to keep current spend alive for a number of days."""

    top_up: Amount
    available_balance: Amount
    rate_used: Amount
    daily_burn: Amount
    lockup_used: Amount


class ExactDaysAdjustment(BaseModel, frozen=True):
    """Deposit change (negative for a withdrawal) that lands on an exact runway."""

    delta: SignedAmount
    target_available: Amount
    available_balance: Amount
    rate_used: Amount
    daily_burn: Amount
    lockup_used: Amount


class ExactDepositAdjustment(BaseModel, frozen=True):
    """Deposit change that lands on a target deposit, never below committed lockup."""

    delta: SignedAmount
    clamped_target: Amount
    lockup_used: Amount


class PieceRunwayAdjustment(BaseModel, frozen=True):
    """Deposit change that covers a new piece's lockup plus a runway target."""

    delta: SignedAmount
    target_deposit: Amount
    new_rate_used: Amount
    new_lockup_used: Amount
    daily_burn: Amount
    required: AllowancePair


# ─── Upload requirements ──────────────────────────────────────────────────────


class PieceUploadRequirements(BaseModel, frozen=True):
    """Floor-adjusted allowances and deposit a single piece upload needs."""

    required: AllowancePair
    total_deposit_needed: Amount
    insufficient_deposit: Amount
    can_upload: bool


class CapacityIssues(BaseModel, frozen=True):
    """Shortfalls found by an upload affordability check. Absent means none."""

    insufficient_deposit: Optional[Amount] = None
    insufficient_rate_allowance: Optional[Amount] = None
    insufficient_lockup_allowance: Optional[Amount] = None


class PaymentCapacityCheck(BaseModel, frozen=True):
    """Whether a planned write is affordable right now, and what is missing."""

    can_upload: bool
    storage_tib: float = Field(..., ge=0.0)
    required: AllowancePair
    issues: CapacityIssues = Field(default_factory=CapacityIssues)
    suggestions: tuple[str, ...] = ()


class PaymentValidationResult(BaseModel, frozen=True):
    """Outcome of the gas / token-presence preconditions."""

    is_valid: bool
    error_message: Optional[str] = None
    help_message: Optional[str] = None


# ─── Top-up ───────────────────────────────────────────────────────────────────

TopUpReasonCode = Literal["none", "piece-upload", "required-runway", "required-runway-plus-upload"]


class TopUpDetails(BaseModel, frozen=True):
    """Inputs a top-up calculation was based on, kept for explanation."""

    min_storage_days: float = Field(default=0.0, ge=0.0)
    piece_size_bytes: Optional[int] = Field(default=None, ge=0)
    price_per_tib_per_epoch: Optional[Amount] = None
    current_rate_used: Amount
    current_lockup_used: Amount
    current_deposited: Amount


class TopUpCalculation(BaseModel, frozen=True):
    """Required deposit and why it is required. Never a withdrawal."""

    required_top_up: Amount
    reason_code: TopUpReasonCode
    details: TopUpDetails


class TopUpResult(BaseModel, frozen=True):
    """Result of a balance-limited deposit."""

    success: bool
    deposited: SignedAmount
    transaction_ref: Optional[str] = None
    message: str
    warnings: tuple[str, ...] = ()


# ─── Funding plan ─────────────────────────────────────────────────────────────

FundingMode = Literal["exact", "minimum"]
FundingAction = Literal["deposit", "withdraw", "none"]
FundingTargetType = Literal["runway-days", "deposit"]
FundingReasonCode = Literal[
    "none",
    "piece-upload",
    "runway-insufficient",
    "runway-with-piece",
    "target-deposit",
    "withdrawal-excess",
]


class RunwayTarget(BaseModel, frozen=True):
    """Fund the account for a number of days at its current spend rate."""

    kind: Literal["runway-days"] = "runway-days"
    days: float = Field(..., ge=0.0)


class RunwayWithPieceTarget(BaseModel, frozen=True):
    """Fund a runway that already includes an upcoming piece upload."""

    kind: Literal["runway-with-piece"] = "runway-with-piece"
    days: float = Field(..., ge=0.0)
    piece_size_bytes: int = Field(..., ge=0)
    price_per_tib_per_epoch: Amount


class DepositTarget(BaseModel, frozen=True):
    """Bring the deposited balance to an exact amount."""

    kind: Literal["deposit"] = "deposit"
    amount: Amount


FundingTarget = Annotated[
    Union[RunwayTarget, RunwayWithPieceTarget, DepositTarget],
    Field(discriminator="kind"),
]
"""
Tagged union of funding requests. Pydantic picks the variant by ``kind``.
"""


class FundingInsights(BaseModel, frozen=True):
    """Spend rate, spendable balance, runway and depletion timing of one state."""

    spend_rate_per_epoch: Amount
    spend_rate_per_day: Amount
    deposited_balance: Amount
    available_deposited: Amount
    wallet_token_balance: Amount
    runway: RunwaySummary
    deposit_depletion_seconds: Optional[Amount] = None
    deposit_depletion_at: Optional[datetime] = None
    owner_depletion_seconds: Optional[Amount] = None
    owner_depletion_at: Optional[datetime] = None


class FundingPlan(BaseModel, frozen=True):
    """
    Signed deposit change plus before/after projections. Executing a plan
    never mutates it.
    """

    target_type: FundingTargetType
    target: FundingTarget
    target_runway_days: Optional[float] = None
    target_deposit: Optional[Amount] = None
    delta: SignedAmount
    action: FundingAction
    reason_code: FundingReasonCode
    mode: FundingMode
    piece_size_bytes: Optional[int] = None
    price_per_tib_per_epoch: Optional[Amount] = None
    projected_deposit: Amount
    projected_rate_used: Amount
    projected_lockup_used: Amount
    wallet_shortfall: Optional[Amount] = None
    current: FundingInsights
    projected: FundingInsights


class FundingPlanResult(BaseModel, frozen=True):
    """A plan together with the snapshot it was computed from."""

    plan: FundingPlan
    snapshot: AccountSnapshot
    validation: PaymentValidationResult


class FundingExecutionResult(BaseModel, frozen=True):
    """
    What actually happened when a plan was applied, reconciled against a
    snapshot fetched after the transaction.

    ``reconciled`` is False when the observed balance change differs from
    the requested one (typically a transaction that is still pending).
    """

    adjusted: bool
    delta: SignedAmount
    transaction_ref: Optional[str] = None
    new_deposited_amount: Amount
    new_runway_days: int = Field(..., ge=0)
    new_runway_hours: int = Field(..., ge=0)
    observed_delta: SignedAmount = 0
    reconciled: bool = True
    warnings: tuple[str, ...] = ()
    plan: FundingPlan
    updated_insights: FundingInsights
