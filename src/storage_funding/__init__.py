# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
storage-funding: billing and funding calculations for metered storage.

Quick start::

    from storage_funding import AccountSnapshot, calculate_funding_plan, format_funding_reason

    snapshot = AccountSnapshot.model_validate(payload)  # amounts as decimal strings
    plan = calculate_funding_plan(snapshot, target_runway_days=30, mode="minimum")
    print(plan.action, plan.delta, format_funding_reason(plan.reason_code, plan))
"""

from storage_funding.allowances import (
    calculate_actual_capacity,
    calculate_deposit_capacity,
    calculate_required_allowances,
    calculate_storage_allowances,
    calculate_storage_from_token_amount,
    get_storage_scale,
    with_buffer,
    without_buffer,
)
from storage_funding.capacity import (
    calculate_capacity_for_duration,
    calculate_max_duration_for_file_size,
    calculate_max_uploadable_file_size,
)
from storage_funding.client import AccountClient, InMemoryAccountClient
from storage_funding.config import (
    DEFAULT_CONFIG,
    MAX_SAFE_INTEGER,
    ONE_TOKEN,
    TOKEN_DECIMALS,
    BillingConfig,
    EpochConfig,
    PricingConfig,
)
from storage_funding.errors import (
    FundingTargetError,
    InvalidArgumentError,
    PrecisionLimitError,
    StorageFundingError,
)
from storage_funding.floor_pricing import apply_floor_pricing, get_floor_allowances
from storage_funding.formatting import (
    format_funding_reason,
    format_runway,
    format_storage_capacity,
    format_storage_size,
    format_token_amount,
    format_top_up_reason,
    parse_token_amount,
)
from storage_funding.funding import (
    calculate_funding_plan,
    execute_funding_plan,
    get_funding_insights,
    plan_for_target,
    plan_funding,
    resolve_funding_target,
)
from storage_funding.requirements import (
    calculate_piece_allowances,
    calculate_piece_upload_requirements,
    compute_adjustment_for_exact_days_with_piece,
    validate_payment_capacity,
    validate_payment_requirements,
)
from storage_funding.runway import (
    calculate_storage_runway,
    compute_adjustment_for_exact_days,
    compute_adjustment_for_exact_deposit,
    compute_top_up_for_duration,
)
from storage_funding.scaling import (
    ScaledRatio,
    div_round,
    ratio,
    scale_ratio,
    scaled_to_number,
    try_scaled_to_number,
)
from storage_funding.top_up import calculate_required_top_up, execute_top_up
from storage_funding.types import (
    AccountSnapshot,
    AllowancePair,
    AllowanceState,
    DepositTarget,
    FundingExecutionResult,
    FundingInsights,
    FundingPlan,
    FundingPlanResult,
    FundingTarget,
    PaymentCapacityCheck,
    PieceUploadRequirements,
    RunwaySummary,
    RunwayTarget,
    RunwayWithPieceTarget,
    TopUpCalculation,
    TopUpResult,
)
from storage_funding.units import StorageUnit, get_storage_unit, pad_size_to_pdp_leaves

__all__ = [
    # Configuration
    "BillingConfig",
    "EpochConfig",
    "PricingConfig",
    "DEFAULT_CONFIG",
    "MAX_SAFE_INTEGER",
    "ONE_TOKEN",
    "TOKEN_DECIMALS",
    # Errors
    "StorageFundingError",
    "InvalidArgumentError",
    "FundingTargetError",
    "PrecisionLimitError",
    # Types
    "AccountSnapshot",
    "AllowanceState",
    "AllowancePair",
    "RunwaySummary",
    "PieceUploadRequirements",
    "PaymentCapacityCheck",
    "TopUpCalculation",
    "TopUpResult",
    "FundingTarget",
    "RunwayTarget",
    "RunwayWithPieceTarget",
    "DepositTarget",
    "FundingInsights",
    "FundingPlan",
    "FundingPlanResult",
    "FundingExecutionResult",
    "StorageUnit",
    # Safe scaling
    "ScaledRatio",
    "div_round",
    "ratio",
    "scale_ratio",
    "scaled_to_number",
    "try_scaled_to_number",
    # Allowances and capacity
    "calculate_storage_allowances",
    "calculate_actual_capacity",
    "calculate_storage_from_token_amount",
    "calculate_required_allowances",
    "calculate_deposit_capacity",
    "get_storage_scale",
    "with_buffer",
    "without_buffer",
    "get_floor_allowances",
    "apply_floor_pricing",
    "calculate_capacity_for_duration",
    "calculate_max_uploadable_file_size",
    "calculate_max_duration_for_file_size",
    # Runway and top-up
    "calculate_storage_runway",
    "compute_top_up_for_duration",
    "compute_adjustment_for_exact_days",
    "compute_adjustment_for_exact_deposit",
    "calculate_piece_allowances",
    "calculate_piece_upload_requirements",
    "compute_adjustment_for_exact_days_with_piece",
    "validate_payment_capacity",
    "validate_payment_requirements",
    "calculate_required_top_up",
    "execute_top_up",
    # Funding plans
    "get_funding_insights",
    "resolve_funding_target",
    "plan_for_target",
    "calculate_funding_plan",
    "plan_funding",
    "execute_funding_plan",
    # Client
    "AccountClient",
    "InMemoryAccountClient",
    # Formatting
    "format_token_amount",
    "parse_token_amount",
    "format_runway",
    "format_top_up_reason",
    "format_funding_reason",
    "format_storage_size",
    "format_storage_capacity",
    "get_storage_unit",
    "pad_size_to_pdp_leaves",
]
