# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
plan_funding.py

Walks one account through the funding loop against an in-memory client:
  1. Check whether a 5 GiB upload is affordable.
  2. Plan a 30-day runway that includes the upload.
  3. Execute the plan and reconcile against the refreshed balance.

Run with:  python examples/plan_funding.py
(from the repository root with storage-funding installed)
"""

from storage_funding import (
    ONE_TOKEN,
    AccountSnapshot,
    AllowanceState,
    InMemoryAccountClient,
    execute_funding_plan,
    format_funding_reason,
    format_runway,
    format_token_amount,
    plan_funding,
    validate_payment_capacity,
)
from storage_funding.units import GIB

ADDRESS = "0x00000000000000000000000000000000000000a1"
PRICE_PER_TIB_PER_EPOCH = (5 * ONE_TOKEN // 2) // 86_400  # 2.5 tokens per TiB per month
UPLOAD_BYTES = 5 * GIB

# ─── Setup ────────────────────────────────────────────────────────────────────

snapshot = AccountSnapshot(
    network="calibration",
    address=ADDRESS,
    native_gas_balance=ONE_TOKEN,
    wallet_token_balance=50 * ONE_TOKEN,
    deposited_balance=ONE_TOKEN // 10,
    allowance_state=AllowanceState(rate_allowance=10**18, lockup_allowance=10**22),
)
client = InMemoryAccountClient(snapshots=[snapshot], price_per_tib_per_epoch=PRICE_PER_TIB_PER_EPOCH)

# ─── Affordability ────────────────────────────────────────────────────────────

check = validate_payment_capacity(snapshot, UPLOAD_BYTES, PRICE_PER_TIB_PER_EPOCH)
print(f"Upload of {check.storage_tib:.4f} TiB affordable now: {check.can_upload}")
for suggestion in check.suggestions:
    print(f"  - {suggestion}")

# ─── Plan ─────────────────────────────────────────────────────────────────────

result = plan_funding(client, ADDRESS, target_runway_days=30, piece_size_bytes=UPLOAD_BYTES)
plan = result.plan
if not result.validation.is_valid:
    print(f"Preconditions failed: {result.validation.error_message} {result.validation.help_message}")

print("\n── Funding plan ──────────────────────────────────────")
print(f"  Reason     : {format_funding_reason(plan.reason_code, plan)}")
print(f"  Action     : {plan.action}")
print(f"  Delta      : {format_token_amount(plan.delta)}")
print(f"  Runway now : {format_runway(plan.current.runway)}")
print(f"  Runway then: {format_runway(plan.projected.runway)}")
if plan.wallet_shortfall:
    print(f"  Shortfall  : {format_token_amount(plan.wallet_shortfall)}")
print("──────────────────────────────────────────────────────")

# ─── Execute ──────────────────────────────────────────────────────────────────

execution = execute_funding_plan(client, ADDRESS, plan)
print(f"\nAdjusted: {execution.adjusted}  reconciled: {execution.reconciled}")
print(f"New deposit: {format_token_amount(execution.new_deposited_amount)}")
print(f"New runway : {execution.new_runway_days} days, {execution.new_runway_hours} hours")
