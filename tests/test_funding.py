# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for funding insights, plans and plan execution."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

import pytest

from conftest import (
    ADDRESS,
    DAILY_BURN,
    PRICE_PER_TIB_PER_EPOCH,
    RATE_USED,
    SnapshotFactory,
    build_snapshot,
)
from storage_funding.allowances import with_buffer
from storage_funding.client import InMemoryAccountClient
from storage_funding.errors import FundingTargetError, InvalidArgumentError
from storage_funding.funding import (
    calculate_funding_plan,
    execute_funding_plan,
    get_funding_insights,
    plan_for_target,
    plan_funding,
    resolve_funding_target,
)
from storage_funding.types import (
    AllowancePair,
    DepositTarget,
    RunwayTarget,
    RunwayWithPieceTarget,
)

HOURLY_BURN = DAILY_BURN // 24


# ---------------------------------------------------------------------------
# TestInsights
# ---------------------------------------------------------------------------


class TestInsights:
    def test_depletion_timing(self, make_snapshot: SnapshotFactory, fixed_now: datetime) -> None:
        snapshot = make_snapshot(deposited=2 * DAILY_BURN, rate_used=RATE_USED, wallet=DAILY_BURN)
        insights = get_funding_insights(snapshot, now=fixed_now)
        assert insights.spend_rate_per_epoch == RATE_USED
        assert insights.spend_rate_per_day == DAILY_BURN
        assert insights.available_deposited == 2 * DAILY_BURN
        assert insights.deposit_depletion_seconds == 2 * 86_400
        assert insights.deposit_depletion_at == fixed_now + timedelta(days=2)
        assert insights.owner_depletion_seconds == 3 * 86_400
        assert insights.owner_depletion_at == fixed_now + timedelta(days=3)

    def test_no_spend_has_no_depletion(self, make_snapshot: SnapshotFactory) -> None:
        insights = get_funding_insights(make_snapshot(deposited=1_000))
        assert insights.runway.state == "no-spend"
        assert insights.deposit_depletion_seconds is None
        assert insights.owner_depletion_at is None

    def test_overrides_do_not_touch_snapshot(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(deposited=DAILY_BURN, rate_used=RATE_USED)
        insights = get_funding_insights(snapshot, deposited_balance=5 * DAILY_BURN)
        assert insights.runway.days == 5
        assert snapshot.deposited_balance == DAILY_BURN

    def test_far_future_depletion_has_no_timestamp(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(deposited=10**40, rate_used=1)
        insights = get_funding_insights(snapshot)
        assert insights.deposit_depletion_seconds is not None
        assert insights.deposit_depletion_at is None


# ---------------------------------------------------------------------------
# TestFundingTargets
# ---------------------------------------------------------------------------


class TestFundingTargets:
    def test_both_targets_raise(self, make_snapshot: SnapshotFactory) -> None:
        with pytest.raises(FundingTargetError, match="not both"):
            calculate_funding_plan(make_snapshot(), target_runway_days=30, target_deposit=10)

    def test_no_target_raises(self, make_snapshot: SnapshotFactory) -> None:
        with pytest.raises(FundingTargetError, match="target is required"):
            calculate_funding_plan(make_snapshot())

    def test_target_error_is_an_invalid_argument(self) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            resolve_funding_target()
        assert exc_info.value.code == "INVALID_FUNDING_TARGET"

    def test_piece_without_price_raises(self) -> None:
        with pytest.raises(FundingTargetError, match="price_per_tib_per_epoch is required"):
            resolve_funding_target(target_runway_days=30, piece_size_bytes=1_024)

    def test_piece_with_deposit_target_raises(self) -> None:
        with pytest.raises(FundingTargetError, match="runway target"):
            resolve_funding_target(target_deposit=5, piece_size_bytes=1, price_per_tib_per_epoch=1)

    def test_negative_days_raise(self) -> None:
        with pytest.raises(FundingTargetError, match="target_runway_days"):
            resolve_funding_target(target_runway_days=-1)

    def test_variants(self) -> None:
        assert resolve_funding_target(target_runway_days=7) == RunwayTarget(days=7)
        assert resolve_funding_target(target_deposit=9) == DepositTarget(amount=9)
        assert resolve_funding_target(
            target_runway_days=7, piece_size_bytes=1, price_per_tib_per_epoch=2
        ) == RunwayWithPieceTarget(days=7, piece_size_bytes=1, price_per_tib_per_epoch=2)


# ---------------------------------------------------------------------------
# TestRunwayPlans
# ---------------------------------------------------------------------------


class TestRunwayPlans:
    def test_under_funded_account_deposits(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(rate_used=RATE_USED)
        plan = calculate_funding_plan(snapshot, target_runway_days=30)
        assert plan.target_type == "runway-days"
        assert plan.action == "deposit"
        assert plan.reason_code == "runway-insufficient"
        assert plan.delta == 30 * DAILY_BURN + HOURLY_BURN
        assert plan.target_deposit == plan.delta
        assert plan.projected_deposit == plan.delta
        assert plan.wallet_shortfall is None
        assert (plan.projected.runway.days, plan.projected.runway.hours) == (30, 1)
        assert plan.current.runway.days == 0

    def test_over_funded_minimum_mode_does_nothing(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(deposited=10 * DAILY_BURN, rate_used=RATE_USED)
        plan = calculate_funding_plan(snapshot, target_runway_days=3, mode="minimum")
        assert plan.action == "none"
        assert plan.delta == 0
        assert plan.reason_code == "none"
        assert plan.projected_deposit == 10 * DAILY_BURN

    def test_over_funded_exact_mode_withdraws(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(deposited=10 * DAILY_BURN, rate_used=RATE_USED)
        plan = calculate_funding_plan(snapshot, target_runway_days=3)
        assert plan.action == "withdraw"
        assert plan.reason_code == "withdrawal-excess"
        assert plan.delta == 3 * DAILY_BURN + HOURLY_BURN - 10 * DAILY_BURN
        assert plan.projected.runway.days == 3

    def test_withdraw_can_be_disallowed(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(deposited=10 * DAILY_BURN, rate_used=RATE_USED)
        plan = calculate_funding_plan(snapshot, target_runway_days=3, allow_withdraw=False)
        assert plan.action == "none"
        assert plan.mode == "exact"

    def test_wallet_shortfall_is_reported(
        self, make_snapshot: SnapshotFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        snapshot = make_snapshot(rate_used=RATE_USED, wallet=10)
        with caplog.at_level(logging.WARNING, logger="storage_funding.funding"):
            plan = calculate_funding_plan(snapshot, target_runway_days=30)
        assert plan.action == "deposit"
        assert plan.wallet_shortfall == plan.delta - 10
        assert any(record.getMessage() == "funding_wallet_shortfall" for record in caplog.records)

    def test_target_variant_matches_flat_arguments(
        self, make_snapshot: SnapshotFactory, fixed_now: datetime
    ) -> None:
        snapshot = make_snapshot(deposited=DAILY_BURN, rate_used=RATE_USED)
        flat = calculate_funding_plan(snapshot, target_runway_days=12, now=fixed_now)
        tagged = plan_for_target(snapshot, RunwayTarget(days=12), now=fixed_now)
        assert flat == tagged


# ---------------------------------------------------------------------------
# TestPiecePlans
# ---------------------------------------------------------------------------


class TestPiecePlans:
    def test_runway_with_piece(self, make_snapshot: SnapshotFactory, floor: AllowancePair) -> None:
        plan = calculate_funding_plan(
            make_snapshot(),
            target_runway_days=30,
            piece_size_bytes=1_024,
            price_per_tib_per_epoch=PRICE_PER_TIB_PER_EPOCH,
        )
        burn = floor.rate_allowance * 2_880
        assert plan.reason_code == "runway-with-piece"
        assert plan.projected_rate_used == floor.rate_allowance
        assert plan.projected_lockup_used == floor.lockup_allowance
        assert plan.delta == with_buffer(floor.lockup_allowance) + 30 * burn + burn // 24
        assert plan.piece_size_bytes == 1_024
        assert plan.target.kind == "runway-with-piece"

    def test_piece_upload_only(self, make_snapshot: SnapshotFactory, floor: AllowancePair) -> None:
        plan = calculate_funding_plan(
            make_snapshot(),
            target_runway_days=0,
            piece_size_bytes=1_024,
            price_per_tib_per_epoch=PRICE_PER_TIB_PER_EPOCH,
        )
        assert plan.reason_code == "piece-upload"
        assert plan.action == "deposit"
        burn = floor.rate_allowance * 2_880
        assert plan.delta == with_buffer(floor.lockup_allowance) + burn // 24

    def test_funded_piece_upload_in_minimum_mode(self, make_snapshot: SnapshotFactory) -> None:
        plan = calculate_funding_plan(
            make_snapshot(deposited=10**20),
            target_runway_days=0,
            piece_size_bytes=1_024,
            price_per_tib_per_epoch=PRICE_PER_TIB_PER_EPOCH,
            mode="minimum",
        )
        assert plan.action == "none"
        assert plan.reason_code == "none"


# ---------------------------------------------------------------------------
# TestDepositPlans
# ---------------------------------------------------------------------------


class TestDepositPlans:
    def test_reach_target_deposit(self, make_snapshot: SnapshotFactory) -> None:
        plan = calculate_funding_plan(make_snapshot(deposited=100), target_deposit=1_000)
        assert plan.target_type == "deposit"
        assert plan.reason_code == "target-deposit"
        assert plan.delta == 900
        assert plan.projected_deposit == 1_000

    def test_target_is_raised_to_lockup(self, make_snapshot: SnapshotFactory) -> None:
        plan = calculate_funding_plan(
            make_snapshot(deposited=1_000, lockup_used=800), target_deposit=0
        )
        assert plan.target_deposit == 800
        assert plan.delta == -200
        assert plan.reason_code == "withdrawal-excess"


# ---------------------------------------------------------------------------
# TestPlanFunding
# ---------------------------------------------------------------------------


class TestPlanFunding:
    def test_fetches_price_for_piece(self, client: InMemoryAccountClient) -> None:
        result = plan_funding(client, ADDRESS, target_runway_days=30, piece_size_bytes=1_024)
        assert result.plan.price_per_tib_per_epoch == PRICE_PER_TIB_PER_EPOCH
        assert result.snapshot.address == ADDRESS
        assert result.validation.is_valid is True

    def test_failed_preconditions_still_plan(self) -> None:
        client = InMemoryAccountClient(snapshots=[build_snapshot(rate_used=RATE_USED, gas=0)])
        result = plan_funding(client, ADDRESS, target_runway_days=30)
        assert result.validation.is_valid is False
        assert result.plan.action == "deposit"

    def test_bad_target_is_rejected_before_any_fetch(self) -> None:
        client = InMemoryAccountClient()
        with pytest.raises(FundingTargetError):
            plan_funding(client, ADDRESS, target_runway_days=1, target_deposit=1)

    def test_given_price_is_used_as_is(self, client: InMemoryAccountClient) -> None:
        result = plan_funding(
            client,
            ADDRESS,
            target_runway_days=30,
            piece_size_bytes=1_024,
            price_per_tib_per_epoch=PRICE_PER_TIB_PER_EPOCH * 2,
        )
        assert result.plan.price_per_tib_per_epoch == PRICE_PER_TIB_PER_EPOCH * 2

    def test_piece_with_deposit_target_is_rejected_before_any_fetch(self) -> None:
        with pytest.raises(FundingTargetError, match="runway target"):
            plan_funding(InMemoryAccountClient(), ADDRESS, target_deposit=1, piece_size_bytes=1_024)

    def test_negative_runway_is_rejected_before_any_fetch(self) -> None:
        with pytest.raises(FundingTargetError, match="target_runway_days"):
            plan_funding(InMemoryAccountClient(), ADDRESS, target_runway_days=-1, piece_size_bytes=1_024)

    def test_unknown_account_propagates(self) -> None:
        with pytest.raises(KeyError):
            plan_funding(InMemoryAccountClient(), ADDRESS, target_deposit=1)


# ---------------------------------------------------------------------------
# TestExecuteFundingPlan
# ---------------------------------------------------------------------------


class TestExecuteFundingPlan:
    def test_no_action_submits_nothing(self, client: InMemoryAccountClient) -> None:
        plan = plan_funding(client, ADDRESS, target_runway_days=1, mode="minimum").plan
        result = execute_funding_plan(client, ADDRESS, plan)
        assert result.adjusted is False
        assert result.delta == 0
        assert result.new_deposited_amount == 2 * DAILY_BURN
        assert client.submitted == []

    def test_deposit_is_reconciled(self, client: InMemoryAccountClient) -> None:
        plan = plan_funding(client, ADDRESS, target_runway_days=30).plan
        result = execute_funding_plan(client, ADDRESS, plan)
        assert result.adjusted is True
        assert result.reconciled is True
        assert result.observed_delta == plan.delta
        assert result.new_deposited_amount == 30 * DAILY_BURN + HOURLY_BURN
        assert (result.new_runway_days, result.new_runway_hours) == (30, 1)
        assert client.submitted == [("deposit", ADDRESS, plan.delta)]
        assert result.plan == plan

    def test_withdrawal(self, client: InMemoryAccountClient) -> None:
        plan = plan_funding(client, ADDRESS, target_runway_days=1).plan
        assert plan.action == "withdraw"
        result = execute_funding_plan(client, ADDRESS, plan)
        assert result.reconciled is True
        assert result.new_deposited_amount == DAILY_BURN + HOURLY_BURN
        assert client.submitted == [("withdraw", ADDRESS, -plan.delta)]

    def test_pending_transaction_is_reported(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        client = InMemoryAccountClient(
            snapshots=[build_snapshot(rate_used=RATE_USED)], settle_immediately=False
        )
        plan = plan_funding(client, ADDRESS, target_runway_days=30).plan
        with caplog.at_level(logging.WARNING, logger="storage_funding.funding"):
            result = execute_funding_plan(client, ADDRESS, plan)
        assert result.adjusted is True
        assert result.reconciled is False
        assert result.observed_delta == 0
        assert result.new_deposited_amount == 0
        assert len(result.warnings) == 1
        assert any(record.getMessage() == "funding_unreconciled" for record in caplog.records)

        client.settle()
        assert client.fetch_account_snapshot(ADDRESS).deposited_balance == plan.delta
