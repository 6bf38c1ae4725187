# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

from storage_funding.client.interface import AccountClient
from storage_funding.errors import InvalidArgumentError
from storage_funding.types import AccountSnapshot


class InMemoryAccountClient(AccountClient):
    """
    In-process account ledger for tests and examples.

    Deposits and withdrawals move tokens between the wallet and the deposit
    of a stored snapshot. With ``settle_immediately=False`` transactions are
    recorded but not applied until :meth:`settle` is called, which models a
    transaction that is still pending when the balance is re-read.
    """

    def __init__(
        self,
        snapshots: list[AccountSnapshot] | None = None,
        price_per_tib_per_epoch: int = 0,
        settle_immediately: bool = True,
    ) -> None:
        self._snapshots: dict[str, AccountSnapshot] = {}
        self._price = price_per_tib_per_epoch
        self._settle_immediately = settle_immediately
        self._pending: list[tuple[str, int]] = []
        self._transaction_count = 0
        self.submitted: list[tuple[str, str, int]] = []
        for snapshot in snapshots or []:
            self.save_snapshot(snapshot)

    # ─── Test helpers ─────────────────────────────────────────────────────────

    def save_snapshot(self, snapshot: AccountSnapshot) -> None:
        self._snapshots[snapshot.address] = snapshot

    def set_price(self, price_per_tib_per_epoch: int) -> None:
        self._price = price_per_tib_per_epoch

    def settle(self) -> None:
        """Apply every pending balance change."""
        pending, self._pending = self._pending, []
        for address, delta in pending:
            self._apply(address, delta)

    # ─── Reads ────────────────────────────────────────────────────────────────

    def fetch_account_snapshot(self, address: str) -> AccountSnapshot:
        return self._get(address)

    def fetch_current_price(self) -> int:
        return self._price

    # ─── Mutations ────────────────────────────────────────────────────────────

    def submit_deposit(self, address: str, amount: int) -> str:
        snapshot = self._get(address)
        if amount <= 0:
            raise InvalidArgumentError("deposit amount must be positive", argument="amount")
        if amount > snapshot.wallet_token_balance:
            raise RuntimeError("transfer amount exceeds wallet balance")
        return self._record("deposit", address, amount)

    def submit_withdraw(self, address: str, amount: int) -> str:
        snapshot = self._get(address)
        if amount <= 0:
            raise InvalidArgumentError("withdraw amount must be positive", argument="amount")
        if amount > snapshot.deposited_balance - snapshot.allowance_state.lockup_used:
            raise RuntimeError("withdraw amount exceeds available funds")
        return self._record("withdraw", address, -amount)

    def set_allowances(
        self,
        address: str,
        rate_allowance: int,
        lockup_allowance: int,
        max_lockup_period: int,
    ) -> str:
        snapshot = self._get(address)
        data = snapshot.model_dump()
        data["allowance_state"].update(
            rate_allowance=rate_allowance,
            lockup_allowance=lockup_allowance,
            max_lockup_period=max_lockup_period,
        )
        self.save_snapshot(AccountSnapshot.model_validate(data))
        return self._next_ref()

    # ─── Internals ────────────────────────────────────────────────────────────

    def _get(self, address: str) -> AccountSnapshot:
        snapshot = self._snapshots.get(address)
        if snapshot is None:
            raise KeyError(f"No account snapshot for address {address!r}")
        return snapshot

    def _record(self, kind: str, address: str, delta: int) -> str:
        self.submitted.append((kind, address, abs(delta)))
        if self._settle_immediately:
            self._apply(address, delta)
        else:
            self._pending.append((address, delta))
        return self._next_ref()

    def _apply(self, address: str, delta: int) -> None:
        snapshot = self._get(address)
        data = snapshot.model_dump()
        data["deposited_balance"] = snapshot.deposited_balance + delta
        data["wallet_token_balance"] = snapshot.wallet_token_balance - delta
        self.save_snapshot(AccountSnapshot.model_validate(data))

    def _next_ref(self) -> str:
        self._transaction_count += 1
        return f"0x{self._transaction_count:064x}"
