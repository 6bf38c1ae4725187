# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from __future__ import annotations

from abc import ABC, abstractmethod

from storage_funding.types import AccountSnapshot


class AccountClient(ABC):
    """
    Chain-side collaborator the funding executors talk to.

    Implementations sign and submit transactions and read on-chain state.
    Failures (network errors, reverted transactions) are raised as-is; the
    engine never retries. The bundled InMemoryAccountClient is for tests and
    local experiments only.
    """

    # ─── Reads ────────────────────────────────────────────────────────────────

    @abstractmethod
    def fetch_account_snapshot(self, address: str) -> AccountSnapshot:
        ...

    @abstractmethod
    def fetch_current_price(self) -> int:
        """Current storage price per TiB per epoch."""
        ...

    # ─── Mutations ────────────────────────────────────────────────────────────

    @abstractmethod
    def submit_deposit(self, address: str, amount: int) -> str:
        """Move ``amount`` from the wallet into the deposit; returns a transaction ref."""
        ...

    @abstractmethod
    def submit_withdraw(self, address: str, amount: int) -> str:
        """Move ``amount`` from the deposit back to the wallet; returns a transaction ref."""
        ...

    @abstractmethod
    def set_allowances(
        self,
        address: str,
        rate_allowance: int,
        lockup_allowance: int,
        max_lockup_period: int,
    ) -> str:
        ...
