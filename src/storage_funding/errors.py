# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations


class StorageFundingError(Exception):
    """Base class for all storage-funding errors."""

    def __init__(self, message: str, code: str = "STORAGE_FUNDING_ERROR") -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidArgumentError(StorageFundingError, ValueError):
    """
    Raised when a calculation receives an argument it cannot accept.

    Negative amounts, non-positive denominators or scales and negative
    durations all land here. Inputs are never silently clamped.

    Attributes:
        argument: Name of the offending argument, when known.
    """

    def __init__(self, message: str, argument: str | None = None) -> None:
        super().__init__(message, code="INVALID_ARGUMENT")
        self.argument = argument


class FundingTargetError(InvalidArgumentError):
    """Raised when a funding request names both targets, neither, or an incomplete piece."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.code = "INVALID_FUNDING_TARGET"


class PrecisionLimitError(StorageFundingError, ArithmeticError):
    """
    Raised when a ratio cannot be converted to a float without leaving the
    safe-integer range.

    Callers that prefer a best-effort value use the ``try_*`` / ``*_safe``
    variants, which return ``None`` instead.

    Attributes:
        value: The integer that exceeded the safe range.
    """

    def __init__(self, message: str, value: int | None = None) -> None:
        super().__init__(message, code="PRECISION_LIMIT")
        self.value = value
