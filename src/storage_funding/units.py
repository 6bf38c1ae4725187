# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Binary storage units (B through PiB) kept as integer bytes.

A :class:`StorageUnit` stores a whole count of its unit plus an optional
byte remainder, so converting between units never rounds. Only
:func:`storage_unit_to_number` produces a ``float``, through safe scaling.
"""
from __future__ import annotations

import math
from typing import Literal, Optional

from pydantic import BaseModel, Field

from storage_funding.config import MAX_SAFE_INTEGER, BillingConfig, resolve_config
from storage_funding.errors import InvalidArgumentError, PrecisionLimitError
from storage_funding.scaling import scale_ratio, scaled_to_number

BinaryUnit = Literal["B", "KiB", "MiB", "GiB", "TiB", "PiB"]

SIZE_CONSTANTS: dict[str, int] = {
    "B": 1,
    "KiB": 1 << 10,
    "MiB": 1 << 20,
    "GiB": 1 << 30,
    "TiB": 1 << 40,
    "PiB": 1 << 50,
}

TIB = SIZE_CONSTANTS["TiB"]
GIB = SIZE_CONSTANTS["GiB"]

# Largest unit first.
UNITS_DESC: tuple[str, ...] = tuple(
    sorted(SIZE_CONSTANTS, key=lambda unit: SIZE_CONSTANTS[unit], reverse=True)
)


class StorageRemainder(BaseModel, frozen=True):
    """Bytes left over below one whole ``denom``."""

    bytes: int = Field(..., ge=0)
    denom: BinaryUnit


class StorageUnit(BaseModel, frozen=True):
    """A whole number of ``unit`` plus an optional byte remainder."""

    value: int
    unit: BinaryUnit
    remainder: Optional[StorageRemainder] = None


class StorageUnitNumber(BaseModel, frozen=True):
    """Display form of a :class:`StorageUnit`, e.g. ``1.5 GiB``."""

    value: float
    unit: BinaryUnit


def pad_size_to_pdp_leaves(raw_size_bytes: int, config: BillingConfig | None = None) -> int:
    """Round a piece size up to the next multiple of the billed leaf size."""
    if raw_size_bytes < 0:
        raise InvalidArgumentError(
            f"raw_size_bytes must be >= 0, got {raw_size_bytes}", argument="raw_size_bytes"
        )
    leaf = resolve_config(config).pdp_leaf_size
    return -(-raw_size_bytes // leaf) * leaf


def get_storage_unit_from_bytes(size_bytes: int) -> StorageUnit:
    """Express an integer byte count in the largest unit not exceeding it (whole part only)."""
    if size_bytes <= 0:
        return StorageUnit(value=0, unit="B")
    for unit in UNITS_DESC:
        factor = SIZE_CONSTANTS[unit]
        if size_bytes >= factor:
            return StorageUnit(value=size_bytes // factor, unit=unit)
    return StorageUnit(value=size_bytes, unit="B")


def get_storage_unit(size: float | int) -> StorageUnit:
    """
    Pick the best unit for ``size`` bytes and keep the remainder exactly.

    Byte-sized values have no sub-byte remainder and round half down, so
    1.5 B becomes 1 B.
    """
    if size <= 0:
        return StorageUnit(value=0, unit="B")
    whole_bytes = size if isinstance(size, int) else math.floor(size)
    storage_unit = get_storage_unit_from_bytes(whole_bytes)
    if storage_unit.unit == "B":
        return StorageUnit(value=math.ceil(size - 0.5), unit="B")

    remainder_bytes = whole_bytes % SIZE_CONSTANTS[storage_unit.unit]
    if remainder_bytes > 0:
        return StorageUnit(
            value=storage_unit.value,
            unit=storage_unit.unit,
            remainder=StorageRemainder(bytes=remainder_bytes, denom=storage_unit.unit),
        )
    return storage_unit


def make_storage_unit(size: float, unit: BinaryUnit) -> StorageUnit:
    """Build a :class:`StorageUnit` from a fractional value in a known unit."""
    if size <= 0:
        return StorageUnit(value=0, unit=unit)
    if unit == "B":
        return StorageUnit(value=math.ceil(size - 0.5), unit="B")

    whole = math.floor(size)
    remainder_bytes = round((size - whole) * SIZE_CONSTANTS[unit])
    if remainder_bytes > 0:
        return StorageUnit(
            value=whole,
            unit=unit,
            remainder=StorageRemainder(bytes=remainder_bytes, denom=unit),
        )
    return StorageUnit(value=whole, unit=unit)


def to_bytes(storage_unit: StorageUnit) -> int:
    """Total bytes represented by ``storage_unit``. Negative values clamp to 0."""
    if storage_unit.value < 0:
        return 0
    remainder = storage_unit.remainder.bytes if storage_unit.remainder else 0
    return storage_unit.value * SIZE_CONSTANTS[storage_unit.unit] + remainder


def convert(storage_unit: StorageUnit, target: BinaryUnit) -> StorageUnit:
    """Re-express ``storage_unit`` in ``target`` units without losing bytes."""
    whole, remainder_bytes = divmod(to_bytes(storage_unit), SIZE_CONSTANTS[target])
    if remainder_bytes == 0:
        return StorageUnit(value=whole, unit=target)
    return StorageUnit(
        value=whole,
        unit=target,
        remainder=StorageRemainder(bytes=remainder_bytes, denom=target),
    )


def storage_unit_to_number(storage_unit: StorageUnit) -> StorageUnitNumber:
    """
    Convert to a display number, moving to a larger unit when the whole part
    is beyond the safe-integer range.

    Raises:
        PrecisionLimitError: If even PiB cannot hold the value safely.
    """
    if storage_unit.value > MAX_SAFE_INTEGER:
        index = UNITS_DESC.index(storage_unit.unit)
        if index == 0:
            raise PrecisionLimitError(
                "StorageUnit value is too large to convert to a number safely",
                value=storage_unit.value,
            )
        return storage_unit_to_number(convert(storage_unit, UNITS_DESC[index - 1]))  # type: ignore[arg-type]

    if storage_unit.remainder is None:
        return StorageUnitNumber(value=float(storage_unit.value), unit=storage_unit.unit)

    denominator = SIZE_CONSTANTS[storage_unit.remainder.denom]
    scaled, scale = scale_ratio(storage_unit.remainder.bytes, denominator)
    fraction = scaled_to_number(scaled, scale)
    return StorageUnitNumber(value=storage_unit.value + fraction, unit=storage_unit.unit)
