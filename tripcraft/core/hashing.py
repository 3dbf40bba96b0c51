"""Stable string hashing used to seed deterministic fallbacks."""

from __future__ import annotations


def string_hash(value: str) -> int:
    """Return a signed 32-bit rolling hash (``h * 31 + unit``) of ``value``.

    The hash walks UTF-16 code units so that seeds stay identical to the ones the
    TripCraft web client produced for the same text.
    """

    hashed = 0
    data = value.encode("utf-16-le")
    for index in range(0, len(data), 2):
        unit = data[index] | (data[index + 1] << 8)
        hashed = ((hashed << 5) - hashed + unit) & 0xFFFFFFFF
    return hashed - 0x100000000 if hashed & 0x80000000 else hashed


__all__ = ["string_hash"]
