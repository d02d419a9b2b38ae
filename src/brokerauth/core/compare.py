# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional, Sequence


def equals(a: Optional[Sequence[int]], b: Optional[Sequence[int]]) -> bool:
    """Timing-safe equality for fixed-length buffers.

    Every byte pair is visited regardless of where (or whether) the buffers
    differ. A missing buffer or a length mismatch fails up front, before any
    secret-dependent work.
    """
    if a is None or b is None:
        return False
    if len(a) != len(b):
        return False

    acc = 0
    for x, y in zip(a, b):
        acc |= x ^ y
    return acc == 0
