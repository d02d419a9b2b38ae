# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Base64 text encoding for persisted salt and hash material.

Output is standard alphabet, padded and single-line. Decoding is strict: any
character outside the alphabet (whitespace included) or broken padding is a
``FormatError``.
"""

from __future__ import annotations

import base64
import binascii

from brokerauth.errors import FormatError


def encode(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def decode(text: str) -> bytes:
    if text is None:
        raise FormatError("Cannot decode a missing base64 value")
    try:
        raw = text.encode("ascii")
    except UnicodeEncodeError:
        raise FormatError("Base64 value contains non-ASCII characters") from None
    if len(raw) % 4:
        raise FormatError("Base64 value length is not a multiple of 4")
    try:
        out = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FormatError(f"Invalid base64 value: {exc}") from None
    # non-empty input must carry at least one byte
    if raw and not out:
        raise FormatError("Base64 value decodes to zero bytes")
    return out
