# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy for credential hashing and verification.

Code ranges:
  1xxx: configuration
  2xxx: cryptography
  3xxx: persisted format
"""

from __future__ import annotations


class AuthCoreError(Exception):
    """Base error for the credential core."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class ConfigError(AuthCoreError):
    def __init__(self, message: str) -> None:
        super().__init__(1001, message)


class CryptoError(AuthCoreError):
    def __init__(self, message: str) -> None:
        super().__init__(2001, message)


class FormatError(AuthCoreError):
    def __init__(self, message: str) -> None:
        super().__init__(3001, message)
