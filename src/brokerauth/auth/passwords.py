# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import functools
import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from brokerauth.config import DIGEST_NAME, HASH_LENGTH, SALT_LENGTH, default_iterations
from brokerauth.core import codec
from brokerauth.errors import ConfigError, CryptoError, FormatError

logger = logging.getLogger(__name__)

# derive(password, salt, iterations, length) -> bytes
Derive = Callable[[bytes, bytes, int, int], bytes]
DigestProvider = Callable[[str], Derive]
RandomSource = Callable[[int], bytes]


@dataclass(frozen=True)
class CredentialRecord:
    salt: bytes
    iterations: int
    hash: bytes
    valid: bool

    def __post_init__(self) -> None:
        if len(self.salt) != SALT_LENGTH:
            raise FormatError(f"Salt must be {SALT_LENGTH} bytes, got {len(self.salt)}")
        if len(self.hash) != HASH_LENGTH:
            raise FormatError(f"Password hash must be {HASH_LENGTH} bytes, got {len(self.hash)}")

    @classmethod
    def empty(cls) -> "CredentialRecord":
        """A record with no password configured."""
        return cls(salt=bytes(SALT_LENGTH), iterations=1, hash=bytes(HASH_LENGTH), valid=False)


def hashlib_provider(name: str) -> Derive:
    """Resolve ``name`` to a PBKDF2-HMAC derivation backed by hashlib."""
    try:
        hashlib.new(name)
    except (ValueError, TypeError):
        raise CryptoError(f"Digest '{name}' is not available") from None

    def _derive(password: bytes, salt: bytes, iterations: int, length: int) -> bytes:
        return hashlib.pbkdf2_hmac(name, password, salt, iterations, dklen=length)

    return _derive


class PasswordHasher:
    """PBKDF2-HMAC-SHA512 password hashing.

    The digest provider and random source are injected so tests can pin the
    salt and replace the derivation.
    """

    def __init__(
        self,
        *,
        digest_provider: DigestProvider = hashlib_provider,
        random_source: RandomSource = secrets.token_bytes,
        iterations: Optional[int] = None,
        digest_name: str = DIGEST_NAME,
    ) -> None:
        self._digest_provider = digest_provider
        self._random_source = random_source
        self._iterations = iterations
        self._digest_name = digest_name

    @functools.cached_property
    def _derive(self) -> Derive:
        try:
            return self._digest_provider(self._digest_name)
        except Exception as exc:
            logger.error("Digest %s cannot be resolved; check the crypto backend", self._digest_name)
            if isinstance(exc, CryptoError):
                raise
            raise CryptoError(f"Digest '{self._digest_name}' is not available: {exc}") from exc

    def _new_salt(self) -> bytes:
        try:
            salt = self._random_source(SALT_LENGTH)
        except Exception as exc:
            raise CryptoError(f"Secure random source failed: {exc}") from exc
        if salt is None or len(salt) != SALT_LENGTH:
            raise CryptoError("Secure random source returned a short read")
        return bytes(salt)

    def hash(
        self, password: str, record: CredentialRecord, is_new_password: bool
    ) -> Tuple[bytes, CredentialRecord]:
        """Derive the hash of ``password``.

        For a new password a fresh salt is drawn and the configured iteration
        count applied; the returned record carries them together with the new
        hash. Otherwise the record's salt and iterations are reused and the
        record is returned as is.
        """
        if is_new_password:
            salt = self._new_salt()
            iterations = self._iterations if self._iterations is not None else default_iterations()
        else:
            salt = record.salt
            iterations = record.iterations

        if not isinstance(iterations, int) or iterations < 1:
            raise ConfigError(f"Iteration count must be a positive integer, got {iterations!r}")

        derive = self._derive
        try:
            out = derive(password.encode("utf-8"), salt, iterations, HASH_LENGTH)
        except Exception as exc:
            raise CryptoError(f"Password derivation failed: {exc}") from exc
        if out is None or len(out) != HASH_LENGTH:
            raise CryptoError(f"Password derivation produced {len(out or b'')} bytes, expected {HASH_LENGTH}")
        out = bytes(out)

        if is_new_password:
            record = CredentialRecord(salt=salt, iterations=iterations, hash=out, valid=True)
        return out, record


_HASHER = PasswordHasher()


def hash_password(password: str, record: CredentialRecord, is_new_password: bool) -> Tuple[bytes, CredentialRecord]:
    return _HASHER.hash(password, record, is_new_password)


def new_credential(password: str, *, hasher: Optional[PasswordHasher] = None) -> CredentialRecord:
    if not password:
        raise ConfigError("Empty password")
    _, record = (hasher or _HASHER).hash(password, CredentialRecord.empty(), True)
    return record


# --- Persisted representation (base64 text fields) ---

def credential_to_dict(record: CredentialRecord) -> Dict[str, Any]:
    if not record.valid:
        return {}
    return {
        "password": codec.encode(record.hash),
        "salt": codec.encode(record.salt),
        "iterations": record.iterations,
    }


def credential_from_dict(data: Mapping[str, Any]) -> CredentialRecord:
    pw = data.get("password")
    salt = data.get("salt")
    if not pw or not salt:
        return CredentialRecord.empty()
    iterations = data.get("iterations")
    if not isinstance(iterations, int) or isinstance(iterations, bool):
        raise FormatError(f"Invalid iterations value: {iterations!r}")
    return CredentialRecord(
        salt=codec.decode(str(salt)),
        iterations=iterations,
        hash=codec.decode(str(pw)),
        valid=True,
    )
