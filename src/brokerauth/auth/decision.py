# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Username/password decision for the broker's auth chain.

``decide`` evaluates one connection attempt and returns exactly one of
ACCEPT, REJECT or DEFER. DEFER leaves the attempt to the other configured
auth mechanisms. Internal failures never escape: they are logged and folded
into REJECT, so a caller cannot tell a bad password from a broken backend.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from brokerauth.auth.passwords import PasswordHasher, hash_password
from brokerauth.auth.users import Identity
from brokerauth.core.compare import equals
from brokerauth.errors import AuthCoreError

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    DEFER = "defer"


@dataclass(frozen=True)
class AuthRequest:
    username: Optional[str]
    password: Optional[str]
    client_id: Optional[str] = None
    address: Optional[str] = None


class IdentityStore(Protocol):
    def lookup(self, username: str) -> Optional[Identity]: ...


class SuccessNotifier(Protocol):
    def notify(self, client_id: Optional[str], address: Optional[str]) -> None: ...


def _notify(notifier: SuccessNotifier, request: AuthRequest) -> None:
    try:
        notifier.notify(request.client_id, request.address)
    except Exception:
        logger.warning("Success notifier failed for client %s", request.client_id, exc_info=True)


def decide(
    request: AuthRequest,
    store: IdentityStore,
    *,
    hasher: Optional[PasswordHasher] = None,
    notifier: Optional[SuccessNotifier] = None,
) -> Outcome:
    if request.username is None or request.password is None:
        return Outcome.DEFER

    try:
        identity = store.lookup(request.username)
    except AuthCoreError as exc:
        logger.error("Stored identity for %s is unusable: %s", request.username, exc.message)
        return Outcome.REJECT
    if identity is None:
        logger.debug("Unknown user %s, deferring", request.username)
        return Outcome.DEFER

    if identity.disabled:
        logger.debug("User %s is disabled", identity.username)
        return Outcome.REJECT

    if identity.bound_client_id is not None:
        if request.client_id is None or identity.bound_client_id != request.client_id:
            logger.debug("User %s is bound to a different client id", identity.username)
            return Outcome.REJECT

    credential = identity.credential
    if not credential.valid:
        logger.debug("User %s has no password, deferring", identity.username)
        return Outcome.DEFER

    try:
        if hasher is None:
            derived, _ = hash_password(request.password, credential, False)
        else:
            derived, _ = hasher.hash(request.password, credential, False)
    except AuthCoreError as exc:
        logger.error("Password check for %s failed: %s", identity.username, exc.message)
        return Outcome.REJECT

    if not equals(derived, credential.hash):
        return Outcome.REJECT

    logger.info("client: %s %s connected", request.client_id, request.address)
    if notifier is not None:
        _notify(notifier, request)
    return Outcome.ACCEPT
