# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import tempfile
import threading
import weakref
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from brokerauth.auth.passwords import (
    CredentialRecord,
    PasswordHasher,
    credential_from_dict,
    credential_to_dict,
    new_credential,
)
from brokerauth.config import users_path
from brokerauth.errors import FormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    username: str
    bound_client_id: Optional[str] = None
    disabled: bool = False
    credential: CredentialRecord = field(default_factory=CredentialRecord.empty)


def identity_from_dict(username: str, data: Dict[str, Any]) -> Identity:
    """Build an Identity from one ``users:`` entry of the YAML file."""
    if not isinstance(data, dict):
        raise FormatError(f"Entry for '{username}' is not a mapping")
    clientid = data.get("clientid")
    return Identity(
        username=username,
        bound_client_id=str(clientid) if clientid is not None else None,
        disabled=bool(data.get("disabled", False)),
        credential=credential_from_dict(data),
    )


def identity_to_dict(identity: Identity) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if identity.bound_client_id is not None:
        out["clientid"] = identity.bound_client_id
    out["disabled"] = identity.disabled
    out.update(credential_to_dict(identity.credential))
    return out


class _IdentityLocks:
    """One lock per username, for password read-modify-write.

    Entries live only while some caller holds the lock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, Any]" = weakref.WeakValueDictionary()

    def __contains__(self, username: str) -> bool:
        with self._guard:
            return username in self._locks

    def for_user(self, username: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(username)
            if lock is None:
                lock = threading.Lock()
                self._locks[username] = lock
            return lock


class InMemoryIdentityStore:
    def __init__(self) -> None:
        self._identities: Dict[str, Identity] = {}
        self._guard = threading.Lock()
        self._locks = _IdentityLocks()

    def add(self, identity: Identity) -> None:
        with self._guard:
            if identity.username in self._identities:
                raise ValueError(f"Identity '{identity.username}' already exists")
            self._identities[identity.username] = identity

    def remove(self, username: str) -> None:
        with self._guard:
            self._identities.pop(username, None)

    def lookup(self, username: str) -> Optional[Identity]:
        with self._guard:
            return self._identities.get(username)

    def _replace(self, username: str, **changes: Any) -> Identity:
        with self._guard:
            current = self._identities.get(username)
            if current is None:
                raise KeyError(username)
            updated = replace(current, **changes)
            self._identities[username] = updated
            return updated

    def set_password(self, username: str, password: str, *, hasher: Optional[PasswordHasher] = None) -> Identity:
        with self._locks.for_user(username):
            if self.lookup(username) is None:
                raise KeyError(username)
            credential = new_credential(password, hasher=hasher)
            updated = self._replace(username, credential=credential)
        logger.info("Password updated for %s", username)
        return updated

    def clear_password(self, username: str) -> Identity:
        with self._locks.for_user(username):
            return self._replace(username, credential=CredentialRecord.empty())


_CACHE: Dict[Path, Tuple[float, Dict[str, Any]]] = {}


def _parse_users_file(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise FormatError(f"Users file {path} is not valid YAML: {exc}") from None
    if not isinstance(raw, dict):
        raise FormatError(f"Users file {path} must contain a mapping")
    return raw


def _load_users_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    users = _parse_users_file(path).get("users") or {}
    if not isinstance(users, dict):
        raise FormatError(f"'users' in {path} must be a mapping of username to entry")
    out: Dict[str, Any] = {}
    for uname, udata in users.items():
        username = str(uname)
        if not username:
            continue
        out[username] = udata
    return out


def _read_users(path: Path) -> Dict[str, Any]:
    try:
        mtime = path.stat().st_mtime if path.exists() else 0.0
    except OSError:
        mtime = 0.0

    cached = _CACHE.get(path)
    if mtime and cached and cached[0] == mtime:
        return cached[1]

    users = _load_users_file(path)
    _CACHE[path] = (mtime, users)
    return users


class YamlIdentityStore:
    """Identities kept in a YAML file, salt and hash as base64 text.

    Entries are decoded on lookup, so one corrupt entry only affects its own
    user (as a ``FormatError``).
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path).resolve() if path is not None else users_path()
        self._write_lock = threading.Lock()
        self._locks = _IdentityLocks()

    def lookup(self, username: str) -> Optional[Identity]:
        if not username:
            return None
        users = _read_users(self.path)
        if username not in users:
            return None
        return identity_from_dict(username, users[username] or {})

    def _write_entry(self, username: str, entry: Dict[str, Any]) -> None:
        with self._write_lock:
            raw = _parse_users_file(self.path) if self.path.exists() else {}
            raw.setdefault("version", 1)
            if not isinstance(raw.get("users"), dict):
                raw["users"] = {}
            raw["users"][username] = entry

            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Readers take no lock: swap a complete file in, never rewrite in place
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    yaml.safe_dump(raw, fh, sort_keys=False, allow_unicode=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
            _CACHE.pop(self.path, None)

    def add_user(
        self,
        username: str,
        password: Optional[str] = None,
        *,
        clientid: Optional[str] = None,
        disabled: bool = False,
        hasher: Optional[PasswordHasher] = None,
    ) -> Identity:
        u = username or ""
        if not u:
            raise ValueError("Empty username")
        with self._locks.for_user(u):
            if self.lookup(u) is not None:
                raise ValueError(f"Identity '{u}' already exists")
            credential = new_credential(password, hasher=hasher) if password else CredentialRecord.empty()
            identity = Identity(username=u, bound_client_id=clientid, disabled=disabled, credential=credential)
            self._write_entry(u, identity_to_dict(identity))
        logger.info("Identity %s added to %s", u, self.path)
        return identity

    def set_password(self, username: str, password: str, *, hasher: Optional[PasswordHasher] = None) -> Identity:
        with self._locks.for_user(username):
            current = self.lookup(username)
            if current is None:
                raise KeyError(username)
            updated = replace(current, credential=new_credential(password, hasher=hasher))
            self._write_entry(username, identity_to_dict(updated))
        logger.info("Password updated for %s", username)
        return updated
