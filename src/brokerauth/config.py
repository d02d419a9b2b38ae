# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from pathlib import Path

from brokerauth.errors import ConfigError

# Anchor the default users.yml path to the project root (works well with editable installs).
BASE_DIR = Path(__file__).resolve().parents[2]

DIGEST_NAME = "sha512"
SALT_LENGTH = 16
HASH_LENGTH = 64  # SHA-512 output size

PW_DEFAULT_ITERATIONS = 101000


def users_path() -> Path:
    return Path(os.getenv("BROKERAUTH_USERS_PATH", str(BASE_DIR / "data" / "users.yml"))).resolve()


def default_iterations() -> int:
    """Iteration count applied to newly set passwords."""
    raw = os.getenv("BROKERAUTH_PW_ITERATIONS", "").strip()
    if not raw:
        return PW_DEFAULT_ITERATIONS
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"BROKERAUTH_PW_ITERATIONS must be an integer, got {raw!r}") from None
