# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Password credentials for the broker auth chain.

This package provides:
- Credential records and PBKDF2-SHA512 hashing (passwords)
- Identity stores, in memory or backed by data/users.yml (users)
- The ACCEPT/REJECT/DEFER decision for one connection attempt (decision)
"""
