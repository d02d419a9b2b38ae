#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from brokerauth.auth.users import YamlIdentityStore


def main() -> None:
    store = YamlIdentityStore()

    username = input("Username: ").strip()
    clientid = input("Bound client id (empty for any): ").strip() or None
    disabled_in = input("Disabled? [y/N]: ").strip().lower()
    disabled = (disabled_in == "y")

    pw1 = getpass("Password (empty for none): ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    store.add_user(username, pw1 or None, clientid=clientid, disabled=disabled)
    print(f"OK -> {store.path}")


if __name__ == "__main__":
    main()
