#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from blogadmin.auth.passwords import hash_password
from blogadmin.auth.users import create_user, get_user, update_password_hash
from blogadmin.infra.database import init_db, make_engine


def main() -> None:
    engine = make_engine()
    init_db(engine)

    username = input("Username: ").strip()
    if not username:
        raise SystemExit("Username required")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    # Existing rows (including legacy plaintext ones) get a fresh argon2 hash
    existing = get_user(engine, username)
    if existing is not None:
        update_password_hash(engine, existing.user_id, hash_password(pw1))
        print(f"Updated -> {username}")
    else:
        create_user(engine, username, hash_password(pw1))
        print(f"Created -> {username}")


if __name__ == "__main__":
    main()
