# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog
from pydantic import SecretStr
from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from blogadmin.auth.passwords import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    needs_rehash,
    verify_password_hash,
)
from blogadmin.errors import BlogAdminError, InvalidCredentials, StoreUnavailable, UnexpectedError
from blogadmin.infra.database import run_store_call, users

log = structlog.get_logger()


@dataclass(frozen=True)
class UserRecord:
    user_id: str
    username: str
    password_hash: str


@dataclass(frozen=True)
class Credentials:
    username: str
    password: SecretStr


def _row_to_user(r) -> UserRecord:
    return UserRecord(user_id=str(r.user_id), username=r.username, password_hash=r.password or "")


def get_users(engine: Engine) -> List[UserRecord]:
    stmt = select(users.c.user_id, users.c.username, users.c.password).order_by(users.c.username)
    try:
        with engine.connect() as conn:
            rows = conn.execute(stmt).all()
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to read users") from e
    return [_row_to_user(r) for r in rows]


def get_user(engine: Engine, username: str) -> Optional[UserRecord]:
    u = (username or "").strip()
    if not u:
        return None
    stmt = select(users.c.user_id, users.c.username, users.c.password).where(users.c.username == u)
    try:
        with engine.connect() as conn:
            row = conn.execute(stmt).first()
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to read users") from e
    return _row_to_user(row) if row is not None else None


def get_stored_credentials(engine: Engine, username: str) -> Optional[Tuple[str, SecretStr]]:
    u = get_user(engine, username)
    if u is None:
        return None
    return u.user_id, SecretStr(u.password_hash)


def create_user(engine: Engine, username: str, password_hash: str) -> UserRecord:
    u = (username or "").strip()
    if not u:
        raise ValueError("Empty username")
    rec = UserRecord(user_id=str(uuid.uuid4()), username=u, password_hash=password_hash)
    try:
        with engine.begin() as conn:
            conn.execute(
                insert(users).values(user_id=rec.user_id, username=rec.username, password=rec.password_hash)
            )
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to write user") from e
    return rec


def update_password_hash(engine: Engine, user_id: str, new_hash: str) -> None:
    stmt = update(users).where(users.c.user_id == user_id).values(password=new_hash)
    try:
        with engine.begin() as conn:
            updated = conn.execute(stmt).rowcount
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to update password hash") from e
    if updated != 1:
        raise UnexpectedError(f"Password hash update matched {updated} rows")


async def _verify_off_loop(stored: SecretStr, candidate: SecretStr) -> None:
    """Run the argon2 check in a worker thread and wait for it."""
    try:
        await asyncio.to_thread(verify_password_hash, stored, candidate)
    except BlogAdminError:
        raise
    except Exception as e:
        raise UnexpectedError("Password verification task failed.") from e


async def _rehash_if_outdated(
    engine: Engine, user_id: str, credentials: Credentials, stored: SecretStr
) -> None:
    if not needs_rehash(stored):
        return
    try:
        new_hash = await asyncio.to_thread(hash_password, credentials.password.get_secret_value())
        await run_store_call(update_password_hash, engine, user_id, new_hash)
    except (BlogAdminError, ValueError) as e:
        log.warning("password_rehash_failed", user_id=user_id, error=str(e))
        return
    log.info("password_rehashed", user_id=user_id)


async def validate_credentials(credentials: Credentials, engine: Engine) -> str:
    """Return the user_id for valid credentials.

    An unknown username still costs one full hash computation against
    DUMMY_PASSWORD_HASH, so it cannot be told apart from a wrong password by
    response time. Raises InvalidCredentials, StoreUnavailable or
    UnexpectedError.
    """
    user_id: Optional[str] = None
    expected_hash = DUMMY_PASSWORD_HASH

    stored = await run_store_call(get_stored_credentials, engine, credentials.username)
    if stored is not None:
        user_id, expected_hash = stored

    try:
        await _verify_off_loop(expected_hash, credentials.password)
    except InvalidCredentials:
        if user_id is None:
            raise InvalidCredentials("unknown_user", "Unknown username.") from None
        raise

    if user_id is None:
        # Only reachable if the candidate matches the dummy hash itself.
        raise InvalidCredentials("unknown_user", "Unknown username.")

    await _rehash_if_outdated(engine, user_id, credentials, expected_hash)
    return user_id
