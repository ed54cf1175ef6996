# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SQLAlchemy engine and table definitions for the post/user store."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Callable, Optional, TypeVar

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine
from sqlalchemy.engine import Engine, make_url

from blogadmin.errors import StoreUnavailable

DEFAULT_DATABASE_URL = "sqlite:///data/blog.db"
STORE_TIMEOUT_SECONDS = float(os.getenv("BLOG_STORE_TIMEOUT", "5"))

T = TypeVar("T")

metadata = MetaData()

posts = Table(
    "posts",
    metadata,
    Column("post_id", String(36), primary_key=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False, default=""),
)

users = Table(
    "users",
    metadata,
    Column("user_id", String(36), primary_key=True),
    Column("username", String(255), nullable=False, unique=True, index=True),
    Column("password", String(255), nullable=False),
)


def database_url() -> str:
    return os.getenv("BLOG_DATABASE_URL", DEFAULT_DATABASE_URL)


def make_engine(url: Optional[str] = None) -> Engine:
    """Engine for url, or for BLOG_DATABASE_URL when url is not given."""
    url = url or database_url()
    u = make_url(url)
    if u.get_backend_name() == "sqlite" and u.database and u.database != ":memory:":
        Path(u.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    """Create missing tables. Existing tables are left untouched."""
    metadata.create_all(engine)


async def run_store_call(fn: Callable[..., T], *args, timeout: Optional[float] = None) -> T:
    """Run a blocking store function in a worker thread, bounded by a timeout.

    The worker thread is not cancelled on timeout; the request simply stops
    waiting for it.
    """
    limit = STORE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=limit)
    except asyncio.TimeoutError as e:
        raise StoreUnavailable(f"Store call timed out after {limit:g}s") from e
