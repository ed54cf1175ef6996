# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import List

from sqlalchemy import insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from blogadmin.errors import StoreUnavailable
from blogadmin.infra.database import posts


@dataclass(frozen=True)
class Post:
    post_id: str
    title: str
    description: str


def get_posts(engine: Engine) -> List[Post]:
    """Return every post, ordered by post_id."""
    stmt = select(posts.c.post_id, posts.c.title, posts.c.description).order_by(posts.c.post_id)
    try:
        with engine.connect() as conn:
            rows = conn.execute(stmt).all()
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to read posts") from e
    return [
        Post(post_id=str(r.post_id), title=r.title or "", description=r.description or "")
        for r in rows
    ]


def create_post(engine: Engine, title: str, description: str = "", *, post_id: str = "") -> Post:
    title = (title or "").strip()
    if not title:
        raise ValueError("Empty post title")
    post = Post(post_id=post_id or str(uuid.uuid4()), title=title, description=description or "")
    try:
        with engine.begin() as conn:
            conn.execute(
                insert(posts).values(
                    post_id=post.post_id, title=post.title, description=post.description
                )
            )
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to write post") from e
    return post
