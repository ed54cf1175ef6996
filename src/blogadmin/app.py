# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from pydantic import SecretStr

from blogadmin.auth.users import Credentials, validate_credentials
from blogadmin.errors import InvalidCredentials, RenderError, StoreUnavailable, UnexpectedError
from blogadmin.infra.database import init_db, make_engine, run_store_call
from blogadmin.infra.posts_repo import get_posts
from blogadmin.services.pagination import PAGE_SIZE, paginate
from blogadmin.services.render import TemplateRenderer, posts_context

log = structlog.get_logger()

BASE_DIR = Path(__file__).resolve().parent

TEMPLATES_DIR = Path(os.getenv("BLOG_TEMPLATES_DIR", str(BASE_DIR / "templates"))).resolve()
TEMPLATE_CACHE = os.getenv("BLOG_TEMPLATE_CACHE", "true").lower() in {"1", "true", "yes", "y"}

ENGINE = make_engine()
templates = TemplateRenderer(TEMPLATES_DIR, cache=TEMPLATE_CACHE)

LOGIN_ERROR = "Invalid username or password."


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await run_store_call(init_db, ENGINE)
    yield
    ENGINE.dispose()


app = FastAPI(lifespan=lifespan)


async def _page(name: str, context: Dict[str, Any], status_code: int = 200) -> HTMLResponse:
    """Load, compile and render a template in a worker thread."""
    body = await asyncio.to_thread(templates.render, name, context)
    return HTMLResponse(content=body, status_code=status_code)


async def _admin_page(page_number: int) -> HTMLResponse:
    posts = await run_store_call(get_posts, ENGINE)
    visible, info = paginate(posts, PAGE_SIZE, page_number)
    return await _page("admin.html", posts_context(visible, info))


# ------------------ Error handlers ------------------


@app.exception_handler(StoreUnavailable)
async def _store_unavailable(request: Request, exc: StoreUnavailable):
    log.error("store_unavailable", path=request.url.path, error=str(exc), exc_info=exc)
    return PlainTextResponse("Service temporarily unavailable", status_code=503)


@app.exception_handler(UnexpectedError)
async def _unexpected(request: Request, exc: UnexpectedError):
    event = "render_failed" if isinstance(exc, RenderError) else "unexpected_error"
    log.error(event, path=request.url.path, error=str(exc), exc_info=exc)
    return PlainTextResponse("Internal server error", status_code=500)


# ------------------ Routes ------------------


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/admin", response_class=HTMLResponse)
async def admin_home(page_number: Optional[int] = None):
    return await _admin_page(page_number if page_number is not None else 1)


@app.get("/admin/page/{page_number}", response_class=HTMLResponse)
async def admin_page(page_number: int):
    return await _admin_page(page_number)


@app.get("/login", response_class=HTMLResponse)
async def login_get():
    return await _page("login.html", {})


@app.post("/login")
async def login_post(
    username: str = Form(""),
    password: str = Form(""),
):
    credentials = Credentials(username=username, password=SecretStr(password))
    try:
        user_id = await validate_credentials(credentials, ENGINE)
    except InvalidCredentials as e:
        log.info("login_failed", username=username, reason=e.reason)
        return await _page("login.html", {"error": LOGIN_ERROR}, status_code=e.status_code)

    log.info("login_succeeded", username=username, user_id=user_id)
    return RedirectResponse(url="/admin", status_code=303)
