# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Jinja2 rendering with recoverable errors.

Compile failures raise TemplateParseError, failures while rendering raise
TemplateRenderError. Neither is fatal to the process; blogadmin.app maps
both to a 500 response.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import structlog
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)

from blogadmin.errors import TemplateParseError, TemplateRenderError
from blogadmin.infra.posts_repo import Post
from blogadmin.services.pagination import PaginationInfo

log = structlog.get_logger()


def _environment(directory: Optional[Path] = None, cache_size: int = 400) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(directory)) if directory is not None else None,
        autoescape=select_autoescape(["html", "xml"]),
        undefined=StrictUndefined,
        auto_reload=False,
        cache_size=cache_size,
    )


_STRING_ENV = _environment()


def _render_compiled(tpl: Template, context: Mapping[str, Any], name: str) -> str:
    try:
        return tpl.render(**dict(context))
    except Exception as e:
        log.error("template_render_failed", template=name, error=str(e))
        raise TemplateRenderError(f"Failed to render the template '{name}'") from e


def render(template_source: str, context: Mapping[str, Any]) -> str:
    """Compile template_source and render it with context."""
    try:
        tpl = _STRING_ENV.from_string(template_source)
    except TemplateSyntaxError as e:
        log.error("template_parse_failed", template="<string>", error=str(e), line=e.lineno)
        raise TemplateParseError("Failed to parse template") from e
    return _render_compiled(tpl, context, "<string>")


class TemplateRenderer:
    """Loads templates by name from a directory.

    Compiled templates are kept for the life of the process once loaded.
    reload() drops them so the next request recompiles from disk. With
    cache=False every call recompiles.
    """

    def __init__(self, directory: Path, *, cache: bool = True):
        self.directory = Path(directory)
        self.cache = cache
        self._env = _environment(self.directory, cache_size=400 if cache else 0)
        self._compiled: Dict[str, Template] = {}
        self._lock = threading.Lock()

    def _compile(self, name: str) -> Template:
        try:
            return self._env.get_template(name)
        except TemplateNotFound as e:
            log.error("template_not_found", template=name, directory=str(self.directory))
            raise TemplateParseError(f"Template '{name}' not found") from e
        except TemplateSyntaxError as e:
            log.error("template_parse_failed", template=name, error=str(e), line=e.lineno)
            raise TemplateParseError(f"Failed to parse template '{name}'") from e
        except (OSError, UnicodeDecodeError) as e:
            log.error("template_read_failed", template=name, error=str(e))
            raise TemplateParseError(f"Failed to read template '{name}'") from e

    def get(self, name: str) -> Template:
        if not self.cache:
            return self._compile(name)
        with self._lock:
            tpl = self._compiled.get(name)
            if tpl is None:
                tpl = self._compile(name)
                self._compiled[name] = tpl
            return tpl

    def reload(self) -> None:
        with self._lock:
            self._compiled.clear()
            if self._env.cache is not None:
                self._env.cache.clear()

    def render(self, name: str, context: Optional[Mapping[str, Any]] = None) -> str:
        return _render_compiled(self.get(name), context or {}, name)


def post_to_context(post: Post) -> Dict[str, str]:
    return {
        "post_id": str(post.post_id),
        "title": post.title,
        "description": post.description,
    }


def posts_context(posts: Sequence[Post], info: PaginationInfo) -> Dict[str, Any]:
    """Template context for the admin listing page."""
    return {
        "posts": [post_to_context(p) for p in posts],
        "pagination": info.to_context(),
    }
