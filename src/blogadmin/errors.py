# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy.

Every failure raised on the request path derives from BlogAdminError and is
turned into an HTTP response by the handlers registered in blogadmin.app.
"""

from __future__ import annotations


class BlogAdminError(Exception):
    status_code = 500


class StoreUnavailable(BlogAdminError):
    """The post/user store could not be reached or failed the query."""

    status_code = 503


class InvalidCredentials(BlogAdminError):
    """Unknown username or wrong password.

    ``reason`` is either ``"unknown_user"`` or ``"bad_password"``.
    """

    def __init__(self, reason: str, message: str = "Invalid credentials."):
        super().__init__(message)
        self.reason = reason
        self.status_code = 404 if reason == "unknown_user" else 401


class UnexpectedError(BlogAdminError):
    """Malformed stored data or an internal failure."""


class RenderError(UnexpectedError):
    pass


class TemplateParseError(RenderError):
    pass


class TemplateRenderError(RenderError):
    pass
