# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Blog administration interface.

Server-rendered admin pages over a relational post/user store:
- argon2 credential verification (auth)
- post listing with page navigation (services.pagination)
- Jinja2 rendering with per-request error handling (services.render)
"""
