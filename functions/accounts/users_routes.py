# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""
Routes of the `users` function: paginated account listing.
"""

from __future__ import annotations

from typing import Any

from firebase_admin import auth, exceptions
from flask import Flask, jsonify, request

from accounts.cloud_core import CloudCore
from accounts.web import create_base_app, serialize_user_record
from shared.config import Settings
from shared.constants import LIST_USERS_DEFAULT_LIMIT, LIST_USERS_MAX_LIMIT
from shared.errors import Forbidden, UpstreamError, ValidationError
from shared.types import Permission


def parse_limit(value: Any) -> int:
    """Page size from the `limit` query parameter; non-integers use the default."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return LIST_USERS_DEFAULT_LIMIT

    if limit > LIST_USERS_MAX_LIMIT:
        raise ValidationError("You cannot fetch more than 1000 users at one query.")
    if limit < 1:
        raise ValidationError("limit must be a positive number.")
    return limit


def create_app(settings: Settings) -> Flask:
    app = create_base_app("users")

    @app.get("/")
    def list_users():
        core = CloudCore(request, settings)
        limit = parse_limit(request.args.get("limit"))
        page_token = request.args.get("next") or None

        core.init()
        if not core.can(Permission.GET_USER):
            raise Forbidden("You are not allowed to access this route.")

        try:
            page = auth.list_users(page_token=page_token, max_results=limit)
        except (exceptions.FirebaseError, ValueError) as e:
            raise UpstreamError.from_firebase(e, status_code=404) from e

        return jsonify(
            nextPageToken=page.next_page_token or None,
            data=[serialize_user_record(user) for user in page.users],
        )

    return app
