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
Pieces shared by the Flask apps served from the HTTPS functions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from shared.errors import CloudError

logger = logging.getLogger(__name__)


def create_base_app(name: str) -> Flask:
    """Flask app rendering every error in the `{"error": ...}` envelope."""
    app = Flask(name)

    @app.errorhandler(CloudError)
    def handle_cloud_error(error: CloudError):
        logger.info("%s %s failed: %s", request.method, request.path, error.message)
        return jsonify(error=error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        body = {"code": error.name, "message": error.description}
        return jsonify(error=body), error.code

    return app


def request_payload() -> dict:
    """The request body as a dict, from JSON or URL-encoded form fields."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    if request.form:
        return request.form.to_dict()
    return {}


def _timestamp(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime(
        "%a, %d %b %Y %H:%M:%S GMT"
    )


def _provider_info(info: Any) -> dict:
    return {
        "uid": info.uid,
        "email": info.email,
        "displayName": info.display_name,
        "photoURL": info.photo_url,
        "phoneNumber": info.phone_number,
        "providerId": info.provider_id,
    }


def serialize_user_record(record: Any) -> dict:
    """Renders a `firebase_admin.auth.UserRecord` the way Firebase Auth does."""
    metadata = record.user_metadata
    return {
        "uid": record.uid,
        "email": record.email,
        "emailVerified": record.email_verified,
        "displayName": record.display_name,
        "photoURL": record.photo_url,
        "phoneNumber": record.phone_number,
        "disabled": record.disabled,
        "metadata": {
            "creationTime": _timestamp(metadata.creation_timestamp),
            "lastSignInTime": _timestamp(metadata.last_sign_in_timestamp),
        },
        "customClaims": record.custom_claims,
        "tenantId": record.tenant_id,
        "providerData": [_provider_info(info) for info in record.provider_data],
    }
