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
Routes of the `user` function: create, read, update and delete one account.
"""

from __future__ import annotations

import logging

from firebase_admin import auth, exceptions, firestore
from flask import Flask, jsonify, request
from google.api_core import exceptions as api_exceptions

from accounts.cloud_core import CloudCore
from accounts.fields import (
    dob_to_field,
    is_valid_email,
    normalize_phone,
    parse_dob,
    process_custom_data,
    sanitize_photo_url,
)
from accounts.web import create_base_app, request_payload, serialize_user_record
from shared.config import Settings
from shared.constants import (
    PERMISSIONS_FIELD,
    STANDARD_ACCOUNT_FIELDS,
    USERS_COLLECTION,
)
from shared.errors import Forbidden, NotFound, UpstreamError, ValidationError
from shared.types import DobState, Permission

logger = logging.getLogger(__name__)


def _profile_ref(uid: str):
    return firestore.client().collection(USERS_COLLECTION).document(uid)


def _write_profile(uid: str, data: dict) -> None:
    try:
        _profile_ref(uid).set(data, merge=True)
    except api_exceptions.GoogleAPICallError as e:
        logger.error("Failed to write profile %s: %s", uid, e)
        raise UpstreamError(str(e), code=getattr(e, "reason", None)) from e
    except (TypeError, ValueError) as e:
        # Values Firestore cannot encode.
        raise ValidationError(f"Unable to store profile data: {e}") from e


def _require_valid_dob(value) -> None:
    if parse_dob(value).state == DobState.INVALID:
        raise ValidationError("DOB must be a valid Date.")


def build_account_payload(body: dict) -> dict:
    """
    Keyword arguments for `auth.create_user`, built from the recognized fields.

    Raises:
        ValidationError: Neither a valid email nor a valid phone number was given.
    """
    email = body.get("email")
    phone_number = body.get("phoneNumber")

    if not email and not phone_number:
        raise ValidationError("Either email and phone number must be provided.")

    valid_email = is_valid_email(email)
    normalized_phone = normalize_phone(phone_number)
    if not valid_email and not normalized_phone:
        raise ValidationError("A valid email or phone number must be provided.")

    payload = {
        "email_verified": False,
        "password": body.get("password"),
        "disabled": False,
    }
    if body.get("displayName"):
        payload["display_name"] = body["displayName"]
    photo_url = sanitize_photo_url(body.get("photoURL"))
    if photo_url:
        payload["photo_url"] = photo_url
    if normalized_phone:
        payload["phone_number"] = normalized_phone
    if valid_email:
        payload["email"] = email
    return payload


def extract_custom_data(body: dict) -> dict:
    """Body fields that are neither account fields nor permissions."""
    return {
        key: value
        for key, value in body.items()
        if key not in STANDARD_ACCOUNT_FIELDS and key != PERMISSIONS_FIELD
    }


def create_app(settings: Settings) -> Flask:
    app = create_base_app("user")

    @app.post("/")
    def create_user():
        core = CloudCore(request, settings, require_authentication=False)
        body = request_payload()

        payload = build_account_payload(body)
        _require_valid_dob(body.get("dob"))

        core.init()
        if not settings.allow_sign_up and not core.can(Permission.CREATE_USER):
            raise Forbidden(
                "You are not allowed to create users. Signup mode is disabled."
            )

        try:
            user_record = auth.create_user(**payload)
        except (exceptions.FirebaseError, ValueError) as e:
            raise UpstreamError.from_firebase(e) from e
        logger.info("Created account %s", user_record.uid)

        custom_data = extract_custom_data(body)
        if custom_data:
            custom_data["dob"] = dob_to_field(parse_dob(custom_data.get("dob")))
            _write_profile(user_record.uid, custom_data)

        return jsonify(data=serialize_user_record(user_record))

    @app.get("/<uid>")
    def get_user(uid: str):
        core = CloudCore(request, settings)
        core.init()

        # A user can always read their own profile.
        if not core.can(Permission.GET_USER) and uid != core.uid:
            raise Forbidden("You are not allowed to access this route.")

        try:
            snapshot = _profile_ref(uid).get()
            user_record = auth.get_user(uid)
        except (exceptions.FirebaseError, ValueError) as e:
            raise UpstreamError.from_firebase(e, status_code=404) from e
        except api_exceptions.GoogleAPICallError as e:
            raise UpstreamError(str(e), status_code=404) from e

        if not snapshot.exists:
            raise NotFound(f"Unable to retrieve user {uid}.")

        return jsonify(
            data=snapshot.to_dict(), authData=serialize_user_record(user_record)
        )

    @app.patch("/<uid>")
    def update_user(uid: str):
        core = CloudCore(request, settings)
        data = dict(request_payload())
        core.init()

        if not core.can(Permission.EDIT_USER) and uid != core.uid:
            raise Forbidden("You are not allowed to edit this user.")

        # Permissions are never writable through this route.
        data.pop(PERMISSIONS_FIELD, None)

        dob = parse_dob(data.get("dob"))
        if dob.state == DobState.INVALID:
            raise ValidationError("DOB must be a valid Date.")
        data["dob"] = dob_to_field(dob)

        _write_profile(uid, data)
        return jsonify(data=f"User {uid} has been updated successfully.")

    @app.patch("/<uid>/custom")
    def update_user_custom_data(uid: str):
        core = CloudCore(request, settings)
        entries = request_payload().get("data")
        if not entries:
            raise ValidationError("Data is required to update user.")
        if not isinstance(entries, list):
            raise ValidationError("Data must be a list of {key, value, type}.")

        core.init()
        if not core.can(Permission.EDIT_USER) and uid != core.uid:
            raise Forbidden("You are not allowed to edit this user.")

        data = process_custom_data(entries)
        _write_profile(uid, data)
        return jsonify(data=f"User {uid} has been updated successfully.")

    @app.delete("/<uid>")
    def delete_user(uid: str):
        core = CloudCore(request, settings)
        core.init()

        if not core.can(Permission.DELETE_USER):
            raise Forbidden("You are not allowed to delete users.")

        # The profile document is removed by on_user_delete.
        try:
            auth.delete_user(uid)
        except (exceptions.FirebaseError, ValueError) as e:
            raise UpstreamError.from_firebase(e) from e
        logger.info("Deleted account %s", uid)

        return jsonify(data=f"User {uid} has been deleted successfully.")

    return app
