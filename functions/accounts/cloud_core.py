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

import logging
from typing import Any, Optional

from firebase_admin import auth, exceptions, firestore
from google.api_core import exceptions as api_exceptions

from shared.config import Settings
from shared.constants import PERMISSIONS_FIELD, USERS_COLLECTION
from shared.errors import ProfileNotFound, Unauthorized, UpstreamError

logger = logging.getLogger(__name__)


class CloudCore:
    """
    Resolves the caller of a request and answers permission checks.

    Constructing a CloudCore only extracts the bearer token; `init()`
    verifies it with Firebase Auth and loads the caller's profile document.
    Endpoints that may be called anonymously (sign up) pass
    `require_authentication=False`.
    """

    def __init__(
        self,
        source: Any,
        settings: Settings,
        require_authentication: bool = True,
    ):
        self.settings = settings
        self.token = self.extract_token(source)
        self.require_authentication = bool(require_authentication)
        self.uid = ""
        self.user: Optional[dict] = None

    @staticmethod
    def extract_token(source: Any) -> str:
        """
        Returns the bearer token of a request, or the source itself if it is
        already a token string. Anything else yields an empty token.
        """
        headers = getattr(source, "headers", None)
        if headers is not None and callable(getattr(headers, "get", None)):
            auth_header = headers.get("Authorization")
            if not auth_header:
                return ""
            parts = auth_header.split(" ")
            if len(parts) == 2 and parts[0] == "Bearer":
                return parts[1]
            return ""
        if isinstance(source, str):
            return source
        return ""

    def init(self) -> Optional[dict]:
        """
        Verifies the token and loads the caller's profile.

        Returns the profile, or None when no token was given and
        authentication is optional.

        Raises:
            Unauthorized: No token was given and authentication is required.
            UpstreamError: Firebase Auth rejected the token or the profile
                could not be read.
            ProfileNotFound: The caller has no profile document.
        """
        if not self.token:
            if self.require_authentication:
                raise Unauthorized("Invalid authorization token.")
            return None

        try:
            decoded_token = auth.verify_id_token(self.token)
        except (exceptions.FirebaseError, ValueError) as e:
            logger.info("Token verification failed: %s", e)
            raise UpstreamError.from_firebase(e) from e

        uid = decoded_token["uid"]
        try:
            snapshot = (
                firestore.client().collection(USERS_COLLECTION).document(uid).get()
            )
        except api_exceptions.GoogleAPICallError as e:
            logger.error("Failed to load profile %s: %s", uid, e)
            raise UpstreamError(str(e), code=getattr(e, "reason", None)) from e
        if not snapshot.exists:
            raise ProfileNotFound()

        self.uid = uid
        self.user = snapshot.to_dict() or {}
        return self.user

    def is_admin(self) -> bool:
        return bool(self.uid) and self.uid == self.settings.admin_uid

    def can(self, permission: str) -> bool:
        """Whether the resolved caller holds `permission`. Admins hold all."""
        if self.is_admin():
            return True
        if not self.require_authentication and not self.token:
            return False
        if not self.user:
            return False
        permissions = self.user.get(PERMISSIONS_FIELD) or {}
        return bool(permissions.get(str(permission)))
