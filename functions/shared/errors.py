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

from typing import Optional

from firebase_admin import exceptions


class CloudError(Exception):
    """
    Base class for errors surfaced to HTTP callers.

    Rendered by the HTTP apps as `{"error": {"code": ..., "message": ...}}`.
    Authorization and validation failures share status 400.
    """

    code = "unknown"
    status_code = 400

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class Unauthorized(CloudError):
    code = "unauthorized"


class Forbidden(CloudError):
    code = "forbidden"


class NotFound(CloudError):
    code = "not-found"
    status_code = 404


class ProfileNotFound(NotFound):
    def __init__(self, message: str = "Document does not exist."):
        super().__init__(message)


class ValidationError(CloudError):
    code = "invalid-argument"


class UpstreamError(CloudError):
    """An identity provider or database call failed; its code is kept as is."""

    code = "upstream-error"

    @classmethod
    def from_firebase(
        cls, error: Exception, status_code: Optional[int] = None
    ) -> "UpstreamError":
        code = None
        if isinstance(error, exceptions.FirebaseError):
            code = error.code
        return cls(str(error), code=code, status_code=status_code)
