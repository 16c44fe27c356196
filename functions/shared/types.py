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

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Dict, Optional

from shared.constants import DEFAULT_PRIVACY


class Permission(StrEnum):
    """Core capabilities. Profiles may carry additional freeform keys."""

    CREATE_USER = "create_user"
    DELETE_USER = "delete_user"
    EDIT_USER = "edit_user"
    GET_USER = "get_user"
    MANAGE_OPTIONS = "manage_options"


def default_permissions(granted: bool = False) -> Dict[str, bool]:
    return {permission.value: granted for permission in Permission}


class DobState(StrEnum):
    UNSET = "UNSET"
    INVALID = "INVALID"
    SET = "SET"


# Stored on profiles seeded from an auth event or by the install script.
# Request handlers store None instead; see DESIGN.md.
DOB_UNSET_SENTINEL = False


@dataclass
class Dob:
    state: DobState
    value: Optional[datetime] = None


@dataclass
class UserProfile:
    """A user's profile document, keyed by the identity provider UID."""

    email: Optional[str]
    display_name: str
    first_name: str
    last_name: str
    photo_url: Optional[str]
    phone_number: Optional[str]
    dob: Any = DOB_UNSET_SENTINEL
    permissions: Dict[str, bool] = field(default_factory=default_permissions)

    def to_firestore(self) -> dict:
        return {
            "email": self.email,
            "displayName": self.display_name,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dob": self.dob,
            "photoURL": self.photo_url,
            "phoneNumber": self.phone_number,
            "permissions": dict(self.permissions),
        }


@dataclass
class AuthAccount:
    """Identity provider account fields carried by auth lifecycle events."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None

    @classmethod
    def from_event(cls, data: dict) -> "AuthAccount":
        return cls(
            uid=data["uid"],
            email=data.get("email"),
            display_name=data.get("displayName"),
            photo_url=data.get("photoURL"),
            phone_number=data.get("phoneNumber"),
        )


@dataclass
class StorageReference:
    """Denormalized metadata of an uploaded object."""

    custom_metadata: Dict[str, str]
    path: str
    extension: str
    download_url: str
    content_type: Optional[str]
    size: int
    created_at: Any  # RFC 3339 string or datetime, as reported by the event
    privacy: str = DEFAULT_PRIVACY
