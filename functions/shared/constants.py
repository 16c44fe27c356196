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

from datetime import datetime, timezone

USERS_COLLECTION = "Users"
STORAGE_COLLECTION = "Storage"

# Singleton document in the users collection holding denormalized counts.
INFO_DOC_ID = "@info"
TOTAL_ACCOUNTS_FIELD = "totalAccounts"
LEGACY_TOTAL_ACCOUNTS_FIELD = "totalAccount"

PERMISSIONS_FIELD = "permissions"

LIST_USERS_DEFAULT_LIMIT = 100
LIST_USERS_MAX_LIMIT = 999

INVALID_MARKER = "[INVALID]"

DEFAULT_PRIVACY = "private"
FILE_ID_METADATA_KEY = "fileId"
PRIVACY_METADATA_KEY = "privacy"
SIGNED_URL_EXPIRATION = datetime(2491, 3, 9, tzinfo=timezone.utc)

# Fields of the identity provider account accepted on account creation.
STANDARD_ACCOUNT_FIELDS = (
    "displayName",
    "email",
    "phoneNumber",
    "password",
    "emailVerified",
    "disabled",
    "photoURL",
)
