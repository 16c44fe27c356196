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
One-time bootstrap: seeds the administrator's profile and the account counter.

Usage:
    python scripts/install.py [--require-empty]

Reads the same settings as the functions (ADMIN_UID, SERVICE_ACCOUNT,
DATABASE_URL, STORAGE_BUCKET).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from firebase_admin import auth, credentials, exceptions, firestore, initialize_app, storage
from google.api_core import exceptions as api_exceptions
from google.cloud.firestore_v1 import DELETE_FIELD

from accounts.account_sync import build_seed_profile
from shared.config import Settings, firebase_options, get_settings
from shared.constants import (
    INFO_DOC_ID,
    LEGACY_TOTAL_ACCOUNTS_FIELD,
    TOTAL_ACCOUNTS_FIELD,
    USERS_COLLECTION,
)
from shared.types import AuthAccount, default_permissions

logger = logging.getLogger(__name__)


class InstallError(Exception):
    """A prerequisite of the installation is not met."""


def check_settings(settings: Settings) -> None:
    if not settings.admin_uid:
        raise InstallError(
            "ADMIN_UID must be configured with the administrator's UID."
        )


def check_bucket(bucket) -> None:
    try:
        exists = bucket.exists()
    except api_exceptions.GoogleAPICallError as e:
        raise InstallError(f"Unable to reach Cloud Storage: {e}") from e
    if not exists:
        raise InstallError(
            "Cloud Storage bucket does not exist. Enable Cloud Storage from the "
            "Firebase Console and check STORAGE_BUCKET."
        )


def check_firestore(db, require_empty: bool) -> None:
    try:
        collections = list(db.collections())
    except api_exceptions.GoogleAPICallError as e:
        raise InstallError(
            f"Unable to connect to Firestore, check SERVICE_ACCOUNT: {e}"
        ) from e
    if require_empty and collections:
        raise InstallError("An empty Firestore database is required.")


def seed_admin_profile(db, admin_uid: str) -> None:
    try:
        record = auth.get_user(admin_uid)
    except (exceptions.FirebaseError, ValueError) as e:
        raise InstallError(
            f"Admin user {admin_uid} does not exist in Firebase Authentication: {e}"
        ) from e

    account = AuthAccount(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        photo_url=record.photo_url or "",
        phone_number=record.phone_number or "",
    )
    profile = build_seed_profile(account)
    profile.permissions = default_permissions(granted=True)
    db.collection(USERS_COLLECTION).document(admin_uid).set(profile.to_firestore())


def seed_account_counter(db) -> dict:
    """
    Initializes `totalAccounts`, carrying over a count stored under the
    legacy `totalAccount` field. Returns the fields written.
    """
    info_ref = db.collection(USERS_COLLECTION).document(INFO_DOC_ID)
    snapshot = info_ref.get()
    info = (snapshot.to_dict() or {}) if snapshot.exists else {}

    if TOTAL_ACCOUNTS_FIELD in info:
        update = {}
    elif LEGACY_TOTAL_ACCOUNTS_FIELD in info:
        update = {TOTAL_ACCOUNTS_FIELD: info[LEGACY_TOTAL_ACCOUNTS_FIELD]}
    else:
        update = {TOTAL_ACCOUNTS_FIELD: 1}
    if LEGACY_TOTAL_ACCOUNTS_FIELD in info:
        update[LEGACY_TOTAL_ACCOUNTS_FIELD] = DELETE_FIELD

    if update:
        info_ref.set(update, merge=True)
    return update


def install(settings: Settings, db, bucket, require_empty: bool = False) -> None:
    check_settings(settings)

    logger.info("Checking Cloud Storage")
    check_bucket(bucket)

    logger.info("Checking Firestore")
    check_firestore(db, require_empty)

    logger.info("Syncing admin %s to Firestore", settings.admin_uid)
    seed_admin_profile(db, settings.admin_uid)

    logger.info("Setting up account counter")
    seed_account_counter(db)
    logger.info("Installation completed successfully")


def main():
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument(
        "--require-empty",
        action="store_true",
        help="Abort unless the Firestore database has no collections.",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    settings = get_settings()
    try:
        check_settings(settings)
        initialize_app(
            credentials.Certificate(settings.service_account)
            if settings.service_account
            else None,
            firebase_options(settings),
        )
        install(
            settings,
            firestore.client(),
            storage.bucket(),
            require_empty=args.require_empty,
        )
    except InstallError as e:
        logger.error("%s", e)
        sys.exit(1)
    except (ValueError, OSError) as e:
        # Unreadable service account or no storage bucket configured.
        logger.error("Invalid Firebase configuration: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
