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

# Keeps Firebase Auth accounts and their profile documents in sync.

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from firebase_admin import auth
from firebase_functions import logger
from google.api_core import exceptions
from google.cloud.firestore_v1 import Increment

from accounts.fields import normalize_phone, sanitize_photo_url, split_display_name
from shared.constants import INFO_DOC_ID, TOTAL_ACCOUNTS_FIELD, USERS_COLLECTION
from shared.types import AuthAccount, UserProfile


def build_seed_profile(account: AuthAccount) -> UserProfile:
    """Profile written for a newly created account; grants no permissions."""
    display_name = account.display_name or ""
    names = split_display_name(display_name)
    return UserProfile(
        email=account.email,
        display_name=display_name,
        first_name=names["firstName"],
        last_name=names["lastName"],
        photo_url=account.photo_url,
        phone_number=account.phone_number,
    )


def _seed_profile(db, account: AuthAccount) -> None:
    profile = build_seed_profile(account)
    # Merge in case the document already exists.
    db.collection(USERS_COLLECTION).document(account.uid).set(
        profile.to_firestore(), merge=True
    )


def _delete_profile(db, account: AuthAccount) -> None:
    db.collection(USERS_COLLECTION).document(account.uid).delete()


def adjust_account_counter(db, delta: int) -> None:
    """
    Best-effort update of the account counter. Failures are logged, never
    raised or retried, so the count may drift.
    """
    try:
        db.collection(USERS_COLLECTION).document(INFO_DOC_ID).set(
            {TOTAL_ACCOUNTS_FIELD: Increment(delta)}, merge=True
        )
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to adjust {TOTAL_ACCOUNTS_FIELD} by {delta}: {e}")


def _run_together(first, second) -> None:
    with ThreadPoolExecutor(max_workers=2) as executor:
        futures = [executor.submit(first), executor.submit(second)]
    for future in futures:
        future.result()


def on_account_created(db, account: AuthAccount) -> None:
    """
    Seeds the profile document and increments the account counter.

    The two writes are independent. A redelivered event rewrites the same
    profile but increments the counter again.
    """
    _run_together(
        lambda: _seed_profile(db, account),
        lambda: adjust_account_counter(db, 1),
    )
    logger.info(f"Seeded profile for account {account.uid}")


def on_account_deleted(db, account: AuthAccount) -> None:
    """Deletes the profile document and decrements the account counter."""
    _run_together(
        lambda: _delete_profile(db, account),
        lambda: adjust_account_counter(db, -1),
    )
    logger.info(f"Removed profile of account {account.uid}")


def profile_auth_update(profile: dict) -> dict:
    """Keyword arguments for `auth.update_user` mirroring a profile document."""
    update = {
        "phone_number": normalize_phone(profile.get("phoneNumber")) or None,
        "display_name": profile.get("displayName") or None,
        "photo_url": sanitize_photo_url(profile.get("photoURL")),
    }
    if profile.get("email"):
        update["email"] = profile["email"]
    return update


def on_profile_updated(
    uid: str, before: Optional[dict], after: Optional[dict]
) -> Optional[dict]:
    """
    Pushes profile changes back into the Firebase Auth account.

    Returns the update that was applied, or None when nothing was sent.
    """
    if uid == INFO_DOC_ID or after is None:
        return None

    update = profile_auth_update(after)
    if before is not None and profile_auth_update(before) == update:
        return None

    auth.update_user(uid, **update)
    logger.info(f"Synced profile {uid} to its auth account")
    return update
