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

# Cloud functions for user account management: HTTP endpoints plus the
# event handlers that keep Auth, Firestore and Cloud Storage consistent.
#
# This file containing Python cloud functions must be named main.py.
# See https://cloud.google.com/run/docs/write-functions#python for more info.

# Third-party library imports
from firebase_admin import credentials, firestore, initialize_app, storage
from firebase_functions import https_fn, logger, options, storage_fn
from firebase_functions.firestore_fn import (
    on_document_deleted,
    on_document_updated,
    Event,
    Change,
    DocumentSnapshot,
)

# Local application imports
from accounts import account_sync, user_routes, users_routes
from shared.config import firebase_options, get_settings
from shared.constants import STORAGE_COLLECTION, USERS_COLLECTION
from shared.types import AuthAccount
from storage_refs import reference_sync

CORS = options.CorsOptions(
    cors_origins="*",
    cors_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
)

settings = get_settings()

initialize_app(
    credentials.Certificate(settings.service_account)
    if settings.service_account
    else None,
    firebase_options(settings),
)

user_app = user_routes.create_app(settings)
users_app = users_routes.create_app(settings)


@https_fn.on_request(cors=CORS)
def user(req: https_fn.Request) -> https_fn.Response:
    """Create, read, update and delete a single account."""
    with user_app.request_context(req.environ):
        return user_app.full_dispatch_request()


@https_fn.on_request(cors=CORS)
def users(req: https_fn.Request) -> https_fn.Response:
    """List accounts, one page at a time."""
    with users_app.request_context(req.environ):
        return users_app.full_dispatch_request()


# Second generation Python functions have no non-blocking Auth lifecycle
# trigger, so these two are deployed as first generation background functions
# (providers/firebase.auth/eventTypes/user.create and user.delete) with
# scripts/deploy_auth_triggers.py; `firebase deploy` does not pick them up.
def on_user_create(data: dict, context) -> None:
    account_sync.on_account_created(firestore.client(), AuthAccount.from_event(data))


def on_user_delete(data: dict, context) -> None:
    account_sync.on_account_deleted(firestore.client(), AuthAccount.from_event(data))


@on_document_updated(document=USERS_COLLECTION + "/{userId}")
def on_user_firestore_update(event: Event[Change[DocumentSnapshot]]) -> None:
    """
    Pushes email, phone number, display name and photo URL changes of a
    profile document back into its Auth account.
    """
    before = event.data.before.to_dict() if event.data.before else None
    after = event.data.after.to_dict() if event.data.after else None
    account_sync.on_profile_updated(event.params["userId"], before, after)


@storage_fn.on_object_finalized(bucket=settings.storage_bucket)
def on_storage_object_finalized(
    event: storage_fn.CloudEvent[storage_fn.StorageObjectData],
) -> None:
    reference_sync.on_object_finalized(
        firestore.client(), storage.bucket(event.data.bucket), event.data
    )


@storage_fn.on_object_deleted(bucket=settings.storage_bucket)
def on_storage_object_deleted(
    event: storage_fn.CloudEvent[storage_fn.StorageObjectData],
) -> None:
    reference_sync.on_object_deleted(firestore.client(), event.data)


@on_document_deleted(document=STORAGE_COLLECTION + "/{fileId}")
def on_storage_record_deleted(event: Event[DocumentSnapshot | None]) -> None:
    """Deletes the stored object of a deleted storage reference."""
    file_id = event.params["fileId"]
    record = event.data.to_dict() if event.data else None
    if record is None:
        logger.info(f"Storage reference {file_id} had no data")
        return
    reference_sync.on_record_deleted(storage.bucket(), file_id, record)
