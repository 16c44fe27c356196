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

# Keeps uploaded objects and their Firestore storage references in sync.
#
# Deleting either side deletes the other. Each handler is a no-op when its
# counterpart is already gone, so a deletion cascades at most one hop.

import os
from dataclasses import asdict
from typing import Any, Optional

from dacite import Config, DaciteError, from_dict
from firebase_functions import logger
from google.api_core import exceptions
from google.auth.exceptions import GoogleAuthError

from shared.constants import (
    DEFAULT_PRIVACY,
    FILE_ID_METADATA_KEY,
    PRIVACY_METADATA_KEY,
    SIGNED_URL_EXPIRATION,
    STORAGE_COLLECTION,
)
from shared.json_utils import convert_keys
from shared.types import StorageReference


def _custom_metadata(object_data: Any) -> dict:
    return dict(getattr(object_data, "metadata", None) or {})


def build_storage_reference(object_data: Any, download_url: str) -> StorageReference:
    """Denormalizes the metadata of a finalized object."""
    custom_metadata = _custom_metadata(object_data)
    extension = os.path.splitext(object_data.name)[1].lstrip(".")
    return StorageReference(
        custom_metadata=custom_metadata,
        path=object_data.name,
        extension=extension,
        download_url=download_url,
        content_type=object_data.content_type,
        size=int(object_data.size or 0),
        created_at=getattr(object_data, "time_created", None),
        privacy=custom_metadata.get(PRIVACY_METADATA_KEY) or DEFAULT_PRIVACY,
    )


def storage_reference_to_firestore(reference: StorageReference) -> dict:
    # Custom metadata keys are user-defined and kept verbatim.
    return convert_keys(asdict(reference), "snake_to_camel", recursive=False)


def storage_reference_from_firestore(data: dict) -> StorageReference:
    return from_dict(
        data_class=StorageReference,
        data=convert_keys(data, "camel_to_snake", recursive=False),
        config=Config(check_types=False),
    )


def on_object_finalized(db, bucket, object_data: Any) -> Optional[str]:
    """
    Upserts the storage reference of an uploaded object.

    The record is keyed by the object's `fileId` custom metadata when present,
    otherwise Firestore assigns an ID. Signing and write failures are logged,
    not raised.

    Returns:
        The ID of the written record, or None if signing or the write failed.
    """
    blob = bucket.blob(object_data.name)
    try:
        download_url = blob.generate_signed_url(expiration=SIGNED_URL_EXPIRATION)
    except (AttributeError, GoogleAuthError, exceptions.GoogleAPICallError) as e:
        # Signing needs service account credentials with a private key or
        # the IAM signBlob permission.
        logger.error(f"Failed to sign a download URL for {object_data.name}: {e}")
        return None
    reference = build_storage_reference(object_data, download_url)
    data = storage_reference_to_firestore(reference)

    file_id = reference.custom_metadata.get(FILE_ID_METADATA_KEY)
    collection = db.collection(STORAGE_COLLECTION)
    try:
        if file_id:
            collection.document(file_id).set(data, merge=True)
        else:
            _, doc_ref = collection.add(data)
            file_id = doc_ref.id
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to save storage reference for {object_data.name}: {e}")
        return None

    logger.info(f"Saved storage reference {file_id} for {object_data.name}")
    return file_id


def on_object_deleted(db, object_data: Any) -> bool:
    """
    Deletes the storage reference of a deleted object.

    Objects uploaded without a `fileId` have no addressable record and are
    left alone. Returns whether a record was deleted.
    """
    file_id = _custom_metadata(object_data).get(FILE_ID_METADATA_KEY)
    if not file_id:
        logger.info(f"No {FILE_ID_METADATA_KEY} on {object_data.name}, skipping")
        return False

    doc_ref = db.collection(STORAGE_COLLECTION).document(file_id)
    if not doc_ref.get().exists:
        return False

    doc_ref.delete()
    logger.info(f"Deleted storage reference {file_id}")
    return True


def on_record_deleted(bucket, file_id: str, record: Optional[dict]) -> bool:
    """
    Deletes the object described by a deleted storage reference.

    Returns whether an object was deleted.
    """
    if not record:
        return False

    try:
        reference = storage_reference_from_firestore(record)
    except DaciteError as e:
        logger.warn(f"Storage reference {file_id} is malformed: {e}")
        return False
    if not reference.path:
        logger.warn(f"Storage reference {file_id} has no path")
        return False

    try:
        bucket.blob(reference.path).delete()
    except exceptions.NotFound:
        logger.info(f"Object {reference.path} of {file_id} is already deleted")
        return False

    logger.info(f"Deleted object {reference.path} of storage reference {file_id}")
    return True
