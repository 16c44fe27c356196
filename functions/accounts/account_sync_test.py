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

import unittest
from unittest.mock import MagicMock, call, patch

from google.api_core import exceptions
from google.cloud.firestore_v1 import Increment

from accounts import account_sync
from shared.types import AuthAccount, default_permissions


def make_db():
    db = MagicMock()
    refs = {}

    def document(doc_id):
        return refs.setdefault(doc_id, MagicMock())

    db.collection.return_value.document.side_effect = document
    return db, refs


class BuildSeedProfileTest(unittest.TestCase):

    def test_splits_display_name(self):
        account = AuthAccount(
            uid="u1",
            email="ada@example.com",
            display_name="Ada King Lovelace",
            photo_url="https://a.test/p.png",
            phone_number="+15551234567",
        )

        profile = account_sync.build_seed_profile(account).to_firestore()

        self.assertEqual(
            profile,
            {
                "email": "ada@example.com",
                "displayName": "Ada King Lovelace",
                "firstName": "Ada King",
                "lastName": "Lovelace",
                "photoURL": "https://a.test/p.png",
                "phoneNumber": "+15551234567",
                "dob": False,
                "permissions": default_permissions(),
            },
        )

    def test_account_without_display_name(self):
        profile = account_sync.build_seed_profile(
            AuthAccount(uid="u1", phone_number="+15551234567")
        ).to_firestore()

        self.assertEqual(profile["displayName"], "")
        self.assertEqual(profile["firstName"], "")
        self.assertEqual(profile["lastName"], "")
        self.assertIsNone(profile["email"])
        self.assertFalse(any(profile["permissions"].values()))


@patch("accounts.account_sync.logger")
class AccountLifecycleTest(unittest.TestCase):

    def setUp(self):
        self.db, self.refs = make_db()
        self.account = AuthAccount(uid="u1", email="a@b.com", display_name="Ada")

    def test_created_seeds_profile_and_increments(self, mock_logger):
        account_sync.on_account_created(self.db, self.account)

        self.refs["u1"].set.assert_called_once_with(
            account_sync.build_seed_profile(self.account).to_firestore(), merge=True
        )
        self.refs["@info"].set.assert_called_once_with(
            {"totalAccounts": Increment(1)}, merge=True
        )

    def test_redelivery_rewrites_profile_and_counts_twice(self, mock_logger):
        account_sync.on_account_created(self.db, self.account)
        account_sync.on_account_created(self.db, self.account)

        profile_calls = self.refs["u1"].set.call_args_list
        self.assertEqual(len(profile_calls), 2)
        self.assertEqual(profile_calls[0], profile_calls[1])
        self.assertEqual(self.refs["@info"].set.call_count, 2)

    def test_deleted_removes_profile_and_decrements(self, mock_logger):
        account_sync.on_account_deleted(self.db, self.account)

        self.refs["u1"].delete.assert_called_once_with()
        self.refs["@info"].set.assert_called_once_with(
            {"totalAccounts": Increment(-1)}, merge=True
        )

    def test_counter_failure_is_only_logged(self, mock_logger):
        self.db, self.refs = make_db()
        self.refs["@info"] = MagicMock()
        self.refs["@info"].set.side_effect = exceptions.ServiceUnavailable("down")

        account_sync.on_account_created(self.db, self.account)

        self.refs["u1"].set.assert_called_once()
        mock_logger.error.assert_called_once()

    def test_profile_failure_propagates(self, mock_logger):
        self.refs["u1"] = MagicMock()
        self.refs["u1"].set.side_effect = exceptions.ServiceUnavailable("down")

        with self.assertRaises(exceptions.ServiceUnavailable):
            account_sync.on_account_created(self.db, self.account)
        # The counter write is independent of the profile write.
        self.refs["@info"].set.assert_called_once()


class ProfileAuthUpdateTest(unittest.TestCase):

    def test_normalizes_fields(self):
        update = account_sync.profile_auth_update(
            {
                "email": "a@b.com",
                "phoneNumber": "(555) 123-4567",
                "displayName": "Ada",
                "photoURL": "javascript:alert(1)",
            }
        )

        self.assertEqual(
            update,
            {
                "email": "a@b.com",
                "phone_number": "+15551234567",
                "display_name": "Ada",
                "photo_url": None,
            },
        )

    def test_empty_fields_clear_auth_values(self):
        update = account_sync.profile_auth_update(
            {"email": "", "phoneNumber": "123", "displayName": ""}
        )

        self.assertEqual(
            update, {"phone_number": None, "display_name": None, "photo_url": None}
        )


@patch("accounts.account_sync.logger")
@patch("accounts.account_sync.auth")
class ProfileUpdatedTest(unittest.TestCase):

    before = {
        "email": "a@b.com",
        "displayName": "Ada",
        "phoneNumber": "+15551234567",
        "photoURL": "https://a.test/p.png",
        "nickname": "Ace",
    }

    def test_pushes_changed_fields(self, mock_auth, mock_logger):
        after = dict(self.before, displayName="Ada Lovelace")

        update = account_sync.on_profile_updated("u1", self.before, after)

        self.assertEqual(update["display_name"], "Ada Lovelace")
        mock_auth.update_user.assert_called_once_with(
            "u1",
            email="a@b.com",
            phone_number="+15551234567",
            display_name="Ada Lovelace",
            photo_url="https://a.test/p.png",
        )

    def test_skips_unrelated_changes(self, mock_auth, mock_logger):
        after = dict(self.before, nickname="Countess")

        self.assertIsNone(account_sync.on_profile_updated("u1", self.before, after))
        mock_auth.update_user.assert_not_called()

    def test_skips_counter_document(self, mock_auth, mock_logger):
        result = account_sync.on_profile_updated(
            "@info", {"totalAccounts": 1}, {"totalAccounts": 2}
        )

        self.assertIsNone(result)
        mock_auth.update_user.assert_not_called()

    def test_skips_when_document_is_gone(self, mock_auth, mock_logger):
        self.assertIsNone(account_sync.on_profile_updated("u1", self.before, None))
        mock_auth.update_user.assert_not_called()

    def test_missing_before_always_pushes(self, mock_auth, mock_logger):
        account_sync.on_profile_updated("u1", None, self.before)

        mock_auth.update_user.assert_called_once()
        self.assertEqual(mock_auth.update_user.call_args, call(
            "u1",
            email="a@b.com",
            phone_number="+15551234567",
            display_name="Ada",
            photo_url="https://a.test/p.png",
        ))


if __name__ == "__main__":
    unittest.main()
