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
from unittest.mock import MagicMock, patch

from firebase_admin import auth as firebase_auth

from accounts import users_routes
from shared.config import Settings
from shared.errors import ValidationError


class ParseLimitTest(unittest.TestCase):

    def test_defaults_for_missing_or_non_numeric(self):
        self.assertEqual(users_routes.parse_limit(None), 100)
        self.assertEqual(users_routes.parse_limit("ten"), 100)
        self.assertEqual(users_routes.parse_limit("2.5"), 100)

    def test_valid_limits(self):
        self.assertEqual(users_routes.parse_limit("1"), 1)
        self.assertEqual(users_routes.parse_limit("999"), 999)

    def test_out_of_range(self):
        with self.assertRaises(ValidationError) as context:
            users_routes.parse_limit("1000")
        self.assertEqual(
            context.exception.message,
            "You cannot fetch more than 1000 users at one query.",
        )
        with self.assertRaises(ValidationError):
            users_routes.parse_limit("0")
        with self.assertRaises(ValidationError):
            users_routes.parse_limit("-5")


class ListUsersTest(unittest.TestCase):

    def setUp(self):
        mock_firestore = MagicMock()
        snapshot = mock_firestore.client.return_value.collection.return_value.document.return_value.get.return_value
        snapshot.exists = True
        snapshot.to_dict.side_effect = lambda: {"permissions": self.permissions}
        self.permissions = {"get_user": True}

        self.auth = MagicMock()
        core_auth = MagicMock()
        core_auth.verify_id_token.return_value = {"uid": "caller"}

        for target, new in [
            ("accounts.cloud_core.firestore", mock_firestore),
            ("accounts.cloud_core.auth", core_auth),
            ("accounts.users_routes.auth", self.auth),
        ]:
            patcher = patch(target, new)
            patcher.start()
            self.addCleanup(patcher.stop)

        app = users_routes.create_app(Settings(admin_uid="admin-uid"))
        self.client = app.test_client()
        self.headers = {"Authorization": "Bearer token"}

    def _page(self, uids, next_page_token=""):
        page = MagicMock()
        page.users = [firebase_auth.UserRecord({"localId": uid}) for uid in uids]
        page.next_page_token = next_page_token
        return page

    def test_first_page(self):
        self.auth.list_users.return_value = self._page(["a", "b"], "token-2")

        response = self.client.get("/?limit=2", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["nextPageToken"], "token-2")
        self.assertEqual([user["uid"] for user in body["data"]], ["a", "b"])
        self.auth.list_users.assert_called_once_with(page_token=None, max_results=2)

    def test_follows_next_token(self):
        self.auth.list_users.return_value = self._page(["c"])

        response = self.client.get("/?next=token-2", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.get_json()["nextPageToken"])
        self.auth.list_users.assert_called_once_with(
            page_token="token-2", max_results=100
        )

    def test_limit_too_large(self):
        response = self.client.get("/?limit=5000", headers=self.headers)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json()["error"]["code"], "invalid-argument"
        )
        self.auth.list_users.assert_not_called()

    def test_requires_get_user_permission(self):
        self.permissions = {"get_user": False}

        response = self.client.get("/", headers=self.headers)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["code"], "forbidden")
        self.auth.list_users.assert_not_called()

    def test_requires_token(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["code"], "unauthorized")

    def test_invalid_page_token(self):
        self.auth.list_users.side_effect = ValueError(
            "page_token must be a non-empty string."
        )

        response = self.client.get("/?next=bogus", headers=self.headers)

        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
