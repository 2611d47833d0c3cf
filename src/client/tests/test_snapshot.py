"""Tests for UserSnapshot parsing."""

import json
import unittest

from client.snapshot import UserSnapshot

PROFILE = {
    "id": "user-1",
    "email": "alice@example.com",
    "fullName": "Alice",
    "avatar": None,
    "authProvider": "google",
    "isFirstLogin": True,
    "isProfileComplete": False,
}


class TestUserSnapshot(unittest.TestCase):
    def test_from_profile(self):
        snapshot = UserSnapshot.from_profile(PROFILE)
        self.assertEqual(snapshot.user_id, "user-1")
        self.assertEqual(snapshot.full_name, "Alice")
        self.assertEqual(snapshot.auth_provider, "google")
        self.assertTrue(snapshot.is_first_login)

    def test_stored_form_uses_user_id_key(self):
        stored = json.loads(UserSnapshot.from_profile(PROFILE).to_json())
        self.assertEqual(stored["userId"], "user-1")
        self.assertNotIn("id", stored)
        self.assertEqual(UserSnapshot.from_json(json.dumps(stored)), UserSnapshot.from_profile(PROFILE))

    def test_corrupt_json(self):
        with self.assertRaises(ValueError):
            UserSnapshot.from_json("{not json")

    def test_non_object_json(self):
        with self.assertRaises(ValueError):
            UserSnapshot.from_json('"just a string"')

    def test_missing_id(self):
        with self.assertRaises(ValueError):
            UserSnapshot.from_profile({**PROFILE, "id": ""})

    def test_string_flags_rejected(self):
        with self.assertRaises(ValueError):
            UserSnapshot.from_profile({**PROFILE, "isFirstLogin": "true"})

    def test_missing_flags_rejected(self):
        data = dict(PROFILE)
        del data["isProfileComplete"]
        with self.assertRaises(ValueError):
            UserSnapshot.from_profile(data)


if __name__ == '__main__':
    unittest.main()
