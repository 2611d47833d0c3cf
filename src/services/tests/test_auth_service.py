"""Tests for local accounts and bearer authentication."""

import unittest
from unittest.mock import patch

from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import (
    DuplicateError,
    ExpiredCredential,
    InvalidCredential,
    MalformedCredential,
    NoCredential,
    UnknownSubject,
    ValidationError,
)
from domain.model.user import PROVIDER_GOOGLE, PROVIDER_LOCAL
from services import auth_service
from services.credential_service import CredentialCodec

PASSWORD = "Str0ngPassword"


@patch('services.auth_service.BCRYPT_ROUNDS', 4)
class TestRegister(unittest.TestCase):
    def setUp(self):
        self.repo = FakeUserRepository()

    def test_register_creates_local_user(self):
        user = auth_service.register(self.repo, "new@example.com", PASSWORD, "New User")

        self.assertEqual(user.email, "new@example.com")
        self.assertEqual(user.provider, PROVIDER_LOCAL)
        self.assertTrue(user.is_first_login)
        self.assertFalse(user.is_profile_complete)
        self.assertNotEqual(user.password_hash, PASSWORD)

    def test_register_duplicate_email(self):
        auth_service.register(self.repo, "dup@example.com", PASSWORD, "First")
        with self.assertRaises(DuplicateError):
            auth_service.register(self.repo, "DUP@example.com", PASSWORD, "Second")

    def test_register_weak_passwords(self):
        cases = {
            "Sh0rt": "8 characters",
            "alllowercase1": "uppercase",
            "ALLUPPERCASE1": "lowercase",
            "NoNumbersHere": "number",
        }
        for password, message in cases.items():
            with self.subTest(password=password):
                with self.assertRaises(ValidationError) as ctx:
                    auth_service.register(self.repo, "weak@example.com", password, "Weak")
                self.assertIn(message, str(ctx.exception))
        self.assertEqual(self.repo.store, {})


@patch('services.auth_service.BCRYPT_ROUNDS', 4)
class TestLogin(unittest.TestCase):
    def setUp(self):
        self.repo = FakeUserRepository()

    def test_login_success_updates_last_login(self):
        created = auth_service.register(self.repo, "me@example.com", PASSWORD, "Me")
        self.assertIsNone(created.last_login)

        user = auth_service.login(self.repo, "me@example.com", PASSWORD)

        self.assertEqual(user.id, created.id)
        self.assertIsNotNone(self.repo.get_by_id(user.id).last_login)

    def test_login_wrong_password(self):
        auth_service.register(self.repo, "me@example.com", PASSWORD, "Me")
        with self.assertRaises(ValidationError) as ctx:
            auth_service.login(self.repo, "me@example.com", "WrongPassw0rd")
        self.assertEqual(str(ctx.exception), "Invalid email or password")

    def test_login_unknown_email_same_message(self):
        with self.assertRaises(ValidationError) as ctx:
            auth_service.login(self.repo, "ghost@example.com", PASSWORD)
        self.assertEqual(str(ctx.exception), "Invalid email or password")

    def test_login_provider_account_rejected(self):
        self.repo.create(email="g@example.com", name="G", provider=PROVIDER_GOOGLE)
        with self.assertRaises(auth_service.ProviderAccountError) as ctx:
            auth_service.login(self.repo, "g@example.com", PASSWORD)
        self.assertIn("Google", str(ctx.exception))


class TestAuthenticate(unittest.TestCase):
    def setUp(self):
        self.repo = FakeUserRepository()
        self.codec = CredentialCodec("authenticate-secret")
        self.user = self.repo.create(email="a@example.com", name="A", provider=PROVIDER_GOOGLE)

    def test_valid_token_resolves_user(self):
        token = self.codec.issue(self.user.id)
        self.assertEqual(auth_service.authenticate(self.repo, self.codec, token).id, self.user.id)

    def test_missing_token(self):
        for token in (None, ""):
            with self.subTest(token=token):
                with self.assertRaises(NoCredential):
                    auth_service.authenticate(self.repo, self.codec, token)

    def test_codec_failures_propagate(self):
        with self.assertRaises(MalformedCredential):
            auth_service.authenticate(self.repo, self.codec, "garbage")
        with self.assertRaises(InvalidCredential):
            auth_service.authenticate(self.repo, self.codec, CredentialCodec("other").issue(self.user.id))

    def test_expired_token(self):
        from datetime import datetime, timedelta, timezone
        past = datetime.now(timezone.utc) - timedelta(days=8)
        token = CredentialCodec("authenticate-secret", clock=lambda: past).issue(self.user.id)
        with self.assertRaises(ExpiredCredential):
            auth_service.authenticate(self.repo, self.codec, token)

    def test_deleted_user_is_unknown_subject(self):
        token = self.codec.issue(self.user.id)
        self.repo.delete(self.user.id)
        with self.assertRaises(UnknownSubject):
            auth_service.authenticate(self.repo, self.codec, token)


if __name__ == '__main__':
    unittest.main()
