"""Tests for CredentialCodec."""

import base64
import json
import unittest
from datetime import datetime, timedelta, timezone

from jose import jwt

from domain.model.errors import (
    ConfigurationError,
    CredentialError,
    ExpiredCredential,
    InvalidCredential,
    MalformedCredential,
)
from services.credential_service import JWT_ALGORITHM, CredentialCodec

SECRET = "test-secret-key-for-credentials"


def _tamper(token: str) -> str:
    """Swap the first signature character for a different base64url character."""
    header, payload, signature = token.split(".")
    first = "B" if signature[0] == "A" else "A"
    return ".".join([header, payload, first + signature[1:]])


class TestCredentialCodecConstruction(unittest.TestCase):
    def test_missing_secret_raises_configuration_error(self):
        with self.assertRaises(ConfigurationError) as ctx:
            CredentialCodec(None)
        self.assertIn("JWT_SECRET_KEY", str(ctx.exception))

    def test_empty_secret_raises_configuration_error(self):
        with self.assertRaises(ConfigurationError):
            CredentialCodec("")


class TestIssueAndVerify(unittest.TestCase):
    def setUp(self):
        self.codec = CredentialCodec(SECRET)

    def test_round_trip_returns_user_id(self):
        token = self.codec.issue("user-123")
        self.assertEqual(self.codec.verify(token), "user-123")

    def test_claims_shape(self):
        token = self.codec.issue("user-123")
        claims = jwt.get_unverified_claims(token)
        self.assertEqual(claims["sub"], "user-123")
        self.assertIsInstance(claims["iat"], int)
        self.assertEqual(claims["exp"] - claims["iat"], int(timedelta(days=7).total_seconds()))

    def test_custom_expiration(self):
        codec = CredentialCodec(SECRET, expiration=timedelta(hours=1))
        claims = jwt.get_unverified_claims(codec.issue("u1"))
        self.assertEqual(claims["exp"] - claims["iat"], 3600)


class TestVerifyFailures(unittest.TestCase):
    def setUp(self):
        self.codec = CredentialCodec(SECRET)

    def test_tampered_signature_is_invalid(self):
        token = _tamper(self.codec.issue("user-123"))
        with self.assertRaises(InvalidCredential):
            self.codec.verify(token)

    def test_swapped_payload_is_invalid(self):
        token = self.codec.issue("user-123")
        header, _, signature = token.split(".")
        claims = jwt.get_unverified_claims(token)
        forged = base64.urlsafe_b64encode(json.dumps({**claims, "sub": "admin"}).encode()).rstrip(b"=").decode()
        with self.assertRaises(InvalidCredential):
            self.codec.verify(".".join([header, forged, signature]))

    def test_non_canonical_signature_is_invalid(self):
        token = self.codec.issue("user-123")
        header, payload, signature = token.split(".")
        # 43 chars carry 256 bits; the last char has 2 unused low bits
        alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
        last = alphabet.index(signature[-1])
        for spare in (1, 2, 3):
            variant = signature[:-1] + alphabet[last ^ spare]
            with self.subTest(variant=variant[-1]):
                with self.assertRaises(InvalidCredential):
                    self.codec.verify(".".join([header, payload, variant]))

    def test_every_single_bit_flip_is_rejected(self):
        token = self.codec.issue("user-123")
        for position, char in enumerate(token):
            for bit in range(7):
                flipped = chr(ord(char) ^ (1 << bit))
                tampered = token[:position] + flipped + token[position + 1:]
                segments = tampered.split(".")
                well_formed = len(segments) == 3 and all(
                    s and all(c.isascii() and (c.isalnum() or c in "-_") for c in s) for s in segments
                )
                expected = InvalidCredential if well_formed else MalformedCredential
                with self.subTest(position=position, flipped=flipped):
                    with self.assertRaises(expected):
                        self.codec.verify(tampered)

    def test_wrong_secret_is_invalid(self):
        token = CredentialCodec("another-secret").issue("user-123")
        with self.assertRaises(InvalidCredential):
            self.codec.verify(token)

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(days=8)
        old_codec = CredentialCodec(SECRET, clock=lambda: past)
        token = old_codec.issue("user-123")
        with self.assertRaises(ExpiredCredential):
            self.codec.verify(token)

    def test_tampered_expired_token_is_invalid_not_expired(self):
        past = datetime.now(timezone.utc) - timedelta(days=8)
        token = _tamper(CredentialCodec(SECRET, clock=lambda: past).issue("user-123"))
        with self.assertRaises(InvalidCredential):
            self.codec.verify(token)

    def test_not_a_token_is_malformed(self):
        for value in ("not-a-token", "", "a.b", "a.b.c.d"):
            with self.subTest(value=value):
                with self.assertRaises(MalformedCredential):
                    self.codec.verify(value)

    def test_well_formed_garbage_is_invalid(self):
        with self.assertRaises(InvalidCredential):
            self.codec.verify("a.b.c")

    def test_non_string_is_malformed(self):
        with self.assertRaises(MalformedCredential):
            self.codec.verify(None)

    def test_missing_subject_is_invalid(self):
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
        token = jwt.encode({"exp": exp}, SECRET, algorithm=JWT_ALGORITHM)
        with self.assertRaises(InvalidCredential):
            self.codec.verify(token)

    def test_missing_expiry_is_invalid(self):
        token = jwt.encode({"sub": "user-123"}, SECRET, algorithm=JWT_ALGORITHM)
        with self.assertRaises(InvalidCredential):
            self.codec.verify(token)

    def test_all_failures_share_base_class(self):
        for error in (MalformedCredential, InvalidCredential, ExpiredCredential):
            self.assertTrue(issubclass(error, CredentialError))


if __name__ == '__main__':
    unittest.main()
