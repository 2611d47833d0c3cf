"""Tests for GoogleOAuthAdapter using httpx.MockTransport."""

import unittest
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import httpx
from tenacity import wait_none

from adapter.external import google_oauth
from adapter.external.google_oauth import (
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    GoogleOAuthAdapter,
)
from domain.model.errors import ExchangeError

CLAIMS = {
    "sub": "1234567890",
    "email": "alice@example.com",
    "email_verified": True,
    "name": "Alice",
    "picture": "https://img.test/alice.png",
}


def _adapter(handler, client_id="client-id", client_secret="client-secret"):
    return GoogleOAuthAdapter(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri="http://localhost:8000/auth/google/callback",
        transport=httpx.MockTransport(handler),
    )


class TestAuthorizeUrl(unittest.TestCase):
    def test_contains_client_and_state(self):
        url = _adapter(lambda request: httpx.Response(200)).authorize_url(state="state-123")
        params = parse_qs(urlparse(url).query)

        self.assertTrue(url.startswith("https://accounts.google.com/"))
        self.assertEqual(params["client_id"], ["client-id"])
        self.assertEqual(params["state"], ["state-123"])
        self.assertEqual(params["response_type"], ["code"])
        self.assertEqual(params["scope"], ["openid email profile"])
        self.assertEqual(params["redirect_uri"], ["http://localhost:8000/auth/google/callback"])


class TestFetchProfile(unittest.IsolatedAsyncioTestCase):
    async def test_success(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if str(request.url) == GOOGLE_TOKEN_URL:
                return httpx.Response(200, json={"access_token": "google-access", "token_type": "Bearer"})
            if str(request.url) == GOOGLE_USERINFO_URL:
                return httpx.Response(200, json=CLAIMS)
            return httpx.Response(404)

        claims = await _adapter(handler).fetch_profile("auth-code")

        self.assertEqual(claims, CLAIMS)
        token_form = parse_qs(seen[0].content.decode())
        self.assertEqual(token_form["code"], ["auth-code"])
        self.assertEqual(token_form["grant_type"], ["authorization_code"])
        self.assertEqual(seen[1].headers["Authorization"], "Bearer google-access")

    async def test_rejected_code(self):
        def handler(request):
            return httpx.Response(400, json={"error": "invalid_grant"})

        with self.assertRaises(ExchangeError) as ctx:
            await _adapter(handler).fetch_profile("bad-code")
        self.assertEqual(ctx.exception.code, "authentication_failed")

    async def test_missing_access_token(self):
        def handler(request):
            return httpx.Response(200, json={"token_type": "Bearer"})

        with self.assertRaises(ExchangeError):
            await _adapter(handler).fetch_profile("auth-code")

    async def test_unreadable_userinfo(self):
        def handler(request):
            if str(request.url) == GOOGLE_TOKEN_URL:
                return httpx.Response(200, json={"access_token": "google-access"})
            return httpx.Response(200, text="<html>")

        with self.assertRaises(ExchangeError):
            await _adapter(handler).fetch_profile("auth-code")

    async def test_not_configured(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        with self.assertRaises(ExchangeError):
            await _adapter(handler, client_id="", client_secret="").fetch_profile("auth-code")
        self.assertEqual(calls, [])

    async def test_connect_error_retried_then_raised(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with patch.object(google_oauth._post_with_retry.retry, "wait", wait_none()):
            with self.assertRaises(ExchangeError):
                await _adapter(handler).fetch_profile("auth-code")
        self.assertEqual(len(calls), 3)


if __name__ == '__main__':
    unittest.main()
