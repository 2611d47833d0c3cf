"""Google OAuth 2.0 adapter.

Implements IdentityProviderPort with the authorization-code flow:
consent URL → token endpoint (code → access token) → userinfo endpoint.

API Documentation: https://developers.google.com/identity/protocols/oauth2/web-server
"""

import logging
from typing import Any
from urllib.parse import urlencode

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from domain.model.errors import ExchangeError

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = ("openid", "email", "profile")
API_TIMEOUT_SECONDS = 10.0


class GoogleOAuthAdapter:
    """Adapter that runs the Google side of the sign-in handshake."""

    name = "google"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._transport = transport

    def authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "state": state,
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> dict[str, Any]:
        """Redeem an authorization code and return Google's userinfo claims.

        Raises:
            ExchangeError: token exchange or userinfo lookup failed
        """
        if not self.client_id or not self.client_secret:
            raise ExchangeError("Google OAuth client is not configured")

        try:
            async with httpx.AsyncClient(
                timeout=API_TIMEOUT_SECONDS, transport=self._transport,
            ) as client:
                token_response = await _post_with_retry(client, GOOGLE_TOKEN_URL, {
                    "grant_type": "authorization_code",
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                })
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise ExchangeError("Google token response did not include an access token")

                userinfo_response = await _get_with_retry(
                    client, GOOGLE_USERINFO_URL, {"Authorization": f"Bearer {access_token}"},
                )
                userinfo_response.raise_for_status()
                claims = userinfo_response.json()

        except httpx.HTTPStatusError as e:
            # Status only; Google's error bodies can echo the code back
            logger.warning("Google OAuth request rejected", extra={
                "status": e.response.status_code,
                "url": str(e.request.url),
            })
            raise ExchangeError(f"Google OAuth request rejected ({e.response.status_code})") from e
        except httpx.RequestError as e:
            logger.error("Google OAuth request failed", extra={"error": str(e)[:200]})
            raise ExchangeError("Google OAuth request failed") from e
        except ValueError as e:
            raise ExchangeError("Google OAuth returned an unreadable response") from e

        if not isinstance(claims, dict):
            raise ExchangeError("Google userinfo response is not an object")
        return claims


@retry(
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=4),
    reraise=True,
)
async def _post_with_retry(client: httpx.AsyncClient, url: str, data: dict) -> httpx.Response:
    """POST form data with automatic retry on transient failures."""
    return await client.post(url, data=data, headers={"Accept": "application/json"})


@retry(
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=4),
    reraise=True,
)
async def _get_with_retry(client: httpx.AsyncClient, url: str, headers: dict) -> httpx.Response:
    """GET with automatic retry on transient failures."""
    return await client.get(url, headers=headers)
