"""Client-side sign-in session.

Picks up the credential from the exchange redirect, keeps the user snapshot
in the durable tier, and drives the onboarding prompt. Server responses
always overwrite the snapshot.
"""

import logging
from typing import Any
from urllib.parse import parse_qs, urlparse

from client.api_client import AuthApiClient
from client.onboarding import (
    DISMISSED_KEY,
    USER_SNAPSHOT_KEY,
    OnboardingPrompt,
    OnboardingState,
    load_snapshot,
)
from client.snapshot import UserSnapshot
from domain.model.errors import ExchangeError, NoCredential
from port.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = 'authToken'


def _query_value(params: dict[str, list[str]], name: str) -> str | None:
    values = params.get(name)
    return values[0] if values else None


class AuthSession:
    def __init__(self, api: AuthApiClient, durable: KeyValueStore, session: KeyValueStore):
        self.api = api
        self.durable = durable
        self.session = session
        self.onboarding = OnboardingPrompt(durable, session)
        self.user: UserSnapshot | None = None

    @property
    def token(self) -> str | None:
        return self.durable.get(AUTH_TOKEN_KEY)

    # ── sign-in ──────────────────────────────────────────────

    def complete_login(self, redirect_url: str) -> OnboardingState:
        """Finish a provider sign-in from the frontend callback URL.

        Raises:
            ExchangeError: the redirect carries an error or no credential
        """
        params = parse_qs(urlparse(redirect_url).query)
        error = _query_value(params, "error")
        if error:
            raise ExchangeError(f"Sign-in failed: {error}", code=error)

        token = _query_value(params, "token")
        if not token:
            raise ExchangeError("No authentication token provided")

        # Without the hint the server flags decide
        hint = _query_value(params, "isNewUser")
        is_new_user = None if hint is None else hint == "true"
        return self.start(token, is_new_user=is_new_user)

    def login(self, email: str, password: str) -> OnboardingState:
        result = self.api.login(email, password)
        return self.start(result["token"], is_new_user=False)

    def register(self, email: str, password: str, name: str) -> OnboardingState:
        result = self.api.register(email, password, name)
        return self.start(result["token"], is_new_user=True)

    def start(self, token: str, is_new_user: bool | None = None) -> OnboardingState:
        """Adopt a freshly issued credential.

        Nothing is stored unless the server accepts the credential.
        """
        profile = self.api.get_profile(token)
        self.durable.set(AUTH_TOKEN_KEY, token)
        if is_new_user is False:
            profile = {**profile, "isFirstLogin": False}
        return self._adopt(profile)

    def restore(self) -> OnboardingState | None:
        """Page-reload path: rebuild from storage without a network call."""
        if not self.token:
            return None
        try:
            self.user = load_snapshot(self.durable)
        except ValueError as e:
            logger.warning("Ignoring unreadable user snapshot", extra={"error": str(e)})
            self.user = None
        return self.onboarding.evaluate(self.user)

    def logout(self) -> None:
        for key in (AUTH_TOKEN_KEY, USER_SNAPSHOT_KEY, DISMISSED_KEY):
            self.durable.remove(key)
        self.user = None
        self.onboarding = OnboardingPrompt(self.durable, self.session)

    # ── profile ──────────────────────────────────────────────

    def refresh_profile(self) -> OnboardingState:
        return self._adopt(self.api.get_profile(self._require_token()))

    def update_profile(self, full_name: str | None = None, avatar: str | None = None) -> OnboardingState:
        profile = self.api.update_profile(self._require_token(), full_name=full_name, avatar=avatar)
        return self._adopt(profile)

    def complete_profile(self) -> OnboardingState:
        return self._adopt(self.api.complete_profile(self._require_token()))

    def _require_token(self) -> str:
        token = self.token
        if not token:
            raise NoCredential("Not signed in")
        return token

    def _adopt(self, profile: dict[str, Any]) -> OnboardingState:
        try:
            user = UserSnapshot.from_profile(profile)
        except ValueError as e:
            logger.warning("Unusable profile response", extra={"error": str(e)})
            user = None

        # Evaluate before the snapshot write; the snapshot marks a returning user
        state = self.onboarding.evaluate(user)
        if user is not None:
            if state is OnboardingState.SHOWN and (user.is_profile_complete or not user.is_first_login):
                state = self.onboarding.dismiss()
            self.durable.set(USER_SNAPSHOT_KEY, user.to_json())
        self.user = user
        return state
