"""Profile-completion prompt gate.

Decides whether the "complete your profile" prompt renders, from the
user's onboarding flags plus two client storage tiers:

    durable  ``profileCompletionDismissed``  prompt was dismissed
    durable  ``user``                        last-seen user snapshot
    session  ``dialog_shown_<userId>``       prompt already shown this session

States::

    UNEVALUATED ──► SUPPRESSED
         │
         └──────► SHOWN ──► DISMISSED

The snapshot is read before anything else so a returning user is
suppressed even when the session tier was wiped. Unreadable inputs
always suppress.
"""

import logging
from dataclasses import replace
from enum import Enum

from client.snapshot import UserSnapshot
from port.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

DISMISSED_KEY = 'profileCompletionDismissed'
USER_SNAPSHOT_KEY = 'user'
SHOWN_MARKER_PREFIX = 'dialog_shown_'
FLAG_VALUE = 'true'


class OnboardingState(str, Enum):
    """Lifecycle of the profile-completion prompt."""
    UNEVALUATED = 'unevaluated'
    SUPPRESSED = 'suppressed'
    SHOWN = 'shown'
    DISMISSED = 'dismissed'


def shown_marker_key(user_id: str) -> str:
    return f"{SHOWN_MARKER_PREFIX}{user_id}"


def load_snapshot(durable: KeyValueStore) -> UserSnapshot | None:
    """Read the durable user snapshot.

    Returns None when absent.

    Raises:
        ValueError: a snapshot is stored but cannot be read
    """
    raw = durable.get(USER_SNAPSHOT_KEY)
    if raw is None:
        return None
    return UserSnapshot.from_json(raw)


class OnboardingPrompt:
    """Single-threaded state machine for one browsing context."""

    def __init__(self, durable: KeyValueStore, session: KeyValueStore):
        self.durable = durable
        self.session = session
        self.state = OnboardingState.UNEVALUATED
        self._user_id: str | None = None

    def evaluate(self, user: UserSnapshot | None) -> OnboardingState:
        """Decide once per user; later calls return the settled state."""
        user_id = user.user_id if user else None
        if self.state is not OnboardingState.UNEVALUATED and user_id == self._user_id:
            return self.state

        self._user_id = user_id
        self.state = self._decide(user)
        if self.state is OnboardingState.SHOWN:
            self.session.set(shown_marker_key(user_id), FLAG_VALUE)

        logger.info("Onboarding prompt evaluated", extra={"userId": user_id, "state": self.state.value})
        return self.state

    def _decide(self, user: UserSnapshot | None) -> OnboardingState:
        try:
            snapshot = load_snapshot(self.durable)
        except ValueError as e:
            logger.warning("Unreadable user snapshot, suppressing prompt", extra={"error": str(e)})
            return OnboardingState.SUPPRESSED

        if user is None:
            return OnboardingState.SUPPRESSED
        if snapshot is not None and snapshot.user_id == user.user_id:
            return OnboardingState.SUPPRESSED
        if user.is_first_login is not True or user.is_profile_complete is not False:
            return OnboardingState.SUPPRESSED
        if self.durable.get(DISMISSED_KEY) is not None:
            return OnboardingState.SUPPRESSED
        if self.session.get(shown_marker_key(user.user_id)) is not None:
            return OnboardingState.SUPPRESSED
        return OnboardingState.SHOWN

    def dismiss(self) -> OnboardingState:
        """Close a shown prompt. Both flags are written before returning."""
        if self.state is not OnboardingState.SHOWN:
            return self.state

        self.durable.set(DISMISSED_KEY, FLAG_VALUE)
        self.session.set(shown_marker_key(self._user_id), FLAG_VALUE)
        self.state = OnboardingState.DISMISSED
        logger.info("Onboarding prompt dismissed", extra={"userId": self._user_id})
        return self.state

    def open_profile_editor(self) -> OnboardingState:
        """Navigating to the profile editor counts as dismissal."""
        return self.dismiss()


def force_reset(durable: KeyValueStore, session: KeyValueStore, user_id: str) -> None:
    """Operational escape hatch for a prompt stuck in a loop.

    Clears the dismissed flag and this user's session marker, and marks any
    stored snapshot as no longer a first login.
    """
    durable.remove(DISMISSED_KEY)
    session.remove(shown_marker_key(user_id))

    try:
        snapshot = load_snapshot(durable)
    except ValueError as e:
        logger.warning("Unreadable user snapshot left in place", extra={"error": str(e)})
        return

    if snapshot is not None and snapshot.is_first_login:
        durable.set(USER_SNAPSHOT_KEY, replace(snapshot, is_first_login=False).to_json())

    logger.warning("Onboarding prompt state force-reset", extra={"userId": user_id})
