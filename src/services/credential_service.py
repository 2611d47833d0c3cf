"""Credential codec: issues and verifies bearer credentials.

Credentials are compact HS256 JWTs carrying ``sub`` (user id), ``iat`` and
``exp``. Nothing is stored server-side: verification is pure computation
against the shared secret.
"""

import base64
import binascii
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import ExpiredSignatureError, JWTError, jwt

from domain.model.errors import (
    ConfigurationError,
    ExpiredCredential,
    InvalidCredential,
    MalformedCredential,
)

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_EXPIRATION = timedelta(days=7)

_SEGMENT = re.compile(r"^[A-Za-z0-9_-]+\Z")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialCodec:
    """Signs and verifies bearer credentials with a server-held secret.

    Raises:
        ConfigurationError: secret is missing (checked once, at construction)
    """

    def __init__(
        self,
        secret: str | None,
        expiration: timedelta = DEFAULT_EXPIRATION,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ConfigurationError(
                "JWT_SECRET_KEY environment variable is required. "
                "Generate a secure key with: openssl rand -hex 32"
            )
        self._secret = secret
        self.expiration = expiration
        self._clock = clock

    def issue(self, user_id: str) -> str:
        """Create a signed credential for user_id."""
        issued_at = self._clock()
        payload = {
            "sub": user_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.expiration).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify(self, credential: str) -> str:
        """Verify a credential and return the user id it carries.

        Only structure decides "malformed": three non-empty base64url
        segments. Anything structurally sound that fails to decode or verify
        is invalid. Signature is checked before expiry, so a tampered token
        is reported as invalid even when it is also expired.

        Raises:
            MalformedCredential: not three base64url segments
            InvalidCredential: undecodable, non-canonical or badly signed, or no subject
            ExpiredCredential: signature is fine but the token has expired
        """
        segments = credential.split(".") if isinstance(credential, str) else []
        if len(segments) != 3 or not all(_SEGMENT.match(s) for s in segments):
            raise MalformedCredential("Credential is not a compact token")
        if not _is_canonical(segments[2]):
            raise InvalidCredential("Credential signature is not canonically encoded")

        try:
            claims = jwt.decode(
                credential,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require_exp": True, "require_sub": True},
            )
        except ExpiredSignatureError as e:
            raise ExpiredCredential("Credential has expired") from e
        except JWTError as e:
            logger.debug("JWT verification failed", extra={"error": str(e)})
            raise InvalidCredential("Credential verification failed") from e

        user_id = claims.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidCredential("Credential has no subject")
        return user_id


def _is_canonical(segment: str) -> bool:
    """True when segment is the unpadded base64url encoding of its own bytes.

    Decoders ignore the unused low bits of the final character, so without
    this check several spellings verify as the same signature.
    """
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") == segment
