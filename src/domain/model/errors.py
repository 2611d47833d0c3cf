"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class ConfigurationError(DomainError):
    """Required server configuration (e.g. the signing secret) is missing."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class RaceLoss(DuplicateError):
    """A concurrent writer created the same unique record first."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("User with this email was created concurrently")


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class MissingEmail(ValidationError):
    """Identity provider did not supply a usable email address."""


class ExchangeError(DomainError):
    """The identity provider handshake failed."""

    def __init__(self, message: str, code: str = "authentication_failed"):
        self.code = code
        super().__init__(message)


# ── Credential errors (all map to 401) ───────────────────


class CredentialError(DomainError):
    """Base class for bearer credential failures."""


class NoCredential(CredentialError):
    """No bearer credential was presented."""


class MalformedCredential(CredentialError):
    """Credential cannot be parsed."""


class InvalidCredential(CredentialError):
    """Credential signature or claims are invalid."""


class ExpiredCredential(CredentialError):
    """Credential has expired."""


class UnknownSubject(CredentialError):
    """Credential is valid but its user no longer exists."""
