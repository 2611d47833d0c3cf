from dataclasses import dataclass


@dataclass(frozen=True)
class ExternalProfile:
    """Validated identity profile supplied by the OAuth provider."""
    email: str
    display_name: str
    avatar: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()
