"""Authorization policy: explicit allow-list or backend-reported domain."""

from collections.abc import Collection

from pydantic import BaseModel, Field


def username_from_email(email: str) -> str:
    """Return the local part of an email address ("" for "")."""
    return email.split("@")[0]


class Identity(BaseModel):
    """Authenticated principal derived from a validated token.

    ``domain`` is the domain, organization or group the backend reports for
    the principal. It is never parsed out of ``email``.
    """

    email: str = Field(default="", description="Fully qualified address")
    domain: str = Field(default="", description="Backend-reported domain/org/group")

    @property
    def username(self) -> str:
        return username_from_email(self.email)


def in_allow_list(email: str, allow_list: Collection[str]) -> bool:
    return bool(email) and email in allow_list


def authorize(
    identity: Identity,
    allow_list: Collection[str],
    required_domain: str,
) -> bool:
    """Decide whether an identity is authorized.

    A non-empty allow-list takes precedence: membership decides and the domain
    is not consulted. Otherwise the backend-reported domain must equal
    ``required_domain`` exactly. Construction guarantees at least one of the
    two is configured.

    Example:
        >>> authorize(Identity(email="a@x.com", domain="y.com"), {"a@x.com"}, "x.com")
        True
        >>> authorize(Identity(email="a@x.com", domain="y.com"), set(), "x.com")
        False
    """
    if allow_list:
        return in_allow_list(identity.email, allow_list)
    return bool(required_domain) and identity.domain == required_domain
