"""OAuth2 bearer token returned by an identity provider."""

from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

# Tokens are treated as expired slightly early so they do not lapse in flight.
EXPIRY_DELTA = timedelta(seconds=10)


class Token(BaseModel):
    """Opaque bearer credential obtained from an authorization code exchange.

    Local validity (``valid``) only covers expiry and token type. Providers
    must still re-confirm the token with the backend before trusting it.
    """

    model_config = ConfigDict(frozen=True)

    access_token: SecretStr = Field(description="Bearer credential (never logged)")
    token_type: str = Field(default="Bearer", description="Token type marker")
    refresh_token: SecretStr | None = Field(default=None, description="Refresh credential")
    expiry: datetime | None = Field(
        default=None, description="Absolute expiry (UTC); None never expires locally"
    )
    id_token: str | None = Field(default=None, description="OIDC ID token, if issued")
    scope: str | None = Field(default=None, description="Granted scopes")

    @field_validator("expiry")
    @classmethod
    def expiry_is_utc(cls, value: datetime | None) -> datetime | None:
        """Treat naive expiry times as UTC so comparisons never mix kinds."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_response(cls, payload: dict[str, Any], now: datetime | None = None) -> "Token":
        """Build a token from an OAuth2 token endpoint response body.

        Args:
            payload: Decoded JSON (or form) token response
            now: Reference time for ``expires_in`` (defaults to current UTC time)

        Returns:
            Token

        Raises:
            ValueError: Response has no usable access token or a bad field
        """
        access_token = payload.get("access_token")
        if not access_token:
            raise ValueError("token response has no access_token")
        if not isinstance(access_token, str):
            raise ValueError("token response access_token is not a string")

        expiry = None
        expires_in = payload.get("expires_in")
        if expires_in not in (None, ""):
            now = now or datetime.now(timezone.utc)
            try:
                expiry = now + timedelta(seconds=int(expires_in))
            except (TypeError, ValueError, OverflowError) as e:
                raise ValueError(f"token response has a bad expires_in: {expires_in!r}") from e

        # Raw values so pydantic rejects non-string fields
        return cls(
            access_token=access_token,
            token_type=payload.get("token_type") or "Bearer",
            refresh_token=payload.get("refresh_token") or None,
            expiry=expiry,
            id_token=payload.get("id_token"),
            scope=payload.get("scope"),
        )

    @property
    def secret(self) -> str:
        """Raw access credential, for backend calls only."""
        return self.access_token.get_secret_value()

    def expired(self, now: datetime | None = None) -> bool:
        if self.expiry is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expiry - EXPIRY_DELTA

    def valid(self, now: datetime | None = None) -> bool:
        """Return True if the token is present, bearer typed and unexpired."""
        return (
            bool(self.secret)
            and self.token_type.lower() == "bearer"
            and not self.expired(now)
        )

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.secret}"}
