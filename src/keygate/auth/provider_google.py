"""Google provider (Google accounts, optionally restricted to a Workspace domain)."""

import httpx
from loguru import logger

from keygate.auth.policy import Identity
from keygate.auth.providers import OAuth2Provider
from keygate.auth.token import Token

REVOKE_URL = "https://accounts.google.com/o/oauth2/revoke"
TOKENINFO_URL = "https://www.googleapis.com/oauth2/v2/tokeninfo"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


class GoogleProvider(OAuth2Provider):
    """Google OAuth2 provider.

    Configuration:
    - provider_opts["domain"]: Workspace domain; users must report it as ``hd``
    - users_whitelist: explicit email allow-list (takes precedence)

    The token is re-confirmed through the tokeninfo endpoint, whose
    ``audience`` must be our client ID. The Workspace domain comes from the
    userinfo ``hd`` field, never from the email string.
    """

    name = "google"
    authorize_url = "https://accounts.google.com/o/oauth2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    scopes = (
        "https://www.googleapis.com/auth/userinfo.email",
        "https://www.googleapis.com/auth/userinfo.profile",
    )
    domain_option = "domain"

    def authorization_params(self) -> dict[str, str]:
        # Login UI hint only; enforcement happens in valid().
        if self.domain:
            return {"hd": self.domain}
        return {}

    async def _confirm_token(self, client: httpx.AsyncClient, token: Token) -> str | None:
        info = await self._get_json(
            client, "POST", TOKENINFO_URL, params={"access_token": token.secret}
        )
        return info.get("audience") or info.get("issued_to")

    async def _fetch_identity(
        self, client: httpx.AsyncClient, token: Token, with_domain: bool
    ) -> Identity:
        info = await self._get_json(
            client, "GET", USERINFO_URL, headers=token.authorization_header()
        )
        return Identity(email=info.get("email") or "", domain=info.get("hd") or "")

    async def _revoke(self, client: httpx.AsyncClient, token: Token) -> None:
        response = await client.get(REVOKE_URL, params={"token": token.secret})
        if response.is_success:
            return
        if response.status_code == 400 and "invalid_token" in response.text:
            logger.warning("Google reports the token is already revoked or expired")
            return
        self._raise_revoke_error(response)
