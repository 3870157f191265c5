"""GitHub provider (organization membership)."""

from typing import Any

import httpx
from loguru import logger

from keygate.auth.policy import Identity
from keygate.auth.providers import OAuth2Provider
from keygate.auth.token import Token

API_URL = "https://api.github.com"


class GitHubProvider(OAuth2Provider):
    """GitHub OAuth App provider.

    Configuration:
    - provider_opts["organization"]: users must be active members of it
    - users_whitelist: explicit email allow-list (takes precedence)

    Tokens are re-confirmed with the "check a token" application API, which
    only answers for tokens issued to this OAuth App.
    """

    name = "github"
    authorize_url = "https://github.com/login/oauth/authorize"
    token_url = "https://github.com/login/oauth/access_token"
    scopes = ("user:email", "read:org")
    domain_option = "organization"

    def authorization_params(self) -> dict[str, str]:
        return {"allow_signup": "false"}

    def _app_token_url(self) -> str:
        return f"{API_URL}/applications/{self.client_id}/token"

    def _user_headers(self, token: Token) -> dict[str, str]:
        return {
            **token.authorization_header(),
            "Accept": "application/vnd.github+json",
        }

    async def _confirm_token(self, client: httpx.AsyncClient, token: Token) -> str | None:
        info = await self._get_json(
            client,
            "POST",
            self._app_token_url(),
            json={"access_token": token.secret},
            auth=(self.client_id, self.client_secret),
        )
        app: dict[str, Any] = info.get("app") or {}
        return app.get("client_id")

    async def _fetch_identity(
        self, client: httpx.AsyncClient, token: Token, with_domain: bool
    ) -> Identity:
        headers = self._user_headers(token)
        user = await self._get_json(client, "GET", f"{API_URL}/user", headers=headers)

        email = user.get("email") or ""
        if not email:
            # Private addresses are only listed by the emails endpoint
            emails = await self._get_json(
                client, "GET", f"{API_URL}/user/emails", headers=headers
            )
            email = next(
                (e["email"] for e in emails if e.get("primary") and e.get("verified")),
                "",
            )

        domain = ""
        if with_domain and self.domain:
            domain = await self._membership(client, headers)
        return Identity(email=email, domain=domain)

    async def _membership(self, client: httpx.AsyncClient, headers: dict[str, str]) -> str:
        response = await client.get(
            f"{API_URL}/user/memberships/orgs/{self.domain}", headers=headers
        )
        if response.status_code in (403, 404):
            return ""
        response.raise_for_status()
        if response.json().get("state") != "active":
            return ""
        return self.domain

    async def _revoke(self, client: httpx.AsyncClient, token: Token) -> None:
        response = await client.request(
            "DELETE",
            self._app_token_url(),
            json={"access_token": token.secret},
            auth=(self.client_id, self.client_secret),
        )
        if response.is_success:
            return
        if response.status_code == 404:
            logger.warning("GitHub reports the token is already revoked")
            return
        self._raise_revoke_error(response)
