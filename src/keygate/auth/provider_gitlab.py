"""GitLab provider (group membership, gitlab.com or self-managed)."""

from urllib.parse import quote

import httpx
from loguru import logger

from keygate.auth.errors import ConfigError
from keygate.auth.policy import Identity
from keygate.auth.providers import OAuth2Provider, ProviderConfig
from keygate.auth.token import Token
from keygate.metrics import AuthMetrics

DEFAULT_SITE_URL = "https://gitlab.com"


class GitLabProvider(OAuth2Provider):
    """GitLab OAuth2 provider.

    Configuration:
    - provider_opts["group"]: full path of the group users must belong to
    - provider_opts["siteurl"]: GitLab instance (default https://gitlab.com)
    - users_whitelist: explicit email allow-list (takes precedence)
    """

    name = "gitlab"
    scopes = ("read_user", "read_api")
    domain_option = "group"

    def __init__(
        self,
        config: ProviderConfig,
        metrics: AuthMetrics | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config, metrics=metrics, transport=transport)
        self.site_url = config.option("siteurl", DEFAULT_SITE_URL).rstrip("/")
        if not self.site_url.startswith(("https://", "http://")):
            raise ConfigError(f"gitlab siteurl must be an http(s) URL: {self.site_url}")
        self.authorize_url = f"{self.site_url}/oauth/authorize"
        self.token_url = f"{self.site_url}/oauth/token"

    async def _confirm_token(self, client: httpx.AsyncClient, token: Token) -> str | None:
        info = await self._get_json(
            client,
            "GET",
            f"{self.site_url}/oauth/token/info",
            headers=token.authorization_header(),
        )
        application = info.get("application") or {}
        return application.get("uid")

    async def _fetch_identity(
        self, client: httpx.AsyncClient, token: Token, with_domain: bool
    ) -> Identity:
        headers = token.authorization_header()
        user = await self._get_json(
            client, "GET", f"{self.site_url}/api/v4/user", headers=headers
        )

        domain = ""
        if with_domain and self.domain:
            group = quote(self.domain, safe="")
            response = await client.get(
                f"{self.site_url}/api/v4/groups/{group}/members/all/{user['id']}",
                headers=headers,
            )
            if response.status_code != 404:
                response.raise_for_status()
                if response.json().get("state") == "active":
                    domain = self.domain

        return Identity(email=user.get("email") or "", domain=domain)

    async def _revoke(self, client: httpx.AsyncClient, token: Token) -> None:
        response = await client.post(
            f"{self.site_url}/oauth/revoke",
            data={
                "token": token.secret,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        if response.is_success:
            return
        logger.warning(f"GitLab revocation returned {response.status_code}")
        self._raise_revoke_error(response)
