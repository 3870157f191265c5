"""Generic OIDC provider (Okta, Keycloak, Auth0, Entra ID, ...).

Endpoints are configured explicitly so that construction and
``start_session`` never touch the network. Resolve them from the issuer's
``/.well-known/openid-configuration`` when writing the configuration.
"""

import httpx

from keygate.auth.errors import ConfigError, RevokeError
from keygate.auth.policy import Identity
from keygate.auth.providers import OAuth2Provider, ProviderConfig
from keygate.auth.token import Token
from keygate.metrics import AuthMetrics

REQUIRED_ENDPOINTS = (
    "authorization_endpoint",
    "token_endpoint",
    "userinfo_endpoint",
    "introspection_endpoint",
)


class OIDCProvider(OAuth2Provider):
    """OpenID Connect provider.

    Configuration (provider_opts):
    - authorization_endpoint, token_endpoint, userinfo_endpoint,
      introspection_endpoint: required
    - revocation_endpoint: optional; revoke() fails without it
    - domain: required value of the domain claim
    - domain_claim: userinfo claim holding the domain (default ``hd``)
    - scopes: space separated (default ``openid email profile``)

    Tokens are re-confirmed by RFC 7662 introspection, which must report the
    token active and issued to our client ID.
    """

    name = "oidc"
    domain_option = "domain"

    def __init__(
        self,
        config: ProviderConfig,
        metrics: AuthMetrics | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config, metrics=metrics, transport=transport)
        missing = [key for key in REQUIRED_ENDPOINTS if not config.option(key)]
        if missing:
            raise ConfigError(f"oidc provider requires options: {', '.join(missing)}")

        self.authorize_url = config.option("authorization_endpoint")
        self.token_url = config.option("token_endpoint")
        self.userinfo_url = config.option("userinfo_endpoint")
        self.introspection_url = config.option("introspection_endpoint")
        self.revocation_url = config.option("revocation_endpoint")
        self.domain_claim = config.option("domain_claim", "hd")
        self.scopes = tuple(config.option("scopes", "openid email profile").split())

    async def _confirm_token(
        self, client: httpx.AsyncClient, token: Token
    ) -> str | list[str] | None:
        info = await self._get_json(
            client,
            "POST",
            self.introspection_url,
            data={"token": token.secret, "token_type_hint": "access_token"},
            auth=(self.client_id, self.client_secret),
        )
        if not info.get("active"):
            return None
        return info.get("client_id") or info.get("aud")

    async def _fetch_identity(
        self, client: httpx.AsyncClient, token: Token, with_domain: bool
    ) -> Identity:
        claims = await self._get_json(
            client, "GET", self.userinfo_url, headers=token.authorization_header()
        )
        domain = claims.get(self.domain_claim) or ""
        return Identity(email=claims.get("email") or "", domain=str(domain))

    async def _revoke(self, client: httpx.AsyncClient, token: Token) -> None:
        if not self.revocation_url:
            raise RevokeError("oidc provider has no revocation_endpoint configured")
        response = await client.post(
            self.revocation_url,
            data={"token": token.secret, "token_type_hint": "access_token"},
            auth=(self.client_id, self.client_secret),
        )
        if not response.is_success:
            self._raise_revoke_error(response)
