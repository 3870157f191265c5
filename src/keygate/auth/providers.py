"""Identity provider interface and shared OAuth2 implementation.

This module provides a pluggable provider system. Every backend satisfies the
same ``Provider`` contract so the certificate issuer never sees backend
specific types:
- Google (Workspace domain)
- GitHub (organization)
- GitLab (group)
- Generic OIDC (introspection + userinfo)
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import httpx
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri, prepare_token_request
from loguru import logger
from opentelemetry import trace
from pydantic import BaseModel, Field, SecretStr

from keygate.auth.errors import ConfigError, ExchangeError, RevokeError
from keygate.auth.policy import Identity, authorize, in_allow_list, username_from_email
from keygate.auth.token import Token
from keygate.metrics import AuthMetrics, get_metrics
from keygate.settings import AuthSettings

tracer = trace.get_tracer(__name__)


class ProviderConfig(BaseModel):
    """Configuration for one identity provider.

    Syntax is validated by pydantic; semantics (is the provider authorizable
    at all) are validated when the provider is constructed.
    """

    client_id: str = Field(description="OAuth client ID")
    client_secret: SecretStr = Field(description="OAuth client secret")
    redirect_url: str = Field(description="OAuth callback URL")
    provider_opts: dict[str, str] = Field(
        default_factory=dict, description="Provider specific options"
    )
    users_whitelist: list[str] = Field(
        default_factory=list, description="Explicit allow-list of identities"
    )
    timeout: float = Field(default=10.0, description="Backend call timeout in seconds")

    @classmethod
    def from_settings(cls, auth: AuthSettings) -> "ProviderConfig":
        return cls(
            client_id=auth.oauth_client_id,
            client_secret=auth.oauth_client_secret,
            redirect_url=auth.oauth_callback_url,
            provider_opts=auth.provider_opts,
            users_whitelist=auth.users_whitelist,
            timeout=auth.request_timeout,
        )

    def option(self, key: str, default: str = "") -> str:
        return (self.provider_opts.get(key) or default).strip()


class Provider(ABC):
    """Abstract identity provider.

    Instances are shared by all concurrent requests and hold no mutable
    per-request state. Network calls honour the per-call ``timeout``.
    """

    name: str = ""

    def get_provider_name(self) -> str:
        """Get provider identifier used in logs and metrics."""
        return self.name

    @abstractmethod
    def start_session(self, state: str) -> str:
        """Build the backend authorization URL for a login.

        Args:
            state: Anti-forgery state minted by the caller

        Returns:
            URL to redirect the browser to
        """

    @abstractmethod
    async def exchange(self, code: str, timeout: float | None = None) -> Token:
        """Exchange an authorization code for a token.

        Raises:
            ExchangeError: Network failure, malformed response or rejected code
        """

    @abstractmethod
    async def valid(self, token: Token, timeout: float | None = None) -> bool:
        """Return True only if the token is live, ours and authorized.

        Backend errors, network errors and expiry of ``timeout`` all give
        ``False``. Pass the request deadline as ``timeout``: cancelling the
        calling task, or wrapping the call in the caller's own
        ``asyncio.timeout``, raises ``CancelledError``/``TimeoutError``
        as usual in asyncio instead of returning ``False``.
        """

    @abstractmethod
    async def revoke(self, token: Token, timeout: float | None = None) -> None:
        """Invalidate a token with the backend.

        Raises:
            RevokeError: Backend could not revoke the token
        """

    @abstractmethod
    async def email(self, token: Token, timeout: float | None = None) -> str:
        """Authoritative email address of the principal, or ""."""

    async def username(self, token: Token, timeout: float | None = None) -> str:
        """Local part of the principal's email address, or ""."""
        return username_from_email(await self.email(token, timeout=timeout))


class OAuth2Provider(Provider):
    """Shared authorization-code flow for HTTP/JSON identity backends.

    Subclasses set the endpoints, scopes and the option naming their
    domain/organization constraint, and implement the backend hooks:
    - ``_confirm_token``: server-side re-confirmation, returns the audience
    - ``_fetch_identity``: email and backend-reported domain
    - ``_revoke``: backend revocation call
    """

    authorize_url: str = ""
    token_url: str = ""
    scopes: tuple[str, ...] = ()
    domain_option: str = "domain"

    def __init__(
        self,
        config: ProviderConfig,
        metrics: AuthMetrics | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize provider. Performs no network I/O.

        Args:
            config: Provider configuration
            metrics: Counter sink (defaults to the process-wide sink)
            transport: Optional httpx transport for backend calls

        Raises:
            ConfigError: Neither the domain option nor a whitelist is set
        """
        self.config = config
        self.domain = config.option(self.domain_option)
        self.whitelist = frozenset(u.strip() for u in config.users_whitelist if u.strip())
        if not self.domain and not self.whitelist:
            raise ConfigError(
                f"either {self.domain_option} or users whitelist must be specified "
                f"for the {self.name} provider"
            )
        if not config.client_id:
            raise ConfigError(f"{self.name} provider requires an OAuth client ID")

        self.metrics = metrics or get_metrics()
        self._transport = transport

    @property
    def client_id(self) -> str:
        return self.config.client_id

    @property
    def client_secret(self) -> str:
        return self.config.client_secret.get_secret_value()

    def authorization_params(self) -> dict[str, str]:
        """Extra query parameters for the authorization URL."""
        return {}

    def start_session(self, state: str) -> str:
        return prepare_grant_uri(
            self.authorize_url,
            self.client_id,
            "code",
            redirect_uri=self.config.redirect_url,
            scope=list(self.scopes),
            state=state,
            **self.authorization_params(),
        )

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    def _timeout(self, timeout: float | None) -> float:
        return timeout if timeout is not None else self.config.timeout

    async def exchange(self, code: str, timeout: float | None = None) -> Token:
        if not code:
            raise ExchangeError(f"{self.name} callback carried no authorization code")

        timeout = self._timeout(timeout)
        body = prepare_token_request(
            "authorization_code",
            code=code,
            redirect_uri=self.config.redirect_url,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )

        with tracer.start_as_current_span("auth.exchange") as span:
            span.set_attribute("auth.provider", self.name)
            try:
                async with asyncio.timeout(timeout):
                    async with self._client(timeout) as client:
                        response = await client.post(
                            self.token_url,
                            content=body,
                            headers={"Content-Type": "application/x-www-form-urlencoded"},
                        )
            except (httpx.HTTPError, TimeoutError) as e:
                logger.warning(f"{self.name} code exchange failed: {e!r}")
                raise ExchangeError(f"{self.name} code exchange failed: {e!r}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ExchangeError(
                f"{self.name} returned a malformed token response",
                status_code=response.status_code,
            ) from e
        if not isinstance(payload, dict):
            raise ExchangeError(
                f"{self.name} returned a malformed token response",
                status_code=response.status_code,
            )

        if response.is_error or "error" in payload:
            error = payload.get("error")
            logger.warning(f"{self.name} rejected authorization code: {error}")
            raise ExchangeError(
                f"{self.name} rejected authorization code: {error or response.status_code}",
                error=error,
                description=payload.get("error_description"),
                status_code=response.status_code,
            )

        try:
            token = Token.from_response(payload)
        except ValueError as e:
            raise ExchangeError(f"{self.name} token response: {e}") from e

        self.metrics.increment_exchange(self.name)
        logger.debug(f"Exchanged authorization code with {self.name}")
        return token

    async def valid(self, token: Token, timeout: float | None = None) -> bool:
        timeout = self._timeout(timeout)
        with tracer.start_as_current_span("auth.valid") as span:
            span.set_attribute("auth.provider", self.name)
            try:
                async with asyncio.timeout(timeout):
                    async with self._client(timeout) as client:
                        authorized = await self._authorize_token(client, token)
            except Exception as e:
                # Fail closed: backend and network errors never authorize.
                logger.warning(f"{self.name} token validation failed: {e!r}")
                authorized = False
            span.set_attribute("auth.valid", authorized)

        if authorized:
            self.metrics.increment_valid(self.name)
        return authorized

    async def _authorize_token(self, client: httpx.AsyncClient, token: Token) -> bool:
        identity = None
        if self.whitelist:
            identity = await self._fetch_identity(client, token, with_domain=False)
            if not in_allow_list(identity.email, self.whitelist):
                logger.info(f"{identity.email or 'unknown identity'} is not whitelisted")
                return False

        if not token.valid():
            logger.info(f"{self.name} token is expired or not a bearer token")
            return False

        audience = await self._confirm_token(client, token)
        if not self._audience_matches(audience):
            logger.warning(f"{self.name} token was issued for another client: {audience}")
            return False

        if identity is None:
            identity = await self._fetch_identity(client, token, with_domain=True)
        if not authorize(identity, self.whitelist, self.domain):
            logger.info(
                f"{identity.email or 'unknown identity'} is not a member of {self.domain}"
            )
            return False

        logger.debug(f"{self.name} token valid for {identity.email}")
        return True

    def _audience_matches(self, audience: str | list[str] | None) -> bool:
        if isinstance(audience, str):
            return audience == self.client_id
        if isinstance(audience, list):
            return self.client_id in audience
        return False

    async def revoke(self, token: Token, timeout: float | None = None) -> None:
        timeout = self._timeout(timeout)
        with tracer.start_as_current_span("auth.revoke") as span:
            span.set_attribute("auth.provider", self.name)
            try:
                async with asyncio.timeout(timeout):
                    async with self._client(timeout) as client:
                        await self._revoke(client, token)
            except (httpx.HTTPError, TimeoutError) as e:
                logger.warning(f"{self.name} token revocation failed: {e!r}")
                raise RevokeError(f"{self.name} token revocation failed: {e!r}") from e
        logger.info(f"Revoked {self.name} token")

    async def email(self, token: Token, timeout: float | None = None) -> str:
        timeout = self._timeout(timeout)
        try:
            async with asyncio.timeout(timeout):
                async with self._client(timeout) as client:
                    identity = await self._fetch_identity(client, token, with_domain=False)
        except Exception as e:
            logger.warning(f"Could not determine {self.name} email: {e!r}")
            return ""
        return identity.email

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> Any:
        """Call a backend endpoint and decode its JSON body.

        Raises:
            httpx.HTTPStatusError: Non-2xx response
        """
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
        return response.json()

    def _raise_revoke_error(self, response: httpx.Response) -> None:
        error = None
        try:
            body = response.json()
            if isinstance(body, dict):
                error = body.get("error")
        except ValueError:
            pass
        raise RevokeError(
            f"{self.name} token revocation failed: {error or response.status_code}",
            error=error,
            status_code=response.status_code,
        )

    @abstractmethod
    async def _confirm_token(
        self, client: httpx.AsyncClient, token: Token
    ) -> str | list[str] | None:
        """Re-confirm the token with the backend and return its audience."""

    @abstractmethod
    async def _fetch_identity(
        self, client: httpx.AsyncClient, token: Token, with_domain: bool
    ) -> Identity:
        """Look up the principal. ``domain`` may be left empty unless requested."""

    @abstractmethod
    async def _revoke(self, client: httpx.AsyncClient, token: Token) -> None:
        """Revoke the token. Raise ``RevokeError`` for backend rejections."""
