"""Identity provider factory.

Creates provider instances from configuration. The name to class table is
passed in explicitly so construction can be tested in isolation; the
default table is read-only.
"""

from collections.abc import Mapping
from types import MappingProxyType

import httpx
from loguru import logger

from keygate.auth.errors import ConfigError
from keygate.auth.provider_github import GitHubProvider
from keygate.auth.provider_gitlab import GitLabProvider
from keygate.auth.provider_google import GoogleProvider
from keygate.auth.provider_oidc import OIDCProvider
from keygate.auth.providers import OAuth2Provider, Provider, ProviderConfig
from keygate.metrics import AuthMetrics
from keygate.settings import Settings, settings

DEFAULT_PROVIDERS: Mapping[str, type[OAuth2Provider]] = MappingProxyType(
    {
        GoogleProvider.name: GoogleProvider,
        GitHubProvider.name: GitHubProvider,
        GitLabProvider.name: GitLabProvider,
        OIDCProvider.name: OIDCProvider,
    }
)


def new_provider(
    name: str,
    config: ProviderConfig,
    *,
    registry: Mapping[str, type[OAuth2Provider]] = DEFAULT_PROVIDERS,
    metrics: AuthMetrics | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Provider:
    """Build a provider by name.

    Args:
        name: Provider name (google, github, gitlab, oidc)
        config: Provider configuration
        registry: Name to provider class table
        metrics: Counter sink (defaults to the process-wide sink)
        transport: Optional httpx transport for backend calls

    Returns:
        Provider instance

    Raises:
        ConfigError: Unknown provider or unauthorizable configuration

    Example:
        >>> provider = new_provider("google", config)
        >>> url = provider.start_session(mint_state())
    """
    provider_cls = registry.get(name.lower())
    if provider_cls is None:
        raise ConfigError(
            f"Unsupported auth provider: {name}. "
            f"Valid options: {', '.join(sorted(registry))}"
        )

    provider = provider_cls(config, metrics=metrics, transport=transport)
    logger.info(
        f"Initialized {provider.name} provider "
        f"(domain: {provider.domain or '-'}, whitelist: {len(provider.whitelist)} users)"
    )
    return provider


def get_auth_provider(app_settings: Settings | None = None) -> Provider:
    """Build the provider named in settings.auth.provider.

    Raises:
        ConfigError: Invalid provider configuration
    """
    app_settings = app_settings or settings
    config = ProviderConfig.from_settings(app_settings.auth)
    return new_provider(app_settings.auth.provider, config)


# Global provider instance (lazy-initialized)
_provider_instance: Provider | None = None


def get_provider_instance() -> Provider:
    """Get or create the global provider instance.

    Created on first call and shared afterwards; the instance is read-only.
    """
    global _provider_instance

    if _provider_instance is None:
        _provider_instance = get_auth_provider()

    return _provider_instance
