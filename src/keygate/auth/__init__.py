"""Authentication front-end for the certificate issuer.

This module provides the identity provider abstraction:
- OAuth2 authorization code flow (start session, exchange)
- Server-side token re-confirmation with audience checks
- Domain / organization / allow-list authorization policy
- Anti-forgery state minting and verification

Supported providers:
- google: Google accounts, optional Workspace domain
- github: GitHub organization
- gitlab: GitLab group
- oidc: Generic OpenID Connect with token introspection
"""

from keygate.auth.errors import AuthError, ConfigError, ExchangeError, RevokeError
from keygate.auth.policy import Identity, authorize
from keygate.auth.provider_factory import (
    DEFAULT_PROVIDERS,
    get_auth_provider,
    get_provider_instance,
    new_provider,
)
from keygate.auth.providers import OAuth2Provider, Provider, ProviderConfig
from keygate.auth.state import StateVerifier, mint_state, verify_state
from keygate.auth.token import Token

__all__ = [
    "AuthError",
    "ConfigError",
    "ExchangeError",
    "RevokeError",
    "Identity",
    "authorize",
    "DEFAULT_PROVIDERS",
    "get_auth_provider",
    "get_provider_instance",
    "new_provider",
    "OAuth2Provider",
    "Provider",
    "ProviderConfig",
    "StateVerifier",
    "mint_state",
    "verify_state",
    "Token",
]
