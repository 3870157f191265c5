"""Application settings using Pydantic Settings."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class OTELSettings(BaseSettings):
    """OpenTelemetry settings."""

    model_config = SettingsConfigDict(
        env_prefix="OTEL__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(
        default=False,
        description="Enable OpenTelemetry instrumentation (disabled by default for local dev)",
    )
    service_name: str = Field(
        default="keygate",
        description="Service name for traces",
    )


class MetricsSettings(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="METRICS__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Record auth counters")
    namespace: str = Field(default="keygate", description="Metric name prefix")


class AuthSettings(BaseSettings):
    """Identity provider configuration.

    Only syntax is validated here. Whether the provider is authorizable
    (domain option or whitelist present) is checked by the provider factory.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = Field(
        default="google",
        description="Identity provider: google, github, gitlab, oidc",
    )
    oauth_client_id: str = Field(default="", description="OAuth client ID")
    oauth_client_secret: SecretStr = Field(
        default=SecretStr(""), description="OAuth client secret"
    )
    oauth_callback_url: str = Field(
        default="http://localhost:10000/auth/callback",
        description="Redirect URL registered with the identity provider",
    )
    provider_opts: dict[str, str] = Field(
        default_factory=dict,
        description="Provider specific options (domain, organization, group, siteurl, ...)",
    )
    users_whitelist: list[str] = Field(
        default_factory=list,
        description="Explicit allow-list of identities (email addresses)",
    )
    request_timeout: float = Field(
        default=10.0, description="Timeout in seconds for identity backend calls"
    )


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="KEYGATE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    auth: AuthSettings = Field(default_factory=AuthSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    otel: OTELSettings = Field(default_factory=OTELSettings)


settings = Settings()
