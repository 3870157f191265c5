"""Test settings loading from the environment."""

from keygate.settings import Settings


def test_nested_auth_settings_from_env(monkeypatch):
    """Test nested auth settings read from KEYGATE_ variables."""
    monkeypatch.setenv("KEYGATE_AUTH__PROVIDER", "github")
    monkeypatch.setenv("KEYGATE_AUTH__OAUTH_CLIENT_ID", "cid")
    monkeypatch.setenv("KEYGATE_AUTH__OAUTH_CLIENT_SECRET", "csecret")
    monkeypatch.setenv("KEYGATE_AUTH__PROVIDER_OPTS", '{"organization": "example-org"}')
    monkeypatch.setenv("KEYGATE_AUTH__USERS_WHITELIST", '["alice@example.com"]')

    settings = Settings()

    assert settings.auth.provider == "github"
    assert settings.auth.oauth_client_id == "cid"
    assert settings.auth.provider_opts == {"organization": "example-org"}
    assert settings.auth.users_whitelist == ["alice@example.com"]
    assert "csecret" not in repr(settings)


def test_defaults():
    """Test default settings values."""
    settings = Settings()

    assert settings.otel.enabled is False
    assert settings.metrics.enabled is True
    assert settings.auth.request_timeout == 10.0
