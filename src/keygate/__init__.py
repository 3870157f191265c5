"""keygate: identity provider authentication for an SSO-gated certificate issuer."""

__version__ = "0.1.0"
