"""Authentication error types.

Authorization failure deliberately has no exception type: ``Provider.valid``
returns ``False`` instead.
"""


class AuthError(Exception):
    """Base class for identity provider errors."""


class ConfigError(AuthError):
    """Provider configuration is unusable. Raised at startup only."""


class BackendError(AuthError):
    """An identity backend call failed.

    Attributes:
        error: OAuth error code reported by the backend, if any
        description: Backend supplied error description, if any
        status_code: HTTP status of the failing response, if any
    """

    def __init__(
        self,
        message: str,
        error: str | None = None,
        description: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.error = error
        self.description = description
        self.status_code = status_code


class ExchangeError(BackendError):
    """Authorization code could not be exchanged for a token."""


class RevokeError(BackendError):
    """Token revocation failed. Callers should log it and finish logout."""
