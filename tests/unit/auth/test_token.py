"""Test token parsing and local validity."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import SecretStr

from keygate.auth.token import Token

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_from_response_computes_absolute_expiry():
    """Test that expires_in becomes an absolute UTC expiry."""
    token = Token.from_response(
        {"access_token": "abc", "token_type": "Bearer", "expires_in": 3600}, now=NOW
    )

    assert token.expiry == NOW + timedelta(hours=1)
    assert token.refresh_token is None
    assert token.authorization_header() == {"Authorization": "Bearer abc"}


def test_from_response_requires_access_token():
    """Test that a response without an access token is rejected."""
    with pytest.raises(ValueError, match="access_token"):
        Token.from_response({"token_type": "Bearer"})


@pytest.mark.parametrize("access_token", [12345, ["x"], {"value": "x"}, True])
def test_from_response_rejects_non_string_access_token(access_token):
    """Test that only string access tokens are accepted."""
    with pytest.raises(ValueError, match="access_token"):
        Token.from_response({"access_token": access_token})


@pytest.mark.parametrize("expires_in", [[3600], {"s": 1}, 10**20, "soon"])
def test_from_response_rejects_bad_expires_in(expires_in):
    """Test that an unusable expires_in raises ValueError, not a raw error."""
    with pytest.raises(ValueError, match="expires_in"):
        Token.from_response({"access_token": "abc", "expires_in": expires_in}, now=NOW)


def test_from_response_accepts_numeric_string_expires_in():
    """Test that form-encoded responses with string expires_in still parse."""
    token = Token.from_response({"access_token": "abc", "expires_in": "60"}, now=NOW)

    assert token.expiry == NOW + timedelta(seconds=60)


def test_from_response_rejects_non_string_fields():
    """Test that pydantic rejects non-string optional fields."""
    with pytest.raises(ValueError):
        Token.from_response({"access_token": "abc", "scope": ["email"]})


def test_token_without_expiry_never_expires_locally():
    """Test that a token without expiry is locally valid."""
    token = Token.from_response({"access_token": "abc"})

    assert token.expiry is None
    assert token.valid()


def test_expiry_is_checked_with_skew():
    """Test that tokens expire ten seconds early."""
    token = Token(access_token=SecretStr("abc"), expiry=NOW + timedelta(seconds=5))

    assert token.valid(now=NOW - timedelta(minutes=1))
    assert not token.valid(now=NOW)
    assert not token.valid(now=NOW + timedelta(minutes=1))


def test_naive_expiry_is_treated_as_utc():
    """Test that a naive expiry is compared as UTC instead of raising."""
    token = Token(access_token=SecretStr("abc"), expiry=datetime(2026, 1, 1, 12, 0, 5))

    assert token.expiry.tzinfo == timezone.utc
    assert token.valid(now=NOW - timedelta(minutes=1))
    assert not token.valid(now=NOW)


def test_token_type_must_be_bearer():
    """Test that non-bearer token types are locally invalid."""
    assert Token(access_token=SecretStr("abc"), token_type="bearer").valid()
    assert not Token(access_token=SecretStr("abc"), token_type="mac").valid()


def test_empty_access_token_is_invalid():
    """Test that an empty credential is never valid."""
    assert not Token(access_token=SecretStr("")).valid()


def test_secrets_stay_out_of_repr():
    """Test that access and refresh tokens are masked in repr and str."""
    token = Token.from_response({"access_token": "ya29.top-secret", "refresh_token": "1//r"})

    assert "top-secret" not in repr(token)
    assert "1//r" not in str(token)
