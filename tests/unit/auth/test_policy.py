"""Test the allow-list / domain authorization policy."""

from keygate.auth.policy import Identity, authorize, in_allow_list, username_from_email


def test_username_is_local_part():
    """Test that the username is the local part of the email."""
    assert username_from_email("alice@example.com") == "alice"
    assert username_from_email("") == ""
    assert Identity(email="bob@example.com").username == "bob"


def test_domain_must_match_exactly():
    """Test that the domain comparison is exact."""
    identity = Identity(email="alice@example.com", domain="example.com")

    assert authorize(identity, set(), "example.com")
    assert not authorize(identity, set(), "Example.com")
    assert not authorize(identity, set(), "sub.example.com")


def test_domain_comes_from_backend_not_email():
    """Test that the email's domain part is never trusted as the domain."""
    spoofed = Identity(email="mallory@example.com", domain="")

    assert not authorize(spoofed, set(), "example.com")


def test_allow_list_takes_precedence_over_domain():
    """Test that a non-empty allow-list decides on its own."""
    identity = Identity(email="alice@example.com", domain="other.com")

    assert authorize(identity, {"alice@example.com"}, "example.com")
    assert not authorize(
        Identity(email="bob@example.com", domain="example.com"),
        {"alice@example.com"},
        "example.com",
    )


def test_empty_email_is_never_allow_listed():
    """Test that an empty email never matches the allow-list."""
    assert not in_allow_list("", {"", "alice@example.com"})
