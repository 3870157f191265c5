"""Test anti-forgery state minting and verification."""

import time

from keygate.auth.state import StateVerifier, mint_state, verify_state


def test_mint_state_is_unique_and_urlsafe():
    """Test that minted states are unique and URL safe."""
    states = {mint_state() for _ in range(100)}

    assert len(states) == 100
    assert all(len(s) >= 40 and "/" not in s and "+" not in s for s in states)


def test_verify_state():
    """Test that only an identical state verifies."""
    state = mint_state()

    assert verify_state(state, state)
    assert not verify_state(state, state[:-1])
    assert not verify_state(state, mint_state())


def test_empty_states_never_match():
    """Test that empty or missing states never verify."""
    assert not verify_state("", "")
    assert not verify_state(None, None)
    assert not verify_state("abc", None)


def test_verifier_accepts_state_once():
    """Test that an issued state can be consumed only once."""
    verifier = StateVerifier()
    state = verifier.issue()

    assert verifier.consume(state)
    assert not verifier.consume(state)
    assert len(verifier) == 0


def test_verifier_rejects_unknown_state():
    """Test that unknown states are rejected and pending ones kept."""
    verifier = StateVerifier()
    verifier.issue()

    assert not verifier.consume(mint_state())
    assert not verifier.consume(None)
    assert len(verifier) == 1


def test_verifier_expires_states():
    """Test that states older than the ttl are rejected."""
    verifier = StateVerifier(ttl=0.01)
    state = verifier.issue()
    time.sleep(0.05)

    assert not verifier.consume(state)
