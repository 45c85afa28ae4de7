from __future__ import annotations

import pytest

from trustbridge.domain.errors import UnauthenticatedError
from trustbridge.services.session_service import SessionService, bearer_token


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc123", "abc123"),
        ("bearer   abc123  ", "abc123"),
        ("abc123", "abc123"),
        ("Bearer", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_bearer_token_parsing(header, expected):
    assert bearer_token(header) == expected


def test_issued_tokens_are_long_and_unique():
    tokens = {SessionService.issue() for _ in range(200)}
    assert len(tokens) == 200
    assert all(len(t) == 64 for t in tokens)
    int(next(iter(tokens)), 16)


def test_resolve_distinguishes_missing_and_stale_tokens(store):
    sessions = SessionService(store)
    with pytest.raises(UnauthenticatedError) as missing:
        sessions.resolve("")
    assert missing.value.message == "Not logged in."
    with pytest.raises(UnauthenticatedError) as stale:
        sessions.resolve("deadbeef")
    assert stale.value.message == "Session expired. Please sign in again."


def test_rotate_then_invalidate(store):
    sessions = SessionService(store)
    account = store.create("kim", "hash")
    first = sessions.rotate(account)
    second = sessions.rotate(account)
    assert first != second
    with pytest.raises(UnauthenticatedError):
        sessions.resolve(first)
    assert sessions.resolve(second).id == account.id

    sessions.invalidate(account)
    with pytest.raises(UnauthenticatedError):
        sessions.resolve(second)
