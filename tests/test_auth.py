import pytest

from auth import (
    AuthenticationError,
    bearer_token,
    hash_password,
    issue_token,
    read_token,
    verify_password,
)


def test_password_hash_round_trip() -> None:
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_token_carries_email() -> None:
    token = issue_token("ana@example.com")

    assert read_token(token) == "ana@example.com"


def test_expired_token_is_rejected() -> None:
    token = issue_token("ana@example.com")

    with pytest.raises(AuthenticationError, match="expired"):
        read_token(token, max_age_secs=-1)


def test_tampered_token_is_rejected() -> None:
    token = issue_token("ana@example.com")

    with pytest.raises(AuthenticationError, match="Invalid token"):
        read_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))
    with pytest.raises(AuthenticationError, match="Invalid token"):
        read_token("not-a-token")


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc.def", "abc.def"),
        ("bearer abc.def", None),
        ("Bearer", None),
        ("Bearer ", None),
        ("abc.def", None),
        ("", None),
        (None, None),
    ],
)
def test_bearer_token(header, expected) -> None:
    assert bearer_token(header) == expected
