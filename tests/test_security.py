from __future__ import annotations

import pytest

from movie_catalog.core.security import (
    TokenExpiredError,
    TokenInvalidError,
    build_signed_token,
    decode_signed_token,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)


def test_hash_password_is_salted_and_verifiable() -> None:
    first = hash_password("Secret123")
    second = hash_password("Secret123")

    assert first != second
    assert first.startswith("pbkdf2_sha256$")
    assert verify_password("Secret123", first)
    assert not verify_password("secret123", first)


def test_verify_password_rejects_malformed_hash() -> None:
    assert not verify_password("Secret123", "not-a-hash")
    assert not verify_password("Secret123", "md5$1$abc$def")


def test_signed_token_round_trip_returns_payload() -> None:
    token = build_signed_token({"sub": "u1", "exp": 2_000}, "key")

    payload = decode_signed_token(token, "key", now=1_000)

    assert payload["sub"] == "u1"


def test_signed_token_rejects_wrong_key() -> None:
    token = build_signed_token({"sub": "u1", "exp": 2_000}, "key")

    with pytest.raises(TokenInvalidError):
        decode_signed_token(token, "other-key", now=1_000)


def test_signed_token_rejects_tampered_payload() -> None:
    token = build_signed_token({"sub": "u1", "exp": 2_000}, "key")
    forged = build_signed_token({"sub": "admin", "exp": 2_000}, "key")
    header, _, signature = token.split(".")
    _, forged_payload, _ = forged.split(".")

    with pytest.raises(TokenInvalidError):
        decode_signed_token(f"{header}.{forged_payload}.{signature}", "key", now=1_000)


def test_signed_token_expiry_is_distinguished_from_invalid() -> None:
    token = build_signed_token({"sub": "u1", "exp": 2_000}, "key")

    assert decode_signed_token(token, "key", now=2_000)["sub"] == "u1"
    with pytest.raises(TokenExpiredError):
        decode_signed_token(token, "key", now=2_001)


@pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "###.###.###"])
def test_signed_token_rejects_malformed_values(token: str) -> None:
    with pytest.raises(TokenInvalidError):
        decode_signed_token(token, "key", now=1_000)


def test_signed_token_without_expiry_is_invalid_not_expired() -> None:
    token = build_signed_token({"sub": "u1"}, "key")

    with pytest.raises(TokenInvalidError) as exc:
        decode_signed_token(token, "key", now=1_000)

    assert not isinstance(exc.value, TokenExpiredError)


def test_reset_tokens_are_random_and_hash_deterministically() -> None:
    first = generate_reset_token()
    second = generate_reset_token()

    assert first != second
    assert len(first) == 64
    assert hash_token(first) == hash_token(first)
    assert hash_token(first) != first
