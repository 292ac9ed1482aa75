"""Security primitives for password hashing, token signing and reset tokens."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
import secrets
import time
from typing import Any

PBKDF2_ROUNDS = 120_000


class TokenInvalidError(ValueError):
    """Raised when a signed token is malformed or its signature does not match."""


class TokenExpiredError(TokenInvalidError):
    """Raised when a correctly signed token is past its expiry."""


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + padding).encode("utf-8"))


def hash_password(password: str) -> str:
    """Hash password using PBKDF2-HMAC-SHA256 with random salt."""
    salt = os.urandom(16)
    derived = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt, PBKDF2_ROUNDS
    )
    return (
        f"pbkdf2_sha256${PBKDF2_ROUNDS}$"
        f"{_b64url_encode(salt)}${_b64url_encode(derived)}"
    )


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify password against a stored PBKDF2 hash."""
    try:
        algo, rounds_raw, salt_b64, digest_b64 = stored_hash.split("$", 3)
        if algo != "pbkdf2_sha256":
            return False
        rounds = int(rounds_raw)
        salt = _b64url_decode(salt_b64)
        expected = _b64url_decode(digest_b64)
    except (ValueError, TypeError):
        return False

    derived = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(derived, expected)


def _sign(signing_input: bytes, secret_key: str) -> bytes:
    return hmac.new(secret_key.encode("utf-8"), signing_input, hashlib.sha256).digest()


def build_signed_token(payload: dict[str, Any], secret_key: str) -> str:
    """Create compact signed token using JWT-like 3-part structure."""
    header = {"alg": "HS256", "typ": "JWT"}
    header_part = _b64url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_part = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_part}.{payload_part}".encode("utf-8")
    signature_part = _b64url_encode(_sign(signing_input, secret_key))
    return f"{header_part}.{payload_part}.{signature_part}"


def decode_signed_token(
    token: str, secret_key: str, *, now: int | None = None
) -> dict[str, Any]:
    """Decode and verify compact signed token.

    Raises ``TokenInvalidError`` for malformed or tampered tokens and
    ``TokenExpiredError`` once ``exp`` has passed.
    """
    parts = (token or "").split(".")
    if len(parts) != 3:
        raise TokenInvalidError("Malformed token")
    header_part, payload_part, signature_part = parts

    signing_input = f"{header_part}.{payload_part}".encode("utf-8")
    try:
        got_sig = _b64url_decode(signature_part)
    except (ValueError, TypeError) as exc:
        raise TokenInvalidError("Malformed token signature") from exc
    if not hmac.compare_digest(_sign(signing_input, secret_key), got_sig):
        raise TokenInvalidError("Invalid token signature")

    try:
        payload = json.loads(_b64url_decode(payload_part).decode("utf-8"))
    except (ValueError, TypeError) as exc:
        raise TokenInvalidError("Invalid token payload") from exc
    if not isinstance(payload, dict):
        raise TokenInvalidError("Invalid token payload")

    try:
        exp = int(payload.get("exp") or 0)
    except (ValueError, TypeError) as exc:
        raise TokenInvalidError("Invalid token expiry") from exc
    if not exp:
        raise TokenInvalidError("Token has no expiry")
    current = int(time.time()) if now is None else now
    if current > exp:
        raise TokenExpiredError("Token expired")

    return payload


def generate_reset_token() -> str:
    """Return a random URL-safe password reset token."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Hash raw token for storage/comparison."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
