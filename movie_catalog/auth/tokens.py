"""Session token issuance, verification and cookie transport."""

from __future__ import annotations

import time
import uuid
from typing import Callable, Literal

from starlette.responses import Response

from movie_catalog.core.config import AuthConfig
from movie_catalog.core.security import (
    TokenInvalidError,
    build_signed_token,
    decode_signed_token,
)


class SessionTokenService:
    """Stateless session tokens carried in an HTTP-only cookie.

    Tokens are never stored server-side: validity depends only on the
    signature and the embedded expiry, so logout removes the cookie but
    cannot revoke a copied token before it expires.
    """

    def __init__(
        self, config: AuthConfig, *, clock: Callable[[], float] = time.time
    ) -> None:
        self._config = config
        self._clock = clock

    @property
    def cookie_name(self) -> str:
        return self._config.cookie_name

    def lifetime_seconds(self, remember: bool) -> int:
        if remember:
            return self._config.remember_token_ttl_seconds
        return self._config.token_ttl_seconds

    def issue(self, user_id: str, remember: bool = False) -> str:
        """Sign a token for ``user_id`` valid for the remember-me or default lifetime."""
        now_ts = int(self._clock())
        payload = {
            "iss": self._config.issuer,
            "sub": user_id,
            "iat": now_ts,
            "exp": now_ts + self.lifetime_seconds(remember),
            "jti": uuid.uuid4().hex,
        }
        return build_signed_token(payload, self._config.secret_key)

    def verify(self, token: str) -> str:
        """Return the token subject or raise ``TokenInvalidError``/``TokenExpiredError``."""
        payload = decode_signed_token(
            token, self._config.secret_key, now=int(self._clock())
        )
        if str(payload.get("iss") or "") != self._config.issuer:
            raise TokenInvalidError("Invalid token issuer")
        subject = str(payload.get("sub") or "")
        if not subject:
            raise TokenInvalidError("Token has no subject")
        return subject

    def _same_site(self) -> Literal["none", "lax"]:
        return "none" if self._config.cookie_cross_site else "lax"

    def attach_to_response(self, response: Response, token: str, remember: bool = False) -> None:
        response.set_cookie(
            key=self._config.cookie_name,
            value=token,
            max_age=self.lifetime_seconds(remember),
            path="/",
            secure=True,
            httponly=True,
            samesite=self._same_site(),
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            key=self._config.cookie_name,
            path="/",
            secure=True,
            httponly=True,
            samesite=self._same_site(),
        )

    def clearing_headers(self) -> dict[str, str]:
        """``Set-Cookie`` header that expires the session, for error responses."""
        response = Response()
        self.clear(response)
        return {"set-cookie": response.headers["set-cookie"]}
