"""HTTP client for the movie catalog API over a cookie-keeping session."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import requests

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 10


class ApiClientError(RuntimeError):
    """Non-2xx response decoded from the API error envelope."""

    def __init__(
        self,
        status_code: int,
        message: str,
        field: str | None = None,
        error_code: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.field = field
        self.error_code = error_code


class CatalogApiClient:
    """Thin wrapper around the REST API.

    The session cookie set by login/register lives in ``requests.Session`` and
    is sent back automatically, the way a browser does with credentials.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    @property
    def session(self) -> requests.Session:
        return self._session

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        LOGGER.debug("API request %s %s", method, path)
        response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        if not response.ok:
            raise ApiClientError(
                response.status_code,
                str(payload.get("message") or response.reason or "Request failed"),
                payload.get("field"),
                str(payload.get("error_code") or ""),
            )
        return payload

    # auth

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        return self._request(
            "POST",
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )

    def login(self, email: str, password: str, remember: bool = False) -> dict[str, Any]:
        return self._request(
            "POST",
            "/api/auth/login",
            json={"email": email, "password": password, "remember": remember},
        )

    def logout(self) -> dict[str, Any]:
        return self._request("POST", "/api/auth/logout")

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/api/auth/me")

    def refresh(self) -> dict[str, Any]:
        return self._request("POST", "/api/auth/refresh")

    def forgot_password(self, email: str) -> dict[str, Any]:
        return self._request("POST", "/api/auth/forgot-password", json={"email": email})

    def reset_password(self, token: str, password: str, confirm_password: str) -> dict[str, Any]:
        return self._request(
            "POST",
            "/api/auth/reset-password",
            json={
                "token": token,
                "password": password,
                "confirmPassword": confirm_password,
            },
        )

    def change_password(
        self, current_password: str, new_password: str, confirm_password: str
    ) -> dict[str, Any]:
        return self._request(
            "POST",
            "/api/auth/change-password",
            json={
                "currentPassword": current_password,
                "newPassword": new_password,
                "confirmPassword": confirm_password,
            },
        )

    def update_profile(
        self, *, name: str | None = None, email: str | None = None
    ) -> dict[str, Any]:
        body = {key: value for key, value in (("name", name), ("email", email)) if value is not None}
        return self._request("PATCH", "/api/auth/profile", json=body)

    # movies

    def list_movies(
        self,
        *,
        search: str | None = None,
        publishing_year: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        if publishing_year is not None:
            params["publishingYear"] = publishing_year
        return self._request("GET", "/api/movies", params=params)

    def get_movie(self, movie_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/movies/{movie_id}")

    def create_movie(self, title: str, publishing_year: int, poster_path: Path) -> dict[str, Any]:
        with poster_path.open("rb") as fh:
            return self._request(
                "POST",
                "/api/movies",
                data={"title": title, "publishingYear": str(publishing_year)},
                files={"poster": (poster_path.name, fh)},
            )

    def update_movie(
        self,
        movie_id: str,
        title: str,
        publishing_year: int,
        poster_path: Path | None = None,
    ) -> dict[str, Any]:
        data = {"title": title, "publishingYear": str(publishing_year)}
        if poster_path is None:
            return self._request("PUT", f"/api/movies/{movie_id}", data=data)
        with poster_path.open("rb") as fh:
            return self._request(
                "PUT",
                f"/api/movies/{movie_id}",
                data=data,
                files={"poster": (poster_path.name, fh)},
            )

    def delete_movie(self, movie_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/api/movies/{movie_id}")
