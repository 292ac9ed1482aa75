from __future__ import annotations

import asyncio
import inspect
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Coroutine, cast

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import Response

from movie_catalog.api.errors import ApiError, ApiErrorCode
from movie_catalog.api.http_setup import register_exception_handlers, register_http_middleware
from tests.app_factory import build_config

LOGGER = logging.getLogger(__name__)


def _request(path: str, method: str = "GET", headers: list[tuple[bytes, bytes]] | None = None) -> Request:
    scope: dict[str, Any] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": b"",
        "root_path": "",
        "headers": headers or [],
        "client": ("127.0.0.1", 1234),
        "server": ("testserver", 80),
    }

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(scope, receive)


def _app(tmp_path: Path) -> FastAPI:
    app = FastAPI()
    register_http_middleware(app, config=build_config(tmp_path, request_max_bytes=8), logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    return app


def _dispatch_by_name(app: FastAPI, name: str):
    for middleware in app.user_middleware:
        dispatch = middleware.kwargs.get("dispatch")
        if callable(dispatch) and getattr(dispatch, "__name__", "") == name:
            return dispatch
    raise AssertionError(f"Dispatch {name!r} not found")


def _resolve_response(result: Response | Awaitable[Response]) -> Response:
    if inspect.iscoroutine(result):
        return asyncio.run(cast(Coroutine[Any, Any, Response], result))
    return cast(Response, result)


async def _ok(_request: Request) -> Response:
    return Response(content="ok", status_code=200)


def test_http_setup_adds_security_headers_and_request_id(tmp_path: Path) -> None:
    dispatch = _dispatch_by_name(_app(tmp_path), "request_logging_middleware")
    request = _request("/ok", headers=[(b"x-request-id", b"req-123")])

    response = asyncio.run(dispatch(request, _ok))

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_http_setup_rejects_large_request_before_handler(tmp_path: Path) -> None:
    dispatch = _dispatch_by_name(_app(tmp_path), "request_size_limit_middleware")
    request = _request("/echo", method="POST", headers=[(b"content-length", b"20")])

    response = asyncio.run(dispatch(request, _ok))

    assert response.status_code == 413
    assert json.loads(response.body)["error_code"] == "REQUEST_TOO_LARGE"


def test_http_setup_serializes_api_error_with_field_and_headers(tmp_path: Path) -> None:
    app = _app(tmp_path)
    handler = app.exception_handlers[HTTPException]

    response: Response = _resolve_response(
        handler(
            _request("/api/movies"),
            ApiError(
                status_code=409,
                error_code=ApiErrorCode.MOVIE_CONFLICT,
                message="duplicate",
                field="title",
                headers={"set-cookie": "jwt=; Max-Age=0"},
            ),
        )
    )

    assert response.status_code == 409
    assert json.loads(response.body) == {
        "success": False,
        "error_code": "MOVIE_CONFLICT",
        "message": "duplicate",
        "field": "title",
    }
    assert response.headers["set-cookie"] == "jwt=; Max-Age=0"


def test_http_setup_handles_unexpected_exceptions(tmp_path: Path) -> None:
    handler = _app(tmp_path).exception_handlers[Exception]

    response: Response = _resolve_response(handler(_request("/boom"), RuntimeError("secret detail")))

    assert response.status_code == 500
    assert b"INTERNAL_SERVER_ERROR" in response.body
    assert b"secret detail" not in response.body


def test_http_setup_maps_validation_exception_to_400_with_field(tmp_path: Path) -> None:
    handler = _app(tmp_path).exception_handlers[RequestValidationError]

    response: Response = _resolve_response(
        handler(
            _request("/validation"),
            RequestValidationError(
                [{"type": "missing", "loc": ("body", "email"), "msg": "Field required"}]
            ),
        )
    )

    assert response.status_code == 400
    payload = json.loads(response.body)
    assert payload["error_code"] == "VALIDATION_ERROR"
    assert payload["field"] == "email"
