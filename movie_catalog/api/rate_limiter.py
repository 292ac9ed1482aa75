"""Per-client fixed-window request rate limiting backed by SQLite runtime state."""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Callable

from fastapi import FastAPI, Request
from starlette.concurrency import run_in_threadpool

from movie_catalog.api.errors import ApiErrorCode
from movie_catalog.api.http_setup import error_response
from movie_catalog.core.migrations import apply_migrations


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of counting one request against the client's window."""

    allowed: bool
    remaining: int
    retry_after: int


class RequestRateLimiter:
    """Count requests per client key inside fixed windows."""

    def __init__(
        self,
        *,
        database_path: Path,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        purge_every: int = 500,
    ) -> None:
        apply_migrations(database_path)
        self._connection = sqlite3.connect(str(database_path), check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._lock = Lock()
        self._max_requests = max(1, int(max_requests))
        self._window_seconds = max(1, int(window_seconds))
        self._clock = clock
        self._purge_every = max(1, int(purge_every))
        self._hits_since_purge = 0

    def hit(self, client_key: str) -> RateLimitDecision:
        """Record one request for ``client_key`` and decide whether it may proceed."""
        now = int(self._clock())
        key = client_key.strip() or "unknown"
        with self._lock:
            row = self._connection.execute(
                "SELECT window_started_at, request_count FROM api_rate_limit WHERE client_key = ?",
                (key,),
            ).fetchone()

            if row is None or now - int(row["window_started_at"]) >= self._window_seconds:
                window_started_at = now
                request_count = 1
            else:
                window_started_at = int(row["window_started_at"])
                request_count = int(row["request_count"]) + 1

            self._connection.execute(
                """
                INSERT INTO api_rate_limit(client_key, window_started_at, request_count)
                VALUES (?, ?, ?)
                ON CONFLICT(client_key) DO UPDATE SET
                  window_started_at = excluded.window_started_at,
                  request_count = excluded.request_count
                """,
                (key, window_started_at, request_count),
            )
            self._hits_since_purge += 1
            if self._hits_since_purge >= self._purge_every:
                self._delete_expired(now)
            self._connection.commit()

        if request_count > self._max_requests:
            retry_after = max(1, window_started_at + self._window_seconds - now)
            return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)
        return RateLimitDecision(
            allowed=True,
            remaining=self._max_requests - request_count,
            retry_after=0,
        )

    def _delete_expired(self, now: int) -> int:
        self._hits_since_purge = 0
        cursor = self._connection.execute(
            "DELETE FROM api_rate_limit WHERE window_started_at <= ?",
            (now - self._window_seconds,),
        )
        return int(cursor.rowcount or 0)

    def purge_expired(self) -> int:
        """Delete counters whose window has elapsed; return rows removed."""
        with self._lock:
            removed = self._delete_expired(int(self._clock()))
            self._connection.commit()
        return removed

    def close(self) -> None:
        """Drop elapsed counters and close SQLite resources."""
        self.purge_expired()
        with self._lock:
            self._connection.close()


def register_rate_limit_middleware(
    app: FastAPI, *, limiter: RequestRateLimiter, logger: Any
) -> None:
    """Reject API requests over the per-client budget with 429."""

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        if not request.url.path.startswith("/api/") or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = (request.client.host if request.client else "") or "unknown"
        decision = await run_in_threadpool(limiter.hit, client_ip)
        if not decision.allowed:
            logger.warning(
                "rate_limited",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client_ip": client_ip,
                    "status_code": 429,
                },
            )
            return error_response(
                429,
                error_code=ApiErrorCode.RATE_LIMITED,
                message=(
                    "Too many requests. "
                    f"Retry after {decision.retry_after} seconds."
                ),
                headers={"Retry-After": str(decision.retry_after)},
            )
        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
