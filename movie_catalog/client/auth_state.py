"""Client-side authentication state synchronized with the server session."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Callable, Protocol

import requests

from movie_catalog.client.api import ApiClientError

LOGGER = logging.getLogger(__name__)


class IdentityCheck(StrEnum):
    """Phase of the "who am I" request."""

    IDLE = "idle"
    LOADING = "loading"
    DONE = "done"


@dataclass(frozen=True)
class AuthState:
    """Snapshot observed by UI listeners."""

    user: dict[str, Any] | None = None
    is_authenticated: bool = False
    initializing: bool = True
    identity_check: IdentityCheck = IdentityCheck.IDLE


class AuthApiProtocol(Protocol):
    def login(self, email: str, password: str, remember: bool = False) -> dict[str, Any]:
        """Start a session."""

    def logout(self) -> dict[str, Any]:
        """End the session."""

    def me(self) -> dict[str, Any]:
        """Return the current user envelope."""


Listener = Callable[[AuthState], None]


def _user_from(payload: dict[str, Any]) -> dict[str, Any]:
    user = payload.get("user")
    return user if isinstance(user, dict) else payload


class AuthStateMachine:
    """Tracks whether the client holds a valid session.

    ``initialize`` runs the identity check at most once per mount and
    ``refresh_auth`` re-runs it on demand; both are no-ops while a check is
    in flight. ``sign_out`` resets the phase so the next mount checks again.

    Every ``sign_in``/``sign_out`` bumps an epoch; a check that started under
    an older epoch drops its result.
    """

    def __init__(self, api: AuthApiProtocol) -> None:
        self._api = api
        self._lock = threading.Lock()
        self._state = AuthState()
        self._epoch = 0
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: AuthState) -> AuthState:
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    def _set(self, *, new_epoch: bool = False, **changes: Any) -> AuthState:
        with self._lock:
            if new_epoch:
                self._epoch += 1
            self._state = replace(self._state, **changes)
            snapshot = self._state
        return self._notify(snapshot)

    def _finish_check(self, epoch: int, **changes: Any) -> AuthState:
        with self._lock:
            if epoch != self._epoch:
                LOGGER.debug("Discarding identity check superseded by sign in/out")
                return self._state
            self._state = replace(self._state, **changes)
            snapshot = self._state
        return self._notify(snapshot)

    def _begin_check(self, *, allow_repeat: bool) -> int | None:
        with self._lock:
            phase = self._state.identity_check
            if phase is IdentityCheck.LOADING:
                return None
            if phase is IdentityCheck.DONE and not allow_repeat:
                return None
            self._state = replace(self._state, identity_check=IdentityCheck.LOADING)
            return self._epoch

    def _check_identity(self, epoch: int) -> AuthState:
        try:
            payload = self._api.me()
        except (ApiClientError, requests.RequestException) as exc:
            LOGGER.info("Auth check failed: %s", exc)
            return self._finish_check(
                epoch,
                user=None,
                is_authenticated=False,
                initializing=False,
                identity_check=IdentityCheck.DONE,
            )
        return self._finish_check(
            epoch,
            user=_user_from(payload),
            is_authenticated=True,
            initializing=False,
            identity_check=IdentityCheck.DONE,
        )

    def initialize(self) -> AuthState:
        """Run the identity check once; later calls return the snapshot."""
        epoch = self._begin_check(allow_repeat=False)
        if epoch is None:
            return self._state
        return self._check_identity(epoch)

    def refresh_auth(self) -> AuthState:
        """Re-check the session unless a check is already in flight."""
        epoch = self._begin_check(allow_repeat=True)
        if epoch is None:
            return self._state
        return self._check_identity(epoch)

    def sign_in(self, email: str, password: str, remember: bool = False) -> dict[str, Any]:
        """Log in and mark the state authenticated from the response user.

        The login response settles the identity, so the phase becomes ``done``.
        """
        payload = self._api.login(email, password, remember)
        self._set(
            new_epoch=True,
            user=_user_from(payload),
            is_authenticated=True,
            initializing=False,
            identity_check=IdentityCheck.DONE,
        )
        return payload

    def sign_out(self) -> AuthState:
        """Log out; local state is cleared even if the server call fails."""
        try:
            self._api.logout()
        except (ApiClientError, requests.RequestException) as exc:
            LOGGER.warning("Logout request failed: %s", exc)
        return self._set(
            new_epoch=True,
            user=None,
            is_authenticated=False,
            initializing=False,
            identity_check=IdentityCheck.IDLE,
        )
