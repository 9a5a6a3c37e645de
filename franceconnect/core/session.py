"""Per-session storage for pending authorization state.

The flow never keeps state in module globals. Every operation receives a
:class:`StateNonceStore` scoped to one user session, so concurrent logins
from different browsers share nothing.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from franceconnect.core.exceptions import OIDCError, StorageError

# Session keys
OPENID_SESSION_TOKEN = "open_id_session_token"
OPENID_SESSION_NONCE = "open_id_session_nonce"
ID_TOKEN_HINT = "open_id_token_hint"

T = TypeVar("T")


class StateNonceStore(Protocol):
    """Key/value store scoped to a single user session."""

    def set(self, key: str, value: str) -> None: ...

    def get(self, key: str) -> str | None: ...

    def remove(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    """Dictionary-backed store, used by the CLI and in tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


@dataclass(frozen=True)
class PendingAuthState:
    """State and nonce issued for one login attempt."""

    state: str
    nonce: str


class SessionState:
    """Typed access to the OIDC keys of a session store.

    Any failure raised by the underlying store is surfaced as
    :class:`StorageError`.
    """

    def __init__(self, store: StateNonceStore) -> None:
        self.store = store

    def _call(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except OIDCError:
            raise
        except Exception as e:
            raise StorageError(f"Session store {operation} failed: {e}") from e

    def begin(self, pending: PendingAuthState) -> None:
        """Record a new login attempt, replacing any previous one."""
        self._call("write", self.store.set, OPENID_SESSION_TOKEN, pending.state)
        self._call("write", self.store.set, OPENID_SESSION_NONCE, pending.nonce)

    @property
    def state(self) -> str | None:
        return self._call("read", self.store.get, OPENID_SESSION_TOKEN)

    @property
    def nonce(self) -> str | None:
        return self._call("read", self.store.get, OPENID_SESSION_NONCE)

    @property
    def id_token_hint(self) -> str | None:
        return self._call("read", self.store.get, ID_TOKEN_HINT)

    def remember_id_token(self, id_token: str) -> None:
        self._call("write", self.store.set, ID_TOKEN_HINT, id_token)

    def consume_nonce(self) -> None:
        self._call("write", self.store.remove, OPENID_SESSION_NONCE)

    def consume_state(self) -> None:
        self._call("write", self.store.remove, OPENID_SESSION_TOKEN)

    def discard_pending(self) -> None:
        """Forget the state and nonce of an aborted login attempt."""
        self.consume_state()
        self.consume_nonce()

    def clear(self) -> None:
        self._call("clear", self.store.clear)
