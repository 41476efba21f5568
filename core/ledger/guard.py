"""
Non-reentrant Guard

Single-writer lock held for the whole duration of a mutating operation.
Entering it again from the thread that already holds it raises instead of
deadlocking, so a callback (verifier, transport, listener) can never run a
nested mutation against half-applied state.
"""

from __future__ import annotations

import functools
import threading
from typing import Any, Callable, Optional, TypeVar

from core.schemas.errors import ReentrancyViolationException


F = TypeVar("F", bound=Callable[..., Any])


class NonReentrantLock:
    """
    Context manager wrapping threading.Lock with owner tracking.

    Usage:
        guard = NonReentrantLock("ledger")
        with guard:
            ...  # released on every exit path
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    @property
    def held_by_current_thread(self) -> bool:
        return self._owner == threading.get_ident()

    def __enter__(self) -> "NonReentrantLock":
        if self.held_by_current_thread:
            raise ReentrancyViolationException(self.name)
        self._lock.acquire()
        self._owner = threading.get_ident()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._owner = None
        self._lock.release()

    def __repr__(self) -> str:
        return f"NonReentrantLock(name={self.name!r}, locked={self._lock.locked()})"


def nonreentrant(method: F) -> F:
    """Run a method while holding ``self.guard``."""

    @functools.wraps(method)
    def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        with self.guard:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


__all__ = ["NonReentrantLock", "nonreentrant"]
