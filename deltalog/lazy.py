"""A value computed once, on first use."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class Lazy(Generic[T]):
    """Runs a function once; every caller gets its result or its exception."""

    def __init__(self, evaluate: Callable[[], T]) -> None:
        self._evaluate = evaluate
        self._lock = threading.Lock()
        self._done = False
        self._value: T | None = None
        self._error: BaseException | None = None

    def get(self) -> T:
        """The computed value; raises the exception the function raised."""
        if not self._done:
            with self._lock:
                if not self._done:
                    try:
                        self._value = self._evaluate()
                    except Exception as exc:
                        self._error = exc
                    self._done = True
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]