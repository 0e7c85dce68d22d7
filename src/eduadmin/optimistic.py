from __future__ import annotations

from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Optimistic(Generic[T]):
    """
    A displayed value that can run ahead of the server.

    ``apply`` shows a tentative value at once and keeps the last confirmed one
    in a rollback slot. ``confirm`` promotes the tentative value; ``rollback``
    restores the confirmed one.
    """

    def __init__(self, value: T) -> None:
        self._confirmed: T = value
        self._current: T = value
        self._pending = False

    @property
    def value(self) -> T:
        return self._current

    @property
    def confirmed(self) -> T:
        return self._confirmed

    @property
    def pending(self) -> bool:
        return self._pending

    def apply(self, tentative: T) -> T:
        self._current = tentative
        self._pending = True
        return self._confirmed

    def confirm(self, value: Optional[T] = None) -> T:
        if value is not None:
            self._current = value
        self._confirmed = self._current
        self._pending = False
        return self._confirmed

    def rollback(self) -> T:
        self._current = self._confirmed
        self._pending = False
        return self._current

    def reset(self, value: T) -> None:
        self._confirmed = value
        self._current = value
        self._pending = False
