from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast


if TYPE_CHECKING:
    from collections.abc import Awaitable, Generator

T = TypeVar("T")


class Deferred(Generic[T]):
    """An instance that is only available asynchronously.

    Wraps an awaitable. With a running event loop it is scheduled as a task right
    away, otherwise on the first ``await``. Unlike a bare coroutine it can be
    awaited any number of times, which lets the injector cache it.
    """

    __slots__ = ("_awaitable", "_future", "_settled", "_value")

    def __init__(self, awaitable: Awaitable[T]) -> None:
        self._awaitable: Awaitable[T] | None = awaitable
        self._future: asyncio.Future[T] | None = None
        self._settled = False
        self._value: Any = None

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return

        self._schedule()

    @classmethod
    def resolved(cls, value: T) -> Deferred[T]:
        deferred = cls.__new__(cls)
        deferred._awaitable = None
        deferred._future = None
        deferred._settled = True
        deferred._value = value
        return deferred

    @classmethod
    def wrap(cls, value: object) -> Deferred[Any]:
        if isinstance(value, Deferred):
            return value
        if inspect.isawaitable(value):
            return cls(value)
        return cls.resolved(value)

    def done(self) -> bool:
        if self._settled:
            return True
        return self._future is not None and self._future.done()

    def _schedule(self) -> asyncio.Future[T]:
        if self._future is None:
            self._future = asyncio.ensure_future(cast("Awaitable[T]", self._awaitable))
            self._awaitable = None
        return self._future

    def __await__(self) -> Generator[Any, None, T]:
        if self._settled:
            return self._value
        return (yield from self._schedule().__await__())

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"<Deferred {state}>"
