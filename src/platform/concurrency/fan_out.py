"""
Bounded fan-out / join helpers

`fan_out` runs one task per item inside an anyio task group, bounded by a
CapacityLimiter, and returns once every task has finished. Workers report
into a `ResultCollector`; a worker must not let an exception escape, because
an escaping exception cancels the whole task group.

`call_with_deadline` wraps a single network call with `anyio.fail_after` so a
stalled gateway or mail server surfaces as `TimeoutError` instead of hanging
the batch.
"""

from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Generic, TypeVar

import anyio


_T = TypeVar('_T')
_I = TypeVar('_I')


class ResultCollector(Generic[_T]):
    """Append-only list shared by sibling tasks"""

    def __init__(self) -> None:
        self._items: list[_T] = []
        self._lock = anyio.Lock()

    async def add(self, item: _T) -> None:
        async with self._lock:
            self._items.append(item)

    @property
    def items(self) -> list[_T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


async def fan_out(
    items: Iterable[_I],
    worker: Callable[[_I], Awaitable[None]],
    *,
    limit: int,
) -> None:
    limiter = anyio.CapacityLimiter(max(1, limit))

    async def _run(item: _I) -> None:
        async with limiter:
            await worker(item)

    async with anyio.create_task_group() as tg:
        for item in items:
            tg.start_soon(_run, item)


async def call_with_deadline(
    func: Callable[..., Awaitable[_T]], /, *, deadline: float, **kwargs: Any
) -> _T:
    with anyio.fail_after(deadline):
        return await func(**kwargs)
