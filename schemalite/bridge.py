"""Uniform invocation of external hooks.

A hook either reports completion through a trailing ``done(error, result)``
callback or returns something future-like (an awaitable, or an object with
``add_done_callback``). Callers always get a ``concurrent.futures.Future``
back, which async code can await through ``asyncio.wrap_future``.
"""

import asyncio
import inspect
import logging
from concurrent.futures import CancelledError, Future
from typing import Any, Callable, Optional, Sequence

from .exceptions import HookError

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[Any], Any], None]


def noop(error: Any = None, result: Any = None) -> None:
    pass


def is_future_like(value: Any) -> bool:
    return inspect.isawaitable(value) or callable(
        getattr(value, "add_done_callback", None)
    )


class Completion:
    """Settles one hook invocation exactly once."""

    def __init__(
        self,
        future: Future,
        callback: Callback,
        after: Optional[Callable[[Any], None]] = None,
        label: str = "hook",
    ) -> None:
        self.future = future
        self.callback = callback
        self.after = after
        self.label = label
        self.settled = False

    def done(self, error: Any = None, result: Any = None) -> None:
        if self.settled:
            logger.warning("%s completed more than once; ignoring", self.label)
            return
        self.settled = True

        if error is not None:
            logger.debug("%s failed: %r", self.label, error)

        try:
            if self.after is not None:
                self.after(error)
            self.callback(error, result)
        except BaseException as exc:
            # A failing listener or callback still settles the future.
            self.future.set_exception(exc)
            raise

        if error is None:
            self.future.set_result(result)
        elif isinstance(error, BaseException):
            self.future.set_exception(error)
        else:
            self.future.set_exception(HookError(error))

    def settle_from(self, source: Any) -> None:
        """Settle from a finished future-like object."""
        if source.cancelled():
            self.done(CancelledError())
            return
        error = source.exception()
        if error is not None:
            self.done(error)
        else:
            self.done(None, source.result())


async def _await(awaitable: Any) -> Any:
    return await awaitable


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _settle_on(
    loop: asyncio.AbstractEventLoop, completion: Completion
) -> Callable[[Any], None]:
    def settle(source: Any) -> None:
        if loop.is_closed():
            completion.settle_from(source)
        else:
            loop.call_soon_threadsafe(completion.settle_from, source)

    return settle


def _follow(returned: Any, completion: Completion) -> None:
    loop = _running_loop()

    if callable(getattr(returned, "add_done_callback", None)):
        is_done = getattr(returned, "done", None)
        if callable(is_done) and is_done():
            completion.settle_from(returned)
        elif asyncio.isfuture(returned) or loop is None:
            # asyncio futures call back on their own loop.
            returned.add_done_callback(completion.settle_from)
        else:
            # Anything else may finish on a worker thread.
            returned.add_done_callback(_settle_on(loop, completion))
        return

    if loop is None:
        # No loop to schedule on: drive the awaitable to completion here.
        try:
            result = asyncio.run(_await(returned))
        except Exception as e:
            completion.done(e)
        else:
            completion.done(None, result)
        return
    asyncio.ensure_future(returned).add_done_callback(completion.settle_from)


def wrap(
    func: Optional[Callable[..., Any]],
    args: Sequence[Any] = (),
    before: Optional[Callable[[], None]] = None,
    after: Optional[Callable[[Any], None]] = None,
    label: str = "hook",
) -> Callable[..., Future]:
    """Prepare a hook call; the returned function runs it.

    Calling the result with an optional ``callback(error, result)`` runs
    ``before``, invokes ``func(*args, done)`` and returns a Future. On
    completion ``after(error)`` runs first, then the callback, then the
    Future settles.
    """

    def run(callback: Optional[Callback] = None) -> Future:
        future: Future = Future()
        completion = Completion(future, callback or noop, after, label)

        if before is not None:
            before()

        if func is None:
            completion.done()
            return future

        logger.debug("Calling %s", label)
        try:
            returned = func(*args, completion.done)
        except Exception as e:
            if completion.settled:
                raise
            completion.done(e)
            return future

        if is_future_like(returned):
            _follow(returned, completion)
        return future

    return run
