"""Serial background queue for storage operations.

A `SerialDispatcher` runs submitted callables one at a time, in submission
order, on a single worker thread. Each submission returns a
`concurrent.futures.Future`; an optional handler is also called with a
`Result` once the job finishes.
"""
from __future__ import annotations
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_QUEUE_NAME = "DiskCache.Queue"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a background job: either `value` or `error` is set."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def from_future(cls, future: Future) -> "Result[Any]":
        error = future.exception()
        if error is not None:
            return cls(error=error)
        return cls(value=future.result())


Handler = Callable[[Result[Any]], None]


class SerialDispatcher:
    def __init__(self, name: str = DEFAULT_QUEUE_NAME) -> None:
        self.name = name
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._lock = threading.Lock()
        self._closed = False

    def submit(
        self,
        fn: Callable[..., T],
        *args: Any,
        handler: Optional[Handler] = None,
        **kwargs: Any,
    ) -> "Future[T]":
        with self._lock:
            if self._closed:
                raise RuntimeError(f"dispatcher {self.name!r} is shut down")
            future = self._executor.submit(fn, *args, **kwargs)
        if handler is not None:
            future.add_done_callback(lambda f: self._deliver(handler, f))
        return future

    def _deliver(self, handler: Handler, future: Future) -> None:
        try:
            handler(Result.from_future(future))
        except Exception:
            logger.exception("Storage handler raised on queue %s", self.name)

    def drain(self) -> None:
        """Block until every job queued so far has run."""
        self.submit(lambda: None).result()

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=wait)

    @property
    def closed(self) -> bool:
        return self._closed
