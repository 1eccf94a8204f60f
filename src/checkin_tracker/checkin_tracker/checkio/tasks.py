from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.constants import DEFAULT_BACKGROUND_WORKERS, MAX_TASK_ERRORS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskFailure:
    description: str
    error: BaseException


class BackgroundTaskQueue:
    """Best-effort side effects (log appends) off the request path.

    A failed task never reaches the submitter: it is logged and parked on the
    error channel until someone drains it. The channel keeps only the newest
    ``max_errors`` failures.
    """

    def __init__(self, max_workers: int = DEFAULT_BACKGROUND_WORKERS, *, max_errors: int = MAX_TASK_ERRORS):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="checkin-bg")
        self._lock = threading.Lock()
        self._pending: set[Future] = set()
        self._errors: deque[TaskFailure] = deque(maxlen=max_errors)

    def submit(self, fn: Callable[..., Any], *args: Any, description: str = "", **kwargs: Any) -> Future:
        label = description or getattr(fn, "__name__", "task")

        def run():
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                # must land before the future resolves
                logger.error("background task failed (%s): %s", label, e)
                with self._lock:
                    self._errors.append(TaskFailure(description=label, error=e))
                raise

        future = self._executor.submit(run)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until queued tasks finish; False if some are still running at timeout."""

        with self._lock:
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def drain_errors(self) -> list[TaskFailure]:
        with self._lock:
            errors = list(self._errors)
            self._errors.clear()
        return errors

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
