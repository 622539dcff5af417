"""Background task runner for fire-and-forget translation work.

Tasks run on a small thread pool, detached from the request. Each task is
wrapped in an error boundary that logs failures, and the number of queued
tasks is capped: when the cap is reached, submit() drops the task and
returns None.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:

    def __init__(self, max_workers=2, max_pending=20, inline=False, app=None):
        self.max_workers = max_workers
        self.max_pending = max_pending
        self.inline = inline
        self.app = app
        self._executor = None
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def _get_executor(self):
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix='translation-backfill',
            )
        return self._executor

    def _run(self, name, fn, args, kwargs):
        try:
            if self.app is not None:
                # Worker threads need their own app context for db access
                with self.app.app_context():
                    return fn(*args, **kwargs)
            return fn(*args, **kwargs)
        except Exception as e:
            logger.error(f"Background task {name} failed: {e}", exc_info=True)
            return None

    def submit(self, fn, *args, name=None, **kwargs):
        """Schedule fn(*args, **kwargs). Returns a Future, or None if the queue is full."""
        name = name or getattr(fn, '__name__', 'task')

        if self.inline:
            future = Future()
            future.set_result(self._run(name, fn, args, kwargs))
            return future

        with self._lock:
            if len(self._pending) >= self.max_pending:
                logger.warning(f"Background queue full ({self.max_pending}), dropping task {name}")
                return None
            future = self._get_executor().submit(self._run, name, fn, args, kwargs)
            self._pending.add(future)

        future.add_done_callback(self._discard)
        return future

    def _discard(self, future):
        with self._lock:
            self._pending.discard(future)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def wait(self, timeout=None) -> bool:
        """Block until all queued tasks finish. Returns True if none are left."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait=True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
