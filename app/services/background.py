"""Fire-and-forget work that must never fail the request that queued it."""

import logging
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)


class BackgroundDispatcher:
    """Runs side effects (hit counters, usage rows) off the request path.

    Each task runs inside its own error guard: failures are logged and
    dropped. With ``synchronous=True`` tasks run inline, which keeps tests
    deterministic.
    """

    def __init__(self, max_workers=4, synchronous=False):
        self.synchronous = synchronous
        self._executor = None
        if not synchronous:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix='background',
            )

    def submit(self, func, *args, description='background task', **kwargs):
        """Queue ``func``. Never raises."""
        if self.synchronous:
            self._run(func, description, args, kwargs)
            return

        try:
            self._executor.submit(self._run, func, description, args, kwargs)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning(f"Dropped {description}: {e}")

    @staticmethod
    def _run(func, description, args, kwargs):
        try:
            func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{description} failed (non-blocking): {e}")

    def shutdown(self, wait=True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
