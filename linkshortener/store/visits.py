"""Background dispatch of visit registrations

Recording a visit must never delay or fail a redirect, so visitor log appends run
on a small bounded thread pool instead of the request path.

Delivery contract:
    - at most once, best effort: a visit is dropped (with a warning) when
      `max_pending` registrations are already in flight, and lost if the
      process stops before it runs;
    - no ordering guarantee relative to the redirect response;
    - failures are reported to the log only (done-callback error sink).
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from linkshortener.constants import Defaults


logger = logging.getLogger(__name__)


class VisitDispatcher:
    """Bounded fire-and-forget executor for visit registrations

    Example:
        >>> dispatcher = VisitDispatcher(max_workers=2, max_pending=100)
        >>> dispatcher.submit(dao.add_visitor, 'aBcD', visit_id, visitor)
        True
        >>> dispatcher.shutdown()
    """

    def __init__(self, max_workers: int = Defaults.VISIT_WORKERS, max_pending: int = Defaults.VISIT_QUEUE_SIZE):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='visits')
        self._slots = threading.BoundedSemaphore(max_pending)
        self._closed = False

    def submit(self, func: Callable[..., object], *args, **kwargs) -> bool:
        """Schedule `func(*args, **kwargs)` without waiting for it

        Returns:
            bool: True if the task was scheduled, False if it was dropped.
        """
        if self._closed:
            logger.warning('Visit dispatcher is shut down, dropping task.')
            return False

        if not self._slots.acquire(blocking=False):
            logger.warning('Visit queue is full, dropping task.')
            return False

        try:
            future = self._executor.submit(func, *args, **kwargs)
        except RuntimeError:
            self._slots.release()
            logger.warning('Visit dispatcher is shut down, dropping task.')
            return False

        future.add_done_callback(self._on_done)
        return True

    def _on_done(self, future: Future) -> None:
        self._slots.release()
        error = future.exception()
        if error is not None:
            logger.error(
                'Background visit registration failed.',
                exc_info=(type(error), error, error.__traceback__),
                extra={'error': error.__class__.__name__},
            )

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks; with wait=True, block until scheduled ones finished"""
        self._closed = True
        self._executor.shutdown(wait=wait)
