"""
Error Collector — Background sink for per-object mirror errors.

The mirror loop never stops on a per-object failure. Instead it hands the
error to the collector, which logs and counts it on its own thread.

A ``send`` returns only once the drain thread has logged the error, so
errors appear in the log in the exact order they occurred. ``stop`` waits
until every error sent before it has been drained.

## Usage

    from blobcopy.reliability.error_collector import ErrorCollector

    with ErrorCollector() as errors:
        errors.send(ObjectError("a.txt", "copy", exc))
    print(errors.count)
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import List, Optional

logger = logging.getLogger(__name__)

_STOP = object()


class ErrorCollector:
    """
    Single-consumer error sink drained by a background thread.

    Keeps the last ``keep`` errors for the run summary; the count covers
    all of them.
    """

    def __init__(self, log: Optional[logging.Logger] = None, keep: int = 100):
        self.log = log or logger
        self.keep = keep
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=1)
        self._thread: Optional[threading.Thread] = None
        self._count = 0
        self._recent: List[BaseException] = []
        self._send_lock = threading.Lock()
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stopped

    @property
    def count(self) -> int:
        """Number of errors drained so far."""
        return self._count

    @property
    def recent(self) -> List[BaseException]:
        return list(self._recent)

    def start(self) -> "ErrorCollector":
        """
        Begin draining on a background thread.

        A collector runs once; a stopped collector cannot be restarted.
        """
        if self._stopped:
            raise RuntimeError("error collector was stopped and cannot be restarted; create a new one")
        if self._thread is not None:
            raise RuntimeError("error collector already started")
        self._thread = threading.Thread(target=self._drain, name="error-collector", daemon=True)
        self._thread.start()
        return self

    def send(self, err: BaseException) -> None:
        """
        Hand an error to the drain thread and wait until it is recorded.

        Raises:
            RuntimeError: If the collector is not running.
        """
        with self._send_lock:
            if not self.running:
                raise RuntimeError("error collector is not running")
            self._queue.put(err)
            self._queue.join()

    def stop(self) -> int:
        """
        Drain everything already sent, stop the thread, return the count.
        """
        with self._send_lock:
            if self._thread is None:
                raise RuntimeError("error collector was never started")
            if not self._stopped:
                self._stopped = True
                self._queue.put(_STOP)
                self._thread.join()
        return self._count

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    self.log.debug(f"Error collector stopped after {self._count} error(s)")
                    return
                self._count += 1
                self._recent.append(item)
                if len(self._recent) > self.keep:
                    del self._recent[0]
                self.log.error(str(item))
            finally:
                self._queue.task_done()

    def __enter__(self) -> "ErrorCollector":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()
