"""workflow.cancellation

A tiny cancellation token shared by the controller, the remote call executor,
the readiness poller and the progress tickers.

The SIGINT handler only flips the flag. Whoever is running next (the executor
before issuing a call, the poller between polls, the controller between steps)
observes it and raises :class:`~workflow.errors.WorkflowCancelled`, so the
run always unwinds through the controller's cleanup path.
"""

from __future__ import annotations

import threading
from typing import Optional

from workflow.errors import WorkflowCancelled


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise WorkflowCancelled()

    def wait(self, timeout: Optional[float]) -> bool:
        """Sleep up to ``timeout`` seconds; return True early if cancelled."""
        return self._event.wait(timeout)
