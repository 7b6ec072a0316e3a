"""workflow.progress

Cosmetic "Processing..." tickers for long-running steps.

Each named step owns at most one daemon thread. The ticker only writes to
its stream; it never touches controller state and nothing depends on it for
correctness. A ticker ends when:

* :meth:`ProgressReporter.stop` / :meth:`ProgressReporter.stop_all` is called,
* the shared cancellation token is set, or
* it has printed ``max_ticks`` frames.
"""

from __future__ import annotations

import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, TextIO

from workflow.cancellation import CancellationToken


@dataclass
class _Handle:
    thread: threading.Thread
    stop_event: threading.Event


class ProgressReporter:
    def __init__(
        self,
        cancel_token: Optional[CancellationToken] = None,
        *,
        stream: Optional[TextIO] = None,
        interval: float = 1.0,
        max_ticks: int = 3600,
        enabled: bool = True,
    ) -> None:
        self._cancel_token = cancel_token
        self._stream = stream
        self._interval = interval
        self._max_ticks = max_ticks
        self._enabled = enabled
        self._handles: Dict[str, _Handle] = {}
        # re-entrant: the SIGINT handler may call stop_all() while the main thread holds it
        self._lock = threading.RLock()

    def start(self, step_id: str) -> None:
        """Start a ticker for ``step_id`` (no-op if one is already running)."""
        if not self._enabled:
            return
        with self._lock:
            if step_id in self._handles:
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._tick,
                args=(stop_event,),
                name=f"progress-{step_id}",
                daemon=True,
            )
            self._handles[step_id] = _Handle(thread=thread, stop_event=stop_event)
            thread.start()

    def stop(self, step_id: str) -> None:
        """Stop the ticker for ``step_id``. Unknown step ids are ignored."""
        with self._lock:
            handle = self._handles.pop(step_id, None)
        if handle is None:
            return
        handle.stop_event.set()
        handle.thread.join(timeout=self._interval * 2 + 1)
        self._write("\n")

    def stop_all(self) -> None:
        with self._lock:
            step_ids = list(self._handles)
        for step_id in step_ids:
            self.stop(step_id)

    def active(self) -> List[str]:
        with self._lock:
            return list(self._handles)

    @contextmanager
    def step(self, step_id: str) -> Iterator[None]:
        self.start(step_id)
        try:
            yield
        finally:
            self.stop(step_id)

    def _cancelled(self) -> bool:
        return self._cancel_token is not None and self._cancel_token.cancelled

    def _tick(self, stop_event: threading.Event) -> None:
        for n in range(self._max_ticks):
            if stop_event.is_set() or self._cancelled():
                return
            dots = "." * (n % 3 + 1)
            self._write(f"\rProcessing{dots:<3}   ")
            if stop_event.wait(self._interval):
                return

    def _write(self, text: str) -> None:
        stream = self._stream or sys.stdout
        try:
            stream.write(text)
            stream.flush()
        except ValueError:
            # stream closed underneath us (interpreter shutdown)
            pass
