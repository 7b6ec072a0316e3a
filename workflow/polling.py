"""workflow.polling

Poll-with-timeout used wherever the server needs time to settle: after
``docker compose up`` (server status UP), after creating a resource (resource
is queryable) and after minting a token (token validates).

The wait is bounded: on timeout a :class:`ReadinessTimeoutError` aborts the
run, keeping the fail-fast behavior of the old fixed sleeps without waiting
longer than needed.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Type

from workflow.cancellation import CancellationToken
from workflow.errors import ReadinessTimeoutError, RemoteCallError

logger = logging.getLogger(__name__)


def wait_until(
    predicate: Callable[[], bool],
    *,
    description: str,
    timeout: float,
    interval: float,
    cancel_token: Optional[CancellationToken] = None,
    error_cls: Type[RemoteCallError] = ReadinessTimeoutError,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Call ``predicate`` until it returns True or ``timeout`` seconds pass.

    The predicate is always evaluated at least once. Cancellation is checked
    before every evaluation and interrupts the sleep between polls.
    """
    deadline = clock() + timeout
    attempt = 0
    while True:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        attempt += 1
        if predicate():
            logger.debug("%s: ready after %d attempt(s)", description, attempt)
            return

        remaining = deadline - clock()
        if remaining <= 0:
            raise error_cls(f"Timed out after {timeout:g}s waiting for {description}")

        pause = min(interval, remaining)
        if cancel_token is not None:
            cancel_token.wait(pause)
        else:
            time.sleep(pause)
