"""workflow.executor

Uniform wrapper for every outbound call the workflow makes.

An *operation* is a zero-argument callable that returns either a
``requests.Response`` (HTTP) or a :class:`tools.core_cmd.CmdResult`
(subprocess). The executor:

1. checks the cancellation token, so a pending SIGINT stops the run before
   the next call is issued;
2. runs the operation (its output is never echoed);
3. classifies the result: HTTP status >= 400 (unless listed in ``accept``),
   a non-zero exit code, or a ``requests.RequestException`` is a failure;
4. on failure prints ``failure_message`` with the status code and raises
   :class:`~workflow.errors.RemoteCallError`.

There are no retries: every failure goes straight to the
controller's abort path.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Collection, Optional, Union

import requests

from tools.core_cmd import CmdResult
from workflow import reporting
from workflow.cancellation import CancellationToken
from workflow.errors import RemoteCallError

logger = logging.getLogger(__name__)

RemoteResult = Union[requests.Response, CmdResult]
Operation = Callable[[], RemoteResult]


def _status_of(result: RemoteResult) -> int:
    if isinstance(result, CmdResult):
        return result.exit_code
    return result.status_code


def _is_failure(result: RemoteResult, accept: Collection[int]) -> bool:
    if isinstance(result, CmdResult):
        return result.exit_code != 0 and result.exit_code not in accept
    return result.status_code >= 400 and result.status_code not in accept


def _text_of(result: RemoteResult) -> str:
    if isinstance(result, CmdResult):
        return result.stdout
    return result.text


class RemoteCallExecutor:
    def __init__(self, cancel_token: Optional[CancellationToken] = None) -> None:
        self.cancel_token = cancel_token or CancellationToken()

    def execute(
        self,
        operation: Operation,
        failure_message: str,
        *,
        accept: Collection[int] = (),
    ) -> RemoteResult:
        """Run ``operation``; return its result or raise RemoteCallError."""
        self.cancel_token.raise_if_cancelled()

        try:
            result = operation()
        except requests.RequestException as e:
            logger.debug("request failed: %s", e)
            raise self.failure(failure_message, type(e).__name__) from e

        status = _status_of(result)
        if _is_failure(result, accept):
            logger.debug("remote call failed with %s: %s", status, _text_of(result)[:500])
            raise self.failure(failure_message, status)

        logger.debug("remote call ok (%s)", status)
        return result

    def execute_capture(
        self,
        operation: Operation,
        failure_message: str,
        *,
        accept: Collection[int] = (),
    ) -> str:
        """Like :meth:`execute` but return the response body / stdout."""
        return _text_of(self.execute(operation, failure_message, accept=accept))

    def execute_json(
        self,
        operation: Operation,
        failure_message: str,
        *,
        accept: Collection[int] = (),
    ) -> Any:
        """Like :meth:`execute_capture` but decode the body as JSON."""
        text = self.execute_capture(operation, failure_message, accept=accept)
        try:
            return json.loads(text) if text.strip() else {}
        except ValueError:
            raise self.failure(failure_message, "invalid JSON") from None

    def failure(self, failure_message: str, status: Union[int, str]) -> RemoteCallError:
        """Print ``failure_message`` with ``status`` and return the matching error to raise."""
        reporting.error(f"{failure_message} (Exit code: {status}).")
        err = RemoteCallError(failure_message, status=status)
        err.reported = True
        return err
