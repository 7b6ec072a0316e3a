"""workflow.errors

Exception taxonomy for the provisioning workflow.

Every failure that should end a run is a :class:`WorkflowAbort`. Only the
orchestration controller catches it: it prints the message, runs cleanup and
turns ``exit_code`` into the process exit status.

Categories
----------
- precondition failures: missing directory/tool, missing or empty credential,
  unwritable or unreadable local files
- remote call failures: non-2xx HTTP status, non-zero subprocess exit, timeouts
- expected-state conflicts escalated to fatal: project name collision
- cancellation: SIGINT observed between steps or before a remote call
- build failure: Maven's own exit code is carried through
"""

from __future__ import annotations

from typing import Optional, Union


class WorkflowAbort(Exception):
    """Base class for every error that aborts the run."""

    exit_code: int = 1
    # set once the message has been printed, so the controller does not repeat it
    reported: bool = False

    def __init__(self, message: str, *, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


# -------------------------
# Precondition failures
# -------------------------

class PreconditionError(WorkflowAbort):
    pass


class DirectoryMissingError(PreconditionError):
    pass


class ToolMissingError(PreconditionError):
    pass


class CredentialFileMissingError(PreconditionError):
    pass


class EmptyCredentialError(PreconditionError):
    pass


class LocalFileError(PreconditionError):
    """A generated file (manifest, analysis config, token) could not be written or read."""


# -------------------------
# Remote call failures
# -------------------------

class RemoteCallError(WorkflowAbort):
    """A remote call (HTTP or subprocess) did not succeed.

    ``status`` is the HTTP status code, the subprocess exit code, or a short
    label such as ``"connection error"`` when no status exists.
    """

    def __init__(self, message: str, *, status: Union[int, str, None] = None) -> None:
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (status: {self.status})"


class MissingConditionError(RemoteCallError):
    pass


class CredentialRejectedError(RemoteCallError):
    pass


class ReadinessTimeoutError(RemoteCallError):
    pass


# -------------------------
# Conflicts, cancellation, build
# -------------------------

class ProjectCollisionError(WorkflowAbort):
    pass


class WorkflowCancelled(WorkflowAbort):
    def __init__(self, message: str = "Interrupted by user.") -> None:
        super().__init__(message)


class BuildFailedError(WorkflowAbort):
    def __init__(self, message: str, *, exit_code: int) -> None:
        super().__init__(message, exit_code=exit_code if exit_code else 1)
