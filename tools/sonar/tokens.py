"""tools/sonar/tokens.py

Authentication token lifecycle.

Full mode mints a token through the Web API and persists it to
``token_<project_name>.txt``; re-analysis mode reads that file back. Either
way the token is validated against the server before the build uses it, and
an empty token never leaves this module.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from tools.io import read_text, write_text
from workflow.cancellation import CancellationToken
from workflow.errors import (
    CredentialFileMissingError,
    CredentialRejectedError,
    EmptyCredentialError,
    LocalFileError,
)
from workflow.polling import wait_until

from .api import SonarQubeApi


def token_filename(project_name: str) -> str:
    return f"token_{project_name}.txt"


class TokenManager:
    def __init__(
        self,
        api: SonarQubeApi,
        *,
        login: str,
        token_dir: Path,
        validate_timeout: float = 60.0,
        poll_interval: float = 2.0,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self.api = api
        self.login = login
        self.token_dir = token_dir
        self.validate_timeout = validate_timeout
        self.poll_interval = poll_interval
        self.cancel_token = cancel_token

    def token_path(self, project_name: str) -> Path:
        return self.token_dir / token_filename(project_name)

    def generate(self, project_key: str, project_name: str) -> str:
        """Mint a token named after ``project_key`` and persist it under ``project_name``.

        Token names are unique per user on the server, and project keys are
        unique too, so one token per project never collides.
        """
        payload = self.api.generate_user_token(self.login, project_key)
        token = str(payload.get("token") or "").strip()
        if not token:
            raise EmptyCredentialError("Error: TOKEN is empty. Please provide a valid value.")

        path = self.token_path(project_name)
        try:
            write_text(path, token)
        except OSError as e:
            raise LocalFileError(f"Could not write the token file {path}: {e.strerror or e}") from e
        return token

    def load(self, project_name: str) -> str:
        path = self.token_path(project_name)
        try:
            content = read_text(path)
        except OSError as e:
            raise LocalFileError(f"Could not read the token file {path}: {e.strerror or e}") from e
        if content is None:
            raise CredentialFileMissingError(f"The {path.name} file does not exist.")

        token = content.strip()
        if not token:
            raise EmptyCredentialError(
                f"The {path.name} file exists, but the value of TOKEN is null or empty."
            )
        return token

    def validate(self, token: str) -> None:
        if not token:
            raise EmptyCredentialError("Error: TOKEN is empty. Please provide a valid value.")
        wait_until(
            lambda: self.api.validate_token(token),
            description="the authentication token to be accepted by SonarQube",
            timeout=self.validate_timeout,
            interval=self.poll_interval,
            cancel_token=self.cancel_token,
            error_cls=CredentialRejectedError,
        )
