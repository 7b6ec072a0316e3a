"""workflow.reporting

Console banners for the start/end of each workflow step.

These are user-facing status lines, so they are printed rather than logged.
"""

from __future__ import annotations

import sys
from typing import Optional, TextIO


def step_started(message: str, *, stream: Optional[TextIO] = None) -> None:
    print(f"🚀 ------> {message}", file=stream or sys.stdout, flush=True)


def step_finished(message: str, *, stream: Optional[TextIO] = None) -> None:
    print(f"✅ ------> {message}", file=stream or sys.stdout, flush=True)


def warning(message: str, *, stream: Optional[TextIO] = None) -> None:
    print(f"⚠️ {message}", file=stream or sys.stdout, flush=True)


def error(message: str, *, stream: Optional[TextIO] = None) -> None:
    print(f"\n❌ {message}", file=stream or sys.stderr, flush=True)
