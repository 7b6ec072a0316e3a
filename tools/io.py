#!/usr/bin/env python3
"""tools/io.py

Single source of truth for the tiny filesystem helpers used by the workflow.

Every file this tool writes (compose manifest, analysis properties, token
file) goes through here, so newline/encoding handling cannot drift between
the generator modules.

Design
------
- This module is intentionally small.
- It contains ONLY filesystem IO (no policy about what the files mean).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


def write_text(path: Path, text: str) -> None:
    """Write UTF-8 text exactly as given (no newline translation)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(text)


def read_text(path: Path) -> Optional[str]:
    """Return the file contents, or None when the file does not exist."""
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


def remove_file(path: Path) -> bool:
    """Delete ``path`` if present. Returns True if something was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
