"""CLI argument modules.

The top-level :mod:`sonar_env_cli` is intentionally kept thin.

- :func:`cli.args.base.add_run_args` registers the positional/flag inputs.
- :func:`cli.args.mode.resolve_run_config` turns the parsed namespace into a
  :class:`workflow.models.RunConfig`, choosing full or re-analysis mode from
  the shape of the arguments.
"""

from __future__ import annotations

__all__ = [
    "base",
    "mode",
]
