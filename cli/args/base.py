from __future__ import annotations

import argparse

# (long flag, short flag, dest, label used in help/usage)
RUN_FLAGS = (
    ("--project", "-p", "project", "Project Key"),
    ("--name", "-n", "name", "Project Name"),
    ("--main-branch", "-m", "main_branch", "Main Branch"),
    ("--analyze", "-a", "analyze", "Analysis Token"),
    ("--directory", "-d", "directory", "Project Directory"),
)


def add_run_args(parser: argparse.ArgumentParser) -> None:
    """Register the run inputs.

    Both spellings are accepted for every input:
    - positionals: ``KEY NAME BRANCH ANALYZE DIRECTORY`` or ``NAME DIRECTORY``
    - flags: ``--project KEY`` / ``--project=KEY`` / ``-p KEY`` ...

    Positionals and flags cannot be mixed; that is enforced by
    :func:`cli.args.mode.resolve_run_config`.
    """

    parser.add_argument(
        "positionals",
        nargs="*",
        metavar="ARG",
        help="KEY NAME BRANCH ANALYZE DIRECTORY (full mode) or NAME DIRECTORY (re-analysis mode)",
    )

    for long_flag, short_flag, dest, label in RUN_FLAGS:
        parser.add_argument(long_flag, short_flag, dest=dest, default=None, help=label)
