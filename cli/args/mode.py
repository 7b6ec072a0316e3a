from __future__ import annotations

import argparse
from typing import Dict, Optional

from cli.args.base import RUN_FLAGS
from workflow.models import RunConfig

FULL_FIELDS = ("project", "name", "main_branch", "analyze", "directory")
REANALYSIS_FIELDS = ("name", "directory")

ARG_COUNT_ERROR = "The number of variables is not correct, there are different configurations."


def _flag_values(args: argparse.Namespace) -> Dict[str, str]:
    """Return the flags the user actually passed (dest -> value)."""
    out: Dict[str, str] = {}
    for _long, _short, dest, _label in RUN_FLAGS:
        value: Optional[str] = getattr(args, dest, None)
        if value is not None:
            out[dest] = value
    return out


def _build(values: Dict[str, str]) -> RunConfig:
    if set(values) == set(FULL_FIELDS):
        return RunConfig.full(
            project_key=values["project"],
            project_name=values["name"],
            main_branch=values["main_branch"],
            analyze=values["analyze"],
            directory=values["directory"],
        )
    if set(values) == set(REANALYSIS_FIELDS):
        return RunConfig.reanalysis(project_name=values["name"], directory=values["directory"])
    raise ValueError(ARG_COUNT_ERROR)


def resolve_run_config(args: argparse.Namespace, parser: argparse.ArgumentParser) -> RunConfig:
    """Pick full vs re-analysis mode from the shape of the arguments.

    - 5 positionals, or all five flags      -> full mode
    - 2 positionals, or --name + --directory -> re-analysis mode
    - anything else (including mixing both styles) -> ``parser.error``
    """
    positionals = list(args.positionals or [])
    flags = _flag_values(args)

    if positionals and flags:
        parser.error("Positional arguments and flags cannot be mixed.")

    if positionals:
        if len(positionals) == len(FULL_FIELDS):
            values = dict(zip(FULL_FIELDS, positionals))
        elif len(positionals) == len(REANALYSIS_FIELDS):
            values = dict(zip(REANALYSIS_FIELDS, positionals))
        else:
            parser.error(ARG_COUNT_ERROR)
    else:
        values = flags

    try:
        return _build(values)
    except ValueError as e:
        parser.error(str(e))
        raise  # parser.error exits; keeps type checkers happy
