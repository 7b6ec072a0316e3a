#!/usr/bin/env python3
"""
CLI for provisioning a local SonarQube + PostgreSQL environment and analyzing
a Maven project with it.

Modes:
  1) full       - generate docker-compose.yml, start the containers, create the
                  quality gate, quality profile, project and token, then analyze
  2) reanalysis - reuse the stored token and run a new analysis only

Usage:
  python sonar_env_cli.py KEY NAME BRANCH ANALYZE DIRECTORY
  python sonar_env_cli.py --project KEY --name NAME --main-branch BRANCH --analyze ANALYZE --directory DIRECTORY
  python sonar_env_cli.py NAME DIRECTORY
  python sonar_env_cli.py -n NAME -d DIRECTORY
"""

from __future__ import annotations

import argparse
import sys
from typing import List, NoReturn, Optional

from cli.args.base import add_run_args
from cli.args.mode import resolve_run_config
from cli.dispatch import dispatch
from workflow.models import RunConfig

HELP_EPILOG = """\
Modes of operation:
  1. All variables mode: starts the project with Docker and SonarQube.
     You need to provide all five variables.

  2. Re-analysis mode: runs a new SonarQube scan on an already provisioned
     project. Only the project name and directory are needed; the token is
     read from token_<name>.txt.

Example to generate the environment and analyze a project:
  sonar-env demoProject demoName master demoToken ./demo
  or
  sonar-env --project demoProject --name demoName --main-branch master --analyze demoToken --directory ./demo
  or
  sonar-env -p demoProject -n demoName -m master -a demoToken -d ./demo

Example for re-analysis:
  sonar-env demoName ./demo
  or
  sonar-env --name demoName --directory ./demo
  or
  sonar-env -n demoName -d ./demo

Configuration is read from the environment or a .env file (SONAR_URL,
SONAR_ADMIN_LOGIN, SONAR_ADMIN_PASSWORD, SONAR_QUALITY_GATE, ...).
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        print(f"❌ Error: {message}", file=sys.stderr)
        print("   Try using the help: --help -h", file=sys.stderr)
        raise SystemExit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="sonar-env",
        description="Provision SonarQube + PostgreSQL with Docker and analyze a Maven project.",
        epilog=HELP_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_run_args(parser)
    return parser


def parse_run_config(argv: Optional[List[str]] = None) -> RunConfig:
    parser = build_parser()
    args = parser.parse_args(argv)
    return resolve_run_config(args, parser)


def main(argv: Optional[List[str]] = None) -> None:
    config = parse_run_config(argv)
    raise SystemExit(dispatch(config))


if __name__ == "__main__":
    main()
