"""
Kettlespell CLI

Command-line interface for sending confidential compute requests to a
kettle and reading back what they did on chain.

Commands:
  conf-request  - Send a confidential request to a contract
  deploy        - Deploy a contract from a Foundry artifact
  kettle        - Show the resolved kettle address
  whoami        - Show the signer address
"""

from __future__ import annotations

import logging
import sys

import click

from . import __version__
from .config import load_env, setup_logging


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=__version__, prog_name="kettlespell")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Kettlespell - confidential compute requests for kettles."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)


# ============ Commands ============

from .theurgy.spell import conf_request, deploy, kettle, whoami

cli.add_command(conf_request)
cli.add_command(deploy)
cli.add_command(kettle)
cli.add_command(whoami)


# ============ Entry Points ============


def main() -> None:
    """Kettlespell CLI entry point."""
    load_env()
    cli()


if __name__ == "__main__":
    main()
