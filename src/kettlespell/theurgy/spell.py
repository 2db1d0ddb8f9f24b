"""
Theurgy Spell - Confidential requests and deployments from the shell.

Commands:
- conf-request: Send a confidential compute request and decode its logs
- deploy:       Deploy a contract from a Foundry artifact
- kettle:       Show the kettle the endpoint resolves to
- whoami:       Show the signer address for that kettle
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

import click

from ..client import KettleClient, report_receipt
from ..config import (
    DEFAULT_ARTIFACTS_DIR,
    DEFAULT_DEPLOY_GAS,
    DEFAULT_RPC_URL,
    DEVCHAIN_DEV_KEY,
    ENV_ARTIFACTS,
    ENV_KETTLE_ADDRESS,
    ENV_PRIVATE_KEY,
    ENV_RPC,
    RECEIPT_TIMEOUT,
    SpellConfig,
)
from ..errors import ArtifactError, KettleError
from ..pneuma.abi import (
    MethodEncoder,
    load_bytecode,
    load_event_descriptors,
    parse_call_args,
    resolve_artifact,
)
from ..pneuma.kettle import resolve_kettle_address
from ..pneuma.rpc import RpcEndpoint
from ..utils import checksum, parse_confidential_input

logger = logging.getLogger(__name__)


_SESSION_OPTIONS = [
    click.option("--rpc", envvar=ENV_RPC, default=DEFAULT_RPC_URL, show_default=True, help="The rpc endpoint to use"),
    click.option("--kettle-address", envvar=ENV_KETTLE_ADDRESS, default=None, help="The address of the kettle"),
    click.option(
        "--private-key",
        envvar=ENV_PRIVATE_KEY,
        default=None,
        help="The private key to use for signing the confidential request",
    ),
    click.option("--no-dev-key", is_flag=True, help="Never fall back to the local devchain key"),
]


def session_options(func: Callable) -> Callable:
    """Options shared by every command that talks to a kettle."""
    for option in reversed(_SESSION_OPTIONS):
        func = option(func)
    return func


@contextmanager
def _session(
    rpc: str,
    kettle_address: Optional[str],
    private_key: Optional[str],
    no_dev_key: bool,
    timeout: float = RECEIPT_TIMEOUT,
) -> Iterator[KettleClient]:
    config = SpellConfig(
        rpc_url=rpc,
        kettle_address=kettle_address,
        private_key=private_key,
        receipt_timeout=timeout,
        dev_key=None if no_dev_key else DEVCHAIN_DEV_KEY,
    )
    with RpcEndpoint(config.rpc_url) as endpoint:
        yield KettleClient.from_config(endpoint, config)


def _fail(exc: KettleError) -> None:
    click.secho(f"ERROR: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code)


def _load_descriptors(artifacts: Path):
    try:
        return load_event_descriptors(artifacts)
    except ArtifactError as exc:
        logger.warning("could not decode events from artifacts: %s", exc)
        return ()


@click.command("conf-request")
@click.argument("contract")
@click.argument("method_sig")
@click.argument("method_args", required=False)
@session_options
@click.option(
    "--artifacts",
    envvar=ENV_ARTIFACTS,
    default=DEFAULT_ARTIFACTS_DIR,
    type=click.Path(path_type=Path),
    help="The directory where the contract artifacts are located",
)
@click.option(
    "--confidential-input",
    default=None,
    help="The confidential input, 0x-prefixed hex or literal text",
)
@click.option("--timeout", type=float, default=RECEIPT_TIMEOUT, show_default=True, help="Receipt wait in seconds")
def conf_request(
    contract: str,
    method_sig: str,
    method_args: Optional[str],
    rpc: str,
    kettle_address: Optional[str],
    private_key: Optional[str],
    no_dev_key: bool,
    artifacts: Path,
    confidential_input: Optional[str],
    timeout: float,
) -> None:
    """
    Send a confidential request to a contract.

    METHOD_SIG is a signature like 'offchain(uint256)'; METHOD_ARGS is an
    optional argument list like '(0x01,2,3)'.
    """
    click.echo("=== Kettlespell Conf Request ===")
    click.echo("")

    try:
        try:
            conf_input = parse_confidential_input(confidential_input)
        except ValueError as exc:
            raise click.BadParameter(f"failed to decode hex confidential input: {exc}")
        if not conf_input:
            logger.info("No confidential input provided, using empty string")

        try:
            contract_addr = checksum(contract)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="CONTRACT")

        encoder = MethodEncoder.from_signature(method_sig)
        args = parse_call_args(method_args) if method_args else []

        with _session(rpc, kettle_address, private_key, no_dev_key, timeout) as client:
            click.echo(f"  Contract: {contract_addr}")
            click.echo(f"  Method: {encoder.signature}")
            click.echo(f"  Kettle: {client.kettle_address}")
            click.echo(f"  Sender: {client.address}")
            click.echo("")

            result = client.confidential_call(contract_addr, encoder, args, conf_input)
            click.echo(f"  TX: {result.hash}")
            click.echo("Waiting for the transaction to be mined...")

            receipt = result.wait()
            descriptors = _load_descriptors(artifacts) if receipt.logs else ()
            lines = report_receipt(receipt, descriptors)

        click.secho("SUCCESS: Transaction confirmed!", fg="green")
        for line in lines:
            click.echo(f"  {line}")
    except KettleError as exc:
        _fail(exc)


@click.command()
@click.argument("contract_ref")
@session_options
@click.option(
    "--artifacts",
    envvar=ENV_ARTIFACTS,
    default=DEFAULT_ARTIFACTS_DIR,
    type=click.Path(path_type=Path),
    help="The directory where the contract artifacts are located",
)
@click.option("--gas-limit", default=DEFAULT_DEPLOY_GAS, type=int, show_default=True, help="Gas limit")
@click.option("--timeout", type=float, default=RECEIPT_TIMEOUT, show_default=True, help="Receipt wait in seconds")
def deploy(
    contract_ref: str,
    rpc: str,
    kettle_address: Optional[str],
    private_key: Optional[str],
    no_dev_key: bool,
    artifacts: Path,
    gas_limit: int,
    timeout: float,
) -> None:
    """
    Deploy a contract.

    CONTRACT_REF is '<Source.sol>:<Contract>' inside the artifacts folder.
    """
    click.echo("=== Kettlespell Deploy ===")
    click.echo("")

    try:
        bytecode = load_bytecode(resolve_artifact(artifacts, contract_ref))

        with _session(rpc, kettle_address, private_key, no_dev_key, timeout) as client:
            click.echo(f"  Sender: {client.address}")
            result = client.deploy(bytecode, gas_limit=gas_limit)
            click.echo(f"  TX: {result.hash}")
            click.echo("Waiting for the transaction to be mined...")
            receipt = result.wait().ensure_success()

        click.secho("SUCCESS: Contract deployed!", fg="green")
        click.echo(f"  Block: {receipt.block_number}")
        click.echo(f"  Address: {receipt.contract_address}")
    except KettleError as exc:
        _fail(exc)


@click.command()
@_SESSION_OPTIONS[0]
@_SESSION_OPTIONS[1]
def kettle(rpc: str, kettle_address: Optional[str]) -> None:
    """Show the kettle address requests would be sent to."""
    try:
        with RpcEndpoint(rpc) as endpoint:
            click.echo(f"Kettle: {resolve_kettle_address(endpoint, kettle_address)}")
    except KettleError as exc:
        _fail(exc)


@click.command()
@session_options
def whoami(
    rpc: str,
    kettle_address: Optional[str],
    private_key: Optional[str],
    no_dev_key: bool,
) -> None:
    """Show the signer address for the resolved kettle."""
    try:
        with _session(rpc, kettle_address, private_key, no_dev_key) as client:
            click.echo(f"Address: {client.address}")
            click.echo(f"Kettle:  {client.kettle_address}")
    except KettleError as exc:
        _fail(exc)
