"""
safe-signing: build, sign and execute Safe batch transactions.

    safe-signing sign <batchFile> <safeAddress> <rpcUrl>
    safe-signing execute <batchFile> <safeAddress> <rpcUrl> <sig> [<sig> ...]
"""
import json
import logging
import os
import sys
from typing import List, Optional

import typer

from safe_signing_sdk import __version__
from safe_signing_sdk.batch import load_batch
from safe_signing_sdk.builder import RelayMode, TransactionBuilder
from safe_signing_sdk.client import SafeClient
from safe_signing_sdk.config import LOG_LEVEL_ENV, load_private_key
from safe_signing_sdk.exceptions import (
    ConfigurationError,
    ContractKind,
    ExecutionError,
    InvalidBatchError,
    MissingCredentialError,
    NetworkError,
    SafeSigningError,
    SignatureOrderError,
    SigningCancelledError,
    StaleNonceError,
    UnresolvedNetworkContractError,
)
from safe_signing_sdk.signatures import sort_signatures
from safe_signing_sdk.signer import BrowserSigner

logger = logging.getLogger("safe_signing_cli")

SAFE_DEPLOYMENTS_HINT = "Check the official Safe deployments repo for the contract address"

app = typer.Typer(
    name="safe-signing",
    help="Sign and execute Safe batch transactions.",
    no_args_is_help=True,
    add_completion=False,
)

batch_file_arg = typer.Argument(..., help="JSON file with an array of { to, value, data, operation }")
safe_address_arg = typer.Argument(..., help="Address of the Safe")
rpc_url_arg = typer.Argument(..., help="RPC endpoint of the Safe's chain")
relay_mode_option = typer.Option(
    RelayMode.AUTO,
    "--relay-mode",
    help="auto: MultiSendCallOnly when the batch only has calls; multi_send: always MultiSend",
)


def configure_logging(level: Optional[str] = None):
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def report_error(error: SafeSigningError) -> int:
    """Print a terminal message for a failed command and return the exit code"""
    lines: List[str]
    match error:
        case UnresolvedNetworkContractError(kind=ContractKind.MULTI_SEND | ContractKind.MULTI_SEND_CALL_ONLY):
            lines = [
                f"Error: Unknown {error.kind.label} contract address for chain {error.chain_id}. "
                f"Please set {error.env_var} or {error.env_var}_{error.chain_id}",
                SAFE_DEPLOYMENTS_HINT,
            ]
        case MissingCredentialError(env_var=env_var):
            lines = [f"Error: {env_var} environment variable is not set."]
        case InvalidBatchError():
            lines = [f"Error: Transaction file is not valid. {error}"]
        case SignatureOrderError():
            lines = [f"Error: {error}", "Re-run with --sort-signatures to order them by owner address"]
        case StaleNonceError(expected=expected, actual=actual):
            lines = [
                f"Error: Safe nonce is now {actual}, signatures were collected for nonce {expected}.",
                "Rebuild the transaction and collect new signatures",
            ]
        case ExecutionError(tx_hash=str() as tx_hash):
            lines = [f"Error: {error}", f"tx hash: {tx_hash}"]
        case SigningCancelledError():
            lines = [f"Cancelled: {error}"]
        case NetworkError():
            lines = [f"Network error: {error}"]
        case _:
            lines = [f"Error: {error}"]

    for line in lines:
        typer.echo(line, err=True)
    return 1


def _version_callback(value: bool):
    if value:
        typer.echo(f"safe-signing {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help=f"Logging level (default: ${LOG_LEVEL_ENV} or WARNING)"
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
):
    """Sign and execute Safe batch transactions."""
    configure_logging(log_level)


def _client(rpc_url: str, safe_address: str, relay_mode: RelayMode, priv_key: Optional[str] = None) -> SafeClient:
    try:
        return SafeClient(
            rpc_url=rpc_url,
            safe_address=safe_address,
            priv_key=priv_key,
            builder=TransactionBuilder(relay_mode=RelayMode(relay_mode)),
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


@app.command()
def sign(
    batch_file: str = batch_file_arg,
    safe_address: str = safe_address_arg,
    rpc_url: str = rpc_url_arg,
    relay_mode: RelayMode = relay_mode_option,
    host: str = typer.Option("localhost", "--host", help="Signing endpoint host"),
    port: int = typer.Option(8080, "--port", help="Signing endpoint port"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds to wait for the wallet"),
    no_wait: bool = typer.Option(False, "--no-wait", help="Stop after the first page load"),
    open_browser: bool = typer.Option(False, "--open", help="Open the signing page in the default browser"),
    print_payload: bool = typer.Option(False, "--print-payload", help="Print the EIP-712 payload"),
):
    """Collect an owner signature from a browser wallet."""
    try:
        batch = load_batch(batch_file)
        client = _client(rpc_url, safe_address, relay_mode)
        safe_tx = client.create_transaction(batch)
        payload = client.signing_payload(safe_tx)

        typer.echo(f"Safe tx hash: {payload.digest_hex()}")
        typer.echo(f"Safe nonce: {safe_tx.nonce}")
        if print_payload:
            typer.echo(json.dumps(payload.to_json_dict(), indent=2))

        signer = BrowserSigner(
            host=host,
            port=port,
            timeout=timeout,
            open_browser=open_browser,
            on_ready=lambda url: typer.echo(f"Open {url} in your browser to sign the transaction."),
        )
        if no_wait:
            signer.serve_signing_page(payload)
            typer.echo("Signing page delivered; copy the signature from the browser.")
            return

        signature = signer.request_signature(payload)
    except SafeSigningError as e:
        logger.debug("sign failed", exc_info=True)
        raise typer.Exit(code=report_error(e)) from e

    typer.echo(f"Signature: 0x{signature.hex()}")


@app.command()
def execute(
    batch_file: str = batch_file_arg,
    safe_address: str = safe_address_arg,
    rpc_url: str = rpc_url_arg,
    signatures: List[str] = typer.Argument(..., help="Owner signatures (0x hex), in order"),
    relay_mode: RelayMode = relay_mode_option,
    require_ascending_order: bool = typer.Option(
        False, "--require-ascending-order", help="Fail unless signatures are sorted by ascending owner address"
    ),
    sort: bool = typer.Option(
        False, "--sort-signatures", help="Sort signatures by recovered owner address before submitting"
    ),
    timeout: float = typer.Option(120.0, "--timeout", help="Seconds to wait for the receipt"),
):
    """Execute the batch with collected signatures."""
    if require_ascending_order and sort:
        raise typer.BadParameter(
            "cannot be combined with --require-ascending-order", param_hint="'--sort-signatures'"
        )

    try:
        # The credential check comes before any file or network access
        priv_key = load_private_key()
        batch = load_batch(batch_file)
        client = _client(rpc_url, safe_address, relay_mode, priv_key=priv_key)
        safe_tx = client.create_transaction(batch)

        if sort:
            signatures = sort_signatures(signatures, client.signing_payload(safe_tx))

        pending = client.submit_execution(
            safe_tx,
            signatures,
            require_ascending_order=require_ascending_order,
        )
        typer.echo(f"tx hash: {pending.tx_hash}")

        pending.wait(timeout=timeout)
    except SafeSigningError as e:
        logger.debug("execute failed", exc_info=True)
        raise typer.Exit(code=report_error(e)) from e

    typer.echo("Transaction executed successfully")
    if pending.url:
        typer.echo(pending.url)


if __name__ == "__main__":
    app()
