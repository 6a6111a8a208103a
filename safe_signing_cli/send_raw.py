"""
safe-send-raw: send one plain transaction from a browser wallet.

    safe-send-raw <chainId> <to> <value> <data>
"""
from typing import Optional

import typer
from pydantic import ValidationError

from safe_signing_sdk.exceptions import ConfigurationError, SafeSigningError
from safe_signing_sdk.signer import BrowserSigner, RawTransactionRequest

from .main import configure_logging, report_error

app = typer.Typer(name="safe-send-raw", add_completion=False)


def _request(chain_id: int, to: str, value: str, data: str) -> RawTransactionRequest:
    try:
        return RawTransactionRequest(chain_id=chain_id, to=to, value=value, data=data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(f"Invalid {field}: {first.get('msg')}") from e


@app.command()
def send_raw(
    chain_id: int = typer.Argument(..., help="Chain id the wallet should switch to"),
    to: str = typer.Argument(..., help="Destination address"),
    value: str = typer.Argument(..., help="Value in wei (decimal)"),
    data: str = typer.Argument(..., help="Calldata as 0x hex"),
    host: str = typer.Option("localhost", "--host", help="Endpoint host"),
    port: int = typer.Option(8080, "--port", help="Endpoint port"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds to wait for the wallet"),
    open_browser: bool = typer.Option(False, "--open", help="Open the page in the default browser"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    """Send a single transaction through a browser wallet."""
    configure_logging(log_level)
    try:
        request = _request(chain_id, to, value, data)
        signer = BrowserSigner(
            host=host,
            port=port,
            timeout=timeout,
            open_browser=open_browser,
            on_ready=lambda url: typer.echo(f"Open {url} in your browser to send the transaction."),
        )
        tx_hash = signer.request_transaction(request)
    except SafeSigningError as e:
        raise typer.Exit(code=report_error(e)) from e

    typer.echo(f"tx hash: {tx_hash}")


if __name__ == "__main__":
    app()
