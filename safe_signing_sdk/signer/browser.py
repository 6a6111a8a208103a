"""
BrowserSigner - collects signatures from a browser wallet through a
short-lived local web endpoint.
"""
import json
import logging
import threading
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import ConfigurationError, ExecutionError, SigningCancelledError
from ..signatures import parse_signature
from ..typed_data import SigningPayload
from ..utils import checksum_address, is_hex_data, parse_uint256, shorten_hex
from .templates import render_send_page, render_sign_page

logger = logging.getLogger(__name__)

MAX_RESULT_BYTES = 64 * 1024


class RawTransactionRequest(BaseModel):
    """A plain transaction the browser wallet should send as-is"""
    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(..., gt=0)
    to: str
    value: int
    data: str

    @field_validator("to", mode="before")
    @classmethod
    def check_to(cls, v: Any) -> str:
        return checksum_address(v)

    @field_validator("value", mode="before")
    @classmethod
    def check_value(cls, v: Any) -> int:
        return parse_uint256(v)

    @field_validator("data", mode="before")
    @classmethod
    def check_data(cls, v: Any) -> str:
        if not is_hex_data(v):
            raise ValueError(f"must be a 0x-prefixed hex byte string, got {v!r}")
        return v.lower()

    def to_json_dict(self) -> Dict[str, Any]:
        # eth_sendTransaction expects hex quantities
        return {"chainId": hex(self.chain_id), "to": self.to, "value": hex(self.value), "data": self.data}


class _Exchange:
    """State shared between the request handler and the waiting caller"""

    def __init__(self, page: str, wait_for_result: bool):
        self.page = page.encode("utf-8")
        self.wait_for_result = wait_for_result
        self.page_served = False
        self.result: Optional[str] = None
        self.error: Optional[str] = None
        self.cancelled = False
        self.done = threading.Event()
        self.lock = threading.Lock()


class _SigningRequestHandler(BaseHTTPRequestHandler):
    """Serves the signing page once and accepts one posted result"""

    server: "_ExchangeServer"

    def do_GET(self):
        if self.path.split("?", 1)[0] not in ("/", "/index.html"):
            self._reply(404, b"Not found", "text/plain")
            return

        exchange = self.server.exchange
        with exchange.lock:
            already_served = exchange.page_served
            exchange.page_served = True
        if already_served:
            self._reply(410, b"This signing request was already opened", "text/plain")
            return

        self._reply(200, exchange.page, "text/html; charset=utf-8")
        if not exchange.wait_for_result:
            exchange.done.set()

    def do_POST(self):
        if self.path != "/result":
            self._reply(404, b"Not found", "text/plain")
            return

        exchange = self.server.exchange
        length = int(self.headers.get("Content-Length") or 0)
        if length <= 0 or length > MAX_RESULT_BYTES:
            self._reply(400, b"Invalid result body", "text/plain")
            return
        try:
            body = json.loads(self.rfile.read(length))
        except ValueError:
            self._reply(400, b"Invalid JSON", "text/plain")
            return
        if not isinstance(body, dict) or not ("result" in body or "error" in body):
            self._reply(400, b"Expected a result or error field", "text/plain")
            return

        with exchange.lock:
            if exchange.done.is_set():
                self._reply(409, b"A result was already received", "text/plain")
                return
            if "error" in body:
                exchange.error = str(body["error"])
            else:
                exchange.result = str(body["result"])
            exchange.done.set()
        self._reply(200, b'{"ok": true}', "application/json")

    def _reply(self, status: int, body: bytes, content_type: str):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} - {format % args}")


class _ExchangeServer(HTTPServer):
    def __init__(self, address, exchange: _Exchange):
        self.exchange = exchange
        super().__init__(address, _SigningRequestHandler)


class SigningServer:
    """
    One-shot local web endpoint for a single wallet exchange.

    Use as a context manager: the socket is bound on entry and always
    released on exit, whether the exchange completed, was cancelled or
    failed. The page is served once; later page loads get ``410 Gone``.
    """

    def __init__(self, page: str, host: str = "localhost", port: int = 8080, wait_for_result: bool = True):
        self.host = host
        self.port = port
        self._exchange = _Exchange(page, wait_for_result)
        self._server: Optional[_ExchangeServer] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "SigningServer":
        if self._server is not None:
            return self
        try:
            self._server = _ExchangeServer((self.host, self.port), self._exchange)
        except OSError as e:
            raise ConfigurationError(f"Cannot listen on {self.host}:{self.port}: {e}") from e
        self._thread = threading.Thread(target=self._server.serve_forever, name="safe-signing-server", daemon=True)
        self._thread.start()
        logger.debug(f"Signing endpoint listening on {self.url}")
        return self

    @property
    def url(self) -> str:
        if self._server is None:
            raise RuntimeError("Signing server is not running")
        return f"http://{self.host}:{self._server.server_address[1]}/"

    @property
    def running(self) -> bool:
        return self._server is not None

    def wait(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Block until the exchange completes, then shut the endpoint down.

        Returns:
            The value posted by the page, or None when the server does not
            wait for a result

        Raises:
            SigningCancelledError: On cancel, Ctrl-C, timeout or a wallet error
        """
        try:
            completed = self._exchange.done.wait(timeout)
        except KeyboardInterrupt:
            self.close()
            raise SigningCancelledError("Signing request cancelled by operator") from None
        self.close()

        if not completed:
            raise SigningCancelledError(f"No response from the browser wallet within {timeout} seconds")
        if self._exchange.cancelled:
            raise SigningCancelledError("Signing request cancelled")
        if self._exchange.error is not None:
            raise SigningCancelledError(f"Browser wallet reported an error: {self._exchange.error}")
        return self._exchange.result

    def cancel(self):
        """Abort the exchange; a pending ``wait`` raises SigningCancelledError"""
        with self._exchange.lock:
            if not self._exchange.done.is_set():
                self._exchange.cancelled = True
                self._exchange.done.set()

    def close(self):
        if self._server is None:
            return
        server, self._server = self._server, None
        server.shutdown()
        server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.debug("Signing endpoint closed")

    def __enter__(self) -> "SigningServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class BrowserSigner:
    """
    Interactive signer that delegates to a browser wallet.

    Each request starts a fresh SigningServer, announces its URL and waits
    for the page to post the wallet's answer back.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8080,
        timeout: Optional[float] = None,
        open_browser: bool = False,
        on_ready: Optional[Callable[[str], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.open_browser = open_browser
        self.on_ready = on_ready
        self.logger = logger or logging.getLogger(__name__)

    def request_signature(self, payload: SigningPayload) -> bytes:
        """
        Ask the browser wallet to sign the payload with eth_signTypedData_v4.

        Returns:
            The signature bytes as returned by the wallet

        Raises:
            SigningCancelledError: If the request is cancelled or times out
            SignatureError: If the wallet returns something that is not hex
        """
        self.logger.debug(f"Requesting signature for Safe tx hash {payload.digest_hex()}")
        result = self._exchange(render_sign_page(payload.to_json_dict()), wait_for_result=True)
        signature = parse_signature(result)
        self.logger.info(f"Received signature {shorten_hex('0x' + signature.hex())}")
        return signature

    def serve_signing_page(self, payload: SigningPayload):
        """
        Serve the signing page once without waiting for the signature.

        The wallet shows the signature in the browser only; the endpoint
        shuts down right after the first page load.
        """
        self._exchange(render_sign_page(payload.to_json_dict(), wait_for_result=False), wait_for_result=False)

    def request_transaction(self, request: RawTransactionRequest) -> str:
        """
        Ask the browser wallet to send a raw transaction.

        Returns:
            The transaction hash reported by the wallet

        Raises:
            SigningCancelledError: If the request is cancelled or times out
            ExecutionError: If the wallet answer is not a transaction hash
        """
        result = self._exchange(render_send_page(request.to_json_dict()), wait_for_result=True)
        if not is_hex_data(result) or len(result) != 66:
            raise ExecutionError(f"Browser wallet returned an invalid transaction hash: {result!r}")
        self.logger.info(f"Wallet sent transaction {result}")
        return result

    def _exchange(self, page: str, wait_for_result: bool) -> Optional[str]:
        with SigningServer(page, host=self.host, port=self.port, wait_for_result=wait_for_result) as server:
            self._announce(server.url)
            return server.wait(self.timeout)

    def _announce(self, url: str):
        if self.on_ready is not None:
            self.on_ready(url)
        else:
            self.logger.info(f"Open {url} in your browser to continue")
        if self.open_browser:
            webbrowser.open(url, new=1)
