"""
SafeClient - main client for building and executing Safe batch transactions.
"""
import logging
import urllib.parse
from typing import Any, Dict, Optional, Sequence, Union

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware
from web3.types import TxReceipt as Web3TxReceipt

from .builder import TransactionBuilder
from .config import NetworkConfig, NetworkOverrides
from .exceptions import (
    ExecutionError,
    MissingCredentialError,
    NetworkError,
    SignatureError,
    StaleNonceError,
)
from .models import Batch, NonceEpoch, SafeTransaction, TxReceipt
from .network import NetworkContext, resolve_network
from .signatures import SignatureInput, aggregate_signatures
from .signer import Signer
from .signer.local import signer_from_key
from .typed_data import SigningPayload
from .utils import checksum_address

DEFAULT_GAS_BUFFER = 1.2


class PendingExecution:
    """
    An execTransaction call that was sent but not yet confirmed.

    The hash is known as soon as the node accepts the transaction.
    """

    def __init__(self, client: "SafeClient", tx_hash: str, safe_tx: SafeTransaction):
        self.client = client
        self.tx_hash = tx_hash
        self.safe_tx = safe_tx

    @property
    def url(self) -> Optional[str]:
        return self.client.tx_url(self.tx_hash)

    def wait(self, timeout: float = 120, poll_latency: float = 0.1) -> TxReceipt:
        """
        Wait until the transaction is included.

        Raises:
            ExecutionError: If the transaction reverted or was not mined in time
        """
        logger = self.client.logger
        try:
            receipt = self.client.w3.eth.wait_for_transaction_receipt(
                self.tx_hash, timeout=timeout, poll_latency=poll_latency
            )
        except TimeExhausted as e:
            logger.error(f"Transaction {self.tx_hash} not mined after {timeout}s")
            raise ExecutionError(
                f"Transaction {self.tx_hash} was not mined within {timeout} seconds",
                reason="timeout",
                tx_hash=self.tx_hash,
            ) from e
        except (Web3Exception, RequestException) as e:
            logger.error(f"Failed to fetch receipt for {self.tx_hash}: {e}")
            raise NetworkError(f"Failed to fetch receipt for {self.tx_hash}: {e}") from e

        result = self.client._convert_receipt(receipt)
        if result.status != 1:
            logger.error(f"Transaction {self.tx_hash} reverted in block {result.block_number}")
            raise ExecutionError(
                f"Transaction {self.tx_hash} reverted in block {result.block_number}",
                reason="reverted",
                tx_hash=self.tx_hash,
            )
        logger.info(f"Transaction {self.tx_hash} confirmed in block {result.block_number}")
        return result

    def __repr__(self) -> str:
        return f"PendingExecution(tx_hash={self.tx_hash!r})"


class SafeClient:
    """
    Client for a single Safe on a single chain.

    This client handles:
    1. Reading chain id and Safe nonce from the RPC endpoint
    2. Building the Safe transaction and its signing payload for a batch
    3. Submitting execTransaction with collected owner signatures

    Signing and execution need different credentials: owners sign the
    payload digest (see ``signer.BrowserSigner``), while ``signer`` or
    ``priv_key`` only pays for and sends the execution.
    """

    # Subset of the Safe ABI the client needs
    SAFE_ABI = [
        {
            "inputs": [],
            "name": "nonce",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [],
            "name": "getThreshold",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [],
            "name": "getOwners",
            "outputs": [{"internalType": "address[]", "name": "", "type": "address[]"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [
                {"internalType": "address", "name": "to", "type": "address"},
                {"internalType": "uint256", "name": "value", "type": "uint256"},
                {"internalType": "bytes", "name": "data", "type": "bytes"},
                {"internalType": "enum Enum.Operation", "name": "operation", "type": "uint8"},
                {"internalType": "uint256", "name": "safeTxGas", "type": "uint256"},
                {"internalType": "uint256", "name": "baseGas", "type": "uint256"},
                {"internalType": "uint256", "name": "gasPrice", "type": "uint256"},
                {"internalType": "address", "name": "gasToken", "type": "address"},
                {"internalType": "address payable", "name": "refundReceiver", "type": "address"},
                {"internalType": "bytes", "name": "signatures", "type": "bytes"}
            ],
            "name": "execTransaction",
            "outputs": [{"internalType": "bool", "name": "success", "type": "bool"}],
            "stateMutability": "payable",
            "type": "function"
        }
    ]

    def __init__(
        self,
        rpc_url: str,
        safe_address: str,
        signer: Optional[Signer] = None,
        priv_key: Optional[str] = None,
        overrides: Optional[NetworkOverrides] = None,
        builder: Optional[TransactionBuilder] = None,
        expected_chain_id: Optional[int] = None,
        retry_count: int = 3,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the SafeClient

        Args:
            rpc_url: Ethereum RPC endpoint URL
            safe_address: Address of the Safe
            signer: Transaction sender for execution (optional for signing flows)
            priv_key: Private key of the sender, used when no signer is given
            overrides: Relay contract overrides; read from the environment when None
            builder: Transaction builder (defaults to relay mode AUTO)
            expected_chain_id: Fail when the endpoint reports another chain
            retry_count: Number of retries for RPC requests
            timeout: Timeout for RPC requests in seconds
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If the RPC URL does not use https (unless it is localhost/127.0.0.1)
            ValueError: If the Safe address is invalid
        """
        parsed = urllib.parse.urlparse(rpc_url)
        host = parsed.hostname or ''
        is_local = host in ('localhost', '127.0.0.1')
        if parsed.scheme != 'https' and not is_local:
            raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")

        self.rpc_url = rpc_url
        self.safe_address = checksum_address(safe_address)
        self.signer = signer or signer_from_key(priv_key)
        self._overrides = overrides
        self.builder = builder or TransactionBuilder(logger=logger)
        self._expected_chain_id = expected_chain_id
        self._chain_id: Optional[int] = None
        self._safe_contract = None
        self.logger = logger or logging.getLogger(__name__)

        # Setup HTTP session with retries
        self.session = requests.Session()
        retries = Retry(
            total=retry_count,
            backoff_factor=0.5,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
            raise_on_status=False,
            connect=retry_count,
            read=retry_count,
            other=retry_count
        )
        self.session.mount("http://", HTTPAdapter(max_retries=retries))
        self.session.mount("https://", HTTPAdapter(max_retries=retries))
        self.timeout = timeout

        # Retries come from the session adapter only
        provider = Web3.HTTPProvider(
            rpc_url,
            request_kwargs={"timeout": timeout},
            session=self.session,
            exception_retry_configuration=None,
        )
        self.w3 = Web3(provider)
        # PoA chains carry extra data in their block headers
        if expected_chain_id != 1:
            self.w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    @property
    def address(self) -> str:
        """
        Get the sender address

        Raises:
            MissingCredentialError: If no signer is configured
        """
        if self.signer is None:
            raise MissingCredentialError("No sender configured; set PRIVATE_KEY or pass a signer")
        return self.signer.address

    @property
    def chain_id(self) -> int:
        """
        Chain id reported by the RPC endpoint, read once

        Raises:
            NetworkError: If the endpoint cannot be reached
        """
        if self._chain_id is None:
            try:
                self._chain_id = int(self.w3.eth.chain_id)
            except Exception as e:
                self.logger.error(f"Failed to read chain id from {self.rpc_url}: {e}")
                raise NetworkError(f"Failed to read chain id from RPC endpoint: {e}") from e
            self.logger.debug(f"Connected to chain {self._chain_id}")
        return self._chain_id

    @property
    def safe_contract(self):
        if self._safe_contract is None:
            self._safe_contract = self.w3.eth.contract(address=self.safe_address, abi=self.SAFE_ABI)
        return self._safe_contract

    def assert_chain_id(self):
        """
        Check that the endpoint serves the expected chain.

        Raises:
            NetworkError: On mismatch or when the chain id cannot be read
        """
        if self._expected_chain_id is None:
            self.logger.warning("No expected chain ID set, skipping chain ID check")
            return
        actual = self.chain_id
        if actual != self._expected_chain_id:
            raise NetworkError(
                f"Chain ID mismatch: expected {self._expected_chain_id}, RPC endpoint reports {actual}"
            )

    def network_context(self) -> NetworkContext:
        """Resolve relay contracts for the connected chain"""
        chain_id = self.chain_id
        overrides = self._overrides if self._overrides is not None else NetworkOverrides.from_env(chain_id)
        return resolve_network(chain_id, overrides)

    def read_nonce(self) -> NonceEpoch:
        """
        Read the current Safe nonce together with the block it was read at.

        Raises:
            NetworkError: If the nonce cannot be read
        """
        chain_id = self.chain_id
        try:
            block_number = int(self.w3.eth.block_number)
            nonce = int(self.safe_contract.functions.nonce().call(block_identifier=block_number))
        except Exception as e:
            self.logger.error(f"Failed to read nonce of Safe {self.safe_address}: {e}")
            raise NetworkError(f"Failed to read nonce of Safe {self.safe_address}: {e}") from e
        self.logger.debug(f"Safe {self.safe_address} nonce {nonce} at block {block_number}")
        return NonceEpoch(
            safe_address=self.safe_address,
            chain_id=chain_id,
            nonce=nonce,
            block_number=block_number,
        )

    def create_transaction(self, batch: Batch, nonce: Optional[Union[int, NonceEpoch]] = None) -> SafeTransaction:
        """
        Build the Safe transaction for a batch against the live nonce.

        Args:
            batch: Validated batch
            nonce: Explicit nonce; read from the Safe when None

        Returns:
            SafeTransaction bound to the nonce epoch it was built for
        """
        network = self.network_context()
        epoch = self.read_nonce() if nonce is None else nonce
        return self.builder.build(batch, network, self.safe_address, epoch)

    def signing_payload(self, safe_tx: SafeTransaction) -> SigningPayload:
        return SigningPayload.from_transaction(safe_tx)

    def submit_execution(
        self,
        safe_tx: SafeTransaction,
        signatures: Sequence[SignatureInput],
        require_ascending_order: bool = False,
        gas: Optional[int] = None,
    ) -> PendingExecution:
        """
        Send execTransaction for a signed Safe transaction.

        Args:
            safe_tx: Transaction the signatures were collected for
            signatures: Owner signatures, concatenated in the given order
            require_ascending_order: Reject signatures not sorted by owner
            gas: Gas limit (estimated when None)

        Returns:
            PendingExecution carrying the transaction hash

        Raises:
            MissingCredentialError: If no sender is configured
            SignatureError: If no signatures are given or they are malformed
            StaleNonceError: If the Safe nonce moved since the transaction was built
            ExecutionError: If the Safe rejects the transaction
            NetworkError: If the RPC endpoint fails
        """
        sender = self.address
        if not signatures:
            raise SignatureError("At least one signature is required")

        payload = self.signing_payload(safe_tx)
        packed = aggregate_signatures(signatures, payload, require_ascending_order=require_ascending_order)

        self._check_nonce(safe_tx)

        exec_call = self.safe_contract.functions.execTransaction(*safe_tx.exec_arguments(packed))

        if gas is None:
            try:
                estimate = exec_call.estimate_gas({'from': sender})
            except ContractLogicError as e:
                message = getattr(e, "message", None) or str(e)
                self.logger.error(f"Safe rejected execution during gas estimation: {message}")
                raise ExecutionError.from_revert(message) from e
            except (Web3Exception, RequestException) as e:
                self.logger.error(f"Gas estimation failed: {e}")
                raise NetworkError(f"Gas estimation failed: {e}") from e
            gas = int(estimate * DEFAULT_GAS_BUFFER)
            self.logger.debug(f"Estimated gas: {estimate}, using {gas}")

        try:
            tx = exec_call.build_transaction({
                'from': sender,
                'nonce': self.w3.eth.get_transaction_count(sender),
                'gas': gas,
                'chainId': self.chain_id,
            })
        except (Web3Exception, RequestException) as e:
            self.logger.error(f"Failed to build execTransaction call: {e}")
            raise NetworkError(f"Failed to build execTransaction call: {e}") from e

        try:
            signed_tx = self.signer.sign_transaction(tx)
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {e}")
            raise ExecutionError(f"Failed to sign transaction: {e}") from e

        try:
            tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed_tx.raw_transaction))
        except ContractLogicError as e:
            message = getattr(e, "message", None) or str(e)
            self.logger.error(f"Safe rejected execution: {message}")
            raise ExecutionError.from_revert(message) from e
        except Web3Exception as e:
            self.logger.error(f"Failed to send transaction: {e}")
            raise ExecutionError(f"Failed to send transaction: {e}") from e
        except RequestException as e:
            self.logger.error(f"RPC endpoint unreachable while sending transaction: {e}")
            raise NetworkError(f"Failed to send transaction: {e}") from e

        self.logger.info(f"Transaction sent: {tx_hash}")
        return PendingExecution(self, tx_hash, safe_tx)

    def execute(
        self,
        safe_tx: SafeTransaction,
        signatures: Sequence[SignatureInput],
        require_ascending_order: bool = False,
        timeout: float = 120,
        poll_latency: float = 0.1,
    ) -> TxReceipt:
        """Submit execTransaction and wait for it to be mined"""
        pending = self.submit_execution(safe_tx, signatures, require_ascending_order=require_ascending_order)
        return pending.wait(timeout=timeout, poll_latency=poll_latency)

    def tx_url(self, tx_hash: Union[str, bytes]) -> Optional[str]:
        """
        Block explorer link for a transaction on the connected chain

        Returns:
            The URL, or None when no explorer is known for the chain
        """
        if isinstance(tx_hash, bytes):
            tx_hash = Web3.to_hex(tx_hash)
        elif not tx_hash.startswith("0x"):
            tx_hash = "0x" + tx_hash

        chain_id = self._expected_chain_id or self._chain_id
        if chain_id is None:
            try:
                chain_id = self.chain_id
            except NetworkError:
                return None
        explorer = NetworkConfig.get_explorer_url(chain_id)
        if not explorer:
            return None
        return f"{explorer.rstrip('/')}/tx/{tx_hash}"

    def _check_nonce(self, safe_tx: SafeTransaction):
        epoch = safe_tx.nonce_epoch
        if epoch.safe_address != self.safe_address or epoch.chain_id != self.chain_id:
            raise ExecutionError(
                f"Transaction was built for Safe {epoch.safe_address} on chain {epoch.chain_id}, "
                f"not {self.safe_address} on chain {self.chain_id}"
            )
        current = self.read_nonce()
        if current.nonce != epoch.nonce:
            self.logger.error(f"Safe nonce moved from {epoch.nonce} to {current.nonce}")
            raise StaleNonceError(expected=epoch.nonce, actual=current.nonce)

    def _convert_receipt(self, web3_receipt: Web3TxReceipt) -> TxReceipt:
        """
        Convert Web3 receipt to our TxReceipt model
        """
        receipt_dict: Dict[str, Any] = dict(web3_receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = Web3.to_hex(value)

        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs", [])]
        return TxReceipt.model_validate(receipt_dict)
