"""
Safe signing SDK.

Build batched Safe transactions, collect owner signatures from a browser
wallet and execute them on chain.
"""
from .version import __version__
from .batch import load_batch, validate_batch
from .builder import RelayMode, TransactionBuilder
from .client import PendingExecution, SafeClient
from .config import NetworkConfig, NetworkOverrides
from .exceptions import (
    ConfigurationError,
    ContractKind,
    ExecutionError,
    InvalidBatchError,
    MissingCredentialError,
    NetworkConnectivityError,
    NetworkError,
    SafeSigningError,
    SignatureError,
    SignatureOrderError,
    SigningCancelledError,
    StaleNonceError,
    UnresolvedNetworkContractError,
)
from .models import Batch, NonceEpoch, Operation, SafeTransaction, SubTransaction, TxReceipt
from .multisend import encode_multisend
from .network import NetworkContext, resolve_network
from .signatures import aggregate_signatures, recover_owner, sort_signatures
from .signer import BrowserSigner, InteractiveSigner, LocalSigner, RawTransactionRequest, Signer, SigningServer
from .typed_data import SigningPayload

__all__ = [
    "__version__",
    "load_batch",
    "validate_batch",
    "RelayMode",
    "TransactionBuilder",
    "PendingExecution",
    "SafeClient",
    "NetworkConfig",
    "NetworkOverrides",
    "ConfigurationError",
    "ContractKind",
    "ExecutionError",
    "InvalidBatchError",
    "MissingCredentialError",
    "NetworkConnectivityError",
    "NetworkError",
    "SafeSigningError",
    "SignatureError",
    "SignatureOrderError",
    "SigningCancelledError",
    "StaleNonceError",
    "UnresolvedNetworkContractError",
    "Batch",
    "NonceEpoch",
    "Operation",
    "SafeTransaction",
    "SubTransaction",
    "TxReceipt",
    "encode_multisend",
    "NetworkContext",
    "resolve_network",
    "aggregate_signatures",
    "recover_owner",
    "sort_signatures",
    "BrowserSigner",
    "InteractiveSigner",
    "LocalSigner",
    "RawTransactionRequest",
    "Signer",
    "SigningServer",
    "SigningPayload",
]
