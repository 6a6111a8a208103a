"""
Exceptions for the Safe signing SDK.
"""
from enum import Enum
from typing import Optional


class ContractKind(str, Enum):
    """
    Auxiliary contracts a batch may need on a given chain.

    The value is the environment variable an operator sets to override
    the registry address for that contract.
    """
    MULTI_SEND = "CUSTOM_MULTISEND_ADDRESS"
    MULTI_SEND_CALL_ONLY = "CUSTOM_MULTISEND_CALLONLY_ADDRESS"

    @property
    def label(self) -> str:
        return "multiSend" if self is ContractKind.MULTI_SEND else "multiSendCallOnly"


# Revert codes emitted by Safe contracts (v1.3.0+)
SAFE_ERROR_CODES = {
    "GS010": "Not enough gas to execute Safe transaction",
    "GS011": "Could not pay gas costs with ether",
    "GS012": "Could not pay gas costs with token",
    "GS013": "Safe transaction failed when gasPrice and safeTxGas were 0",
    "GS020": "Signatures data too short",
    "GS021": "Invalid contract signature location: inside static part",
    "GS022": "Invalid contract signature location: length not present",
    "GS023": "Invalid contract signature location: data not complete",
    "GS024": "Invalid contract signature provided",
    "GS025": "Hash has not been approved",
    "GS026": "Invalid owner provided (wrong signer, wrong nonce or signatures not in ascending owner order)",
}


class SafeSigningError(Exception):
    """Base exception for all SDK errors"""
    pass


class InvalidBatchError(SafeSigningError):
    """Raised when the transaction batch is malformed"""

    def __init__(self, message: str, index: Optional[int] = None, field: Optional[str] = None):
        self.index = index
        self.field = field
        super().__init__(message)


class UnresolvedNetworkContractError(SafeSigningError):
    """Raised when a batch needs a relay contract that is unknown on the current chain"""

    def __init__(self, kind: ContractKind, chain_id: int):
        self.kind = kind
        self.chain_id = chain_id
        super().__init__(
            f"Unknown {kind.label} contract address for chain {chain_id}"
        )

    @property
    def env_var(self) -> str:
        """Environment variable that supplies the missing address"""
        return self.kind.value


class ConfigurationError(SafeSigningError):
    """Raised when operator-supplied configuration is invalid"""
    pass


class NetworkError(SafeSigningError):
    """Raised when the RPC endpoint is unreachable or returns unusable data"""
    pass


# Name used in the error taxonomy of the CLI documentation
NetworkConnectivityError = NetworkError


class MissingCredentialError(SafeSigningError):
    """Raised when an operation needs a private key that was not configured"""

    def __init__(self, message: str, env_var: str = "PRIVATE_KEY"):
        self.env_var = env_var
        super().__init__(message)


class SignatureError(SafeSigningError):
    """Raised when signature blobs are missing or malformed"""
    pass


class SignatureOrderError(SignatureError):
    """Raised when signatures are not sorted by ascending owner address"""
    pass


class SigningCancelledError(SafeSigningError):
    """Raised when an interactive signing request is cancelled or times out"""
    pass


class ExecutionError(SafeSigningError):
    """Raised when the Safe rejects or fails to execute a transaction"""

    def __init__(self, message: str, reason: Optional[str] = None, tx_hash: Optional[str] = None):
        self.reason = reason
        self.tx_hash = tx_hash
        super().__init__(message)

    @classmethod
    def from_revert(cls, revert_message: str, tx_hash: Optional[str] = None) -> "ExecutionError":
        """
        Build an ExecutionError from a contract revert message.

        Known Safe error codes (GS0xx) are expanded into a readable reason.
        """
        reason = revert_message
        for code, description in SAFE_ERROR_CODES.items():
            if code in revert_message:
                reason = f"{code}: {description}"
                break
        return cls(f"Safe rejected the transaction: {reason}", reason=reason, tx_hash=tx_hash)


class StaleNonceError(ExecutionError):
    """Raised when the Safe nonce moved since the transaction was built"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Safe nonce changed from {expected} to {actual} since the transaction was built; "
            "rebuild it and collect new signatures",
            reason="stale nonce",
        )
