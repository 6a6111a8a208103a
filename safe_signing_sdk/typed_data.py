"""
EIP-712 typed data for Safe transactions.
"""
from dataclasses import dataclass
from typing import Any, Dict, List

from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak

from .models import SafeTransaction
from .utils import bytes_to_hex, hex_to_bytes

PRIMARY_TYPE = "SafeTx"

EIP712_DOMAIN_TYPES: List[Dict[str, str]] = [
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

# Field order and types must match the Safe contract's SAFE_TX_TYPEHASH
SAFE_TX_TYPES: List[Dict[str, str]] = [
    {"name": "to", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "data", "type": "bytes"},
    {"name": "operation", "type": "uint8"},
    {"name": "safeTxGas", "type": "uint256"},
    {"name": "baseGas", "type": "uint256"},
    {"name": "gasPrice", "type": "uint256"},
    {"name": "gasToken", "type": "address"},
    {"name": "refundReceiver", "type": "address"},
    {"name": "nonce", "type": "uint256"},
]

_UINT256_FIELDS = ("value", "safeTxGas", "baseGas", "gasPrice")


@dataclass(frozen=True)
class SigningPayload:
    """
    Typed-data request whose digest every Safe owner signs.

    Two payloads with equal fields always produce the same digest.
    """
    chain_id: int
    safe_address: str
    to: str
    value: int
    data: str
    operation: int
    safe_tx_gas: int
    base_gas: int
    gas_price: int
    gas_token: str
    refund_receiver: str
    nonce: int

    @classmethod
    def from_transaction(cls, tx: SafeTransaction) -> "SigningPayload":
        return cls(
            chain_id=tx.chain_id,
            safe_address=tx.safe_address,
            to=tx.to,
            value=tx.value,
            data=tx.data,
            operation=int(tx.operation),
            safe_tx_gas=tx.safe_tx_gas,
            base_gas=tx.base_gas,
            gas_price=tx.gas_price,
            gas_token=tx.gas_token,
            refund_receiver=tx.refund_receiver,
            nonce=tx.nonce,
        )

    def message(self) -> Dict[str, Any]:
        """SafeTx message in schema order, with native Python values"""
        return {
            "to": self.to,
            "value": self.value,
            "data": hex_to_bytes(self.data),
            "operation": self.operation,
            "safeTxGas": self.safe_tx_gas,
            "baseGas": self.base_gas,
            "gasPrice": self.gas_price,
            "gasToken": self.gas_token,
            "refundReceiver": self.refund_receiver,
            "nonce": self.nonce,
        }

    def typed_data(self) -> Dict[str, Any]:
        """Full EIP-712 structure suitable for hashing and local signing"""
        return {
            "types": {
                "EIP712Domain": [dict(t) for t in EIP712_DOMAIN_TYPES],
                PRIMARY_TYPE: [dict(t) for t in SAFE_TX_TYPES],
            },
            "primaryType": PRIMARY_TYPE,
            "domain": {
                "chainId": self.chain_id,
                "verifyingContract": self.safe_address,
            },
            "message": self.message(),
        }

    def to_json_dict(self) -> Dict[str, Any]:
        """
        JSON-ready structure for ``eth_signTypedData_v4``.

        The chain id is hex encoded (as ``wallet_switchEthereumChain``
        expects) and uint256 values are decimal strings so browsers do not
        lose precision.
        """
        message = self.message()
        message["data"] = bytes_to_hex(message["data"])
        for name in _UINT256_FIELDS:
            message[name] = str(message[name])
        return {
            "domain": {
                "verifyingContract": self.safe_address,
                "chainId": hex(self.chain_id),
            },
            "message": message,
            "primaryType": PRIMARY_TYPE,
            "types": {
                "EIP712Domain": [dict(t) for t in EIP712_DOMAIN_TYPES],
                PRIMARY_TYPE: [dict(t) for t in SAFE_TX_TYPES],
            },
        }

    def signable_message(self) -> SignableMessage:
        return encode_typed_data(full_message=self.typed_data())

    def digest(self) -> bytes:
        """The 32-byte Safe transaction hash owners sign"""
        signable = self.signable_message()
        return keccak(b"\x19" + signable.version + signable.header + signable.body)

    def digest_hex(self) -> str:
        return bytes_to_hex(self.digest())
