"""
Data models for the Safe signing SDK.
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import ZERO_ADDRESS, checksum_address, hex_to_bytes, is_hex_data, parse_uint256


class Operation(IntEnum):
    """Safe operation type"""
    CALL = 0
    DELEGATE_CALL = 1


def _validate_operation(value: Any) -> Operation:
    # Only the JSON integers 0 and 1 are accepted; "0", 0.0 and booleans are not
    if isinstance(value, bool) or not isinstance(value, int) or value not in (0, 1):
        raise ValueError(f"must be 0 (call) or 1 (delegatecall), got {value!r}")
    return Operation(value)


def _validate_data(value: Any) -> str:
    if not is_hex_data(value):
        raise ValueError(f"must be a 0x-prefixed hex byte string, got {value!r}")
    return value.lower()


class SubTransaction(BaseModel):
    """One call of a batch, as read from the batch file"""
    model_config = ConfigDict(frozen=True)

    to: str
    value: int
    data: str
    operation: Operation

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
        return _validate_data(v)

    @field_validator("operation", mode="before")
    @classmethod
    def check_operation(cls, v: Any) -> Operation:
        return _validate_operation(v)

    @property
    def data_bytes(self) -> bytes:
        return hex_to_bytes(self.data)


@dataclass(frozen=True)
class Batch:
    """
    Ordered, immutable sequence of sub-transactions.

    Order is execution order.
    """
    transactions: Tuple[SubTransaction, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.transactions)

    def __iter__(self) -> Iterator[SubTransaction]:
        return iter(self.transactions)

    def __getitem__(self, index: int) -> SubTransaction:
        return self.transactions[index]

    @property
    def only_calls(self) -> bool:
        """True when no sub-transaction is a delegatecall"""
        return all(tx.operation == Operation.CALL for tx in self.transactions)


class NonceEpoch(BaseModel):
    """
    Point-in-time snapshot of a Safe nonce.

    Executors compare it against a fresh read right before submission.
    """
    model_config = ConfigDict(frozen=True)

    safe_address: str
    chain_id: int = Field(..., gt=0)
    nonce: int = Field(..., ge=0)
    block_number: Optional[int] = None

    @field_validator("safe_address", mode="before")
    @classmethod
    def check_safe_address(cls, v: Any) -> str:
        return checksum_address(v)


class SafeTransaction(BaseModel):
    """The single transaction a Safe executes for a whole batch"""
    model_config = ConfigDict(frozen=True)

    to: str
    value: int
    data: str
    operation: Operation
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS
    nonce: int
    nonce_epoch: NonceEpoch

    @field_validator("to", "gas_token", "refund_receiver", mode="before")
    @classmethod
    def check_addresses(cls, v: Any) -> str:
        return checksum_address(v)

    @field_validator("data", mode="before")
    @classmethod
    def check_data(cls, v: Any) -> str:
        return _validate_data(v)

    @property
    def safe_address(self) -> str:
        return self.nonce_epoch.safe_address

    @property
    def chain_id(self) -> int:
        return self.nonce_epoch.chain_id

    @property
    def data_bytes(self) -> bytes:
        return hex_to_bytes(self.data)

    def exec_arguments(self, signatures: bytes) -> List[Any]:
        """Positional arguments of Safe.execTransaction for this transaction"""
        return [
            self.to,
            self.value,
            self.data_bytes,
            int(self.operation),
            self.safe_tx_gas,
            self.base_gas,
            self.gas_price,
            self.gas_token,
            self.refund_receiver,
            signatures,
        ]


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]]
