"""
Encoding of MultiSend batches.
"""
from typing import Iterable

from eth_abi import encode
from eth_abi.packed import encode_packed
from eth_utils import function_signature_to_4byte_selector

from .models import SubTransaction

MULTI_SEND_SELECTOR = function_signature_to_4byte_selector("multiSend(bytes)")


def pack_transactions(transactions: Iterable[SubTransaction]) -> bytes:
    """
    Pack sub-transactions the way MultiSend expects them.

    Each entry is ``uint8 operation | address to | uint256 value |
    uint256 dataLength | bytes data``, tightly packed, in order.
    """
    return b"".join(
        encode_packed(
            ["uint8", "address", "uint256", "uint256", "bytes"],
            [int(tx.operation), tx.to, tx.value, len(tx.data_bytes), tx.data_bytes],
        )
        for tx in transactions
    )


def encode_multisend(transactions: Iterable[SubTransaction]) -> bytes:
    """Calldata for ``multiSend(bytes transactions)``"""
    return MULTI_SEND_SELECTOR + encode(["bytes"], [pack_transactions(transactions)])
