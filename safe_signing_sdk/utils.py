"""
Utility functions for the Safe signing SDK.
"""
import re
from typing import Any, Union

from eth_utils import is_address, to_checksum_address

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
UINT256_MAX = 2**256 - 1

_DECIMAL_RE = re.compile(r"[0-9]+")
_HEX_DATA_RE = re.compile(r"0x([0-9a-fA-F]{2})*")


def checksum_address(value: Any) -> str:
    """
    Validate an address and return it in EIP-55 checksum form.

    Args:
        value: Candidate address

    Returns:
        Checksummed address

    Raises:
        ValueError: If the value is not a valid address
    """
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"not a valid address: {value!r}")
    return to_checksum_address(value)


def parse_uint256(value: Any) -> int:
    """
    Parse a non-negative integer given as an int or a decimal string.

    Raises:
        ValueError: If the value is negative, too large or not an integer
    """
    # bool is an int subclass; JSON true/false are not amounts
    if isinstance(value, bool):
        raise ValueError(f"must be a non-negative integer, got {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _DECIMAL_RE.fullmatch(value):
        number = int(value)
    else:
        raise ValueError(f"must be a non-negative integer, got {value!r}")
    if number < 0 or number > UINT256_MAX:
        raise ValueError(f"must be between 0 and 2**256 - 1, got {number}")
    return number


def is_hex_data(value: Any) -> bool:
    """Check for a 0x-prefixed hex byte string (the empty string "0x" included)"""
    return isinstance(value, str) and bool(_HEX_DATA_RE.fullmatch(value))


def hex_to_bytes(value: Union[str, bytes]) -> bytes:
    """
    Convert a 0x-prefixed hex string to bytes.

    Raises:
        ValueError: If the string is not valid hex byte data
    """
    if isinstance(value, bytes):
        return value
    if not is_hex_data(value):
        raise ValueError(f"not a 0x-prefixed hex byte string: {value!r}")
    return bytes.fromhex(value[2:])


def bytes_to_hex(value: bytes) -> str:
    """Convert bytes to a 0x-prefixed lower-case hex string"""
    return "0x" + bytes(value).hex()


def shorten_hex(value: str, keep: int = 10) -> str:
    """Truncate long hex values for logging"""
    if len(value) <= keep * 2:
        return value
    return f"{value[:keep]}…{value[-4:]}"
