"""
Signature parsing, ordering checks and aggregation.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_utils import to_checksum_address

from .exceptions import SignatureError, SignatureOrderError
from .typed_data import SigningPayload
from .utils import hex_to_bytes, shorten_hex

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65

SignatureInput = Union[str, bytes]


def parse_signature(value: SignatureInput) -> bytes:
    """
    Decode one signature blob given as 0x-prefixed hex or raw bytes.

    Raises:
        SignatureError: If the value is empty or not hex
    """
    if isinstance(value, (bytes, bytearray)):
        blob = bytes(value)
    else:
        text = value.strip() if isinstance(value, str) else value
        if isinstance(text, str) and not text.startswith("0x"):
            text = "0x" + text
        try:
            blob = hex_to_bytes(text)
        except ValueError as e:
            raise SignatureError(f"Signature is not valid hex: {value!r}") from e
    if not blob:
        raise SignatureError("Signature is empty")
    return blob


def static_signatures(blob: bytes) -> List[bytes]:
    """
    Split a blob into its 65-byte static parts, skipping contract signature data.

    A contract signature (v 0) stores in ``s`` the offset of its dynamic
    part; the static section ends at the smallest such offset.

    Raises:
        SignatureError: If an offset points inside the static section or
            past the blob, or the static section is not a multiple of 65 bytes
    """
    if not blob:
        raise SignatureError("Signature is empty")
    parts = []
    end = len(blob)
    position = 0
    while position < end:
        if position + SIGNATURE_LENGTH > len(blob):
            raise SignatureError(
                f"Expected a multiple of {SIGNATURE_LENGTH} bytes per signature blob, got {len(blob)}"
            )
        part = blob[position:position + SIGNATURE_LENGTH]
        position += SIGNATURE_LENGTH
        if part[64] == 0:
            offset = int.from_bytes(part[32:64], "big")
            if offset < position or offset + 32 > len(blob):
                raise SignatureError(f"Invalid contract signature offset {offset} in a {len(blob)}-byte blob")
            end = min(end, offset)
        parts.append(part)
    if position != end:
        raise SignatureError(f"Contract signature data starts inside a static signature at byte {end}")
    return parts


def recover_owner(signature: bytes, payload: SigningPayload) -> str:
    """
    Recover the owner a single 65-byte Safe signature speaks for.

    Supports EIP-712 signatures (v 27/28), eth_sign signatures (v > 30)
    and contract / pre-approved hash signatures (v 0/1) whose owner is
    encoded in ``r``.

    Raises:
        SignatureError: If the signature cannot be interpreted
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise SignatureError(f"Expected a {SIGNATURE_LENGTH}-byte signature, got {len(signature)} bytes")

    r, s, v = signature[:32], signature[32:64], signature[64]
    if v in (0, 1):
        return to_checksum_address(r[12:])
    try:
        if v in (27, 28):
            return Account.recover_message(payload.signable_message(), signature=signature)
        if v > 30:
            vrs = (v - 4, int.from_bytes(r, "big"), int.from_bytes(s, "big"))
            return Account.recover_message(encode_defunct(primitive=payload.digest()), vrs=vrs)
    except (ValueError, BadSignature, KeyValidationError) as e:
        raise SignatureError(f"Could not recover signer: {e}") from e
    raise SignatureError(f"Unsupported signature type v={v}")


def _owners(signatures: Iterable[bytes], payload: SigningPayload) -> List[str]:
    return [recover_owner(sig, payload) for sig in signatures]


def check_ascending_order(blobs: Sequence[bytes], payload: SigningPayload) -> List[str]:
    """
    Verify that signatures are sorted by strictly ascending owner address.

    Returns:
        The recovered owners, in input order

    Raises:
        SignatureOrderError: If the order is wrong or an owner appears twice
    """
    owners = _owners((sig for blob in blobs for sig in static_signatures(blob)), payload)
    keys = [int(owner, 16) for owner in owners]
    for previous, current, owner in zip(keys, keys[1:], owners[1:]):
        if current <= previous:
            raise SignatureOrderError(
                f"Signatures must be sorted by ascending owner address; {owner} is out of order "
                f"(owners: {', '.join(owners)})"
            )
    return owners


def sort_signatures(blobs: Sequence[SignatureInput], payload: SigningPayload) -> List[bytes]:
    """
    Order 65-byte signatures by ascending recovered owner address.

    This is an explicit operator step; aggregation itself never reorders.

    Raises:
        SignatureError: If a blob carries contract signature data, whose
            offsets would no longer hold after reordering
    """
    signatures = []
    for blob in blobs:
        blob = parse_signature(blob)
        parts = static_signatures(blob)
        if len(parts) * SIGNATURE_LENGTH != len(blob):
            raise SignatureError(
                "Cannot reorder contract signatures that carry dynamic data; "
                "pass them already sorted by owner address"
            )
        signatures.extend(parts)
    owners = _owners(signatures, payload)
    ordered = sorted(zip(owners, signatures), key=lambda pair: int(pair[0], 16))
    logger.debug(f"Sorted signatures for owners: {', '.join(owner for owner, _ in ordered)}")
    return [sig for _, sig in ordered]


def aggregate_signatures(
    blobs: Sequence[SignatureInput],
    payload: Optional[SigningPayload] = None,
    require_ascending_order: bool = False,
) -> bytes:
    """
    Concatenate signature blobs in the given order.

    Args:
        blobs: Signatures as hex strings or bytes, in caller order
        payload: Signing payload; needed only for the order check
        require_ascending_order: Fail unless owners are strictly ascending

    Returns:
        The aggregated signature bytes passed to execTransaction

    Raises:
        SignatureError: If no signature is given or one is malformed
        SignatureOrderError: If the order check is requested and fails
    """
    if not blobs:
        raise SignatureError("At least one signature is required")

    parsed = [parse_signature(blob) for blob in blobs]

    if require_ascending_order:
        if payload is None:
            raise ValueError("payload is required to check signature order")
        check_ascending_order(parsed, payload)

    aggregated = b"".join(parsed)
    logger.debug(
        f"Aggregated {len(parsed)} signature blob(s) into {len(aggregated)} bytes: "
        f"{shorten_hex('0x' + aggregated.hex())}"
    )
    return aggregated
