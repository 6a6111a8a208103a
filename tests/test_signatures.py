"""
Tests for signature parsing, ordering and aggregation.
"""
import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from safe_signing_sdk.builder import TransactionBuilder
from safe_signing_sdk.exceptions import SignatureError, SignatureOrderError
from safe_signing_sdk.network import NetworkContext
from safe_signing_sdk.signatures import (
    aggregate_signatures,
    check_ascending_order,
    parse_signature,
    recover_owner,
    sort_signatures,
    static_signatures,
)
from safe_signing_sdk.signer.local import LocalSigner
from safe_signing_sdk.typed_data import SigningPayload
from tests.test_helpers import MULTI_SEND_CALL_ONLY, TEST_CHAIN_ID, TEST_SAFE


@pytest.fixture
def payload(call_batch):
    network = NetworkContext(chain_id=TEST_CHAIN_ID, multi_send_call_only_address=MULTI_SEND_CALL_ONLY)
    return SigningPayload.from_transaction(TransactionBuilder().build(call_batch, network, TEST_SAFE, 5))


def _sign(account, payload) -> bytes:
    return bytes(account.sign_message(payload.signable_message()).signature)


def _eth_sign(account, payload) -> bytes:
    """eth_sign style signature as the Safe expects it (v + 4)"""
    signed = account.sign_message(encode_defunct(primitive=payload.digest()))
    return signed.r.to_bytes(32, "big") + signed.s.to_bytes(32, "big") + bytes([signed.v + 4])


def test_parse_signature_hex():
    assert parse_signature("0x" + "ab" * 65) == b"\xab" * 65
    assert parse_signature("ab" * 65) == b"\xab" * 65
    assert parse_signature(b"\x01\x02") == b"\x01\x02"


@pytest.mark.parametrize("value", ["0x", "", "0xzz", "0xabc"])
def test_parse_signature_invalid(value):
    with pytest.raises(SignatureError):
        parse_signature(value)


def test_static_signatures():
    blob = b"\x01" * 65 + b"\x02" * 65
    assert static_signatures(blob) == [b"\x01" * 65, b"\x02" * 65]
    with pytest.raises(SignatureError):
        static_signatures(b"\x01" * 64)


def test_recover_owner_eip712(owners, payload):
    owner = owners[0]
    assert recover_owner(_sign(owner, payload), payload) == owner.address


def test_recover_owner_local_signer(payload):
    signer = LocalSigner("0x" + "44" * 32)
    assert recover_owner(signer.request_signature(payload), payload) == signer.address


def test_recover_owner_eth_sign(owners, payload):
    owner = owners[1]
    signature = _eth_sign(owner, payload)
    assert signature[64] > 30
    assert recover_owner(signature, payload) == owner.address


def test_recover_owner_approved_hash(owners, payload):
    owner = owners[2]
    signature = bytes(12) + bytes.fromhex(owner.address[2:]) + bytes(32) + b"\x01"
    assert recover_owner(signature, payload) == owner.address


def test_recover_owner_unsupported_v(payload):
    with pytest.raises(SignatureError, match="Unsupported signature type"):
        recover_owner(b"\x00" * 64 + b"\x05", payload)


def test_aggregate_requires_signatures():
    with pytest.raises(SignatureError, match="At least one signature"):
        aggregate_signatures([])


def test_aggregate_concatenates_in_caller_order(owners, payload):
    s1 = _sign(owners[0], payload)
    s2 = _sign(owners[1], payload)

    forward = aggregate_signatures(["0x" + s1.hex(), "0x" + s2.hex()])
    backward = aggregate_signatures([s2, s1])

    assert forward == s1 + s2
    assert backward == s2 + s1
    assert forward != backward


def test_aggregate_single_signature(owners, payload):
    s1 = _sign(owners[0], payload)
    assert aggregate_signatures([s1]) == s1


def test_aggregate_ascending_order_passes(owners, payload):
    sigs = [_sign(owner, payload) for owner in owners]
    assert aggregate_signatures(sigs, payload, require_ascending_order=True) == b"".join(sigs)


def test_aggregate_ascending_order_rejects_reversed(owners, payload):
    sigs = [_sign(owner, payload) for owner in reversed(owners)]
    with pytest.raises(SignatureOrderError, match="ascending owner address"):
        aggregate_signatures(sigs, payload, require_ascending_order=True)


def test_aggregate_ascending_order_rejects_duplicates(owners, payload):
    s1 = _sign(owners[0], payload)
    with pytest.raises(SignatureOrderError):
        aggregate_signatures([s1, s1], payload, require_ascending_order=True)


def test_aggregate_ascending_order_checks_concatenated_blobs(owners, payload):
    sigs = [_sign(owner, payload) for owner in owners]
    # Two owners already concatenated in one blob, in the wrong order
    blob = sigs[1] + sigs[0]
    with pytest.raises(SignatureOrderError):
        aggregate_signatures([blob, sigs[2]], payload, require_ascending_order=True)


def test_aggregate_ascending_order_needs_payload(owners, payload):
    with pytest.raises(ValueError):
        aggregate_signatures([_sign(owners[0], payload)], require_ascending_order=True)


def test_check_ascending_order_returns_owners(owners, payload):
    sigs = [_sign(owners[0], payload)]
    assert check_ascending_order(sigs, payload) == [owners[0].address]


def test_sort_signatures(owners, payload):
    sigs = [_sign(owner, payload) for owner in owners]
    shuffled = [sigs[2], "0x" + sigs[0].hex(), sigs[1]]

    ordered = sort_signatures(shuffled, payload)
    assert ordered == sigs


def test_signature_for_other_payload_recovers_other_address(owners, payload):
    other = SigningPayload(**{**payload.__dict__, "nonce": payload.nonce + 1})
    signature = _sign(owners[0], other)
    assert recover_owner(signature, payload) != owners[0].address


def test_account_recover_is_consistent(owners, payload):
    signature = _sign(owners[0], payload)
    assert Account.recover_message(payload.signable_message(), signature=signature) == owners[0].address


def _contract_signature(owner_address: str, offset: int) -> bytes:
    """Static part of a v=0 contract signature pointing at its data"""
    return bytes(12) + bytes.fromhex(owner_address[2:]) + offset.to_bytes(32, "big") + b"\x00"


def _contract_data(data: bytes) -> bytes:
    return len(data).to_bytes(32, "big") + data


def test_recover_owner_invalid_signature_values(payload):
    with pytest.raises(SignatureError, match="Could not recover signer"):
        recover_owner(bytes(64) + bytes([27]), payload)


def test_static_signatures_skips_contract_data(owners, payload):
    eoa = _sign(owners[0], payload)
    contract = _contract_signature(owners[1].address, 130)
    blob = eoa + contract + _contract_data(b"\xca\xfe" * 8)

    assert static_signatures(blob) == [eoa, contract]


@pytest.mark.parametrize("offset", [64, 100, 10_000])
def test_static_signatures_rejects_bad_contract_offset(owners, offset):
    blob = _contract_signature(owners[0].address, offset) + b"\x01" * 65 + _contract_data(b"\x01")
    with pytest.raises(SignatureError):
        static_signatures(blob)


def test_ascending_order_with_contract_signature(owners, payload):
    eoa = _sign(owners[0], payload)
    contract = _contract_signature(owners[1].address, 130)
    blob = eoa + contract + _contract_data(b"\x12\x34")

    assert check_ascending_order([blob], payload) == [owners[0].address, owners[1].address]
    assert aggregate_signatures(["0x" + blob.hex()], payload, require_ascending_order=True) == blob


def test_ascending_order_rejects_contract_signature_out_of_order(owners, payload):
    eoa = _sign(owners[0], payload)
    blob = _contract_signature(owners[1].address, 130) + eoa + _contract_data(b"\x12")
    with pytest.raises(SignatureOrderError):
        check_ascending_order([blob], payload)


def test_sort_rejects_contract_signature_data(owners, payload):
    blob = _contract_signature(owners[0].address, 65) + _contract_data(b"\x12")
    with pytest.raises(SignatureError, match="Cannot reorder contract signatures"):
        sort_signatures([blob, _sign(owners[1], payload)], payload)
