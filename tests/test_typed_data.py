"""
Tests for the EIP-712 signing payload.
"""
import json
import pytest
from eth_abi import encode
from eth_utils import keccak

from safe_signing_sdk.builder import TransactionBuilder
from safe_signing_sdk.network import NetworkContext
from safe_signing_sdk.typed_data import PRIMARY_TYPE, SAFE_TX_TYPES, SigningPayload
from safe_signing_sdk.utils import ZERO_ADDRESS
from tests.test_helpers import MULTI_SEND, MULTI_SEND_CALL_ONLY, TEST_CHAIN_ID, TEST_SAFE, TEST_TARGET

DOMAIN_TYPEHASH = "47e79534a245952e8b16893a336b85a3d9ea9fa8c573f3d803afb92a79469218"
SAFE_TX_TYPEHASH = "bb8310d486368db6bd6f849402fdd73ad53d316b5a4b2644ad6efe0f941286d8"


def _manual_safe_tx_hash(payload: SigningPayload) -> bytes:
    """Safe transaction hash computed the way the Safe contract does"""
    domain_separator = keccak(encode(
        ["bytes32", "uint256", "address"],
        [bytes.fromhex(DOMAIN_TYPEHASH), payload.chain_id, payload.safe_address],
    ))
    struct_hash = keccak(encode(
        ["bytes32", "address", "uint256", "bytes32", "uint8", "uint256", "uint256", "uint256",
         "address", "address", "uint256"],
        [
            bytes.fromhex(SAFE_TX_TYPEHASH),
            payload.to,
            payload.value,
            keccak(bytes.fromhex(payload.data[2:])),
            payload.operation,
            payload.safe_tx_gas,
            payload.base_gas,
            payload.gas_price,
            payload.gas_token,
            payload.refund_receiver,
            payload.nonce,
        ],
    ))
    return keccak(b"\x19\x01" + domain_separator + struct_hash)


@pytest.fixture
def network():
    return NetworkContext(
        chain_id=TEST_CHAIN_ID,
        multi_send_address=MULTI_SEND,
        multi_send_call_only_address=MULTI_SEND_CALL_ONLY,
    )


def test_typehashes_match_schema():
    fields = ",".join(f"{t['type']} {t['name']}" for t in SAFE_TX_TYPES)
    assert keccak(text=f"{PRIMARY_TYPE}({fields})").hex() == SAFE_TX_TYPEHASH
    assert keccak(text="EIP712Domain(uint256 chainId,address verifyingContract)").hex() == DOMAIN_TYPEHASH


@pytest.mark.parametrize("batch_fixture", ["single_call_batch", "call_batch", "mixed_batch"])
def test_digest_matches_contract_hash(request, network, batch_fixture):
    batch = request.getfixturevalue(batch_fixture)
    tx = TransactionBuilder().build(batch, network, TEST_SAFE, 5)
    payload = SigningPayload.from_transaction(tx)

    assert payload.digest() == _manual_safe_tx_hash(payload)
    assert payload.digest_hex() == "0x" + payload.digest().hex()


def test_from_transaction_copies_fields(network, single_call_batch):
    tx = TransactionBuilder().build(single_call_batch, network, TEST_SAFE, 5)
    payload = SigningPayload.from_transaction(tx)

    assert payload.chain_id == TEST_CHAIN_ID
    assert payload.safe_address == TEST_SAFE
    assert payload.to == TEST_TARGET
    assert payload.value == 1
    assert payload.data == "0xdeadbeef"
    assert payload.operation == 0
    assert payload.gas_token == ZERO_ADDRESS
    assert payload.nonce == 5


def test_identical_fields_give_identical_digest(network, call_batch):
    first = SigningPayload.from_transaction(TransactionBuilder().build(call_batch, network, TEST_SAFE, 1))
    second = SigningPayload.from_transaction(TransactionBuilder().build(call_batch, network, TEST_SAFE, 1))
    other_nonce = SigningPayload.from_transaction(TransactionBuilder().build(call_batch, network, TEST_SAFE, 2))

    assert first == second
    assert first.digest() == second.digest()
    assert first.digest() != other_nonce.digest()


def test_to_json_dict_wallet_format(network, single_call_batch):
    payload = SigningPayload.from_transaction(
        TransactionBuilder().build(single_call_batch, network, TEST_SAFE, 5)
    )
    data = payload.to_json_dict()

    # Must survive JSON serialization unchanged
    assert json.loads(json.dumps(data)) == data
    assert data["primaryType"] == "SafeTx"
    assert data["domain"] == {"verifyingContract": TEST_SAFE, "chainId": hex(TEST_CHAIN_ID)}
    assert [t["name"] for t in data["types"]["SafeTx"]] == [
        "to", "value", "data", "operation", "safeTxGas", "baseGas",
        "gasPrice", "gasToken", "refundReceiver", "nonce",
    ]
    assert data["types"]["EIP712Domain"] == [
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ]
    message = data["message"]
    assert message["to"] == TEST_TARGET
    assert message["value"] == "1"
    assert message["data"] == "0xdeadbeef"
    assert message["operation"] == 0
    assert message["safeTxGas"] == "0"
    assert message["nonce"] == 5


def test_typed_data_uses_native_values(network, single_call_batch):
    payload = SigningPayload.from_transaction(
        TransactionBuilder().build(single_call_batch, network, TEST_SAFE, 5)
    )
    typed = payload.typed_data()
    assert typed["domain"]["chainId"] == TEST_CHAIN_ID
    assert typed["message"]["data"] == bytes.fromhex("deadbeef")
