"""
Pytest fixtures for the Safe signing SDK tests.
"""
import pytest
from unittest.mock import MagicMock
from web3 import Web3
from web3.providers import BaseProvider
from web3.providers.rpc import HTTPProvider

from safe_signing_sdk.config import NetworkConfig
from safe_signing_sdk.models import SubTransaction, Batch, Operation
from tests.test_helpers import (
    BLOCK_NUMBER,
    SAFE_NONCE,
    TEST_CHAIN_ID,
    TEST_SAFE,
    TEST_TARGET,
    TEST_TARGET_2,
    TX_HASH,
    owner_accounts,
)


@pytest.fixture(autouse=True)
def _patch_http_provider(monkeypatch):
    """
    Stub every Web3 HTTP call so no DNS / network traffic is triggered.
    Works for all tests because it is autouse.
    """
    def _dummy(self, method, params=None, _=None):      # signature match
        if method == "eth_chainId":
            return {"jsonrpc": "2.0", "id": 1, "result": hex(TEST_CHAIN_ID)}
        if method == "eth_blockNumber":
            return {"jsonrpc": "2.0", "id": 1, "result": hex(BLOCK_NUMBER)}
        if method == "eth_call":
            # Safe.nonce()
            return {"jsonrpc": "2.0", "id": 1, "result": "0x" + SAFE_NONCE.to_bytes(32, "big").hex()}
        if method == "eth_gasPrice":
            return {"jsonrpc": "2.0", "id": 1, "result": "0x3b9aca00"}  # 1 gwei
        # everything else – return something harmless
        return {"jsonrpc": "2.0", "id": 1, "result": "0x0"}

    monkeypatch.setattr(HTTPProvider, "make_request", _dummy, raising=True)


@pytest.fixture(autouse=True)
def _reset_network_cache():
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep operator environment variables out of the tests"""
    for name in (
        "PRIVATE_KEY",
        "CUSTOM_MULTISEND_ADDRESS",
        "CUSTOM_MULTISEND_CALLONLY_ADDRESS",
        f"CUSTOM_MULTISEND_ADDRESS_{TEST_CHAIN_ID}",
        f"CUSTOM_MULTISEND_CALLONLY_ADDRESS_{TEST_CHAIN_ID}",
        "SAFE_SIGNING_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_safe_contract():
    """Safe contract mock with a nonce of 5 and a working execTransaction"""
    contract = MagicMock()
    contract.functions.nonce.return_value.call.return_value = SAFE_NONCE

    exec_fn = MagicMock()
    exec_fn.estimate_gas.return_value = 100000

    def build_tx(tx_params):
        return {
            **tx_params,
            'to': TEST_SAFE,
            'value': 0,
            'data': '0x6a761202',
            'gasPrice': 1000000000,
        }

    exec_fn.build_transaction.side_effect = build_tx
    contract.functions.execTransaction.return_value = exec_fn
    return contract


@pytest.fixture
def mock_web3_provider(mock_safe_contract):
    """
    Create a realistic mock of Web3 provider with proper behavior.
    """
    provider = MagicMock(spec=BaseProvider)

    eth = MagicMock()
    eth.chain_id = TEST_CHAIN_ID
    eth.block_number = BLOCK_NUMBER
    eth.get_transaction_count = MagicMock(return_value=12)
    eth.send_raw_transaction = MagicMock(return_value=TX_HASH)

    def wait_for_receipt(tx_hash, **kwargs):
        return {
            'transactionHash': tx_hash,
            'blockNumber': BLOCK_NUMBER + 1,
            'blockHash': bytes.fromhex('abcdef1234567890' * 4),
            'status': 1,
            'gasUsed': 85000,
            'from': '0x1234567890123456789012345678901234567890',
            'to': TEST_SAFE,
            'logs': []
        }

    eth.wait_for_transaction_receipt = MagicMock(side_effect=wait_for_receipt)
    eth.contract = MagicMock(return_value=mock_safe_contract)

    provider.eth = eth
    return provider


@pytest.fixture
def mock_w3(mock_web3_provider):
    """Create a mock Web3 instance with realistic provider"""
    mock = MagicMock(spec=Web3)
    mock.eth = mock_web3_provider.eth
    return mock


@pytest.fixture
def owners():
    """Three owner accounts, sorted by ascending address"""
    return owner_accounts()


@pytest.fixture
def single_call_batch():
    return Batch((
        SubTransaction(to=TEST_TARGET, value=1, data="0xdeadbeef", operation=0),
    ))


@pytest.fixture
def call_batch():
    return Batch((
        SubTransaction(to=TEST_TARGET, value=0, data="0xa9059cbb", operation=Operation.CALL),
        SubTransaction(to=TEST_TARGET_2, value="1000", data="0x", operation=Operation.CALL),
    ))


@pytest.fixture
def mixed_batch():
    return Batch((
        SubTransaction(to=TEST_TARGET, value=0, data="0x01", operation=0),
        SubTransaction(to=TEST_TARGET_2, value=0, data="0x02", operation=1),
    ))


@pytest.fixture
def raw_batch():
    """Batch records as they appear in a batch file"""
    return [
        {"to": TEST_TARGET.lower(), "value": "0", "data": "0xa9059cbb", "operation": 0},
        {"to": TEST_TARGET_2, "value": 5, "data": "0x", "operation": 0},
    ]
