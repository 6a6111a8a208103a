"""
Shared constants and factories for the test suite.
"""
from typing import Optional

from eth_account import Account
from eth_utils import to_checksum_address
from web3.providers.rpc import HTTPProvider

from safe_signing_sdk.client import SafeClient
from safe_signing_sdk.config import NetworkOverrides
from safe_signing_sdk.signer.local import LocalSigner

# Test constants used throughout tests
TEST_RPC_URL = "https://rpc.example.com"
TEST_CHAIN_ID = 11155111  # Sepolia
TEST_SAFE = to_checksum_address("0x5afe5afe5afe5afe5afe5afe5afe5afe5afe5afe")
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_TARGET = to_checksum_address("0x1234567890123456789012345678901234567890")
TEST_TARGET_2 = to_checksum_address("0x2345678901234567890123456789012345678901")
MULTI_SEND = to_checksum_address("0x38869bf66a61cf6bdb996a6ae40d5853fd43b526")
MULTI_SEND_CALL_ONLY = to_checksum_address("0x9641d764fc13c8b624c04430c7356c1c7c8102e2")

# Chain state served by the RPC stubs
SAFE_NONCE = 5
BLOCK_NUMBER = 4242
TX_HASH = bytes.fromhex("ab" * 32)

# Deterministic owner keys
OWNER_KEYS = [
    "0x" + "11" * 32,
    "0x" + "22" * 32,
    "0x" + "33" * 32,
]


def owner_accounts():
    """Owner accounts sorted by ascending address"""
    return sorted((Account.from_key(key) for key in OWNER_KEYS), key=lambda acct: int(acct.address, 16))


def create_test_client(
    rpc_url: str = TEST_RPC_URL,
    safe_address: str = TEST_SAFE,
    priv_key: Optional[str] = TEST_PRIV_KEY,
    signer=None,
    overrides: Optional[NetworkOverrides] = None,
    w3=None,
    **kwargs
) -> SafeClient:
    """
    Create a client instance for testing with consistent defaults.

    Args:
        rpc_url: RPC URL for the blockchain node
        safe_address: Safe address
        priv_key: Sender private key; ignored when signer is given
        signer: Signer instance
        overrides: Relay overrides (empty by default so the environment is ignored)
        w3: Optional Web3 replacement, usually the mock_w3 fixture
        **kwargs: Additional SafeClient parameters

    Returns:
        Configured SafeClient instance
    """
    if signer is None and priv_key:
        signer = LocalSigner(priv_key)

    client = SafeClient(
        rpc_url=rpc_url,
        safe_address=safe_address,
        signer=signer,
        overrides=overrides if overrides is not None else NetworkOverrides(),
        **kwargs
    )
    if w3 is not None:
        client.w3 = w3
    return client


# Captured before the autouse fixture in conftest.py stubs it out
REAL_MAKE_REQUEST = HTTPProvider.make_request

# Chain state as JSON-RPC results
SAFE_STATE_RESULTS = {
    "eth_chainId": hex(TEST_CHAIN_ID),
    "eth_blockNumber": hex(BLOCK_NUMBER),
    "eth_call": "0x" + SAFE_NONCE.to_bytes(32, "big").hex(),
}


def json_rpc_responder(results):
    """requests-mock callback answering JSON-RPC methods from a dict"""
    def respond(request, context):
        body = request.json()
        return {"jsonrpc": "2.0", "id": body["id"], "result": results[body["method"]]}
    return respond


def rpc_method(name):
    """requests-mock matcher for a single JSON-RPC method"""
    def matches(request):
        return request.json().get("method") == name
    return matches
