#!/usr/bin/env python3
"""
Build a Safe batch transaction and collect an owner signature from a browser wallet.
"""
import os
import sys

from safe_signing_sdk import BrowserSigner, SafeClient, SafeSigningError, load_batch


def main():
    """
    Demonstrate the signing half of the workflow.

    This example shows how to:
    1. Load and validate a batch file
    2. Build the Safe transaction against the live nonce
    3. Serve the EIP-712 payload to a browser wallet and print the signature
    """
    rpc_url = os.environ.get("RPC_URL", "https://ethereum-sepolia-rpc.publicnode.com")
    safe_address = os.environ.get("SAFE_ADDRESS")
    batch_file = sys.argv[1] if len(sys.argv) > 1 else "batch.json"

    if not safe_address:
        print("ERROR: SAFE_ADDRESS environment variable is required")
        return 1

    try:
        batch = load_batch(batch_file)
        client = SafeClient(rpc_url=rpc_url, safe_address=safe_address)
        safe_tx = client.create_transaction(batch)
        payload = client.signing_payload(safe_tx)

        print(f"Safe tx hash: {payload.digest_hex()}")
        print(f"Nonce: {safe_tx.nonce}")

        signer = BrowserSigner(port=8080, timeout=300, open_browser=True)
        signature = signer.request_signature(payload)
        print(f"Signature: 0x{signature.hex()}")
    except SafeSigningError as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
