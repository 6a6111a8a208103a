#!/usr/bin/env python3
"""
Execute a Safe batch transaction with signatures collected from the owners.
"""
import os
import sys

from safe_signing_sdk import SafeClient, SafeSigningError, StaleNonceError, load_batch, sort_signatures


def main():
    rpc_url = os.environ.get("RPC_URL", "https://ethereum-sepolia-rpc.publicnode.com")
    safe_address = os.environ.get("SAFE_ADDRESS")
    private_key = os.environ.get("PRIVATE_KEY")

    if not safe_address or not private_key:
        print("ERROR: SAFE_ADDRESS and PRIVATE_KEY environment variables are required")
        return 1
    if len(sys.argv) < 3:
        print("usage: execute_batch_example.py <batch.json> <signature> [<signature> ...]")
        return 1

    client = SafeClient(
        rpc_url=rpc_url,
        safe_address=safe_address,
        priv_key=private_key,
        expected_chain_id=11155111,  # Sepolia
    )

    try:
        client.assert_chain_id()
        safe_tx = client.create_transaction(load_batch(sys.argv[1]))

        # Owners sign independently; put their signatures in the order the Safe checks them
        signatures = sort_signatures(sys.argv[2:], client.signing_payload(safe_tx))

        pending = client.submit_execution(safe_tx, signatures, require_ascending_order=True)
        print(f"Submitted: {pending.tx_hash}")

        receipt = pending.wait(timeout=180)
        print(f"Executed in block {receipt.block_number}")
        if pending.url:
            print(pending.url)
    except StaleNonceError as e:
        print(f"The Safe moved on to nonce {e.actual}; collect new signatures")
        return 1
    except SafeSigningError as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
