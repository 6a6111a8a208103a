"""
LocalSigner - sends transactions with a private key held in memory.
"""
import logging
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..exceptions import ConfigurationError
from ..typed_data import SigningPayload

logger = logging.getLogger(__name__)


class LocalSigner:
    """
    Signer backed by an eth-account key.

    Used as the execution sender. It can also produce an owner signature
    directly when the key belongs to a Safe owner.
    """

    def __init__(self, priv_key: str):
        try:
            self._account: LocalAccount = Account.from_key(priv_key)
        except (ValueError, TypeError) as e:
            # Never include the key itself in the message
            raise ConfigurationError(f"Invalid private key: {type(e).__name__}") from e
        logger.debug(f"Loaded local signer {self._account.address}")

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        return self._account.sign_transaction(transaction_dict)

    def request_signature(self, payload: SigningPayload) -> bytes:
        """Sign the payload as EIP-712 typed data (v is 27 or 28)"""
        signed = self._account.sign_message(payload.signable_message())
        return bytes(signed.signature)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address!r})"


def signer_from_key(priv_key: Optional[str]) -> Optional[LocalSigner]:
    return LocalSigner(priv_key) if priv_key else None
