"""
Signer interfaces for the Safe signing SDK.

Two roles exist: a ``Signer`` signs and pays for the outer
``execTransaction`` call, while an ``InteractiveSigner`` collects an owner
signature over a Safe transaction digest from a human.
"""
from typing import Any, Dict, Protocol

from ..typed_data import SigningPayload


class Signer(Protocol):
    """Protocol for transaction senders"""
    address: str

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...


class InteractiveSigner(Protocol):
    """Protocol for owner-signature collectors"""

    def request_signature(self, payload: SigningPayload) -> bytes:
        """Obtain an owner signature over the payload digest"""
        ...


from .local import LocalSigner  # noqa: E402
from .browser import BrowserSigner, RawTransactionRequest, SigningServer  # noqa: E402

__all__ = [
    "Signer",
    "InteractiveSigner",
    "LocalSigner",
    "BrowserSigner",
    "RawTransactionRequest",
    "SigningServer",
]
