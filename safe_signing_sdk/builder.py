"""
TransactionBuilder - turns a validated batch into a single Safe transaction.
"""
import logging
from enum import Enum
from typing import Optional, Union

from .exceptions import ContractKind, InvalidBatchError
from .models import Batch, NonceEpoch, Operation, SafeTransaction
from .multisend import encode_multisend
from .network import NetworkContext
from .utils import bytes_to_hex, checksum_address

logger = logging.getLogger(__name__)


class RelayMode(str, Enum):
    """How a batch of several sub-transactions is relayed"""
    AUTO = "auto"              # MultiSendCallOnly when every entry is a call, MultiSend otherwise
    MULTI_SEND = "multi_send"  # always MultiSend via delegatecall


class TransactionBuilder:
    """
    Builds the canonical Safe transaction for a batch.

    The result only depends on its inputs: the same batch, network context
    and nonce always give an identical SafeTransaction.
    """

    def __init__(self, relay_mode: RelayMode = RelayMode.AUTO, logger: Optional[logging.Logger] = None):
        self.relay_mode = RelayMode(relay_mode)
        self.logger = logger or logging.getLogger(__name__)

    def build(
        self,
        batch: Batch,
        network: NetworkContext,
        safe_address: str,
        nonce: Union[int, NonceEpoch],
    ) -> SafeTransaction:
        """
        Build the Safe transaction for a batch.

        Args:
            batch: Validated batch
            network: Resolved network context
            safe_address: Address of the Safe that will execute the batch
            nonce: Current Safe nonce, or a NonceEpoch read from the chain

        Returns:
            SafeTransaction with zero gas-refund fields

        Raises:
            InvalidBatchError: If the batch is empty
            UnresolvedNetworkContractError: If a required relay contract is unknown
        """
        epoch = self._epoch(nonce, network, safe_address)

        if len(batch) == 0:
            raise InvalidBatchError("Cannot build a Safe transaction from an empty batch")

        if len(batch) == 1:
            tx = batch[0]
            to, value, data, operation = tx.to, tx.value, tx.data, tx.operation
        else:
            kind, operation = self._relay_for(batch)
            to = network.relay_address(kind)
            value = 0
            data = bytes_to_hex(encode_multisend(batch))
            self.logger.debug(f"Encoding {len(batch)} transactions through {kind.label} at {to}")

        safe_tx = SafeTransaction(
            to=to,
            value=value,
            data=data,
            operation=operation,
            nonce=epoch.nonce,
            nonce_epoch=epoch,
        )
        self.logger.info(
            f"Built Safe transaction for {len(batch)} call(s): to={safe_tx.to} "
            f"operation={safe_tx.operation.name} nonce={safe_tx.nonce}"
        )
        return safe_tx

    def _relay_for(self, batch: Batch):
        if self.relay_mode is RelayMode.AUTO and batch.only_calls:
            return ContractKind.MULTI_SEND_CALL_ONLY, Operation.CALL
        return ContractKind.MULTI_SEND, Operation.DELEGATE_CALL

    @staticmethod
    def _epoch(nonce: Union[int, NonceEpoch], network: NetworkContext, safe_address: str) -> NonceEpoch:
        safe_address = checksum_address(safe_address)
        if isinstance(nonce, NonceEpoch):
            if nonce.safe_address != safe_address or nonce.chain_id != network.chain_id:
                raise ValueError(
                    f"Nonce was read for Safe {nonce.safe_address} on chain {nonce.chain_id}, "
                    f"not {safe_address} on chain {network.chain_id}"
                )
            return nonce
        return NonceEpoch(safe_address=safe_address, chain_id=network.chain_id, nonce=nonce)
