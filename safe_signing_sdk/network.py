"""
Network resolution for relay contracts.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from .config import NetworkConfig, NetworkOverrides
from .exceptions import ContractKind, UnresolvedNetworkContractError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkContext:
    """
    Chain id plus the relay contract addresses resolved for it.

    An address of None means the chain has no known deployment and no
    override was supplied.
    """
    chain_id: int
    multi_send_address: Optional[str] = None
    multi_send_call_only_address: Optional[str] = None
    name: Optional[str] = None

    def __post_init__(self):
        if self.chain_id <= 0:
            raise ValueError(f"chain_id must be positive, got {self.chain_id}")

    def relay_address(self, kind: ContractKind) -> str:
        """
        Get a relay address that the caller actually needs.

        Raises:
            UnresolvedNetworkContractError: If the address is absent
        """
        address = (
            self.multi_send_address
            if kind is ContractKind.MULTI_SEND
            else self.multi_send_call_only_address
        )
        if address is None:
            raise UnresolvedNetworkContractError(kind, self.chain_id)
        return address


def resolve_network(chain_id: int, overrides: Optional[NetworkOverrides] = None) -> NetworkContext:
    """
    Resolve relay contract addresses for a chain.

    Overrides take precedence per address; missing addresses are left as
    None and only become an error when a batch needs them.

    Args:
        chain_id: Chain identifier reported by the RPC endpoint
        overrides: Optional operator overrides

    Returns:
        NetworkContext for the chain
    """
    overrides = overrides or NetworkOverrides()
    addresses = {}
    for kind in ContractKind:
        address = overrides.get(kind) or NetworkConfig.get_contract_address(chain_id, kind)
        if address is None:
            logger.debug(f"No {kind.label} address known for chain {chain_id}")
        addresses[kind] = address

    return NetworkContext(
        chain_id=chain_id,
        multi_send_address=addresses[ContractKind.MULTI_SEND],
        multi_send_call_only_address=addresses[ContractKind.MULTI_SEND_CALL_ONLY],
        name=NetworkConfig.get_network_name(chain_id),
    )
