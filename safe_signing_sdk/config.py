"""
Network registry and environment configuration.
"""
import importlib.resources
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError, ContractKind, MissingCredentialError
from .utils import checksum_address

logger = logging.getLogger(__name__)

PRIVATE_KEY_ENV = "PRIVATE_KEY"
LOG_LEVEL_ENV = "SAFE_SIGNING_LOG_LEVEL"

# Registry keys for each contract kind
_REGISTRY_KEYS = {
    ContractKind.MULTI_SEND: "multiSend",
    ContractKind.MULTI_SEND_CALL_ONLY: "multiSendCallOnly",
}


class NetworkConfig:
    """
    Static registry of per-chain contract addresses.

    The registry ships with the package as ``networks.json`` and is keyed
    by decimal chain id.
    """

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load the network registry, caching it after the first read.

        Returns:
            Mapping of chain id (as string) to network entry
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("safe_signing_sdk").joinpath("networks.json")
            cls._networks_cache = json.loads(resource.read_text(encoding="utf-8"))
            logger.debug(f"Loaded {len(cls._networks_cache)} networks from registry")
        return cls._networks_cache

    @classmethod
    def get_network(cls, chain_id: int) -> Optional[Dict[str, Any]]:
        """Get the registry entry for a chain, or None if the chain is unknown"""
        return cls.load_networks().get(str(chain_id))

    @classmethod
    def get_contract_address(cls, chain_id: int, kind: ContractKind) -> Optional[str]:
        """
        Get a registry contract address.

        Returns:
            Checksummed address, or None when the chain or contract is not listed
        """
        network = cls.get_network(chain_id)
        if not network:
            return None
        address = network.get(_REGISTRY_KEYS[kind])
        return checksum_address(address) if address else None

    @classmethod
    def get_network_name(cls, chain_id: int) -> Optional[str]:
        network = cls.get_network(chain_id)
        return network.get("name") if network else None

    @classmethod
    def get_explorer_url(cls, chain_id: int) -> Optional[str]:
        network = cls.get_network(chain_id)
        return network.get("explorer") if network else None


@dataclass(frozen=True)
class NetworkOverrides:
    """Operator-supplied relay contract addresses; each one is optional"""
    multi_send: Optional[str] = None
    multi_send_call_only: Optional[str] = None

    def get(self, kind: ContractKind) -> Optional[str]:
        if kind is ContractKind.MULTI_SEND:
            return self.multi_send
        return self.multi_send_call_only

    @classmethod
    def from_env(cls, chain_id: Optional[int] = None, environ: Optional[Mapping[str, str]] = None) -> "NetworkOverrides":
        """
        Read relay overrides from the environment.

        A chain-specific variable (``CUSTOM_MULTISEND_ADDRESS_<chainId>``)
        wins over the plain one (``CUSTOM_MULTISEND_ADDRESS``).

        Raises:
            ConfigurationError: If a variable is set but is not a valid address
        """
        env = os.environ if environ is None else environ
        values = {}
        for kind in ContractKind:
            names = [kind.value]
            if chain_id is not None:
                names.insert(0, f"{kind.value}_{chain_id}")
            raw = next((env[name] for name in names if env.get(name)), None)
            if raw is None:
                values[kind] = None
                continue
            try:
                values[kind] = checksum_address(raw.strip())
            except ValueError as e:
                raise ConfigurationError(f"{kind.value} is not a valid address: {raw!r}") from e
            logger.info(f"Using {kind.label} override {values[kind]}")
        return cls(
            multi_send=values[ContractKind.MULTI_SEND],
            multi_send_call_only=values[ContractKind.MULTI_SEND_CALL_ONLY],
        )


def load_private_key(environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Read the operator private key from the environment.

    Raises:
        MissingCredentialError: If PRIVATE_KEY is unset or empty
    """
    env = os.environ if environ is None else environ
    key = (env.get(PRIVATE_KEY_ENV) or "").strip()
    if not key:
        raise MissingCredentialError(f"{PRIVATE_KEY_ENV} environment variable is not set.", env_var=PRIVATE_KEY_ENV)
    return key
