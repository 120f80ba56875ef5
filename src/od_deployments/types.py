"""Data types and dataclasses for od-deployments library."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import BroadcastParseError
from .paths import get_default_root_dir, get_network_config, normalize_network


@dataclass(frozen=True)
class AdditionalContract:
    """A contract created indirectly by a top-level broadcast transaction."""

    address: Optional[str]
    transaction_type: Optional[str]

    @classmethod
    def from_dict(cls, data: Any) -> "AdditionalContract":
        if not isinstance(data, dict):
            raise BroadcastParseError(f"additionalContracts entry is not an object: {data!r}")
        return cls(
            address=data.get("address"),
            transaction_type=data.get("transactionType"),
        )


@dataclass(frozen=True)
class Transaction:
    """One entry of a broadcast log's transactions list."""

    transaction_type: str
    contract_name: Optional[str] = None
    contract_address: Optional[str] = None
    arguments: List[Any] = field(default_factory=list)
    additional_contracts: List[AdditionalContract] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, index: int) -> "Transaction":
        """
        Build a Transaction from a raw broadcast record.

        Raises:
            BroadcastParseError: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise BroadcastParseError(f"Transaction {index} is not an object")

        transaction_type = data.get("transactionType")
        if not isinstance(transaction_type, str) or not transaction_type:
            raise BroadcastParseError(f"Transaction {index} is missing transactionType")

        # Foundry writes null for calls without arguments
        arguments = data.get("arguments") or []
        if not isinstance(arguments, list):
            raise BroadcastParseError(f"Transaction {index} has non-list arguments")

        additional = data.get("additionalContracts") or []
        if not isinstance(additional, list):
            raise BroadcastParseError(
                f"Transaction {index} has non-list additionalContracts"
            )

        return cls(
            transaction_type=transaction_type,
            contract_name=data.get("contractName"),
            contract_address=data.get("contractAddress"),
            arguments=list(arguments),
            additional_contracts=[AdditionalContract.from_dict(c) for c in additional],
        )


@dataclass(frozen=True)
class ContractEntry:
    """A canonical registry entry."""

    name: str  # Canonical name, e.g., "CollateralJoinChild_WETH"
    address: str  # Checksummed address


@dataclass(frozen=True)
class DeploymentConfig:
    """Immutable run configuration passed to every component."""

    network: str
    root_dir: Path
    rpc_url: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "network", normalize_network(self.network))
        object.__setattr__(self, "root_dir", Path(self.root_dir).absolute())

    @classmethod
    def from_env(
        cls,
        network: str,
        root_dir: Optional[Union[Path, str]] = None,
        rpc_url: Optional[str] = None,
    ) -> "DeploymentConfig":
        """
        Build a configuration, reading the RPC URL from the environment.

        Args:
            network: Network name ("anvil", "sepolia" or "mainnet")
            root_dir: Project root (defaults to the current directory)
            rpc_url: RPC endpoint (defaults to the network's env variable,
                     e.g. $ARB_SEPOLIA_RPC)
        """
        network_config = get_network_config(network)
        if rpc_url is None:
            rpc_url = os.environ.get(network_config["default_rpc_env"])
        if root_dir is None:
            root_dir = get_default_root_dir()
        return cls(network=network, root_dir=Path(root_dir), rpc_url=rpc_url)

    @property
    def network_config(self) -> Dict[str, Any]:
        return get_network_config(self.network)
