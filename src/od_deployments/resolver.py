"""Fuzzy contract address lookup against a persisted registry."""

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .exceptions import AmbiguousContractError, ContractNotFoundError
from .logs import get_logger
from .parsers import declared_identifier
from .paths import normalize_network
from .registry import load_registry
from .types import DeploymentConfig

logger = get_logger(__name__)


def find_matches(contracts: Mapping[str, str], query_name: str) -> List[str]:
    """
    Names whose declared identifier contains the query, case-insensitively.

    Matching runs against `NAME_Address` so that a query such as
    "GlobalSettlement_Address" singles out GlobalSettlement and not
    GlobalSettlementActions.
    """
    needle = query_name.lower()
    return [name for name in contracts if needle in declared_identifier(name).lower()]


def select_contract(
    contracts: Mapping[str, str], query_name: str, network: str = ""
) -> Tuple[str, str]:
    """
    Select the single registry entry matching a query.

    Raises:
        ContractNotFoundError: If query_name is empty or nothing matches
        AmbiguousContractError: If more than one entry matches
    """
    if not query_name or not query_name.strip():
        raise ContractNotFoundError("Contract query must be a non-empty string")

    matches = find_matches(contracts, query_name)
    if not matches:
        raise ContractNotFoundError(
            f"No contract matching '{query_name}' in registry for network '{network}'"
        )
    if len(matches) > 1:
        raise AmbiguousContractError(
            f"'{query_name}' matches {len(matches)} contracts ({', '.join(matches)}); "
            "use a more precise contract name",
            candidates=matches,
        )

    name = matches[0]
    return name, contracts[name]


class ContractAddressResolver:
    """Resolves contract queries against one network's registry."""

    def __init__(self, config: DeploymentConfig):
        self.config = config
        self._contracts: Optional[Dict[str, str]] = None

    @property
    def contracts(self) -> Dict[str, str]:
        """Registry contents, loaded on first access."""
        if self._contracts is None:
            self._contracts = load_registry(self.config.network, self.config.root_dir)
        return self._contracts

    def resolve(self, query_name: str) -> Tuple[str, str]:
        """Resolve a query to (name, address). See select_contract."""
        name, address = select_contract(self.contracts, query_name, self.config.network)
        logger.debug("contract_resolved", network=self.config.network, query=query_name, name=name)
        return name, address

    def resolve_many(self, query_names: List[str]) -> Dict[str, str]:
        """Resolve several queries, returning name -> address in query order."""
        resolved: Dict[str, str] = {}
        for query_name in query_names:
            name, address = self.resolve(query_name)
            resolved[name] = address
        return resolved


def resolve(
    network: str, query_name: str, root_dir: Optional[Union[Path, str]] = None
) -> Tuple[str, str]:
    """
    Resolve a fuzzy contract name to exactly one registry entry.

    Args:
        network: Network name ("anvil", "sepolia" or "mainnet")
        query_name: Case-insensitive substring of the declared identifier
        root_dir: Project root (defaults to the current directory)

    Returns:
        Tuple of (name, address)

    Raises:
        NetworkNotFoundError: If network is not supported
        RegistryNotFoundError: If the network has no registry
        ContractNotFoundError: If query_name is empty or nothing matches
        AmbiguousContractError: If more than one entry matches
    """
    network = normalize_network(network)
    if not query_name or not query_name.strip():
        raise ContractNotFoundError("Contract query must be a non-empty string")
    return select_contract(load_registry(network, root_dir), query_name, network)
