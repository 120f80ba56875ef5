"""Path management utilities for od-deployments library."""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import (
    GENERATE_PROPOSAL_DIR,
    GOV_INPUT_DIR,
    NETWORK_CONFIG,
    SDK_ADDRESSES_NAME,
)
from .exceptions import NetworkNotFoundError


def get_default_root_dir() -> Path:
    """
    Get default project root (current working directory).

    Returns:
        Path to the current working directory
    """
    return Path.cwd()


def _root(root_dir: Optional[Union[Path, str]]) -> Path:
    if root_dir is None:
        return get_default_root_dir()
    return Path(root_dir).absolute()


def normalize_network(network: str) -> str:
    """
    Validate a network name and return its canonical (lower-case) form.

    Raises:
        NetworkNotFoundError: If network is not supported
    """
    key = (network or "").strip().lower()
    if key not in NETWORK_CONFIG:
        raise NetworkNotFoundError(
            f"Network '{network}' not supported "
            f"(expected one of: {', '.join(NETWORK_CONFIG)})"
        )
    return key


def get_network_config(network: str) -> Dict[str, Any]:
    """Return the NETWORK_CONFIG entry for a network."""
    return NETWORK_CONFIG[normalize_network(network)]


def get_registry_paths(
    network: str, root_dir: Optional[Union[Path, str]] = None
) -> tuple[Path, Path]:
    """
    Get registry file paths for a network.

    Args:
        network: Network name ("anvil", "sepolia" or "mainnet")
        root_dir: Project root (defaults to the current directory)

    Returns:
        Tuple of (json_registry_path, source_registry_path)
    """
    network_config = get_network_config(network)
    root = _root(root_dir)
    return (
        root / network_config["registry_json"],
        root / network_config["registry_source"],
    )


def get_sdk_addresses_path(
    network: str, root_dir: Optional[Union[Path, str]] = None
) -> Path:
    """Path of the SDK address book written next to the JSON registry."""
    json_path, _ = get_registry_paths(network, root_dir)
    return json_path.parent / SDK_ADDRESSES_NAME


def get_proposal_path(
    network: str, proposal_type: str, root_dir: Optional[Union[Path, str]] = None
) -> Path:
    """
    Get the proposal input file for a network and proposal type.

    Returns:
        Path to gov-input/{network}/new-{proposal_type}-prop.json
    """
    return (
        _root(root_dir)
        / GOV_INPUT_DIR
        / normalize_network(network)
        / f"new-{proposal_type}-prop.json"
    )


def get_proposal_script_target(proposal_type: str) -> str:
    """
    Foundry script target that generates a proposal of the given type.

    Example:
        addCollateral -> script/testScripts/gov/GenerateProposal/
        GenerateAddCollateralProposal.s.sol:GenerateAddCollateralProposal
    """
    if not proposal_type:
        raise ValueError("proposal_type must not be empty")
    name = proposal_type[0].upper() + proposal_type[1:]
    return f"{GENERATE_PROPOSAL_DIR}/Generate{name}Proposal.s.sol:Generate{name}Proposal"
