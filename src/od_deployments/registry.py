"""Address registry serialization for od-deployments library."""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .constants import DECLARATION_PREFIX
from .exceptions import RegistryNotFoundError, RegistryWriteError
from .logs import get_logger
from .parsers import (
    RegistryFormat,
    declared_identifier,
    detect_registry_format,
    parse_registry_json,
    parse_registry_source,
)
from .paths import get_network_config, get_registry_paths
from .types import ContractEntry, DeploymentConfig

logger = get_logger(__name__)

SOURCE_TEMPLATE = """// SPDX-License-Identifier: GPL-3.0
pragma solidity {solidity_version};

abstract contract {container_name} {{
{declarations}}}
"""


def registry_entries(contracts: Mapping[str, str]) -> List[ContractEntry]:
    """Registry contents as ContractEntry records, in insertion order."""
    return [ContractEntry(name=name, address=address) for name, address in contracts.items()]


def render_registry_source(contracts: Mapping[str, str], network: str) -> str:
    """
    Render a registry as Solidity source.

    Args:
        contracts: Name -> address mapping (rendered in insertion order)
        network: Network name, selects container name and pragma

    Returns:
        Solidity source text
    """
    network_config = get_network_config(network)
    declarations = "".join(
        f"  {DECLARATION_PREFIX} {declared_identifier(entry.name)} = {entry.address};\n"
        for entry in registry_entries(contracts)
    )
    return SOURCE_TEMPLATE.format(
        solidity_version=network_config["solidity_version"],
        container_name=network_config["container_name"],
        declarations=declarations,
    )


def render_registry_json(contracts: Mapping[str, str]) -> str:
    """Render a registry as a flat JSON object (insertion order, 2-space indent)."""
    return json.dumps(dict(contracts), indent=2) + "\n"


def _write_text(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
    except OSError as e:
        logger.error("registry_write_failed", path=str(path), error=str(e))
        raise RegistryWriteError(f"Failed to write {path}: {e}") from e


def write_registry(
    contracts: Mapping[str, str],
    config: DeploymentConfig,
    formats: Iterable[Union[RegistryFormat, str]] = (RegistryFormat.JSON, RegistryFormat.SOURCE),
) -> List[Path]:
    """
    Persist a registry for config.network, fully replacing existing files.

    Args:
        contracts: Name -> address mapping
        config: Run configuration (network and project root)
        formats: Representations to write

    Returns:
        Paths written, in order

    Raises:
        RegistryWriteError: If a file cannot be written (earlier files stay)
    """
    json_path, source_path = get_registry_paths(config.network, config.root_dir)
    written: List[Path] = []

    for registry_format in formats:
        match RegistryFormat(registry_format):
            case RegistryFormat.JSON:
                _write_text(json_path, render_registry_json(contracts))
                written.append(json_path)
            case RegistryFormat.SOURCE:
                _write_text(source_path, render_registry_source(contracts, config.network))
                written.append(source_path)

    for path in written:
        logger.info("registry_written", network=config.network, path=str(path), contracts=len(contracts))
    return written


def load_registry(
    network: str, root_dir: Optional[Union[Path, str]] = None
) -> Dict[str, str]:
    """
    Load the persisted registry for a network.

    The JSON registry is preferred; the Solidity source is read when it is
    the only representation present.

    Raises:
        NetworkNotFoundError: If network is not supported
        RegistryNotFoundError: If no registry file exists
    """
    json_path, source_path = get_registry_paths(network, root_dir)

    match detect_registry_format(json_path, source_path):
        case RegistryFormat.JSON:
            return parse_registry_json(json_path.read_text())
        case RegistryFormat.SOURCE:
            return parse_registry_source(source_path.read_text())
        case None:
            raise RegistryNotFoundError(
                f"No registry found for network '{network}' "
                f"(looked for {json_path} and {source_path}). "
                "Run parse-broadcast to create it."
            )
