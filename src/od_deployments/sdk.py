"""SDK address book built from a network registry."""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .constants import (
    ETH_ADDRESS,
    MULTICALL_ADDRESS,
    SDK_ADDRESS_KEYS,
    SDK_PROTOCOL_TOKENS,
    TOKEN_SYMBOL_CONTRACTS,
)
from .exceptions import MissingAddressError, RegistryWriteError
from .logs import get_logger
from .paths import get_sdk_addresses_path
from .types import DeploymentConfig

logger = get_logger(__name__)

FIXED_ADDRESSES = {
    "MULTICALL": MULTICALL_ADDRESS,
    "ETH": ETH_ADDRESS,
}

WRAPPED_ETH_SYMBOL = "WETH"


def collateral_types(contracts: Mapping[str, str]) -> List[str]:
    """Collateral types that have a collateral join child, in registry order."""
    types: List[str] = []
    for name in contracts:
        prefix, _, collateral_type = name.partition("Child_")
        if prefix.startswith("CollateralJoin") and collateral_type:
            types.append(collateral_type)
    return types


def _token_address(contracts: Mapping[str, str], collateral_type: str) -> Optional[str]:
    if collateral_type == WRAPPED_ETH_SYMBOL:
        return ETH_ADDRESS
    for contract_name in TOKEN_SYMBOL_CONTRACTS:
        address = contracts.get(f"{contract_name}_{collateral_type}")
        if address:
            return address
    return None


def _collateral_join(contracts: Mapping[str, str], collateral_type: str) -> Optional[str]:
    for name, address in contracts.items():
        if name.startswith("CollateralJoin") and name.endswith(f"Child_{collateral_type}"):
            return address
    return None


def build_sdk_addresses(contracts: Mapping[str, str]) -> Dict[str, Any]:
    """
    Group registry entries by protocol role and by collateral type.

    Returns:
        {"addresses": {ROLE: address}, "collateral": {SYMBOL: {...}}}
        Missing registry entries map to None; call validate_sdk_addresses
        before publishing.
    """
    addresses: Dict[str, Optional[str]] = {}
    for key, registry_name in SDK_ADDRESS_KEYS.items():
        if registry_name is None:
            addresses[key] = FIXED_ADDRESSES[key]
        else:
            addresses[key] = contracts.get(registry_name)

    collateral: Dict[str, Dict[str, Optional[str]]] = {
        symbol: {"address": contracts.get(registry_name)}
        for symbol, registry_name in SDK_PROTOCOL_TOKENS.items()
    }
    for collateral_type in collateral_types(contracts):
        collateral[collateral_type] = {
            "address": _token_address(contracts, collateral_type),
            "collateralJoin": _collateral_join(contracts, collateral_type),
            "collateralAuctionHouse": contracts.get(
                f"CollateralAuctionHouseChild_{collateral_type}"
            ),
        }

    return {"addresses": addresses, "collateral": collateral}


def validate_addresses(mapping: Mapping[str, Any], prefix: str = "") -> None:
    """
    Reject a mapping with any missing or empty value.

    Raises:
        MissingAddressError: Naming every missing key
    """
    missing = [f"{prefix}{key}" for key, value in mapping.items() if not value]
    if missing:
        raise MissingAddressError(missing)


def validate_sdk_addresses(book: Mapping[str, Any]) -> None:
    """Validate the addresses table and every collateral entry together."""
    missing: List[str] = []
    for mapping, prefix in [(book["addresses"], "")] + [
        (entry, f"{symbol}.") for symbol, entry in book["collateral"].items()
    ]:
        try:
            validate_addresses(mapping, prefix)
        except MissingAddressError as e:
            missing.extend(e.missing)
    if missing:
        raise MissingAddressError(missing)


def write_sdk_addresses(contracts: Mapping[str, str], config: DeploymentConfig) -> Path:
    """
    Build, validate and write the SDK address book for config.network.

    Raises:
        MissingAddressError: If any expected key is missing (nothing written)
        RegistryWriteError: If the file cannot be written
    """
    book = build_sdk_addresses(contracts)
    validate_sdk_addresses(book)

    output_path = get_sdk_addresses_path(config.network, config.root_dir)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(book, f, indent=2)
            f.write("\n")
    except OSError as e:
        logger.error("sdk_write_failed", path=str(output_path), error=str(e))
        raise RegistryWriteError(f"Failed to write {output_path}: {e}") from e

    logger.info("sdk_addresses_written", network=config.network, path=str(output_path))
    return output_path
