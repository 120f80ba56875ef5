"""Broadcast log and registry parsers for od-deployments library."""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from eth_utils import to_checksum_address

from .constants import (
    CONTRACT_ALIASES,
    CREATE,
    DECLARATION_PREFIX,
    DISCRIMINATED_FACTORIES,
    IDENTIFIER_SUFFIX,
    INDEXED_FACTORIES,
    INDEXED_FACTORY_MARKER,
    TOKEN_SYMBOL_ARG_INDEX,
    TOKEN_SYMBOL_CONTRACTS,
)
from .exceptions import BroadcastParseError, NameCollisionError, RegistryParseError
from .logs import get_logger
from .types import Transaction

logger = get_logger(__name__)


class RegistryFormat(Enum):
    """
    Persisted registry formats.

    - JSON: flat {name: address} object (primary)
    - SOURCE: Solidity `address public NAME_Address = ADDRESS;` declarations
    """

    JSON = "json"
    SOURCE = "source"


def detect_registry_format(json_path: Path, source_path: Path) -> Optional[RegistryFormat]:
    """
    Detect which registry representation is available for a network.

    Returns:
        RegistryFormat.JSON if the JSON registry exists (preferred)
        RegistryFormat.SOURCE if only the Solidity registry exists
        None if neither exists
    """
    if json_path.exists():
        return RegistryFormat.JSON
    if source_path.exists():
        return RegistryFormat.SOURCE
    return None


def normalize_contract_name(transaction: Transaction, index: int) -> str:
    """
    Convert a directly created contract's name to its canonical form.

    Token deployments get their symbol appended; protocol singletons are
    renamed to their alias. Everything else is returned as-is.
    """
    name = transaction.contract_name
    if name in TOKEN_SYMBOL_CONTRACTS:
        if len(transaction.arguments) <= TOKEN_SYMBOL_ARG_INDEX:
            raise BroadcastParseError(
                f"Transaction {index} ({name}) is missing its token symbol argument"
            )
        symbol = str(transaction.arguments[TOKEN_SYMBOL_ARG_INDEX]).upper().replace('"', "")
        return f"{name}_{symbol}"
    return CONTRACT_ALIASES.get(name, name)


def child_base_name(transaction: Transaction, index: int) -> str:
    """
    Name for a contract spawned by a factory call.

    The parent's `Factory` becomes `Child`; per-collateral factories append
    the collateral type (first argument), oracle and relayer factories append
    the transaction index.
    """
    parent = transaction.contract_name
    if not parent:
        raise BroadcastParseError(
            f"Transaction {index} created contracts but has no contractName"
        )

    name = parent.replace("Factory", "Child", 1)
    if parent in DISCRIMINATED_FACTORIES:
        if not transaction.arguments:
            raise BroadcastParseError(
                f"Transaction {index} ({parent}) is missing its collateral type argument"
            )
        name = f"{name}_{transaction.arguments[0]}"
    if parent in INDEXED_FACTORIES or INDEXED_FACTORY_MARKER in parent:
        name = f"{name}_{index}"
    return name


def _checksum(address: Any, index: int) -> str:
    try:
        return to_checksum_address(address)
    except (TypeError, ValueError) as e:
        raise BroadcastParseError(
            f"Transaction {index} has an invalid address {address!r}: {e}"
        ) from e


def _insert(contracts: Dict[str, str], name: str, address: str, index: int) -> None:
    if name in contracts:
        raise NameCollisionError(
            f"Transaction {index} produces '{name}' ({address}) which is already "
            f"registered at {contracts[name]}"
        )
    contracts[name] = address


def parse_broadcast_data(data: Any) -> Dict[str, str]:
    """
    Turn a decoded broadcast log into a canonical name -> address mapping.

    Args:
        data: Decoded run-latest.json content

    Returns:
        Insertion-ordered dictionary of canonical names to checksummed addresses

    Raises:
        BroadcastParseError: If the log or any transaction is malformed
        NameCollisionError: If two entries resolve to the same name
    """
    if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
        raise BroadcastParseError("Broadcast log is missing the transactions list")

    # Every record is validated before any entry is produced
    transactions: List[Transaction] = [
        Transaction.from_dict(raw, index) for index, raw in enumerate(data["transactions"])
    ]

    contracts: Dict[str, str] = {}
    for index, tx in enumerate(transactions):
        if tx.transaction_type == CREATE and tx.contract_address and tx.contract_name:
            name = normalize_contract_name(tx, index)
            _insert(contracts, name, _checksum(tx.contract_address, index), index)

        children = [
            c for c in tx.additional_contracts if c.address and c.transaction_type == CREATE
        ]
        if not children:
            continue

        base_name = child_base_name(tx, index)
        for position, child in enumerate(children):
            name = base_name if len(children) == 1 else f"{base_name}_{position}"
            _insert(contracts, name, _checksum(child.address, index), index)

    logger.info("broadcast_parsed", transactions=len(transactions), contracts=len(contracts))
    return contracts


def parse_broadcast_log(file_path: Path) -> Dict[str, str]:
    """
    Parse a Foundry broadcast file (run-latest.json).

    Args:
        file_path: Path to the broadcast JSON file

    Returns:
        Canonical name -> checksummed address mapping

    Raises:
        BroadcastParseError: If the file is missing, not JSON, or malformed
    """
    try:
        with open(file_path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise BroadcastParseError(f"Broadcast log not found: {file_path}") from e
    except json.JSONDecodeError as e:
        raise BroadcastParseError(f"Broadcast log is not valid JSON: {file_path}: {e}") from e

    return parse_broadcast_data(data)


def declared_identifier(name: str) -> str:
    """Solidity identifier under which a registry entry is declared."""
    return f"{name}{IDENTIFIER_SUFFIX}"


def parse_registry_source(text: str) -> Dict[str, str]:
    """
    Parse Solidity registry source back into a name -> address mapping.

    Each `address public NAME_Address = ADDRESS;` statement contributes one
    entry; text outside declarations (license, pragma, braces) is ignored.
    """
    contracts: Dict[str, str] = {}
    for statement in text.split(";"):
        if "=" not in statement:
            continue
        start = statement.find(DECLARATION_PREFIX)
        if start == -1:
            continue
        key, value = statement[start + len(DECLARATION_PREFIX):].split("=", 1)
        key = key.strip()
        if key.endswith(IDENTIFIER_SUFFIX):
            key = key[: -len(IDENTIFIER_SUFFIX)]
        contracts[key] = value.strip()
    return contracts


def parse_registry_json(text: str) -> Dict[str, str]:
    """
    Parse a JSON registry into a name -> address mapping.

    Raises:
        RegistryParseError: If the text is not JSON or not a flat object of strings
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RegistryParseError(f"JSON registry is not valid JSON: {e}") from e
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise RegistryParseError("JSON registry must be a flat object of name -> address strings")
    return data
