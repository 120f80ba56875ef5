"""Read-only JSON-RPC queries for od-deployments library."""

from typing import Any, List

import requests
from eth_utils import keccak, to_checksum_address

from .constants import RPC_TIMEOUT
from .exceptions import RPCError
from .logs import get_logger

logger = get_logger(__name__)


def rpc_request(rpc_url: str, method: str, params: List[Any]) -> Any:
    """
    Send a single JSON-RPC request and return its result member.

    Args:
        rpc_url: RPC endpoint URL
        method: JSON-RPC method name
        params: Positional parameters

    Returns:
        The decoded "result" value

    Raises:
        RPCError: On HTTP failure, RPC error response, or network error
    """
    if not rpc_url:
        raise RPCError(f"No RPC URL configured for {method}")

    try:
        response = requests.post(
            rpc_url,
            json={"jsonrpc": "2.0", "method": method, "params": params, "id": 1},
            timeout=RPC_TIMEOUT,
        )
    except requests.RequestException as e:
        raise RPCError(f"Network error during {method}: {e}") from e

    if response.status_code != 200:
        raise RPCError(f"{method} failed with HTTP status {response.status_code}")

    try:
        body = response.json()
    except ValueError as e:
        raise RPCError(f"{method} returned a non-JSON response") from e

    if "error" in body:
        raise RPCError(f"RPC error from {method}: {body['error']}")
    if "result" not in body:
        raise RPCError(f"{method} response has no result")

    return body["result"]


def get_transaction_count(rpc_url: str, address: str, block: str = "latest") -> int:
    """
    Get an account's transaction count (its nonce).

    Contract accounts report the nonce their next CREATE will use.

    Raises:
        RPCError: If the request fails or the result is not a hex quantity
    """
    result = rpc_request(
        rpc_url, "eth_getTransactionCount", [to_checksum_address(address), block]
    )
    try:
        nonce = int(result, 16)
    except (TypeError, ValueError) as e:
        raise RPCError(f"eth_getTransactionCount returned a non-hex result: {result!r}") from e
    logger.info("nonce_fetched", address=address, block=block, nonce=nonce)
    return nonce


def call_address_getter(rpc_url: str, contract: str, signature: str) -> str:
    """
    Call a zero-argument view function that returns an address.

    Args:
        rpc_url: RPC endpoint URL
        contract: Contract to call
        signature: Function signature, e.g. "collateralAuctionHouseFactory()"

    Returns:
        Checksummed address returned by the call
    """
    selector = "0x" + keccak(text=signature)[:4].hex()
    result = rpc_request(
        rpc_url,
        "eth_call",
        [{"to": to_checksum_address(contract), "data": selector}, "latest"],
    )
    if not isinstance(result, str) or len(result) < 42:
        raise RPCError(f"{signature} on {contract} returned no address: {result!r}")
    address = to_checksum_address("0x" + result[-40:])
    logger.info("address_discovered", contract=contract, signature=signature, address=address)
    return address


def mine_blocks(rpc_url: str, blocks: int) -> None:
    """Mine blocks on a local anvil node (anvil_mine)."""
    if blocks < 1:
        raise ValueError("blocks must be positive")
    rpc_request(rpc_url, "anvil_mine", [hex(blocks)])
    logger.info("blocks_mined", blocks=blocks)
