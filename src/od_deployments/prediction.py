"""Deterministic CREATE address prediction for od-deployments library.

An account creating a contract with CREATE places it at
keccak256(rlp([sender, nonce]))[12:]. Given a deployer's current nonce, the
addresses of its next deployments are therefore known in advance.

Predictions are only valid if no other transaction from the deployer lands
between reading the nonce and the real deployments. Nothing here detects a
mismatch.
"""

from typing import List

import rlp
from eth_utils import keccak, to_canonical_address, to_checksum_address

from .logs import get_logger
from .rpc import get_transaction_count

logger = get_logger(__name__)


def compute_create_address(deployer: str, nonce: int) -> str:
    """
    Address of the contract `deployer` creates at `nonce`.

    Returns:
        Checksummed address
    """
    if nonce < 0:
        raise ValueError(f"nonce must be non-negative, got {nonce}")
    encoded = rlp.encode([to_canonical_address(deployer), nonce])
    return to_checksum_address(keccak(encoded)[12:])


def predict_create_addresses(deployer: str, start_nonce: int, count: int) -> List[str]:
    """
    Predict the next `count` CREATE addresses of `deployer`.

    Args:
        deployer: Creating account (EOA or factory contract)
        start_nonce: The account's current transaction count
        count: Number of consecutive deployments

    Returns:
        Checksummed addresses for nonces start_nonce .. start_nonce + count - 1
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    return [compute_create_address(deployer, start_nonce + i) for i in range(count)]


def predict_from_chain(deployer: str, count: int, rpc_url: str) -> List[str]:
    """Read the deployer's nonce from the network and predict from it."""
    start_nonce = get_transaction_count(rpc_url, deployer)
    predicted = predict_create_addresses(deployer, start_nonce, count)
    logger.info(
        "addresses_predicted",
        deployer=deployer,
        start_nonce=start_nonce,
        count=count,
    )
    return predicted
