"""Shared pytest fixtures for od-deployments tests."""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from od_deployments.types import DeploymentConfig


def addr(n: int) -> str:
    """Digit-only address, identical in lower-case and checksummed form."""
    return "0x" + str(n).rjust(40, "0")


@pytest.fixture
def sample_broadcast() -> Dict[str, Any]:
    """A broadcast log covering direct creates, aliases and factory children."""
    return {
        "transactions": [
            {
                "transactionType": "CREATE",
                "contractName": "SAFEEngine",
                "contractAddress": addr(1),
                "arguments": None,
                "additionalContracts": [],
            },
            {
                "transactionType": "CREATE",
                "contractName": "OpenDollar",
                "contractAddress": addr(2),
                "arguments": [],
                "additionalContracts": [],
            },
            {
                "transactionType": "CREATE",
                "contractName": "MintableERC20",
                "contractAddress": addr(3),
                "arguments": ['"Wrapped BTC"', '"wbtc"', "8"],
                "additionalContracts": [],
            },
            {
                "transactionType": "CALL",
                "contractName": "CollateralJoinFactory",
                "contractAddress": addr(4),
                "arguments": ["WETH", addr(99)],
                "additionalContracts": [
                    {"transactionType": "CREATE", "address": addr(5)},
                ],
            },
            {
                "transactionType": "CALL",
                "contractName": "CollateralJoinFactory",
                "contractAddress": addr(4),
                "arguments": ["WBTC", addr(3)],
                "additionalContracts": [
                    {"transactionType": "CREATE", "address": addr(6)},
                ],
            },
            {
                "transactionType": "CALL",
                "contractName": "DelayedOracleFactory",
                "contractAddress": addr(7),
                "arguments": [addr(98), "3600"],
                "additionalContracts": [
                    {"transactionType": "CREATE", "address": addr(8)},
                ],
            },
        ]
    }


@pytest.fixture
def broadcast_file(tmp_path: Path, sample_broadcast: Dict[str, Any]) -> Path:
    """Write the sample broadcast log to run-latest.json."""
    path = tmp_path / "broadcast" / "run-latest.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(sample_broadcast, indent=2))
    return path


@pytest.fixture
def sample_registry() -> Dict[str, str]:
    """A registry with the contracts proposals resolve against."""
    return {
        "ODGovernor": addr(10),
        "GlobalSettlement": addr(11),
        "GlobalSettlementActions": addr(12),
        "CollateralAuctionHouseFactory": addr(13),
        "ChainlinkRelayerFactory": addr(14),
        "DelayedOracleFactory": addr(15),
        "DenominatedOracleFactory": addr(16),
        "CollateralJoinChild_WETH": addr(17),
        "CollateralAuctionHouseChild_WETH": addr(18),
    }


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """An empty project root."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def sepolia_config(project_root: Path) -> DeploymentConfig:
    """Configuration for sepolia rooted at project_root."""
    return DeploymentConfig(
        network="sepolia", root_dir=project_root, rpc_url="http://test-rpc.example.com"
    )


@pytest.fixture
def written_registry(sepolia_config: DeploymentConfig, sample_registry: Dict[str, str]) -> Path:
    """Persist sample_registry for sepolia and return the project root."""
    from od_deployments.registry import write_registry

    write_registry(sample_registry, sepolia_config)
    return sepolia_config.root_dir
