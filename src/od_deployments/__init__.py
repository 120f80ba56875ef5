"""
od-deployments: deployment registries, address prediction and governance
proposal inputs for Open Dollar contract deployments
"""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    AmbiguousContractError,
    BroadcastParseError,
    ContractNotFoundError,
    DeploymentError,
    MissingAddressError,
    NameCollisionError,
    NetworkNotFoundError,
    ProposalInputError,
    RegistryNotFoundError,
    RegistryParseError,
    RegistryWriteError,
    RPCError,
    UnknownProposalTypeError,
)
from .parsers import parse_broadcast_data, parse_broadcast_log
from .prediction import compute_create_address, predict_create_addresses
from .proposals import ProposalDocument, ProposalType, assemble, build_proposal
from .registry import load_registry, write_registry
from .resolver import ContractAddressResolver, resolve
from .types import ContractEntry, DeploymentConfig

try:
    __version__ = version("od-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "parse_broadcast_log",
    "parse_broadcast_data",
    "write_registry",
    "load_registry",
    "resolve",
    "ContractAddressResolver",
    "compute_create_address",
    "predict_create_addresses",
    "assemble",
    "build_proposal",
    "ProposalDocument",
    "ProposalType",
    "ContractEntry",
    "DeploymentConfig",
    "DeploymentError",
    "BroadcastParseError",
    "NameCollisionError",
    "RegistryNotFoundError",
    "RegistryParseError",
    "RegistryWriteError",
    "NetworkNotFoundError",
    "ContractNotFoundError",
    "AmbiguousContractError",
    "UnknownProposalTypeError",
    "ProposalInputError",
    "MissingAddressError",
    "RPCError",
]
