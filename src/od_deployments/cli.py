"""Command-line entry point for od-deployments."""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .constants import BROADCAST_LOG_NAME
from .exceptions import DeploymentError
from .logs import configure_logging, get_logger
from .parsers import parse_broadcast_log
from .prediction import predict_create_addresses, predict_from_chain
from .proposals import (
    PARAMETER_TYPES,
    ProposalType,
    build_proposal,
    clean_proposal,
    proposal_script_target,
    read_proposal_network,
)
from .registry import load_registry, write_registry
from .resolver import resolve
from .rpc import mine_blocks
from .sdk import write_sdk_addresses
from .types import DeploymentConfig

logger = get_logger(__name__)


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number


def _config(args: argparse.Namespace) -> DeploymentConfig:
    return DeploymentConfig.from_env(
        args.network, root_dir=args.root, rpc_url=getattr(args, "rpc_url", None)
    )


def cmd_parse_broadcast(args: argparse.Namespace) -> int:
    config = _config(args)
    broadcast = Path(args.broadcast)
    if broadcast.is_dir():
        broadcast = broadcast / BROADCAST_LOG_NAME
    contracts = parse_broadcast_log(broadcast)
    for path in write_registry(contracts, config, formats=args.format or ("json", "source")):
        print(path)
    return 0


def cmd_find_address(args: argparse.Namespace) -> int:
    name, address = resolve(args.network, args.contract, root_dir=args.root)
    print(json.dumps({name: address}))
    return 0


def cmd_predict(args: argparse.Namespace) -> int:
    if args.nonce is None:
        config = _config(args)
        addresses = predict_from_chain(args.deployer, args.count, config.rpc_url)
    else:
        addresses = predict_create_addresses(args.deployer, args.nonce, args.count)
    print(json.dumps(addresses, indent=2))
    return 0


def cmd_build_proposal(args: argparse.Namespace) -> int:
    config = _config(args)
    proposal_type = ProposalType.parse(args.proposal_type)
    parameters = PARAMETER_TYPES[proposal_type].from_inputs(args.inputs)
    _, path = build_proposal(config, proposal_type, parameters)
    print(path)
    return 0


def cmd_clean_proposal(args: argparse.Namespace) -> int:
    clean_proposal(Path(args.path))
    return 0


def cmd_proposal_network(args: argparse.Namespace) -> int:
    network, trimmed = read_proposal_network(Path(args.path))
    print(network, trimmed)
    return 0


def cmd_proposal_script(args: argparse.Namespace) -> int:
    print(proposal_script_target(Path(args.path)))
    return 0


def cmd_prepare_sdk(args: argparse.Namespace) -> int:
    config = _config(args)
    contracts = load_registry(config.network, config.root_dir)
    print(write_sdk_addresses(contracts, config))
    return 0


def cmd_anvil_mine(args: argparse.Namespace) -> int:
    config = DeploymentConfig.from_env("anvil", root_dir=args.root, rpc_url=args.rpc_url)
    mine_blocks(config.rpc_url, args.blocks)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="od-deployments",
        description="Deployment registries, address prediction and proposal inputs",
    )
    parser.add_argument("--root", default=None, help="Project root (default: current directory)")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("parse-broadcast", help="Write the registry from a broadcast log")
    p.add_argument("network")
    p.add_argument("broadcast", help="run-latest.json, or the directory holding it")
    p.add_argument(
        "--format", action="append", choices=("json", "source"),
        help="Registry format to write (repeatable; default: both)",
    )
    p.set_defaults(func=cmd_parse_broadcast)

    p = subparsers.add_parser("find-address", help="Resolve a contract name to its address")
    p.add_argument("network")
    p.add_argument("contract")
    p.set_defaults(func=cmd_find_address)

    p = subparsers.add_parser("predict", help="Predict CREATE addresses of a deployer")
    p.add_argument("network")
    p.add_argument("deployer")
    p.add_argument("count", type=_non_negative_int)
    p.add_argument(
        "--nonce", type=_non_negative_int, default=None,
        help="Start nonce (default: read from RPC)",
    )
    p.add_argument("--rpc-url", default=None)
    p.set_defaults(func=cmd_predict)

    p = subparsers.add_parser("build-proposal", help="Create or update a proposal input file")
    p.add_argument("network")
    p.add_argument("proposal_type")
    p.add_argument(
        "inputs", nargs="*",
        help="Positional values ('-' keeps the existing value); key=value for pass-through kinds",
    )
    p.add_argument("--rpc-url", default=None)
    p.set_defaults(func=cmd_build_proposal)

    p = subparsers.add_parser("clean-proposal", help="Blank addresses and predictions in a proposal")
    p.add_argument("path")
    p.set_defaults(func=cmd_clean_proposal)

    p = subparsers.add_parser("proposal-network", help="Print a proposal's network and path")
    p.add_argument("path")
    p.set_defaults(func=cmd_proposal_network)

    p = subparsers.add_parser("proposal-script", help="Print the generator script for a proposal")
    p.add_argument("path")
    p.set_defaults(func=cmd_proposal_script)

    p = subparsers.add_parser("prepare-sdk", help="Write the SDK address book from the registry")
    p.add_argument("network")
    p.set_defaults(func=cmd_prepare_sdk)

    p = subparsers.add_parser("anvil-mine", help="Mine blocks on a local anvil node")
    p.add_argument("blocks", type=_positive_int)
    p.add_argument("--rpc-url", default=None)
    p.set_defaults(func=cmd_anvil_mine)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, format_json=args.log_json)

    try:
        return args.func(args)
    except DeploymentError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
