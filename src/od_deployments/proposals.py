"""Governance proposal documents for od-deployments library."""

import json
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .constants import IDENTIFIER_SUFFIX
from .exceptions import ProposalInputError, RegistryWriteError, UnknownProposalTypeError
from .logs import get_logger
from .parsers import declared_identifier
from .paths import get_proposal_path, get_proposal_script_target, normalize_network
from .prediction import predict_from_chain
from .resolver import ContractAddressResolver
from .types import DeploymentConfig

logger = get_logger(__name__)

# CLI placeholder meaning "keep the value already in the proposal file"
KEEP_EXISTING = "-"
ARRAY_SEPARATOR = ","

RESERVED_KEYS = ("proposalType", "network", "arrayLength", "predictedAddresses")


class ProposalType(Enum):
    """
    Supported proposal kinds.

    Values are the proposalType strings found in proposal files and used to
    build file names and generator script names.
    """

    ADD_COLLATERAL = "addCollateral"
    DEPLOY_RELAYER_SET = "deployRelayerSet"
    DEPLOY_DELAYED_ORACLE = "deployDelayedOracle"
    DEPLOY_DENOMINATED_ORACLE = "deployDenominatedOracle"
    TRANSFER_ERC20 = "transferErc20"
    UPDATE_BLOCK_DELAY = "updateBlockDelay"
    UPDATE_NFT_RENDERER = "updateNftRenderer"
    UPDATE_TIME_DELAY = "updateTimeDelay"
    UPDATE_PID_CONTROLLER = "updatePidController"
    UPDATE_PARAMETER = "updateParameter"

    @classmethod
    def parse(cls, value: Union[str, "ProposalType"]) -> "ProposalType":
        """
        Look up a proposal type, ignoring case.

        Raises:
            UnknownProposalTypeError: If value names no proposal type
        """
        if isinstance(value, cls):
            return value
        for member in cls:
            if str(value).lower() == member.value.lower():
                return member
        raise UnknownProposalTypeError(f"Unrecognized proposal type: {value!r}")


def _param(key: str, array: bool = False, required: bool = True) -> Any:
    return field(default=None, metadata={"key": key, "array": array, "required": required})


class _ProposalParameters:
    """Behaviour shared by the typed parameter dataclasses."""

    # Parameter used to label predicted addresses
    label_field: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        return cls(**{f.name: data.get(f.metadata["key"]) for f in fields(cls)})

    @classmethod
    def from_inputs(cls, inputs: Sequence[str]):
        """
        Build parameters from positional command-line values.

        Values follow field order; KEEP_EXISTING leaves a field unset and
        array fields take comma-separated lists.
        """
        params = fields(cls)
        if len(inputs) > len(params):
            raise ProposalInputError(
                f"Expected at most {len(params)} inputs, got {len(inputs)}"
            )
        values: Dict[str, Any] = {}
        for f, raw in zip(params, inputs):
            if raw == KEEP_EXISTING:
                continue
            if f.metadata["array"]:
                values[f.name] = [v.strip() for v in raw.split(ARRAY_SEPARATOR) if v.strip()]
            else:
                values[f.name] = raw
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {f.metadata["key"]: getattr(self, f.name) for f in fields(self)}

    def merged(self, previous: Optional["_ProposalParameters"]):
        """Copy with every unset field taken from the previous parameters."""
        if previous is None:
            return self
        if type(previous) is not type(self):
            raise ProposalInputError(
                f"Cannot merge {type(self).__name__} with {type(previous).__name__}"
            )
        kept = {
            f.name: getattr(previous, f.name)
            for f in fields(self)
            if getattr(self, f.name) is None
        }
        return replace(self, **kept)

    def missing(self) -> List[str]:
        """Keys of required fields that have no value."""
        return [
            f.metadata["key"]
            for f in fields(self)
            if f.metadata["required"] and getattr(self, f.name) in (None, "", [])
        ]

    @property
    def array_length(self) -> Optional[int]:
        """
        Shared length of the array fields, or None for scalar proposals.

        Raises:
            ProposalInputError: If array fields differ in length
        """
        lengths = {
            f.metadata["key"]: len(getattr(self, f.name) or [])
            for f in fields(self)
            if f.metadata["array"]
        }
        if not lengths:
            return None
        if len(set(lengths.values())) > 1:
            raise ProposalInputError(f"Array inputs differ in length: {lengths}")
        return next(iter(lengths.values()))

    def labels(self) -> List[str]:
        """Labels for predicted addresses, one per contract to be created."""
        if self.label_field is None:
            return []
        value = getattr(self, self.label_field)
        if value is None:
            return []
        return list(value) if isinstance(value, list) else [value]


@dataclass
class AddCollateralParameters(_ProposalParameters):
    label_field = "collateral_type"

    description: Optional[str] = _param("description", required=False)
    collateral_type: Optional[str] = _param("newCollateralType")
    collateral_address: Optional[str] = _param("newCollateralAddress")
    minimum_bid: Optional[str] = _param("minimumBid")
    minimum_discount: Optional[str] = _param("minimumDiscount")
    maximum_discount: Optional[str] = _param("maximumDiscount")
    per_second_discount_update_rate: Optional[str] = _param("perSecondDiscountUpdateRate")


@dataclass
class RelayerSetParameters(_ProposalParameters):
    label_field = "symbols"

    description: Optional[str] = _param("description", required=False)
    symbols: Optional[List[str]] = _param("symbols", array=True)
    price_feeds: Optional[List[str]] = _param("priceFeeds", array=True)
    stale_thresholds: Optional[List[str]] = _param("staleThresholds", array=True)


@dataclass
class DelayedOracleParameters(_ProposalParameters):
    label_field = "symbols"

    description: Optional[str] = _param("description", required=False)
    symbols: Optional[List[str]] = _param("symbols", array=True)
    price_sources: Optional[List[str]] = _param("priceSources", array=True)
    update_delays: Optional[List[str]] = _param("updateDelays", array=True)


@dataclass
class DenominatedOracleParameters(_ProposalParameters):
    label_field = "symbols"

    description: Optional[str] = _param("description", required=False)
    symbols: Optional[List[str]] = _param("symbols", array=True)
    price_sources: Optional[List[str]] = _param("priceSources", array=True)
    denomination_price_sources: Optional[List[str]] = _param(
        "denominationPriceSources", array=True
    )
    inverted: Optional[List[str]] = _param("inverted", array=True)


def _is_reserved_key(key: str) -> bool:
    return key in RESERVED_KEYS or key.endswith(IDENTIFIER_SUFFIX)


@dataclass
class PassThroughParameters:
    """Free-form parameters of proposals that are echoed unchanged."""

    values: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PassThroughParameters":
        return cls({k: v for k, v in data.items() if not _is_reserved_key(k)})

    @classmethod
    def from_inputs(cls, inputs: Sequence[str]) -> "PassThroughParameters":
        """Parse key=value command-line pairs; key=- keeps the existing value."""
        values: Dict[str, Any] = {}
        for item in inputs:
            key, sep, value = item.partition("=")
            if not sep or not key:
                raise ProposalInputError(f"Expected key=value, got {item!r}")
            if _is_reserved_key(key):
                raise ProposalInputError(f"{key!r} is set by the proposal itself, not by inputs")
            values[key] = None if value == KEEP_EXISTING else value
        return cls(values)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.values)

    def merged(self, previous: Optional["PassThroughParameters"]) -> "PassThroughParameters":
        reserved = [k for k in self.values if _is_reserved_key(k)]
        if reserved:
            raise ProposalInputError(
                f"Reserved proposal keys in parameters: {', '.join(reserved)}"
            )
        if previous is None:
            return PassThroughParameters({k: v for k, v in self.values.items() if v is not None})
        merged = dict(previous.values)
        merged.update({k: v for k, v in self.values.items() if v is not None})
        return PassThroughParameters(merged)

    def missing(self) -> List[str]:
        return []

    @property
    def array_length(self) -> Optional[int]:
        return None

    def labels(self) -> List[str]:
        return []


ProposalParameters = Union[
    AddCollateralParameters,
    RelayerSetParameters,
    DelayedOracleParameters,
    DenominatedOracleParameters,
    PassThroughParameters,
]

PARAMETER_TYPES = {
    ProposalType.ADD_COLLATERAL: AddCollateralParameters,
    ProposalType.DEPLOY_RELAYER_SET: RelayerSetParameters,
    ProposalType.DEPLOY_DELAYED_ORACLE: DelayedOracleParameters,
    ProposalType.DEPLOY_DENOMINATED_ORACLE: DenominatedOracleParameters,
    ProposalType.TRANSFER_ERC20: PassThroughParameters,
    ProposalType.UPDATE_BLOCK_DELAY: PassThroughParameters,
    ProposalType.UPDATE_NFT_RENDERER: PassThroughParameters,
    ProposalType.UPDATE_TIME_DELAY: PassThroughParameters,
    ProposalType.UPDATE_PID_CONTROLLER: PassThroughParameters,
    ProposalType.UPDATE_PARAMETER: PassThroughParameters,
}

# Registry contracts each proposal kind embeds
REQUIRED_CONTRACTS: Dict[ProposalType, Tuple[str, ...]] = {
    ProposalType.ADD_COLLATERAL: (
        "ODGovernor",
        "GlobalSettlement",
        "CollateralAuctionHouseFactory",
    ),
    ProposalType.DEPLOY_RELAYER_SET: ("ODGovernor", "ChainlinkRelayerFactory"),
    ProposalType.DEPLOY_DELAYED_ORACLE: ("ODGovernor", "DelayedOracleFactory"),
    ProposalType.DEPLOY_DENOMINATED_ORACLE: ("ODGovernor", "DenominatedOracleFactory"),
}

# Factory whose future children are predicted, and the structure holding them
PREDICTION_TARGETS: Dict[ProposalType, Tuple[str, str]] = {
    ProposalType.ADD_COLLATERAL: ("CollateralAuctionHouseFactory", "CollateralAuctionHouseChild"),
    ProposalType.DEPLOY_RELAYER_SET: ("ChainlinkRelayerFactory", "ChainlinkRelayerChild"),
    ProposalType.DEPLOY_DELAYED_ORACLE: ("DelayedOracleFactory", "DelayedOracleChild"),
    ProposalType.DEPLOY_DENOMINATED_ORACLE: ("DenominatedOracleFactory", "DenominatedOracleChild"),
}


@dataclass
class ProposalDocument:
    """A proposal input file."""

    proposal_type: ProposalType
    network: str
    parameters: ProposalParameters
    resolved_addresses: Dict[str, str] = field(default_factory=dict)
    # structure -> label -> address
    predicted_addresses: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @property
    def array_length(self) -> Optional[int]:
        return self.parameters.array_length

    def to_dict(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "proposalType": self.proposal_type.value,
            "network": self.network,
        }
        for name, address in self.resolved_addresses.items():
            document[declared_identifier(name)] = address
        document.update(self.parameters.to_dict())
        if self.array_length is not None:
            document["arrayLength"] = self.array_length
        document["predictedAddresses"] = {
            structure: dict(labelled) for structure, labelled in self.predicted_addresses.items()
        }
        return document

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProposalDocument":
        """
        Decode a proposal file. arrayLength is ignored; it is always derived.

        Raises:
            UnknownProposalTypeError: If proposalType is missing or unknown
            NetworkNotFoundError: If network is not supported
        """
        proposal_type = ProposalType.parse(data.get("proposalType"))
        resolved = {
            key[: -len(IDENTIFIER_SUFFIX)]: value
            for key, value in data.items()
            if key.endswith(IDENTIFIER_SUFFIX)
        }
        predicted = data.get("predictedAddresses") or {}
        if not isinstance(predicted, dict) or not all(
            isinstance(v, dict) for v in predicted.values()
        ):
            raise ProposalInputError("predictedAddresses must map structures to objects")
        return cls(
            proposal_type=proposal_type,
            network=normalize_network(data.get("network", "")),
            parameters=PARAMETER_TYPES[proposal_type].from_dict(data),
            resolved_addresses=resolved,
            predicted_addresses={k: dict(v) for k, v in predicted.items()},
        )


def merge_predicted(
    existing: Mapping[str, Mapping[str, str]],
    structure: str,
    labelled: Mapping[str, str],
) -> Dict[str, Dict[str, str]]:
    """
    Merge freshly predicted addresses into a document's predicted structures.

    Existing labels keep their position (values are refreshed), new labels
    are appended in prediction order, other structures are untouched.
    """
    merged = {name: dict(entries) for name, entries in existing.items()}
    merged.setdefault(structure, {}).update(labelled)
    return merged


def assemble(
    proposal_type: Union[ProposalType, str],
    network: str,
    resolved_addresses: Mapping[str, str],
    predicted_addresses: Optional[Sequence[str]],
    parameters: ProposalParameters,
    previous: Optional[ProposalDocument] = None,
) -> ProposalDocument:
    """
    Build a proposal document, keeping previous values for unset fields.

    Args:
        proposal_type: Proposal kind (enum or its string value)
        network: Network name
        resolved_addresses: Registry name -> address for embedded contracts
        predicted_addresses: Fresh predictions, one per label, in order
        parameters: Typed parameters; None fields keep previous values
        previous: Document already on disk, if any

    Returns:
        The assembled ProposalDocument

    Raises:
        UnknownProposalTypeError: If proposal_type is unknown
        ProposalInputError: If inputs are missing, mistyped or inconsistent
    """
    proposal_type = ProposalType.parse(proposal_type)
    network = normalize_network(network)

    expected_type = PARAMETER_TYPES[proposal_type]
    if not isinstance(parameters, expected_type):
        raise ProposalInputError(
            f"{proposal_type.value} takes {expected_type.__name__}, "
            f"got {type(parameters).__name__}"
        )

    if previous is not None:
        if previous.proposal_type is not proposal_type:
            raise ProposalInputError(
                f"Existing proposal is {previous.proposal_type.value}, not {proposal_type.value}"
            )
        if previous.network != network:
            raise ProposalInputError(
                f"Existing proposal targets {previous.network}, not {network}"
            )

    merged_parameters = parameters.merged(previous.parameters if previous else None)
    missing = merged_parameters.missing()
    if missing:
        raise ProposalInputError(
            f"Missing {proposal_type.value} inputs: {', '.join(missing)}"
        )
    # Raises on inconsistent array lengths
    _ = merged_parameters.array_length

    resolved = dict(previous.resolved_addresses) if previous else {}
    resolved.update(resolved_addresses)
    missing_contracts = [
        name for name in REQUIRED_CONTRACTS.get(proposal_type, ()) if not resolved.get(name)
    ]
    if missing_contracts:
        raise ProposalInputError(
            f"Missing contract addresses: {', '.join(missing_contracts)}"
        )

    predicted = dict(previous.predicted_addresses) if previous else {}
    if predicted_addresses:
        if proposal_type not in PREDICTION_TARGETS:
            raise ProposalInputError(
                f"{proposal_type.value} does not take predicted addresses"
            )
        labels = merged_parameters.labels()
        if len(labels) != len(predicted_addresses):
            raise ProposalInputError(
                f"Got {len(predicted_addresses)} predicted addresses for "
                f"{len(labels)} labels ({', '.join(labels)})"
            )
        _, structure = PREDICTION_TARGETS[proposal_type]
        predicted = merge_predicted(
            predicted, structure, dict(zip(labels, predicted_addresses))
        )

    return ProposalDocument(
        proposal_type=proposal_type,
        network=network,
        parameters=merged_parameters,
        resolved_addresses=resolved,
        predicted_addresses=predicted,
    )


def _read_proposal_file(path: Path) -> Dict[str, Any]:
    """
    Read a proposal file as a raw JSON object.

    Raises:
        ProposalInputError: If the file is missing, unreadable, not JSON or not an object
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ProposalInputError(f"Proposal file not found: {path}") from e
    except (OSError, ValueError) as e:
        raise ProposalInputError(f"Cannot read proposal file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ProposalInputError(f"Proposal file {path} must hold a JSON object")
    return data


def load_proposal(path: Path) -> ProposalDocument:
    """Load a proposal document from disk."""
    return ProposalDocument.from_dict(_read_proposal_file(path))


def save_proposal(document: ProposalDocument, path: Path) -> Path:
    """
    Write a proposal document, replacing the file.

    Raises:
        RegistryWriteError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(document.to_dict(), f, indent=2)
            f.write("\n")
    except OSError as e:
        logger.error("proposal_write_failed", path=str(path), error=str(e))
        raise RegistryWriteError(f"Failed to write {path}: {e}") from e
    logger.info("proposal_written", proposal_type=document.proposal_type.value, path=str(path))
    return path


def clean_proposal(path: Path) -> Dict[str, Any]:
    """
    Blank the derived fields of a proposal file in place.

    Every *_Address field becomes "" and predictedAddresses becomes {}, so
    the next build resolves and predicts from scratch. The file is handled
    as raw JSON so that hand-edited files of any kind can be cleaned.
    """
    data = _read_proposal_file(path)

    for key in data:
        if key.endswith(IDENTIFIER_SUFFIX):
            data[key] = ""
    if "predictedAddresses" in data:
        data["predictedAddresses"] = {}

    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
    except OSError as e:
        logger.error("proposal_write_failed", path=str(path), error=str(e))
        raise RegistryWriteError(f"Failed to write {path}: {e}") from e
    logger.info("proposal_cleaned", path=str(path))
    return data


def read_proposal_network(path: Path) -> Tuple[str, str]:
    """
    Network of a proposal file and its path from the gov-* directory on.

    Returns:
        Tuple of (network, trimmed_path)
    """
    data = _read_proposal_file(path)
    network = normalize_network(data.get("network", ""))

    path_str = Path(path).as_posix()
    marker = path_str.find("/gov-")
    trimmed = path_str[marker:] if marker != -1 else path_str
    return network, trimmed


def proposal_script_target(path: Path) -> str:
    """Foundry generator script for the proposal stored at path."""
    data = _read_proposal_file(path)
    return get_proposal_script_target(ProposalType.parse(data.get("proposalType")).value)


def build_proposal(
    config: DeploymentConfig,
    proposal_type: Union[ProposalType, str],
    parameters: ProposalParameters,
) -> Tuple[ProposalDocument, Path]:
    """
    Resolve, predict, assemble and save a proposal for config.network.

    The existing proposal file (if any) supplies every field left unset.
    Predictions read the factory's nonce from config.rpc_url.

    Returns:
        Tuple of (document, path written)
    """
    proposal_type = ProposalType.parse(proposal_type)
    path = get_proposal_path(config.network, proposal_type.value, config.root_dir)
    previous = load_proposal(path) if path.exists() else None

    resolver = ContractAddressResolver(config)
    resolved = resolver.resolve_many(
        [declared_identifier(name) for name in REQUIRED_CONTRACTS.get(proposal_type, ())]
    )

    predicted: List[str] = []
    if proposal_type in PREDICTION_TARGETS:
        labels = parameters.merged(previous.parameters if previous else None).labels()
        factory, _ = PREDICTION_TARGETS[proposal_type]
        if labels:
            predicted = predict_from_chain(resolved[factory], len(labels), config.rpc_url)

    document = assemble(
        proposal_type, config.network, resolved, predicted, parameters, previous
    )
    save_proposal(document, path)
    return document, path
