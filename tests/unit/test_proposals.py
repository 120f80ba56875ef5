"""Unit tests for proposal assembly."""

import json
from pathlib import Path

import pytest

from od_deployments.exceptions import (
    NetworkNotFoundError,
    ProposalInputError,
    UnknownProposalTypeError,
)
from od_deployments.proposals import (
    AddCollateralParameters,
    DelayedOracleParameters,
    DenominatedOracleParameters,
    PassThroughParameters,
    ProposalDocument,
    ProposalType,
    RelayerSetParameters,
    assemble,
    clean_proposal,
    load_proposal,
    merge_predicted,
    proposal_script_target,
    read_proposal_network,
    save_proposal,
)


def _addr(n: int) -> str:
    return "0x" + str(n).rjust(40, "0")


COLLATERAL_RESOLVED = {
    "ODGovernor": _addr(10),
    "GlobalSettlement": _addr(11),
    "CollateralAuctionHouseFactory": _addr(13),
}

RELAYER_RESOLVED = {"ODGovernor": _addr(10), "ChainlinkRelayerFactory": _addr(14)}


def _collateral_parameters(**overrides) -> AddCollateralParameters:
    values = dict(
        description="Add ARB",
        collateral_type="ARB",
        collateral_address=_addr(20),
        minimum_bid="100",
        minimum_discount="1000000000000000000",
        maximum_discount="800000000000000000",
        per_second_discount_update_rate="999998607628240588157433861",
    )
    values.update(overrides)
    return AddCollateralParameters(**values)


def _relayer_parameters(**overrides) -> RelayerSetParameters:
    values = dict(
        symbols=["ARB", "WSTETH"],
        price_feeds=[_addr(30), _addr(31)],
        stale_thresholds=["3600", "86400"],
    )
    values.update(overrides)
    return RelayerSetParameters(**values)


class TestProposalType:
    """Test ProposalType.parse."""

    @pytest.mark.parametrize("value", ["addCollateral", "addcollateral", "ADDCOLLATERAL"])
    def test_case_insensitive(self, value: str):
        assert ProposalType.parse(value) is ProposalType.ADD_COLLATERAL

    def test_passes_through_members(self):
        assert ProposalType.parse(ProposalType.UPDATE_PARAMETER) is ProposalType.UPDATE_PARAMETER

    @pytest.mark.parametrize("value", ["addCollateralType", "", None])
    def test_unknown(self, value):
        with pytest.raises(UnknownProposalTypeError):
            ProposalType.parse(value)


class TestAssemble:
    """Test the assemble function."""

    def test_add_collateral(self):
        doc = assemble(
            "addCollateral", "sepolia", COLLATERAL_RESOLVED, [_addr(40)], _collateral_parameters()
        )

        data = doc.to_dict()
        assert data["proposalType"] == "addCollateral"
        assert data["network"] == "sepolia"
        assert data["ODGovernor_Address"] == _addr(10)
        assert data["newCollateralType"] == "ARB"
        assert data["predictedAddresses"] == {"CollateralAuctionHouseChild": {"ARB": _addr(40)}}
        assert "arrayLength" not in data

    def test_array_length_is_derived(self):
        doc = assemble(
            ProposalType.DEPLOY_RELAYER_SET,
            "anvil",
            RELAYER_RESOLVED,
            [_addr(41), _addr(42)],
            _relayer_parameters(),
        )
        assert doc.array_length == 2
        assert doc.to_dict()["arrayLength"] == 2
        assert doc.predicted_addresses == {
            "ChainlinkRelayerChild": {"ARB": _addr(41), "WSTETH": _addr(42)}
        }

    def test_array_length_follows_updated_arrays(self):
        first = assemble(
            "deployRelayerSet", "anvil", RELAYER_RESOLVED, None, _relayer_parameters()
        )
        second = assemble(
            "deployRelayerSet",
            "anvil",
            {},
            None,
            RelayerSetParameters(
                symbols=["ARB", "WSTETH", "RETH"],
                price_feeds=[_addr(30), _addr(31), _addr(32)],
                stale_thresholds=["1", "2", "3"],
            ),
            previous=first,
        )
        assert second.to_dict()["arrayLength"] == 3

    def test_mismatched_arrays(self):
        with pytest.raises(ProposalInputError):
            assemble(
                "deployRelayerSet",
                "anvil",
                RELAYER_RESOLVED,
                None,
                _relayer_parameters(stale_thresholds=["3600"]),
            )

    def test_shrinking_one_array_against_previous_is_rejected(self):
        previous = assemble(
            "deployRelayerSet", "anvil", RELAYER_RESOLVED, None, _relayer_parameters()
        )
        with pytest.raises(ProposalInputError):
            assemble(
                "deployRelayerSet",
                "anvil",
                {},
                None,
                RelayerSetParameters(symbols=["ARB"]),
                previous=previous,
            )

    def test_missing_required_parameter(self):
        with pytest.raises(ProposalInputError, match="minimumBid"):
            assemble(
                "addCollateral",
                "sepolia",
                COLLATERAL_RESOLVED,
                None,
                _collateral_parameters(minimum_bid=None),
            )

    def test_description_is_optional(self):
        doc = assemble(
            "addCollateral",
            "sepolia",
            COLLATERAL_RESOLVED,
            None,
            _collateral_parameters(description=None),
        )
        assert doc.parameters.description is None

    def test_missing_required_contract(self):
        with pytest.raises(ProposalInputError, match="GlobalSettlement"):
            assemble(
                "addCollateral",
                "sepolia",
                {"ODGovernor": _addr(10), "CollateralAuctionHouseFactory": _addr(13)},
                None,
                _collateral_parameters(),
            )

    def test_wrong_parameter_type(self):
        with pytest.raises(ProposalInputError):
            assemble("addCollateral", "sepolia", COLLATERAL_RESOLVED, None, _relayer_parameters())

    def test_prediction_count_must_match_labels(self):
        with pytest.raises(ProposalInputError):
            assemble(
                "deployRelayerSet", "anvil", RELAYER_RESOLVED, [_addr(41)], _relayer_parameters()
            )

    def test_pass_through_rejects_predictions(self):
        with pytest.raises(ProposalInputError):
            assemble(
                "updateParameter", "anvil", {}, [_addr(1)], PassThroughParameters({"a": "1"})
            )

    def test_unknown_proposal_type(self):
        with pytest.raises(UnknownProposalTypeError):
            assemble("mintEverything", "anvil", {}, None, PassThroughParameters())

    def test_unknown_network(self):
        with pytest.raises(NetworkNotFoundError):
            assemble("updateParameter", "goerli", {}, None, PassThroughParameters())

    def test_previous_of_other_network(self):
        previous = assemble("updateParameter", "anvil", {}, None, PassThroughParameters())
        with pytest.raises(ProposalInputError):
            assemble(
                "updateParameter", "sepolia", {}, None, PassThroughParameters(), previous=previous
            )


class TestFieldPreservation:
    """Test keep-existing semantics on re-submission."""

    def test_only_supplied_field_changes(self):
        first = assemble(
            "addCollateral", "sepolia", COLLATERAL_RESOLVED, [_addr(40)], _collateral_parameters()
        )
        second = assemble(
            "addCollateral",
            "sepolia",
            {},
            None,
            AddCollateralParameters(minimum_bid="250"),
            previous=first,
        )

        before = first.to_dict()
        after = second.to_dict()
        changed = {k for k in before if before[k] != after[k]}
        assert changed == {"minimumBid"}
        assert after["minimumBid"] == "250"
        assert set(after) == set(before)

    def test_pass_through_preserves_unspecified_keys(self):
        first = assemble(
            "updateTimeDelay",
            "anvil",
            {},
            None,
            PassThroughParameters({"timeDelay": "60", "target": _addr(1)}),
        )
        second = assemble(
            "updateTimeDelay",
            "anvil",
            {},
            None,
            PassThroughParameters({"timeDelay": "120", "target": None}),
            previous=first,
        )
        assert second.parameters.values == {"timeDelay": "120", "target": _addr(1)}

    def test_repredicting_keeps_order_and_other_structures(self):
        first = assemble(
            "deployRelayerSet",
            "anvil",
            RELAYER_RESOLVED,
            [_addr(41), _addr(42)],
            _relayer_parameters(),
        )
        first.predicted_addresses["Legacy"] = {"X": _addr(99)}

        second = assemble(
            "deployRelayerSet",
            "anvil",
            {},
            [_addr(51), _addr(52)],
            RelayerSetParameters(),
            previous=first,
        )
        assert list(second.predicted_addresses) == ["ChainlinkRelayerChild", "Legacy"]
        assert second.predicted_addresses["ChainlinkRelayerChild"] == {
            "ARB": _addr(51),
            "WSTETH": _addr(52),
        }
        assert second.predicted_addresses["Legacy"] == {"X": _addr(99)}


class TestMergePredicted:
    """Test the merge_predicted function."""

    def test_appends_new_labels_after_existing(self):
        existing = {"DelayedOracleChild": {"ARB": _addr(1), "WETH": _addr(2)}}
        merged = merge_predicted(existing, "DelayedOracleChild", {"RETH": _addr(3)})
        assert list(merged["DelayedOracleChild"].items()) == [
            ("ARB", _addr(1)),
            ("WETH", _addr(2)),
            ("RETH", _addr(3)),
        ]

    def test_does_not_mutate_input(self):
        existing = {"DelayedOracleChild": {"ARB": _addr(1)}}
        merge_predicted(existing, "DelayedOracleChild", {"ARB": _addr(2)})
        assert existing == {"DelayedOracleChild": {"ARB": _addr(1)}}


class TestFromInputs:
    """Test building parameters from command-line values."""

    def test_positional_values(self):
        params = AddCollateralParameters.from_inputs(["desc", "ARB", _addr(20)])
        assert params.description == "desc"
        assert params.collateral_type == "ARB"
        assert params.collateral_address == _addr(20)
        assert params.minimum_bid is None

    def test_keep_existing_placeholder(self):
        params = AddCollateralParameters.from_inputs(["-", "-", "-", "500"])
        assert params.collateral_type is None
        assert params.minimum_bid == "500"

    def test_array_values(self):
        params = DelayedOracleParameters.from_inputs(
            ["-", "ARB, RETH", f"{_addr(1)},{_addr(2)}", "3600,3600"]
        )
        assert params.symbols == ["ARB", "RETH"]
        assert params.price_sources == [_addr(1), _addr(2)]
        assert params.array_length == 2

    def test_too_many_values(self):
        with pytest.raises(ProposalInputError):
            DenominatedOracleParameters.from_inputs(["x"] * 6)

    def test_pass_through_pairs(self):
        params = PassThroughParameters.from_inputs(["blockDelay=5", "target=-"])
        assert params.values == {"blockDelay": "5", "target": None}

    def test_pass_through_rejects_bare_values(self):
        with pytest.raises(ProposalInputError):
            PassThroughParameters.from_inputs(["5"])

    @pytest.mark.parametrize(
        "item",
        [
            "network=mainnet",
            "proposalType=addCollateral",
            "arrayLength=3",
            "predictedAddresses=x",
            "ODGovernor_Address=0x01",
        ],
    )
    def test_pass_through_rejects_document_keys(self, item: str):
        with pytest.raises(ProposalInputError):
            PassThroughParameters.from_inputs([item])

    def test_assemble_rejects_document_keys_in_values(self):
        with pytest.raises(ProposalInputError):
            assemble(
                "updateParameter", "sepolia", {}, None, PassThroughParameters({"network": "mainnet"})
            )


class TestProposalDocument:
    """Test ProposalDocument serialization and files."""

    def test_round_trip(self, tmp_path: Path):
        doc = assemble(
            "deployDenominatedOracle",
            "mainnet",
            {"ODGovernor": _addr(10), "DenominatedOracleFactory": _addr(16)},
            [_addr(60)],
            DenominatedOracleParameters(
                symbols=["WSTETH"],
                price_sources=[_addr(1)],
                denomination_price_sources=[_addr(2)],
                inverted=["false"],
            ),
        )
        path = save_proposal(doc, tmp_path / "gov-input" / "mainnet" / "prop.json")
        loaded = load_proposal(path)

        assert loaded == doc
        assert loaded.to_dict() == doc.to_dict()

    def test_array_length_in_file_is_ignored(self):
        data = {
            "proposalType": "deployDelayedOracle",
            "network": "anvil",
            "symbols": ["ARB"],
            "priceSources": [_addr(1)],
            "updateDelays": ["3600"],
            "arrayLength": 7,
        }
        assert ProposalDocument.from_dict(data).array_length == 1

    def test_from_dict_unknown_type(self):
        with pytest.raises(UnknownProposalTypeError):
            ProposalDocument.from_dict({"proposalType": "nope", "network": "anvil"})

    def test_pass_through_document_keeps_extra_keys(self):
        data = {
            "proposalType": "transferErc20",
            "network": "anvil",
            "ODGovernor_Address": _addr(10),
            "token": _addr(5),
            "amount": "1000",
            "predictedAddresses": {},
        }
        doc = ProposalDocument.from_dict(data)
        assert doc.parameters.values == {"token": _addr(5), "amount": "1000"}
        assert doc.resolved_addresses == {"ODGovernor": _addr(10)}
        assert doc.to_dict() == data


class TestProposalFiles:
    """Test clean_proposal, read_proposal_network and proposal_script_target."""

    def _write(self, path: Path, data) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2))
        return path

    def test_clean_blanks_addresses_and_predictions(self, tmp_path: Path):
        path = self._write(
            tmp_path / "prop.json",
            {
                "proposalType": "deployRelayerSet",
                "network": "anvil",
                "ODGovernor_Address": _addr(10),
                "symbols": ["ARB"],
                "predictedAddresses": {"ChainlinkRelayerChild": {"ARB": _addr(1)}},
            },
        )

        clean_proposal(path)

        data = json.loads(path.read_text())
        assert data["ODGovernor_Address"] == ""
        assert data["predictedAddresses"] == {}
        assert data["symbols"] == ["ARB"]

    def test_cleaned_file_reloads_and_reassembles(self, tmp_path: Path):
        doc = assemble(
            "deployRelayerSet", "anvil", RELAYER_RESOLVED, [_addr(41), _addr(42)], _relayer_parameters()
        )
        path = save_proposal(doc, tmp_path / "prop.json")
        clean_proposal(path)

        previous = load_proposal(path)
        with pytest.raises(ProposalInputError):
            assemble("deployRelayerSet", "anvil", {}, None, RelayerSetParameters(), previous=previous)

        rebuilt = assemble(
            "deployRelayerSet", "anvil", RELAYER_RESOLVED, None, RelayerSetParameters(), previous=previous
        )
        assert rebuilt.resolved_addresses == RELAYER_RESOLVED
        assert rebuilt.predicted_addresses == {}

    def test_read_proposal_network(self, tmp_path: Path):
        path = self._write(
            tmp_path / "gov-output" / "sepolia" / "prop.json",
            {"proposalType": "addCollateral", "network": "Sepolia"},
        )
        network, trimmed = read_proposal_network(path)
        assert network == "sepolia"
        assert trimmed == "/gov-output/sepolia/prop.json"

    def test_proposal_script_target(self, tmp_path: Path):
        path = self._write(tmp_path / "prop.json", {"proposalType": "addcollateral"})
        assert proposal_script_target(path) == (
            "script/testScripts/gov/GenerateProposal/"
            "GenerateAddCollateralProposal.s.sol:GenerateAddCollateralProposal"
        )

    @pytest.mark.parametrize(
        "reader", [load_proposal, clean_proposal, read_proposal_network, proposal_script_target]
    )
    def test_missing_file(self, tmp_path: Path, reader):
        with pytest.raises(ProposalInputError, match="not found"):
            reader(tmp_path / "nope.json")

    @pytest.mark.parametrize(
        "reader", [load_proposal, clean_proposal, read_proposal_network, proposal_script_target]
    )
    @pytest.mark.parametrize("content", ["{ not json", "[1, 2]"])
    def test_malformed_file(self, tmp_path: Path, reader, content: str):
        path = tmp_path / "prop.json"
        path.write_text(content)

        with pytest.raises(ProposalInputError):
            reader(path)
        assert path.read_text() == content

    def test_malformed_predicted_addresses(self, tmp_path: Path):
        path = self._write(
            tmp_path / "prop.json",
            {"proposalType": "deployRelayerSet", "network": "anvil", "predictedAddresses": {"X": 1}},
        )
        with pytest.raises(ProposalInputError):
            load_proposal(path)
