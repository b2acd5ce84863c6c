"""
Tests for desired configuration parsing and canonicalization
"""

import json
from pathlib import Path

import pytest

from router_fleet.address import AddressCodec
from router_fleet.config import ChainFamily
from router_fleet.desired import load_desired_config, parse_desired_config
from router_fleet.exceptions import InvalidConfig

EXAMPLE = Path(__file__).resolve().parents[2] / "configs" / "routers.example.json"

WTOKEN = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"
RECEIVER = "0x51c700e5be790c91f14d42f85ca90aed9f2d142e"
ONEINCH = "0x1111111254eeb25477b68fb85ed929f73a960582"
OLD = "0x1b02da8cb0d097eb8d57a175b88c7d8b47997506"


def bsc(**route):
    route.setdefault("fee", {"receiver": RECEIVER, "feeRate": 0, "fixedFee": 0})
    return {"Bsc": {"wToken": WTOKEN, "v3": route}}


def canonical(address: str) -> str:
    return AddressCodec().to_canonical(address, ChainFamily.EVM)


class TestParse:
    def test_bare_mapping_and_wrapped_form_agree(self):
        document = bsc(executors=[ONEINCH])
        assert parse_desired_config(document) == parse_desired_config({"networks": document})

    def test_addresses_are_canonical(self):
        desired = parse_desired_config(bsc(executors=[ONEINCH], bridge=OLD))
        route = desired.get("Bsc").v3

        assert desired.get("Bsc").wrapped_token == canonical(WTOKEN)
        assert route.fee.receiver == canonical(RECEIVER)
        assert route.executors == (canonical(ONEINCH),)
        assert route.bridge_address == canonical(OLD)

    def test_fee_manager_is_canonical(self):
        desired = parse_desired_config(bsc(feeManager=OLD))
        assert desired.get("Bsc").v3.fee_manager == canonical(OLD)

    def test_blank_fee_manager_is_unmanaged(self):
        assert parse_desired_config(bsc(feeManager=" ")).get("Bsc").v3.fee_manager is None

    def test_networks_are_read_only(self):
        desired = parse_desired_config(bsc())
        with pytest.raises(TypeError):
            desired.networks["Eth"] = desired.get("Bsc")
        assert desired.names() == ["Bsc"]

    def test_aliases(self):
        desired = parse_desired_config(
            {
                "Bsc": {
                    "wrappedToken": WTOKEN,
                    "v2": {
                        "mos": OLD,
                        "fee": {"receiverAddress": RECEIVER, "feeRateParts": "30", "fixedFeeAmount": "5"},
                        "executorAddresses": [ONEINCH],
                        "deprecatedExecutorAddresses": [RECEIVER],
                    },
                }
            }
        )
        route = desired.get("Bsc").v2
        assert route.bridge_address == canonical(OLD)
        assert (route.fee.fee_rate, route.fee.fixed_fee) == (30, 5)
        assert route.deprecated_executors == (canonical(RECEIVER),)

    def test_network_removes_apply_to_every_route(self):
        document = bsc(executors=[ONEINCH], deprecatedExecutors=[RECEIVER])
        document["Bsc"]["v2"] = {"fee": {"receiver": RECEIVER, "feeRate": 0, "fixedFee": 0}}
        document["Bsc"]["removes"] = [OLD]

        network = parse_desired_config(document).get("Bsc")

        assert network.v3.deprecated_executors == (canonical(RECEIVER), canonical(OLD))
        assert network.v2.deprecated_executors == (canonical(OLD),)

    def test_duplicate_spellings_collapse(self):
        desired = parse_desired_config(bsc(executors=[ONEINCH, canonical(ONEINCH)]))
        assert desired.get("Bsc").v3.executors == (canonical(ONEINCH),)

    def test_deployment_refs_kept(self):
        desired = parse_desired_config(bsc(executors=[ONEINCH, "deployment:SwapAdapterV3"]))
        assert desired.get("Bsc").v3.executors[1] == "deployment:SwapAdapterV3"

    def test_empty_bridge_is_unmanaged(self):
        desired = parse_desired_config(bsc(bridge=""))
        assert desired.get("Bsc").v3.bridge_address is None

    def test_tron_addresses(self):
        desired = parse_desired_config(
            {
                "Tron": {
                    "wToken": "TNUC9Qb1rRpS5CbWLmNMxXBjyFoydXjWFR",
                    "v3": {
                        "fee": {"receiver": RECEIVER, "feeRate": 0, "fixedFee": 0},
                        "executors": ["TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"],
                    },
                }
            }
        )
        assert desired.get("Tron").v3.executors[0].lower() == "0xa614f803b6fd780986a42c78ec9c7f77e6ded13c"

    def test_names_sorted(self):
        document = bsc()
        document["Eth"] = {"wToken": WTOKEN}
        assert parse_desired_config(document).names() == ["Bsc", "Eth"]


class TestInvalid:
    @pytest.mark.parametrize(
        "document",
        [
            [],
            {"Bsc": {"v3": {}}},
            bsc(executors=["0x1234"]),
            bsc(fee={"receiver": RECEIVER, "feeRate": 1_000_001, "fixedFee": 0}),
            bsc(fee={"receiver": RECEIVER, "feeRate": 0, "fixedFee": -1}),
            bsc(fee={"receiver": RECEIVER, "feeRate": 0, "fixedFee": 0, "maxReferrerFeeRate": 10}),
            bsc(executors=[ONEINCH], deprecatedExecutors=[ONEINCH]),
            {"Atlantis": {"wToken": WTOKEN}},
        ],
    )
    def test_rejected(self, document):
        with pytest.raises(InvalidConfig):
            parse_desired_config(document)

    def test_overlap_across_spellings(self):
        with pytest.raises(InvalidConfig):
            parse_desired_config(bsc(executors=[ONEINCH], deprecatedExecutors=[canonical(ONEINCH)]))

    def test_bad_evm_checksum(self):
        good = canonical(ONEINCH)
        bad = good[:2] + good[2:].swapcase()
        with pytest.raises(InvalidConfig):
            parse_desired_config(bsc(executors=[bad]))

    def test_unknown_network_lookup(self):
        with pytest.raises(InvalidConfig):
            parse_desired_config(bsc()).get("Eth")


class TestLoad:
    def test_example_file(self):
        desired = load_desired_config(EXAMPLE)

        assert desired.names() == ["Bsc", "Tron"]
        bsc_config = desired.get("Bsc")
        assert bsc_config.v3.fee.max_referrer_fee_rate == 10000
        assert bsc_config.v3.executors[-1] == "deployment:SwapAdapterV3"
        assert canonical(OLD) in bsc_config.v2.deprecated_executors
        assert desired.get("Tron").v3.bridge_address is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidConfig, match="not found"):
            load_desired_config(tmp_path / "nope.json")

    def test_not_json(self, tmp_path):
        path = tmp_path / "routers.json"
        path.write_text("{not json")
        with pytest.raises(InvalidConfig):
            load_desired_config(path)

    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "routers.json"
        path.write_text(json.dumps({"networks": bsc(executors=[ONEINCH])}))
        assert load_desired_config(path) == parse_desired_config(bsc(executors=[ONEINCH]))
