"""
Tests for deploy recipes
"""

import pytest

from router_fleet.deployments import get_recipe, router_recipe
from router_fleet.exceptions import InvalidConfig
from router_fleet.types import NetworkConfig


@pytest.fixture
def network(addr):
    return NetworkConfig.model_validate(
        {
            "wToken": addr(0x33),
            "v3": {
                "bridge": addr(0x44),
                "fee": {"receiver": addr(0x55), "feeRate": 0, "fixedFee": 0},
            },
        }
    )


def test_router_v4_args(network, addr):
    recipe = router_recipe("v3")
    assert recipe.contract_name == "ButterRouterV4"
    assert recipe.salt_env == "ROUTER_V4_DEPLOY_SALT"
    assert recipe.constructor_args(addr(0x1), network) == (addr(0x44), addr(0x1), addr(0x33))


def test_swap_aggregator_args(network, addr):
    assert get_recipe("SwapAggregator").constructor_args(addr(0x1), network) == (addr(0x1), addr(0x33))


def test_router_without_bridge(network, addr):
    with pytest.raises(InvalidConfig):
        router_recipe("v2").constructor_args(addr(0x1), network)


def test_unknown_contract():
    with pytest.raises(InvalidConfig):
        get_recipe("Nope")
