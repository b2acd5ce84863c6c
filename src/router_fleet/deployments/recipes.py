"""
Deploy recipes: constructor arguments and salt source per deployable contract
"""

from dataclasses import dataclass
from typing import Any, Callable

from router_fleet.config import ChainConfig
from router_fleet.exceptions import InvalidConfig
from router_fleet.types import NetworkConfig

# (deployer, network config) -> constructor args
ArgsBuilder = Callable[[str, NetworkConfig], tuple[Any, ...]]


@dataclass(frozen=True)
class DeployRecipe:
    contract_name: str
    salt_env: str
    build_args: ArgsBuilder

    def constructor_args(self, deployer: str, network: NetworkConfig) -> tuple[Any, ...]:
        return self.build_args(deployer, network)


def _router_args(version: str) -> ArgsBuilder:
    def build(deployer: str, network: NetworkConfig) -> tuple[Any, ...]:
        route = getattr(network, version)
        if route is None or not route.bridge_address:
            raise InvalidConfig(f"{version} bridge address is required to deploy its router")
        return (route.bridge_address, deployer, network.wrapped_token)

    return build


RECIPES: dict[str, DeployRecipe] = {
    "ButterRouterV2": DeployRecipe("ButterRouterV2", "ROUTER_V2_DEPLOY_SALT", _router_args("v2")),
    "ButterRouterV4": DeployRecipe("ButterRouterV4", "ROUTER_V4_DEPLOY_SALT", _router_args("v3")),
    "SwapAggregator": DeployRecipe(
        "SwapAggregator", "SWAP_AGG_DEPLOY_SALT", lambda deployer, net: (deployer, net.wrapped_token)
    ),
    "SwapAdapterV3": DeployRecipe(
        "SwapAdapterV3", "SWAP_ADAPTER_DEPLOY_SALT", lambda deployer, net: (deployer,)
    ),
}


def get_recipe(contract_name: str) -> DeployRecipe:
    """
    Raises:
        InvalidConfig: If the contract has no recipe
    """
    recipe = RECIPES.get(contract_name)
    if recipe is None:
        raise InvalidConfig(
            f"No deploy recipe for {contract_name}; expected one of {', '.join(sorted(RECIPES))}"
        )
    return recipe


def router_recipe(version: str) -> DeployRecipe:
    """Recipe deploying the router contract of a protocol version"""
    return get_recipe(ChainConfig.get_router_spec(version).contract_name)
