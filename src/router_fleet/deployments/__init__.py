"""
Deterministic deployments and their records
"""

from router_fleet.deployments.deployer import DeploymentResult, DeterministicDeployer
from router_fleet.deployments.recipes import RECIPES, DeployRecipe, get_recipe, router_recipe
from router_fleet.deployments.store import DeploymentStore

__all__ = [
    "DeployRecipe",
    "DeploymentResult",
    "DeploymentStore",
    "DeterministicDeployer",
    "RECIPES",
    "get_recipe",
    "router_recipe",
]
