"""
Tests for DeterministicDeployer
"""

import asyncio

import pytest

from router_fleet.deployments import DeterministicDeployer
from router_fleet.exceptions import (
    AddressAlreadyDeployed,
    DeployVerificationFailed,
)

SALT = "router-fleet-test"


@pytest.fixture
def constructor_args(addr):
    return (addr(0xB1), addr(0xD1), addr(0xE1))


@pytest.fixture
def deployer(adapter, store):
    return DeterministicDeployer(adapter, store, backoff_base=0)


class TestPredict:
    def test_predict_is_pure_and_stable(self, deployer, chain, constructor_args):
        first = deployer.predict("ButterRouterV4", constructor_args, SALT)
        second = deployer.predict("ButterRouterV4", constructor_args, SALT)
        assert first.address == second.address
        assert first.deployed is False
        assert chain.sent == []

    def test_salt_and_args_change_address(self, deployer, constructor_args, addr):
        base = deployer.predict("ButterRouterV4", constructor_args, SALT).address
        assert deployer.predict("ButterRouterV4", constructor_args, SALT + "-2").address != base
        other_args = (addr(0xB2),) + constructor_args[1:]
        assert deployer.predict("ButterRouterV4", other_args, SALT).address != base

    def test_encoded_args_exposed_for_verification(self, deployer, constructor_args):
        result = deployer.predict("ButterRouterV4", constructor_args, SALT)
        # three static address words
        assert len(bytes.fromhex(result.encoded_args[2:])) == 96
        assert result.to_dict()["saltHash"].startswith("0x")


class TestDeploy:
    @pytest.mark.anyio
    async def test_deploy_records_predicted_address(self, deployer, store, chain, constructor_args):
        predicted = deployer.predict("ButterRouterV4", constructor_args, SALT).address
        result = await deployer.deploy("ButterRouterV4", constructor_args, SALT)

        assert result.address == predicted
        assert store.get("Bsc", "ButterRouterV4") == predicted
        assert len(chain.sent) == 1
        assert chain.sent[0][1] == "deploy"

    @pytest.mark.anyio
    async def test_second_deploy_sends_nothing(self, deployer, store, chain, constructor_args):
        await deployer.deploy("ButterRouterV4", constructor_args, SALT)
        sent = len(chain.sent)

        with pytest.raises(AddressAlreadyDeployed):
            await deployer.deploy("ButterRouterV4", constructor_args, SALT)
        assert len(chain.sent) == sent

    @pytest.mark.anyio
    async def test_existing_code_blocks_deploy_without_record(
        self, adapter, chain, constructor_args
    ):
        from router_fleet.deployments import DeploymentStore

        await DeterministicDeployer(adapter, DeploymentStore.in_memory()).deploy(
            "ButterRouterV4", constructor_args, SALT
        )
        sent = len(chain.sent)

        # fresh records, same chain: the code check alone must stop it
        with pytest.raises(AddressAlreadyDeployed):
            await DeterministicDeployer(adapter, DeploymentStore.in_memory()).deploy(
                "ButterRouterV4", constructor_args, SALT
            )
        assert len(chain.sent) == sent

    @pytest.mark.anyio
    async def test_redeploy_with_new_salt_replaces_record(self, deployer, store, constructor_args):
        first = await deployer.deploy("ButterRouterV4", constructor_args, SALT)
        second = await deployer.deploy("ButterRouterV4", constructor_args, SALT + "-v2", redeploy=True)
        assert second.address != first.address
        assert store.get("Bsc", "ButterRouterV4") == second.address

    @pytest.mark.anyio
    async def test_code_hash_mismatch(self, deployer, store, chain, constructor_args):
        chain.runtime_code = bytes.fromhex("deadbeef")
        with pytest.raises(DeployVerificationFailed):
            await deployer.deploy("ButterRouterV4", constructor_args, SALT)
        assert store.get("Bsc", "ButterRouterV4") is None

    @pytest.mark.anyio
    async def test_concurrent_deploys_of_one_key(self, deployer, chain, constructor_args):
        results = await asyncio.gather(
            deployer.deploy("ButterRouterV4", constructor_args, SALT),
            deployer.deploy("ButterRouterV4", constructor_args, SALT),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        assert len(errors) == 1
        assert isinstance(errors[0], AddressAlreadyDeployed)
        assert [m for _, m, _ in chain.sent] == ["deploy"]

