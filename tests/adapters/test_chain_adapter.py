"""
Tests for the shared ChainAdapter behaviour (state reads, encoding, deploys)
"""

import pytest
from conftest import FACTORY, SIGNER_ADDRESS, ZERO

from router_fleet.actions import (
    Authorize,
    Deploy,
    SetBridge,
    SetFee,
    SetFeeManager,
    SetReferrerMaxFee,
)
from router_fleet.exceptions import (
    AddressAlreadyDeployed,
    ContractNotFound,
    InvalidAddressFormat,
    TxReverted,
)
from router_fleet.utils.create2 import build_init_code, compute_create2_address, hash_salt


class TestReadRouterState:
    @pytest.mark.anyio
    async def test_reads_and_canonicalizes(self, adapter, chain, addr):
        router, a, b = addr(0x100), addr(0xA), addr(0xB)
        chain.add_router(router, approved=(a,), feeReceiver=addr(0x200).lower(), routerFeeRate=30)

        state = await adapter.read_router_state(router.lower(), executors=(a, b))

        assert state.router == router
        assert state.authorized_executors == frozenset({a})
        assert state.fee_receiver == addr(0x200)
        assert state.fee_rate == 30
        assert state.owner == SIGNER_ADDRESS
        assert state.max_referrer_fee_rate == 0

    @pytest.mark.anyio
    async def test_without_referrer_fee(self, adapter, chain, addr):
        chain.add_router(addr(0x100))
        state = await adapter.read_router_state(addr(0x100), referrer_fee=False)
        assert state.max_referrer_fee_rate is None
        assert state.max_referrer_native_fee is None
        assert state.authorized_executors == frozenset()

    @pytest.mark.anyio
    async def test_no_code(self, adapter, addr):
        with pytest.raises(ContractNotFound) as exc_info:
            await adapter.read_router_state(addr(0x100))
        assert exc_info.value.network == "Bsc"

    @pytest.mark.anyio
    async def test_bad_router_address(self, adapter):
        with pytest.raises(InvalidAddressFormat):
            await adapter.read_router_state("0x1234")


class TestEncodeAction:
    def test_router_actions(self, adapter, addr):
        executor = addr(0xA)
        assert adapter.encode_action(Authorize(executor, True)) == (
            "setAuthorization",
            [[executor], True],
        )
        assert adapter.encode_action(SetFee(addr(0x200), 7000, 5)) == (
            "setFee",
            [addr(0x200), 7000, 5],
        )
        assert adapter.encode_action(SetBridge(ZERO)) == ("setBridgeAddress", [ZERO])
        assert adapter.encode_action(SetFeeManager(addr(0x500))) == ("setFeeManager", [addr(0x500)])
        assert adapter.encode_action(SetReferrerMaxFee(100, 10)) == ("setReferrerMaxFee", [100, 10])

    def test_deploy_is_not_a_router_action(self, adapter):
        with pytest.raises(TypeError):
            adapter.encode_action(Deploy("ButterRouterV4", "salt"))


class TestSendAction:
    @pytest.mark.anyio
    async def test_send_waits_for_receipt(self, adapter, chain, addr):
        router = addr(0x100)
        chain.add_router(router)

        receipt = await adapter.send_action(router, Authorize(addr(0xA), True))

        assert receipt.succeeded
        assert chain.sent == [(router, "setAuthorization", [[addr(0xA)], True])]

    @pytest.mark.anyio
    async def test_failed_receipt_raises(self, adapter, chain, addr):
        chain.add_router(addr(0x100))
        chain.failed_receipts.add(f"0x{1:064x}")
        with pytest.raises(TxReverted) as exc_info:
            await adapter.send_action(addr(0x100), SetBridge(addr(0x300)))
        assert exc_info.value.tx_hash == f"0x{1:064x}"


class TestDeploy:
    def test_compute_deploy_address(self, adapter, artifacts):
        artifact, encoded = adapter.encode_deployment("SwapAdapterV3", [SIGNER_ADDRESS])
        expected = compute_create2_address(
            FACTORY, hash_salt("adapter-v1"), build_init_code(artifact.bytecode, encoded)
        )
        assert adapter.compute_deploy_address("SwapAdapterV3", "adapter-v1", [SIGNER_ADDRESS]) == expected

    def test_salt_changes_address(self, adapter):
        first = adapter.compute_deploy_address("SwapAdapterV3", "a", [SIGNER_ADDRESS])
        second = adapter.compute_deploy_address("SwapAdapterV3", "b", [SIGNER_ADDRESS])
        assert first != second

    @pytest.mark.anyio
    async def test_deploy_lands_at_predicted_address(self, adapter, chain):
        predicted = adapter.compute_deploy_address("SwapAdapterV3", "s", [SIGNER_ADDRESS])
        address = await adapter.deploy("SwapAdapterV3", "s", [SIGNER_ADDRESS])

        assert address == predicted
        assert await adapter.get_code(address)

    @pytest.mark.anyio
    async def test_existing_code_sends_nothing(self, adapter, chain):
        predicted = adapter.compute_deploy_address("SwapAdapterV3", "s", [SIGNER_ADDRESS])
        chain.code[predicted.lower()] = b"\x60\x80"

        with pytest.raises(AddressAlreadyDeployed):
            await adapter.deploy("SwapAdapterV3", "s", [SIGNER_ADDRESS])
        assert chain.sent == []
