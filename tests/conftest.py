"""
Pytest configuration and fixtures

An in-memory chain stands in for RPC nodes: FakeAdapter subclasses the real
ChainAdapter, so state reads, action encoding and deployment checks go
through production code and only the transport is simulated.
"""

import json
from typing import Any

import pytest
from eth_account import Account
from eth_utils import to_checksum_address

from router_fleet.abi import DEPLOY_FACTORY_ABI
from router_fleet.adapters.base import ChainAdapter
from router_fleet.artifacts import ArtifactStore, ContractArtifact
from router_fleet.config import ChainFamily
from router_fleet.deployments.store import DeploymentStore
from router_fleet.exceptions import TxReverted
from router_fleet.signers.base import TransactionSigner
from router_fleet.types import TxReceipt
from router_fleet.utils.create2 import build_init_code, compute_create2_address

FACTORY = "0x6258e4d2950757A749a4d4683A7342261ce12471"
ZERO = "0x0000000000000000000000000000000000000000"
RUNTIME_CODE = bytes.fromhex("6080604052348015600f57600080fd5b50")

MOCK_EVM_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
SIGNER_ADDRESS = Account.from_key(MOCK_EVM_PRIVATE_KEY).address

CONSTRUCTORS = {
    "ButterRouterV2": ["address", "address", "address"],
    "ButterRouterV4": ["address", "address", "address"],
    "SwapAggregator": ["address", "address"],
    "SwapAdapterV3": ["address"],
}


def address(n: int) -> str:
    return to_checksum_address(f"0x{n:040x}")


# routers on the fake chain are built for this wrapped native token
WTOKEN = address(0x400)


def default_router_state() -> dict[str, Any]:
    return {
        "owner": SIGNER_ADDRESS,
        "feeManager": SIGNER_ADDRESS,
        "bridgeAddress": ZERO,
        "wToken": WTOKEN,
        "feeReceiver": ZERO,
        "routerFeeRate": 0,
        "routerFixedFee": 0,
        "maxFeeRate": 0,
        "maxNativeFee": 0,
        "approved": set(),
    }


class FakeChain:
    """Router contracts and code keyed by lowercase address"""

    def __init__(self) -> None:
        self.code: dict[str, bytes] = {}
        self.routers: dict[str, dict[str, Any]] = {}
        self.sent: list[tuple[str, str, list[Any]]] = []
        self.send_errors: dict[int, Exception] = {}
        self.receipt_errors: list[Exception] = []
        self.read_errors: list[Exception] = []
        self.failed_receipts: set[str] = set()
        self.runtime_code = RUNTIME_CODE
        self.block = 100

    def add_router(self, router: str, approved: tuple[str, ...] = (), **state: Any) -> dict:
        entry = default_router_state()
        entry.update(state)
        entry["approved"] = {a.lower() for a in approved}
        self.code[router.lower()] = self.runtime_code
        self.routers[router.lower()] = entry
        return entry

    def router(self, router: str) -> dict[str, Any]:
        return self.routers[router.lower()]

    def read(self, contract: str, method: str, *args: Any) -> Any:
        entry = self.routers[contract.lower()]
        if method == "approved":
            return args[0].lower() in entry["approved"]
        return entry[method]

    def send(self, contract: str, method: str, args: list[Any]) -> str:
        index = len(self.sent)
        self.sent.append((contract, method, list(args)))
        if index in self.send_errors:
            raise self.send_errors[index]

        if method == "deploy":
            salt, init_code, _ = args
            target = compute_create2_address(contract, salt, init_code).lower()
            if target in self.code:
                raise TxReverted("create2 collision")
            self.code[target] = self.runtime_code
            self.routers[target] = default_router_state()
        else:
            entry = self.routers[contract.lower()]
            if method == "setAuthorization":
                executors, flag = args
                for executor in executors:
                    if flag:
                        entry["approved"].add(executor.lower())
                    else:
                        entry["approved"].discard(executor.lower())
            elif method == "setFee":
                entry["feeReceiver"], entry["routerFeeRate"], entry["routerFixedFee"] = args
            elif method == "setBridgeAddress":
                entry["bridgeAddress"] = args[0]
            elif method == "setFeeManager":
                entry["feeManager"] = args[0]
            elif method == "setReferrerMaxFee":
                entry["maxFeeRate"], entry["maxNativeFee"] = args
            else:
                raise TxReverted(f"unknown method {method}")

        self.block += 1
        return f"0x{index + 1:064x}"


class FakeSigner(TransactionSigner):
    def __init__(self, chain: FakeChain, address: str = SIGNER_ADDRESS) -> None:
        self.chain = chain
        self.address = address

    def get_address(self) -> str:
        return self.address

    async def write_contract(self, contract_address, abi, method, args) -> str:
        return self.chain.send(contract_address, method, args)

    async def wait_for_transaction_receipt(self, tx_hash, timeout=120) -> TxReceipt:
        if self.chain.receipt_errors:
            raise self.chain.receipt_errors.pop(0)
        status = "failed" if tx_hash in self.chain.failed_receipts else "confirmed"
        return TxReceipt(tx_hash=tx_hash, block_number=self.chain.block, status=status)


class FakeAdapter(ChainAdapter):
    family = ChainFamily.EVM

    def __init__(self, chain: FakeChain, artifacts: ArtifactStore, network: str = "Bsc") -> None:
        super().__init__(network, FakeSigner(chain), artifacts)
        self.chain = chain

    async def call(self, address, abi, method, *args):
        return self.chain.read(address, method, *args)

    async def get_code(self, address) -> bytes:
        if self.chain.read_errors:
            raise self.chain.read_errors.pop(0)
        return self.chain.code.get(address.lower(), b"")

    def _derive_deploy_address(self, artifact: ContractArtifact, salt, encoded_args) -> str:
        return compute_create2_address(FACTORY, salt, build_init_code(artifact.bytecode, encoded_args))

    async def _submit_deploy(self, artifact: ContractArtifact, salt, encoded_args) -> str:
        init_code = build_init_code(artifact.bytecode, encoded_args)
        return await self._signer.write_contract(FACTORY, DEPLOY_FACTORY_ABI, "deploy", [salt, init_code, 0])


def write_artifact(root, name: str, inputs: list[str], runtime: bytes = RUNTIME_CODE) -> None:
    folder = root / "contracts" / f"{name}.sol"
    folder.mkdir(parents=True, exist_ok=True)
    abi = [
        {
            "type": "constructor",
            "stateMutability": "nonpayable",
            "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(inputs)],
        }
    ]
    data = {
        "contractName": name,
        "abi": abi,
        # creation code differs per contract so their addresses differ
        "bytecode": "0x6080604052" + name.encode().hex(),
        "deployedBytecode": "0x" + runtime.hex(),
    }
    (folder / f"{name}.json").write_text(json.dumps(data))
    (folder / f"{name}.dbg.json").write_text(json.dumps({"buildInfo": "../build-info/x.json"}))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def mock_tron_private_key():
    """Mock TRON private key for tests"""
    return "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


@pytest.fixture
def mock_evm_private_key():
    """Mock EVM private key for tests"""
    return MOCK_EVM_PRIVATE_KEY


@pytest.fixture
def artifacts_dir(tmp_path):
    root = tmp_path / "artifacts"
    for name, inputs in CONSTRUCTORS.items():
        write_artifact(root, name, inputs)
    return root


@pytest.fixture
def artifacts(artifacts_dir):
    return ArtifactStore(artifacts_dir)


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def make_adapter(chain, artifacts):
    def make(network: str = "Bsc", fake_chain: FakeChain | None = None) -> FakeAdapter:
        return FakeAdapter(fake_chain or chain, artifacts, network)

    return make


@pytest.fixture
def adapter(make_adapter):
    return make_adapter()


@pytest.fixture
def store():
    return DeploymentStore.in_memory()


@pytest.fixture
def addr():
    """Deterministic checksummed test address from an integer"""
    return address
