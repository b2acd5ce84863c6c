"""
Shared ABI definitions for smart contracts
"""

import json
from typing import Any, List


def _view(name: str, output: str, inputs: List[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs or [],
        "outputs": [{"name": "", "type": output}],
    }


def _write(name: str, inputs: List[dict[str, Any]]) -> dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": inputs,
        "outputs": [],
    }


# Butter router views and owner-only setters used for reconciliation
ROUTER_ABI: List[dict[str, Any]] = [
    _view("owner", "address"),
    _view("feeManager", "address"),
    _view("bridgeAddress", "address"),
    _view("wToken", "address"),
    _view("feeReceiver", "address"),
    _view("routerFeeRate", "uint256"),
    _view("routerFixedFee", "uint256"),
    _view("approved", "bool", [{"name": "executor", "type": "address"}]),
    _write(
        "setAuthorization",
        [
            {"name": "executors", "type": "address[]"},
            {"name": "flag", "type": "bool"},
        ],
    ),
    _write(
        "setFee",
        [
            {"name": "feeReceiver", "type": "address"},
            {"name": "feeRate", "type": "uint256"},
            {"name": "fixedFee", "type": "uint256"},
        ],
    ),
    _write("setBridgeAddress", [{"name": "bridgeAddress", "type": "address"}]),
    _write("setFeeManager", [{"name": "feeManager", "type": "address"}]),
]

# Referrer fee caps exist on ButterRouterV4 only
ROUTER_REFERRER_FEE_ABI: List[dict[str, Any]] = [
    _view("maxFeeRate", "uint256"),
    _view("maxNativeFee", "uint256"),
    _write(
        "setReferrerMaxFee",
        [
            {"name": "rate", "type": "uint256"},
            {"name": "native", "type": "uint256"},
        ],
    ),
]

ROUTER_V4_ABI: List[dict[str, Any]] = ROUTER_ABI + ROUTER_REFERRER_FEE_ABI

# Salted deploy factory (same interface on EVM and TVM)
DEPLOY_FACTORY_ABI: List[dict[str, Any]] = [
    _write(
        "deploy",
        [
            {"name": "salt", "type": "bytes32"},
            {"name": "creationCode", "type": "bytes"},
            {"name": "value", "type": "uint256"},
        ],
    ),
    _view("getAddress", "address", [{"name": "salt", "type": "bytes32"}]),
]

# zkSync system ContractDeployer
ZKSYNC_CONTRACT_DEPLOYER_ABI: List[dict[str, Any]] = [
    {
        "name": "create2",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "salt", "type": "bytes32"},
            {"name": "bytecodeHash", "type": "bytes32"},
            {"name": "input", "type": "bytes"},
        ],
        "outputs": [{"name": "", "type": "address"}],
    },
]


def get_router_abi(referrer_fee: bool = True) -> List[dict[str, Any]]:
    return ROUTER_V4_ABI if referrer_fee else ROUTER_ABI


def get_abi_json(abi: List[dict[str, Any]]) -> str:
    """Get ABI as JSON string"""
    return json.dumps(abi)
