"""
router-fleet - Cross-chain router configuration reconciliation

Keeps router contracts on EVM, Tron and zkSync-style networks in line with a
declared desired configuration, and deploys them at deterministic addresses.
"""

__version__ = "0.1.0"

from router_fleet.actions import (
    Action,
    Authorize,
    Deploy,
    PlannedAction,
    SetBridge,
    SetFee,
    SetFeeManager,
    SetReferrerMaxFee,
)
from router_fleet.adapters import ChainAdapter, EvmAdapter, TronAdapter, ZkSyncAdapter
from router_fleet.address import AddressCodec
from router_fleet.config import ChainConfig, ChainFamily
from router_fleet.deployments import DeploymentResult, DeploymentStore, DeterministicDeployer
from router_fleet.diff import ConfigDiffEngine
from router_fleet.exceptions import (
    AddressAlreadyDeployed,
    ArtifactNotFound,
    ChainError,
    ConfigurationError,
    ContractNotFound,
    DeploymentError,
    DeploymentRecordConflict,
    DeployVerificationFailed,
    ImmutableStateMismatch,
    InvalidAddressFormat,
    InvalidConfig,
    ReconciliationCancelled,
    ReconciliationError,
    ReconciliationIncomplete,
    RouterFleetError,
    RpcUnavailable,
    TxReverted,
    UnsupportedNetworkError,
)
from router_fleet.reconciler import (
    ReconcileState,
    ReconciliationReport,
    Reconciler,
    StatusReport,
)
from router_fleet.types import (
    DesiredConfig,
    FeeConfig,
    NetworkConfig,
    ObservedState,
    RouteConfig,
    TxReceipt,
)

__all__ = [
    "__version__",
    # Types
    "DesiredConfig",
    "NetworkConfig",
    "RouteConfig",
    "FeeConfig",
    "ObservedState",
    "TxReceipt",
    # Actions
    "Action",
    "Authorize",
    "SetFee",
    "SetFeeManager",
    "SetBridge",
    "SetReferrerMaxFee",
    "Deploy",
    "PlannedAction",
    # Components
    "AddressCodec",
    "ChainAdapter",
    "EvmAdapter",
    "TronAdapter",
    "ZkSyncAdapter",
    "ChainConfig",
    "ChainFamily",
    "ConfigDiffEngine",
    "DeterministicDeployer",
    "DeploymentResult",
    "DeploymentStore",
    "Reconciler",
    "ReconcileState",
    "ReconciliationReport",
    "StatusReport",
    # Exceptions
    "RouterFleetError",
    "InvalidAddressFormat",
    "ConfigurationError",
    "InvalidConfig",
    "UnsupportedNetworkError",
    "ArtifactNotFound",
    "ChainError",
    "RpcUnavailable",
    "ContractNotFound",
    "TxReverted",
    "DeploymentError",
    "AddressAlreadyDeployed",
    "DeployVerificationFailed",
    "DeploymentRecordConflict",
    "ReconciliationError",
    "ReconciliationIncomplete",
    "ReconciliationCancelled",
    "ImmutableStateMismatch",
]
