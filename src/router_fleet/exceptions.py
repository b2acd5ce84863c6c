"""
router-fleet custom exception hierarchy
"""

from typing import Any, Sequence


class RouterFleetError(Exception):
    """router-fleet base exception"""

    pass


class InvalidAddressFormat(RouterFleetError, ValueError):
    """Address is not well-formed for the chain family"""

    def __init__(self, address: Any, reason: str = "malformed address"):
        self.address = address
        self.reason = reason
        super().__init__(f"Invalid address {address!r}: {reason}")


class ConfigurationError(RouterFleetError):
    """Configuration-related error"""

    pass


class InvalidConfig(ConfigurationError):
    """Desired configuration is malformed (never retried)"""

    pass


class UnsupportedNetworkError(ConfigurationError):
    """Unsupported network"""

    pass


class ArtifactNotFound(ConfigurationError):
    """Compiled contract artifact is missing"""

    pass


class ChainError(RouterFleetError):
    """Chain interaction error"""

    retryable = False


class RpcUnavailable(ChainError):
    """Transient transport failure, retried with backoff.

    ``tx_hash`` is set when the failure happened after a transaction was
    broadcast, so the caller can wait on it instead of resubmitting.
    """

    retryable = True

    def __init__(self, message: str, tx_hash: str | None = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class ContractNotFound(ChainError):
    """No contract code at the address"""

    def __init__(self, address: str, network: str = ""):
        self.address = address
        self.network = network
        where = f" on {network}" if network else ""
        super().__init__(f"No contract code at {address}{where}")


class TxReverted(ChainError):
    """On-chain precondition failed (reported, not retried)"""

    def __init__(self, reason: str, tx_hash: str | None = None):
        self.reason = reason
        self.tx_hash = tx_hash
        suffix = f" (tx {tx_hash})" if tx_hash else ""
        super().__init__(f"Transaction reverted: {reason}{suffix}")


class DeploymentError(RouterFleetError):
    """Deployment-related error"""

    pass


class AddressAlreadyDeployed(DeploymentError):
    """Code already exists at the deterministic address"""

    def __init__(self, contract_name: str, address: str):
        self.contract_name = contract_name
        self.address = address
        super().__init__(
            f"{contract_name} already deployed at {address}, "
            "change the salt to deploy another instance"
        )


class DeployVerificationFailed(DeploymentError):
    """Deployed address or code does not match what was expected"""

    pass


class DeploymentRecordConflict(DeploymentError):
    """A deployment record would silently change address"""

    def __init__(self, network: str, contract_name: str, existing: str, new: str):
        self.network = network
        self.contract_name = contract_name
        self.existing = existing
        self.new = new
        super().__init__(
            f"{network}/{contract_name} is recorded at {existing}, refusing to overwrite with {new}"
        )


class ReconciliationError(RouterFleetError):
    """Reconciliation-related error"""

    pass


class ReconciliationIncomplete(ReconciliationError):
    """State still diverges after a full apply pass"""

    def __init__(self, network: str, residual: Sequence[Any]):
        self.network = network
        self.residual = list(residual)
        super().__init__(
            f"{network} still diverges after apply: {len(self.residual)} action(s) remaining"
        )


class ReconciliationCancelled(ReconciliationError):
    """Reconciliation aborted between actions"""

    pass


class ImmutableStateMismatch(ReconciliationError):
    """Router state fixed at construction differs from the desired config"""

    def __init__(self, router: str, field: str, expected: str, actual: str):
        self.router = router
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"router {router} has {field} {actual}, desired {expected}; "
            "it is set at construction, so the router must be redeployed"
        )
