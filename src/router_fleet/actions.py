"""
Corrective actions produced by the diff engine and consumed by the reconciler
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Authorize:
    """Grant (flag=True) or revoke (flag=False) an executor"""

    executor: str
    flag: bool

    def to_dict(self) -> dict[str, Any]:
        return {"type": "authorize", "executor": self.executor, "flag": self.flag}


@dataclass(frozen=True)
class SetFee:
    receiver: str
    rate: int
    fixed: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": "setFee", "receiver": self.receiver, "rate": self.rate, "fixed": self.fixed}


@dataclass(frozen=True)
class SetBridge:
    address: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "setBridge", "address": self.address}


@dataclass(frozen=True)
class SetFeeManager:
    address: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "setFeeManager", "address": self.address}


@dataclass(frozen=True)
class SetReferrerMaxFee:
    rate: int
    native: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": "setReferrerMaxFee", "rate": self.rate, "native": self.native}


@dataclass(frozen=True)
class Deploy:
    """Deploy a contract at its salted address"""

    contract_name: str
    salt: str
    constructor_args: tuple[Any, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "deploy",
            "contractName": self.contract_name,
            "salt": self.salt,
            "constructorArgs": [str(a) for a in self.constructor_args],
        }


Action = Union[Authorize, SetFee, SetBridge, SetFeeManager, SetReferrerMaxFee, Deploy]

# Actions that target an existing router
RouterAction = Union[Authorize, SetFee, SetBridge, SetFeeManager, SetReferrerMaxFee]


@dataclass(frozen=True)
class PlannedAction:
    """An action bound to the router it applies to"""

    version: str
    router: str
    action: Action

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "router": self.router, **self.action.to_dict()}
