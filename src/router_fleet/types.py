"""
Type definitions for desired and observed router configuration
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from router_fleet.config import FEE_DENOMINATOR
from router_fleet.exceptions import InvalidConfig

# Executor entries resolved from the deployment record store
DEPLOYMENT_REF_PREFIX = "deployment:"

_DEPRECATED_KEYS = (
    "deprecated_executors",
    "deprecatedExecutors",
    "deprecatedExecutorAddresses",
    "removes",
)


def is_deployment_ref(value: str) -> bool:
    return value.startswith(DEPLOYMENT_REF_PREFIX)


def _dedupe(values: tuple[str, ...]) -> tuple[str, ...]:
    seen: set[str] = set()
    result = []
    for value in values:
        key = value.lower()
        if key not in seen:
            seen.add(key)
            result.append(value)
    return tuple(result)


class FeeConfig(BaseModel):
    """Router fee parameters"""

    receiver: str = Field(validation_alias=AliasChoices("receiver", "receiverAddress"))
    fee_rate: int = Field(
        ge=0, validation_alias=AliasChoices("fee_rate", "feeRate", "feeRateParts")
    )
    fixed_fee: int = Field(
        ge=0, validation_alias=AliasChoices("fixed_fee", "fixedFee", "fixedFeeAmount")
    )
    max_referrer_fee_rate: Optional[int] = Field(
        None, ge=0, validation_alias=AliasChoices("max_referrer_fee_rate", "maxReferrerFeeRate")
    )
    max_referrer_native_fee: Optional[int] = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("max_referrer_native_fee", "maxReferrerNativeFee"),
    )

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("fee_rate", "max_referrer_fee_rate")
    @classmethod
    def _within_denominator(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value > FEE_DENOMINATOR:
            raise ValueError(f"fee rate {value} exceeds denominator {FEE_DENOMINATOR}")
        return value

    @model_validator(mode="after")
    def _referrer_pair(self) -> "FeeConfig":
        if (self.max_referrer_fee_rate is None) != (self.max_referrer_native_fee is None):
            raise ValueError("maxReferrerFeeRate and maxReferrerNativeFee must be set together")
        return self

    @property
    def manages_referrer_fee(self) -> bool:
        return self.max_referrer_fee_rate is not None


class RouteConfig(BaseModel):
    """Desired configuration of one router (one protocol version)"""

    bridge_address: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("bridge_address", "bridgeAddress", "bridge", "mos"),
    )
    fee_manager: Optional[str] = Field(
        None, validation_alias=AliasChoices("fee_manager", "feeManager")
    )
    fee: FeeConfig
    executors: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("executors", "executorAddresses")
    )
    deprecated_executors: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices(*_DEPRECATED_KEYS)
    )

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("bridge_address", "fee_manager", mode="before")
    @classmethod
    def _empty_address(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("executors", "deprecated_executors")
    @classmethod
    def _unique(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _dedupe(value)

    @model_validator(mode="after")
    def _disjoint(self) -> "RouteConfig":
        overlap = {e.lower() for e in self.executors} & {
            e.lower() for e in self.deprecated_executors
        }
        if overlap:
            raise ValueError(
                f"executors both desired and deprecated: {', '.join(sorted(overlap))}"
            )
        return self


class NetworkConfig(BaseModel):
    """Desired configuration of every router on one network"""

    wrapped_token: str = Field(
        validation_alias=AliasChoices("wrapped_token", "wrappedToken", "wToken")
    )
    v2: Optional[RouteConfig] = None
    v3: Optional[RouteConfig] = None

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _merge_network_removes(cls, data: Any) -> Any:
        """A network-level ``removes`` list applies to every route"""
        if not isinstance(data, dict) or not data.get("removes"):
            return data
        data = dict(data)
        removes = list(data.pop("removes"))
        for version in ("v2", "v3"):
            route = data.get(version)
            if not isinstance(route, dict):
                continue
            route = dict(route)
            existing: list[str] = []
            for key in _DEPRECATED_KEYS:
                existing.extend(route.pop(key, None) or [])
            route["deprecatedExecutors"] = existing + removes
            data[version] = route
        return data

    def routes(self) -> list[tuple[str, RouteConfig]]:
        """Configured routes in protocol-version order"""
        return [(v, r) for v, r in (("v2", self.v2), ("v3", self.v3)) if r is not None]


class DesiredConfig(BaseModel):
    """Immutable desired state of the whole fleet"""

    networks: Mapping[str, NetworkConfig]

    class Config:
        frozen = True

    @field_validator("networks")
    @classmethod
    def _read_only(cls, value: Mapping[str, NetworkConfig]) -> Mapping[str, NetworkConfig]:
        return MappingProxyType(dict(value))

    def get(self, network: str) -> NetworkConfig:
        config = self.networks.get(network)
        if config is None:
            raise InvalidConfig(f"No desired configuration for network {network}")
        return config

    def names(self) -> list[str]:
        return sorted(self.networks)


@dataclass(frozen=True)
class ObservedState:
    """Live on-chain mirror of one router, valid for a single pass"""

    router: str
    owner: str
    fee_manager: str
    bridge_address: str
    wrapped_token: str
    fee_receiver: str
    fee_rate: int
    fixed_fee: int
    authorized_executors: frozenset[str] = field(default_factory=frozenset)
    max_referrer_fee_rate: Optional[int] = None
    max_referrer_native_fee: Optional[int] = None

    def is_authorized(self, executor: str) -> bool:
        return executor.lower() in {e.lower() for e in self.authorized_executors}

    def to_dict(self) -> dict[str, Any]:
        return {
            "router": self.router,
            "owner": self.owner,
            "feeManager": self.fee_manager,
            "bridgeAddress": self.bridge_address,
            "wrappedToken": self.wrapped_token,
            "feeReceiver": self.fee_receiver,
            "feeRate": self.fee_rate,
            "fixedFee": self.fixed_fee,
            "maxReferrerFeeRate": self.max_referrer_fee_rate,
            "maxReferrerNativeFee": self.max_referrer_native_fee,
            "authorizedExecutors": sorted(self.authorized_executors),
        }


@dataclass(frozen=True)
class TxReceipt:
    """Receipt of an included transaction"""

    tx_hash: str
    block_number: int | None = None
    status: str = "confirmed"

    @property
    def succeeded(self) -> bool:
        return self.status == "confirmed"

    def to_dict(self) -> dict[str, Any]:
        return {"txHash": self.tx_hash, "blockNumber": self.block_number, "status": self.status}
