"""
Desired configuration loading.

The desired state is a JSON document mapping network names to router
configuration. It is validated once, every literal address is converted to
the canonical form for its network's chain family, and the result is an
immutable DesiredConfig that callers pass around explicitly.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from router_fleet.address import AddressCodec
from router_fleet.config import ChainConfig, ChainFamily
from router_fleet.exceptions import InvalidAddressFormat, InvalidConfig, UnsupportedNetworkError
from router_fleet.types import DesiredConfig, NetworkConfig, RouteConfig, is_deployment_ref

logger = logging.getLogger(__name__)


def _canonical(codec: AddressCodec, value: str, family: ChainFamily, where: str) -> str:
    if is_deployment_ref(value):
        return value
    try:
        return codec.to_canonical(value, family)
    except InvalidAddressFormat as e:
        raise InvalidConfig(f"{where}: {e}") from e


def _canonical_route(
    codec: AddressCodec, route: RouteConfig, family: ChainFamily, where: str
) -> RouteConfig:
    data = route.model_dump()
    if data["bridge_address"] is not None:
        data["bridge_address"] = _canonical(
            codec, data["bridge_address"], family, f"{where}.bridgeAddress"
        )
    if data["fee_manager"] is not None:
        data["fee_manager"] = _canonical(
            codec, data["fee_manager"], family, f"{where}.feeManager"
        )
    data["fee"]["receiver"] = _canonical(
        codec, data["fee"]["receiver"], family, f"{where}.fee.receiver"
    )
    data["executors"] = [
        _canonical(codec, e, family, f"{where}.executors") for e in data["executors"]
    ]
    data["deprecated_executors"] = [
        _canonical(codec, e, family, f"{where}.deprecatedExecutors")
        for e in data["deprecated_executors"]
    ]
    # re-validate: distinct spellings of one address collapse only once canonical
    return RouteConfig.model_validate(data)


def canonicalize_network(
    name: str, config: NetworkConfig, codec: AddressCodec | None = None
) -> NetworkConfig:
    """Convert every literal address of a network config to canonical form

    Raises:
        InvalidConfig: On an unknown network or a malformed address
    """
    codec = codec or AddressCodec()
    try:
        family = ChainConfig.get_family(name)
    except UnsupportedNetworkError as e:
        raise InvalidConfig(str(e)) from e

    updates: dict[str, Any] = {
        "wrapped_token": _canonical(codec, config.wrapped_token, family, f"{name}.wToken"),
    }
    for version, route in config.routes():
        updates[version] = _canonical_route(codec, route, family, f"{name}.{version}")
    return config.model_copy(update=updates)


def parse_desired_config(data: Any, codec: AddressCodec | None = None) -> DesiredConfig:
    """
    Validate a decoded desired-config document.

    Accepts either ``{"networks": {...}}`` or a bare ``{network: {...}}``
    mapping.

    Raises:
        InvalidConfig: If the document is malformed
    """
    if not isinstance(data, dict):
        raise InvalidConfig("desired config must be a JSON object")
    if "networks" not in data:
        data = {"networks": data}

    try:
        desired = DesiredConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidConfig(f"invalid desired config: {e}") from e

    codec = codec or AddressCodec()
    try:
        networks = {
            name: canonicalize_network(name, config, codec)
            for name, config in desired.networks.items()
        }
        return DesiredConfig(networks=networks)
    except ValidationError as e:
        raise InvalidConfig(f"invalid desired config: {e}") from e


def load_desired_config(path: str | Path, codec: AddressCodec | None = None) -> DesiredConfig:
    """
    Load and validate the desired configuration file.

    Raises:
        InvalidConfig: If the file is missing, not JSON or fails validation
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise InvalidConfig(f"desired config not found: {path}") from e
    except json.JSONDecodeError as e:
        raise InvalidConfig(f"desired config {path} is not valid JSON: {e}") from e

    desired = parse_desired_config(data, codec)
    logger.info("Loaded desired config for %d network(s) from %s", len(desired.networks), path)
    return desired
