"""
Runtime settings

Loaded from the environment, after reading any .env files, once per run.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from router_fleet.deployments.recipes import RECIPES
from router_fleet.exceptions import InvalidConfig
from router_fleet.signers.tron_signer import DEFAULT_FEE_LIMIT

# Salt env var per deployable contract
SALT_ENV_VARS: dict[str, str] = {name: r.salt_env for name, r in RECIPES.items()}


@dataclass(frozen=True)
class Settings:
    """Operator settings for one run"""

    # Keys
    evm_private_key: Optional[str] = None
    tron_private_key: Optional[str] = None

    # Files
    desired_config_path: Path = Path("configs/routers.json")
    deployments_path: Path = Path("deployments/deploy.json")
    artifacts_path: Path = Path("artifacts")
    zk_artifacts_path: Path = Path("artifacts-zk")

    # Execution
    max_workers: int = 4
    rpc_attempts: int = 3
    send_attempts: int = 3
    backoff_base: float = 1.0
    tx_timeout: float = 120
    tron_fee_limit: int = DEFAULT_FEE_LIMIT

    salts: dict[str, str] = field(default_factory=dict)

    @property
    def has_evm_key(self) -> bool:
        return bool(self.evm_private_key)

    @property
    def has_tron_key(self) -> bool:
        return bool(self.tron_private_key)

    def get_salt(self, contract_name: str) -> Optional[str]:
        """Deploy salt configured for a contract, if any"""
        return self.salts.get(contract_name)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidConfig(f"{name} must be an integer, got {raw!r}") from e


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise InvalidConfig(f"{name} must be a number, got {raw!r}") from e


def load_settings(env_paths: Optional[list[Path]] = None) -> Settings:
    """
    Load settings from .env files and the environment.

    Args:
        env_paths: List of .env file paths to load (in order); defaults to
            ``./.env``. Variables already set in the environment win.

    Returns:
        Settings with loaded values
    """
    if env_paths is None:
        env_paths = [Path.cwd() / ".env"]

    for path in env_paths:
        if path.exists():
            load_dotenv(path)

    settings = Settings(
        evm_private_key=os.getenv("PRIVATE_KEY"),
        tron_private_key=os.getenv("TRON_PRIVATE_KEY"),
        desired_config_path=Path(os.getenv("DESIRED_CONFIG_PATH", "configs/routers.json")),
        deployments_path=Path(os.getenv("DEPLOYMENTS_PATH", "deployments/deploy.json")),
        artifacts_path=Path(os.getenv("ARTIFACTS_PATH", "artifacts")),
        zk_artifacts_path=Path(os.getenv("ZK_ARTIFACTS_PATH", "artifacts-zk")),
        max_workers=_int_env("MAX_WORKERS", 4),
        rpc_attempts=_int_env("RPC_ATTEMPTS", 3),
        send_attempts=_int_env("SEND_ATTEMPTS", 3),
        backoff_base=_float_env("BACKOFF_BASE", 1.0),
        tx_timeout=_float_env("TX_TIMEOUT", 120),
        tron_fee_limit=_int_env("TRON_FEE_LIMIT", DEFAULT_FEE_LIMIT),
        salts={
            name: os.environ[var]
            for name, var in SALT_ENV_VARS.items()
            if os.getenv(var)
        },
    )
    if settings.max_workers < 1:
        raise InvalidConfig("MAX_WORKERS must be at least 1")
    if settings.rpc_attempts < 1 or settings.send_attempts < 1:
        raise InvalidConfig("RPC_ATTEMPTS and SEND_ATTEMPTS must be at least 1")
    return settings
