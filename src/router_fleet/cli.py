"""
router-fleet command line

Usage:
    router-fleet reconcile Bsc Tron          # reconcile listed networks
    router-fleet reconcile --all             # every network in the config
    router-fleet status Bsc                  # read and plan, send nothing
    router-fleet deploy Bsc ButterRouterV4   # salted deploy + record
    router-fleet predict Bsc ButterRouterV4  # address only

Results are printed as JSON on stdout; logs go to stderr.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from router_fleet.adapters.base import ChainAdapter
from router_fleet.adapters.factory import create_adapter
from router_fleet.deployments import DeploymentStore, DeterministicDeployer, get_recipe
from router_fleet.desired import load_desired_config
from router_fleet.exceptions import ConfigurationError, InvalidConfig, RouterFleetError
from router_fleet.logging_config import setup_logging
from router_fleet.reconciler import Reconciler
from router_fleet.settings import Settings, load_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _parse_routers(values: Optional[list[str]]) -> dict[str, str]:
    routers = {}
    for value in values or []:
        version, sep, address = value.partition("=")
        if not sep or not address:
            raise InvalidConfig(f"--router expects VERSION=ADDRESS, got {value!r}")
        routers[version] = address
    return routers


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="router-fleet",
        description="Reconcile cross-chain router configuration",
    )
    parser.add_argument(
        "--env-file",
        action="append",
        type=Path,
        help=".env file to load (repeatable, default ./.env)",
    )
    parser.add_argument("--config", type=Path, help="Desired config JSON (default DESIRED_CONFIG_PATH)")
    parser.add_argument("--deployments", type=Path, help="Deployment records JSON (default DEPLOYMENTS_PATH)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    reconcile = sub.add_parser("reconcile", help="Converge routers to the desired config")
    reconcile.add_argument("networks", nargs="*", help="Networks to reconcile")
    reconcile.add_argument("--all", action="store_true", help="Every network in the config")
    reconcile.add_argument(
        "--router",
        action="append",
        metavar="VERSION=ADDRESS",
        help="Router address override (single network only)",
    )
    reconcile.add_argument(
        "--deploy-missing",
        action="store_true",
        help="Deploy routers and referenced contracts that have no record",
    )

    status = sub.add_parser("status", help="Show live state and pending actions")
    status.add_argument("networks", nargs="+", help="Networks to inspect")
    status.add_argument("--router", action="append", metavar="VERSION=ADDRESS")

    for name, help_text in (
        ("deploy", "Deploy a contract at its salted address"),
        ("predict", "Print the salted address of a contract"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("network")
        cmd.add_argument("contract")
        cmd.add_argument("--salt", help="Salt (default from the contract's salt env var)")
        cmd.add_argument(
            "--arg",
            action="append",
            dest="args",
            help="Constructor argument (repeatable, default from the deploy recipe)",
        )
        if name == "deploy":
            cmd.add_argument(
                "--redeploy",
                action="store_true",
                help="Replace an existing record (requires a new salt)",
            )

    return parser


class _Context:
    """What every command needs, built once from settings and flags"""

    def __init__(self, args: argparse.Namespace, settings: Settings) -> None:
        self.settings = settings
        self.config_path = args.config or settings.desired_config_path
        self.store = DeploymentStore(args.deployments or settings.deployments_path)
        self._desired = None

    @property
    def desired(self):
        if self._desired is None:
            self._desired = load_desired_config(self.config_path)
        return self._desired

    def adapter(self, network: str) -> ChainAdapter:
        return create_adapter(network, self.settings)

    def reconciler(self, deploy_missing: bool = False) -> Reconciler:
        s = self.settings
        return Reconciler(
            self.desired,
            self.adapter,
            self.store,
            rpc_attempts=s.rpc_attempts,
            send_attempts=s.send_attempts,
            backoff_base=s.backoff_base,
            deploy_missing=deploy_missing,
            salts=s.salts,
        )

    def deployment_inputs(
        self, adapter: ChainAdapter, contract: str, salt: Optional[str], args: Optional[list[str]]
    ) -> tuple[str, tuple[Any, ...]]:
        recipe = get_recipe(contract)
        salt = salt or self.settings.get_salt(contract)
        if not salt:
            raise InvalidConfig(f"No salt for {contract}; pass --salt or set {recipe.salt_env}")
        if args is not None:
            return salt, tuple(args)
        deployer = adapter.to_canonical(adapter.signer.get_address())
        return salt, recipe.constructor_args(deployer, self.desired.get(adapter.network))


async def _reconcile(ctx: _Context, args: argparse.Namespace) -> int:
    networks = ctx.desired.names() if args.all else args.networks
    if not networks:
        raise InvalidConfig("Name at least one network or pass --all")
    routers = _parse_routers(args.router)
    if routers and len(networks) != 1:
        raise InvalidConfig("--router needs exactly one network")

    reconciler = ctx.reconciler(deploy_missing=args.deploy_missing)
    if routers:
        reports = {networks[0]: await reconciler.reconcile(networks[0], routers)}
    else:
        reports = await reconciler.reconcile_many(networks, ctx.settings.max_workers)

    _print_json({name: r.to_dict() for name, r in reports.items()})
    return EXIT_OK if all(r.converged for r in reports.values()) else EXIT_FAILED


async def _status(ctx: _Context, args: argparse.Namespace) -> int:
    routers = _parse_routers(args.router)
    reconciler = ctx.reconciler()
    results = {}
    for network in args.networks:
        results[network] = await reconciler.status(network, routers or None)
    _print_json({name: r.to_dict() for name, r in results.items()})
    return EXIT_OK if all(r.error is None for r in results.values()) else EXIT_FAILED


async def _deploy(ctx: _Context, args: argparse.Namespace) -> int:
    adapter = ctx.adapter(args.network)
    salt, constructor_args = ctx.deployment_inputs(adapter, args.contract, args.salt, args.args)
    deployer = DeterministicDeployer(
        adapter,
        ctx.store,
        rpc_attempts=ctx.settings.rpc_attempts,
        backoff_base=ctx.settings.backoff_base,
    )
    result = await deployer.deploy(args.contract, constructor_args, salt, redeploy=args.redeploy)
    _print_json(result.to_dict())
    return EXIT_OK


async def _predict(ctx: _Context, args: argparse.Namespace) -> int:
    adapter = ctx.adapter(args.network)
    salt, constructor_args = ctx.deployment_inputs(adapter, args.contract, args.salt, args.args)
    result = DeterministicDeployer(adapter, ctx.store).predict(args.contract, constructor_args, salt)
    _print_json(result.to_dict())
    return EXIT_OK


COMMANDS = {
    "reconcile": _reconcile,
    "status": _status,
    "deploy": _deploy,
    "predict": _predict,
}


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, stream=sys.stderr)

    try:
        ctx = _Context(args, load_settings(args.env_file))
        return asyncio.run(COMMANDS[args.command](ctx, args))
    except ConfigurationError as e:
        logger.error("%s", e)
        _print_json({"error": {"type": type(e).__name__, "message": str(e)}})
        return EXIT_CONFIG
    except RouterFleetError as e:
        logger.error("%s", e)
        _print_json({"error": {"type": type(e).__name__, "message": str(e)}})
        return EXIT_FAILED
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
