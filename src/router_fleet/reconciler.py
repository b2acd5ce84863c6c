"""
Reconciler - drives each network from observed to desired router configuration.

Per network: INIT -> READ_STATE -> DIFFING -> APPLYING -> VERIFYING ->
CONVERGED | FAILED. Networks are independent; actions within a network are
applied strictly in plan order, and nothing already mined is rolled back.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, TypeVar

from router_fleet.actions import Deploy, PlannedAction
from router_fleet.adapters.base import ChainAdapter
from router_fleet.config import ChainConfig, RouterSpec
from router_fleet.deployments.deployer import DeploymentResult, DeterministicDeployer
from router_fleet.deployments.recipes import get_recipe
from router_fleet.deployments.store import DeploymentStore
from router_fleet.diff import ConfigDiffEngine
from router_fleet.exceptions import (
    ContractNotFound,
    InvalidConfig,
    ReconciliationCancelled,
    ReconciliationIncomplete,
    RouterFleetError,
    RpcUnavailable,
)
from router_fleet.types import (
    DEPLOYMENT_REF_PREFIX,
    DesiredConfig,
    NetworkConfig,
    ObservedState,
    RouteConfig,
    TxReceipt,
    is_deployment_ref,
)
from router_fleet.utils.retry import with_backoff

logger = logging.getLogger(__name__)

T = TypeVar("T")

AdapterFactory = Callable[[str], ChainAdapter]


class ReconcileState(str, Enum):
    INIT = "init"
    READ_STATE = "read_state"
    DIFFING = "diffing"
    APPLYING = "applying"
    VERIFYING = "verifying"
    CONVERGED = "converged"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolvedRoute:
    """A desired route bound to its router address"""

    version: str
    spec: RouterSpec
    router: str
    config: RouteConfig

    @property
    def candidates(self) -> tuple[str, ...]:
        """Executors whose authorization is checked on-chain"""
        return self.config.executors + self.config.deprecated_executors


@dataclass
class ActionFailure:
    planned: PlannedAction
    error: BaseException

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.planned.to_dict(),
            "error": type(self.error).__name__,
            "message": str(self.error),
        }


@dataclass
class ReconciliationReport:
    """
    Terminal outcome of one network.

    ``not_attempted`` lists every planned action whose effect was not
    applied, starting with the failed one; ``failed`` names the action that
    halted the pass and why.
    """

    network: str
    state: ReconcileState = ReconcileState.INIT
    applied: list[PlannedAction] = field(default_factory=list)
    receipts: list[TxReceipt] = field(default_factory=list)
    failed: list[ActionFailure] = field(default_factory=list)
    not_attempted: list[PlannedAction] = field(default_factory=list)
    residual: list[PlannedAction] = field(default_factory=list)
    deployments: list[DeploymentResult] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def converged(self) -> bool:
        return self.state == ReconcileState.CONVERGED

    def transition(self, state: ReconcileState) -> None:
        logger.debug("%s: %s -> %s", self.network, self.state.value, state.value)
        self.state = state

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.transition(ReconcileState.FAILED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "network": self.network,
            "state": self.state.value,
            "applied": [p.to_dict() for p in self.applied],
            "receipts": [r.to_dict() for r in self.receipts],
            "failed": [f.to_dict() for f in self.failed],
            "notAttempted": [p.to_dict() for p in self.not_attempted],
            "residual": [p.to_dict() for p in self.residual],
            "deployments": [d.to_dict() for d in self.deployments],
            "error": (
                {"type": type(self.error).__name__, "message": str(self.error)}
                if self.error is not None
                else None
            ),
        }


@dataclass
class StatusReport:
    """Read-only view of one network: routers, live state and pending plan"""

    network: str
    routers: dict[str, Optional[str]] = field(default_factory=dict)
    observed: dict[str, ObservedState] = field(default_factory=dict)
    plan: list[PlannedAction] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def in_sync(self) -> bool:
        return self.error is None and not self.plan and None not in self.routers.values()

    def to_dict(self) -> dict[str, Any]:
        return {
            "network": self.network,
            "inSync": self.in_sync,
            "routers": self.routers,
            "observed": {v: s.to_dict() for v, s in self.observed.items()},
            "plan": [p.to_dict() for p in self.plan],
            "error": (
                {"type": type(self.error).__name__, "message": str(self.error)}
                if self.error is not None
                else None
            ),
        }


class Reconciler:
    """
    Reconciles routers against an immutable desired configuration.

    Args:
        desired: Validated desired configuration
        adapter_factory: Builds the ChainAdapter for a network name
        store: Deployment records (router and executor addresses)
        deploy_missing: Deploy routers and referenced contracts that have
            no record yet, instead of failing the network
        salts: Deploy salt per contract name
    """

    def __init__(
        self,
        desired: DesiredConfig,
        adapter_factory: AdapterFactory,
        store: DeploymentStore,
        *,
        diff_engine: Optional[ConfigDiffEngine] = None,
        rpc_attempts: int = 3,
        send_attempts: int = 3,
        backoff_base: float = 1.0,
        deploy_missing: bool = False,
        salts: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._desired = desired
        self._adapter_factory = adapter_factory
        self._store = store
        self._diff = diff_engine or ConfigDiffEngine()
        self._rpc_attempts = rpc_attempts
        self._send_attempts = send_attempts
        self._backoff_base = backoff_base
        self._deploy_missing = deploy_missing
        self._salts = dict(salts or {})
        self._adapters: dict[str, ChainAdapter] = {}
        self._cancel_events: dict[str, asyncio.Event] = {}

    def adapter(self, network: str) -> ChainAdapter:
        if network not in self._adapters:
            self._adapters[network] = self._adapter_factory(network)
        return self._adapters[network]

    def _cancel_event(self, network: str) -> asyncio.Event:
        if network not in self._cancel_events:
            self._cancel_events[network] = asyncio.Event()
        return self._cancel_events[network]

    def cancel(self, network: Optional[str] = None) -> None:
        """
        Ask a running reconciliation (or all of them) to stop before its
        next action. A transaction already in flight is allowed to settle.
        """
        targets = [network] if network is not None else list(self._cancel_events)
        for name in targets:
            logger.warning("%s: cancellation requested", name)
            self._cancel_event(name).set()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def reconcile(
        self,
        network: str,
        routers: Optional[Mapping[str, str]] = None,
    ) -> ReconciliationReport:
        """
        Run one network to a terminal state.

        Args:
            network: Network name
            routers: Router address per protocol version, overriding the
                deployment records

        Returns:
            The terminal report; errors are carried in ``report.error``
        """
        report = ReconciliationReport(network)
        cancel_event = self._cancel_event(network)
        cancel_event.clear()

        try:
            adapter = self.adapter(network)
            config = self._desired.get(network)

            report.transition(ReconcileState.READ_STATE)
            routes = await self._resolve_routes(adapter, config, routers, report)
            observed = await self._read_all(adapter, routes)
            self._check_immutable(config, observed)

            report.transition(ReconcileState.DIFFING)
            plan = self._plan(routes, observed)
            logger.info("%s: %d action(s) planned", network, len(plan))

            report.transition(ReconcileState.APPLYING)
            await self._apply(adapter, plan, report, cancel_event)

            report.transition(ReconcileState.VERIFYING)
            observed = await self._read_all(adapter, routes)
            residual = self._plan(routes, observed)
            if residual:
                report.residual = residual
                raise ReconciliationIncomplete(network, residual)

            report.transition(ReconcileState.CONVERGED)
            logger.info(
                "%s: converged (%d action(s) applied)", network, len(report.applied)
            )
        except RouterFleetError as e:
            logger.error("%s: reconciliation failed in %s: %s", network, report.state.value, e)
            report.fail(e)
        except Exception as e:
            logger.exception("%s: unexpected error in %s", network, report.state.value)
            report.fail(e)
        return report

    async def status(self, network: str, routers: Optional[Mapping[str, str]] = None) -> StatusReport:
        """Read state and plan without sending anything"""
        result = StatusReport(network)
        try:
            adapter = self.adapter(network)
            config = self._desired.get(network)
            routes = []
            for version, route in config.routes():
                spec = ChainConfig.get_router_spec(version)
                router = self._known_router(network, spec, version, routers)
                result.routers[version] = router
                if router is None:
                    continue
                resolved = self._resolve_refs(network, route, allow_missing=True)
                routes.append(ResolvedRoute(version, spec, router, resolved))

            observed = await self._read_all(adapter, routes)
            result.observed = {r.version: s for r, s in zip(routes, observed)}
            result.plan = self._plan(routes, observed)
            self._check_immutable(config, observed)
        except RouterFleetError as e:
            logger.error("%s: status failed: %s", network, e)
            result.error = e
        except Exception as e:
            logger.exception("%s: unexpected error reading status", network)
            result.error = e
        return result

    async def reconcile_many(
        self,
        networks: Optional[Iterable[str]] = None,
        max_workers: int = 4,
    ) -> dict[str, ReconciliationReport]:
        """
        Reconcile several networks concurrently on a bounded worker pool.

        One network failing never affects another.
        """
        names = list(networks) if networks is not None else self._desired.names()
        semaphore = asyncio.Semaphore(max_workers)

        async def run(name: str) -> ReconciliationReport:
            async with semaphore:
                return await self.reconcile(name)

        results = await asyncio.gather(*(run(n) for n in names), return_exceptions=True)

        reports: dict[str, ReconciliationReport] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error("%s: reconciliation crashed: %r", name, result)
                report = ReconciliationReport(name)
                report.fail(result)
                result = report
            reports[name] = result

        converged = sum(1 for r in reports.values() if r.converged)
        logger.info("%d/%d network(s) converged", converged, len(reports))
        return reports

    # ------------------------------------------------------------------
    # Route resolution
    # ------------------------------------------------------------------

    def _known_router(
        self,
        network: str,
        spec: RouterSpec,
        version: str,
        overrides: Optional[Mapping[str, str]],
    ) -> Optional[str]:
        if overrides and overrides.get(version):
            return overrides[version]
        return self._store.get(network, spec.contract_name)

    async def _resolve_routes(
        self,
        adapter: ChainAdapter,
        config: NetworkConfig,
        overrides: Optional[Mapping[str, str]],
        report: ReconciliationReport,
    ) -> list[ResolvedRoute]:
        network = adapter.network
        routes = []
        for version, route in config.routes():
            spec = ChainConfig.get_router_spec(version)
            router = self._known_router(network, spec, version, overrides)
            if router is None:
                if not self._deploy_missing:
                    raise ContractNotFound(f"{spec.contract_name} (no deployment record)", network)
                result = await self._deploy(adapter, config, spec.contract_name, version, report)
                router = result.address

            for ref in route.executors:
                if is_deployment_ref(ref) and self._deploy_missing:
                    name = ref[len(DEPLOYMENT_REF_PREFIX):]
                    if self._store.get(network, name) is None:
                        await self._deploy(adapter, config, name, version, report)

            routes.append(ResolvedRoute(version, spec, router, self._resolve_refs(network, route)))
        return routes

    def _resolve_refs(self, network: str, route: RouteConfig, allow_missing: bool = False) -> RouteConfig:
        """Replace ``deployment:<Name>`` executors with recorded addresses"""

        def resolve(values: tuple[str, ...]) -> tuple[str, ...]:
            resolved = []
            for value in values:
                if not is_deployment_ref(value):
                    resolved.append(value)
                    continue
                name = value[len(DEPLOYMENT_REF_PREFIX):]
                address = self._store.get(network, name)
                if address is None:
                    if allow_missing:
                        logger.warning("%s: %s has no deployment record", network, name)
                        continue
                    raise InvalidConfig(f"{network}: executor {value} has no deployment record")
                resolved.append(self.adapter(network).to_canonical(address))
            return tuple(resolved)

        executors = resolve(route.executors)
        deprecated = resolve(route.deprecated_executors)
        if executors == route.executors and deprecated == route.deprecated_executors:
            return route
        return RouteConfig.model_validate(
            {
                **route.model_dump(),
                "executors": executors,
                "deprecated_executors": deprecated,
            }
        )

    async def _deploy(
        self,
        adapter: ChainAdapter,
        config: NetworkConfig,
        contract_name: str,
        version: str,
        report: ReconciliationReport,
    ) -> DeploymentResult:
        recipe = get_recipe(contract_name)
        salt = self._salts.get(contract_name)
        if not salt:
            raise InvalidConfig(f"{contract_name} has no deploy salt; set {recipe.salt_env}")

        deployer_address = adapter.to_canonical(adapter.signer.get_address())
        args = recipe.constructor_args(deployer_address, config)
        deployer = DeterministicDeployer(
            adapter,
            self._store,
            rpc_attempts=self._rpc_attempts,
            backoff_base=self._backoff_base,
        )
        action = Deploy(contract_name, salt, tuple(args))
        target = ""
        try:
            target = deployer.predict(contract_name, args, salt).address
            result = await self._settle(adapter.network, deployer.deploy(contract_name, args, salt))
        except Exception as e:
            report.failed.append(ActionFailure(PlannedAction(version, target, action), e))
            raise
        report.deployments.append(result)
        report.applied.append(PlannedAction(version, result.address, action))
        return result

    # ------------------------------------------------------------------
    # Read / plan / apply
    # ------------------------------------------------------------------

    async def _read_all(
        self, adapter: ChainAdapter, routes: list[ResolvedRoute]
    ) -> list[ObservedState]:
        observed = []
        for route in routes:
            read = functools.partial(
                adapter.read_router_state,
                route.router,
                executors=route.candidates,
                referrer_fee=route.spec.supports_referrer_fee,
            )
            observed.append(
                await with_backoff(
                    read,
                    attempts=self._rpc_attempts,
                    base_delay=self._backoff_base,
                    label=f"{adapter.network} read {route.version} router",
                )
            )
        return observed

    def _plan(self, routes: list[ResolvedRoute], observed: list[ObservedState]) -> list[PlannedAction]:
        return self._diff.plan(
            (r.version, r.router, r.config, state) for r, state in zip(routes, observed)
        )

    def _check_immutable(self, config: NetworkConfig, observed: list[ObservedState]) -> None:
        for state in observed:
            self._diff.check_immutable(config.wrapped_token, state)

    async def _apply(
        self,
        adapter: ChainAdapter,
        plan: list[PlannedAction],
        report: ReconciliationReport,
        cancel_event: asyncio.Event,
    ) -> None:
        for index, planned in enumerate(plan):
            if cancel_event.is_set():
                report.not_attempted = plan[index:]
                report.residual = plan[index:]
                raise ReconciliationCancelled(
                    f"{adapter.network} cancelled with {len(plan) - index} action(s) left"
                )

            logger.info(
                "%s: [%d/%d] %s", adapter.network, index + 1, len(plan), planned.to_dict()
            )
            try:
                receipt = await self._send_with_retry(adapter, planned)
            except Exception as e:
                report.failed.append(ActionFailure(planned, e))
                report.not_attempted = plan[index:]
                report.residual = plan[index:]
                raise

            report.applied.append(planned)
            report.receipts.append(receipt)

    async def _send_with_retry(self, adapter: ChainAdapter, planned: PlannedAction) -> TxReceipt:
        """
        Send one action, retrying transport failures.

        Once a transaction hash is known, retries wait on it rather than
        submitting a second transaction.
        """
        pending: Optional[str] = None
        for attempt in range(1, self._send_attempts + 1):
            try:
                if pending is not None:
                    return await self._settle(adapter.network, adapter.wait_for_receipt(pending))
                return await self._settle(
                    adapter.network, adapter.send_action(planned.router, planned.action)
                )
            except RpcUnavailable as e:
                if e.tx_hash:
                    pending = e.tx_hash
                if attempt == self._send_attempts:
                    raise
                delay = self._backoff_base * 2 ** (attempt - 1)
                logger.warning(
                    "%s: send unavailable (attempt %d/%d): %s, retrying in %.1fs",
                    adapter.network,
                    attempt,
                    self._send_attempts,
                    e,
                    delay,
                )
                await asyncio.sleep(delay)

        raise AssertionError("unreachable")

    @staticmethod
    async def _settle(network: str, operation: Awaitable[T]) -> T:
        """Await an on-chain operation; task cancellation waits for it to settle"""
        task = asyncio.ensure_future(operation)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            logger.warning("%s: cancelled with a transaction in flight, waiting for it", network)
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                logger.error("%s: in-flight transaction failed: %s", network, task.exception())
            raise
