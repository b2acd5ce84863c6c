"""
ConfigDiffEngine - desired vs observed router configuration.

Actions come out in a fixed order: executor additions, then parameter
updates, then executor revocations. A router is therefore never left
trusting fewer of the desired executors than before an update.
"""

import dataclasses
from typing import Iterable, Sequence

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
from router_fleet.config import FEE_DENOMINATOR
from router_fleet.exceptions import ImmutableStateMismatch, InvalidConfig
from router_fleet.types import ObservedState, RouteConfig, is_deployment_ref

# (version, router, desired, observed)
RouteSnapshot = tuple[str, str, RouteConfig, ObservedState]

PHASE_GRANT = 0
PHASE_UPDATE = 1
PHASE_REVOKE = 2


def _same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def action_phase(action: Action) -> int:
    if isinstance(action, Authorize):
        return PHASE_GRANT if action.flag else PHASE_REVOKE
    return PHASE_UPDATE


class ConfigDiffEngine:
    """Computes the minimal ordered action list that converges a router"""

    def validate(self, desired: RouteConfig, observed: ObservedState | None = None) -> None:
        """
        Raises:
            InvalidConfig: If the desired route cannot be diffed
        """
        fee = desired.fee
        if not 0 <= fee.fee_rate <= FEE_DENOMINATOR:
            raise InvalidConfig(f"fee rate {fee.fee_rate} outside [0, {FEE_DENOMINATOR}]")
        if fee.fixed_fee < 0:
            raise InvalidConfig(f"fixed fee {fee.fixed_fee} is negative")

        addresses = [fee.receiver, *desired.executors, *desired.deprecated_executors]
        if desired.bridge_address:
            addresses.append(desired.bridge_address)
        if desired.fee_manager:
            addresses.append(desired.fee_manager)
        unresolved = [a for a in addresses if is_deployment_ref(a)]
        if unresolved:
            raise InvalidConfig(f"unresolved deployment references: {', '.join(unresolved)}")

        desired_set = {e.lower() for e in desired.executors}
        overlap = desired_set & {e.lower() for e in desired.deprecated_executors}
        if overlap:
            raise InvalidConfig(f"executors both desired and deprecated: {sorted(overlap)}")

        if (
            observed is not None
            and fee.manages_referrer_fee
            and observed.max_referrer_fee_rate is None
        ):
            raise InvalidConfig(f"router {observed.router} has no referrer fee settings")

    def check_immutable(self, wrapped_token: str, observed: ObservedState) -> None:
        """
        Raises:
            ImmutableStateMismatch: If the router was built for another
                wrapped native token. No action can change it.
        """
        if not _same_address(wrapped_token, observed.wrapped_token):
            raise ImmutableStateMismatch(
                observed.router, "wToken", wrapped_token, observed.wrapped_token
            )

    def diff(self, desired: RouteConfig, observed: ObservedState) -> list[Action]:
        """
        Actions that bring ``observed`` to ``desired``.

        Deterministic: executors are visited in desired-config order.

        Raises:
            InvalidConfig: If the desired route is malformed
        """
        self.validate(desired, observed)
        actions: list[Action] = []

        for executor in desired.executors:
            if not observed.is_authorized(executor):
                actions.append(Authorize(executor, True))

        fee = desired.fee
        if (
            not _same_address(fee.receiver, observed.fee_receiver)
            or fee.fee_rate != observed.fee_rate
            or fee.fixed_fee != observed.fixed_fee
        ):
            actions.append(SetFee(fee.receiver, fee.fee_rate, fee.fixed_fee))

        if desired.bridge_address and not _same_address(
            desired.bridge_address, observed.bridge_address
        ):
            actions.append(SetBridge(desired.bridge_address))

        if desired.fee_manager and not _same_address(desired.fee_manager, observed.fee_manager):
            actions.append(SetFeeManager(desired.fee_manager))

        if fee.manages_referrer_fee and (
            fee.max_referrer_fee_rate != observed.max_referrer_fee_rate
            or fee.max_referrer_native_fee != observed.max_referrer_native_fee
        ):
            actions.append(
                SetReferrerMaxFee(fee.max_referrer_fee_rate, fee.max_referrer_native_fee)
            )

        for executor in desired.deprecated_executors:
            if observed.is_authorized(executor):
                actions.append(Authorize(executor, False))

        return actions

    def plan(self, routes: Iterable[RouteSnapshot]) -> list[PlannedAction]:
        """
        Diff every route of one network and merge the results by phase.

        All grants on the network come before any parameter update, and all
        updates before any revocation; within a phase, route order and diff
        order are kept.
        """
        planned = [
            PlannedAction(version, router, action)
            for version, router, desired, observed in routes
            for action in self.diff(desired, observed)
        ]
        # sorted() is stable
        return sorted(planned, key=lambda p: action_phase(p.action))

    @staticmethod
    def apply_action(observed: ObservedState, action: Action) -> ObservedState:
        """Observed state after ``action`` takes effect"""
        if isinstance(action, Authorize):
            current = {e for e in observed.authorized_executors if not _same_address(e, action.executor)}
            if action.flag:
                current.add(action.executor)
            return dataclasses.replace(observed, authorized_executors=frozenset(current))
        if isinstance(action, SetFee):
            return dataclasses.replace(
                observed, fee_receiver=action.receiver, fee_rate=action.rate, fixed_fee=action.fixed
            )
        if isinstance(action, SetBridge):
            return dataclasses.replace(observed, bridge_address=action.address)
        if isinstance(action, SetFeeManager):
            return dataclasses.replace(observed, fee_manager=action.address)
        if isinstance(action, SetReferrerMaxFee):
            return dataclasses.replace(
                observed,
                max_referrer_fee_rate=action.rate,
                max_referrer_native_fee=action.native,
            )
        if isinstance(action, Deploy):
            return observed
        raise TypeError(f"unknown action {action!r}")

    def apply_all(self, observed: ObservedState, actions: Sequence[Action]) -> ObservedState:
        for action in actions:
            observed = self.apply_action(observed, action)
        return observed
