"""
Authorization engine evaluating permission maps against role and
permission stores.
"""

import asyncio
import inspect
import time
from typing import Iterable, Optional, Sequence, Set

from shared.config import Settings, get_settings
from shared.errors import AuthorizationDenied, UnregisteredPrivilegeError, ValidationRejection
from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from .models import AuthorizationResult, PrivilegeOutcome, PrivilegeSource, TransitionContext
from .permission_map import RuleSet
from .stores import PermissionStore, RoleStore


class AuthorizationEngine:
    """Deny-first evaluation of a rule set.

    The ``deny`` groups are evaluated first; a validated privilege there
    rejects the transition. Otherwise an empty ``allow`` accepts, and a
    non-empty one accepts only if one of its privileges validates.

    Groups are evaluated one after another. The privileges of a single
    group are checked concurrently and the first one to validate wins; if
    none does, the group reports the failure that settled last.
    """

    def __init__(self, role_store: RoleStore, permission_store: PermissionStore,
                 settings: Optional[Settings] = None, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("permissions.engine")
        self.role_store = role_store
        self.permission_store = permission_store
        self.settings = settings or get_settings()
        if metrics is None and self.settings.enable_metrics:
            metrics = get_metrics_collector("permissions")
        self.metrics = metrics
        # Checks left running after their group was decided
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending_checks(self) -> int:
        """Number of privilege checks still running in the background."""
        return len(self._pending)

    async def authorize(self, rule_set: RuleSet, context: Optional[TransitionContext] = None) -> None:
        """Authorize a rule set.

        Returns on acceptance; raises ``AuthorizationDenied`` carrying the
        privilege that caused the rejection.
        """
        start_time = time.time()

        denied = await self.evaluate_groups(rule_set.deny, context)
        if denied is not None and denied.granted:
            self._record("denied", start_time)
            self.logger.info("Access denied by except privilege", privilege=denied.name)
            raise AuthorizationDenied(denied.name, f"Access denied by except privilege '{denied.name}'")

        if not rule_set.allow:
            self._record("accepted", start_time)
            self.logger.debug("Access accepted, no only constraint")
            return

        allowed = await self.evaluate_groups(rule_set.allow, context)
        if allowed.granted:
            self._record("accepted", start_time)
            self.logger.debug("Access accepted", privilege=allowed.name)
            return

        self._record("denied", start_time)
        self.logger.info("Access denied, no only privilege validated", privilege=allowed.name)
        raise AuthorizationDenied(allowed.name, f"No allowed privilege validated, last failure '{allowed.name}'")

    async def evaluate(self, rule_set: RuleSet, context: Optional[TransitionContext] = None) -> AuthorizationResult:
        """Authorize a rule set and report the outcome as a result record."""
        start_time = time.time()
        try:
            await self.authorize(rule_set, context)
        except AuthorizationDenied as e:
            return AuthorizationResult(
                allowed=False,
                rejected_privilege=e.privilege,
                reason=e.message,
                evaluation_time_ms=(time.time() - start_time) * 1000
            )

        return AuthorizationResult(
            allowed=True,
            reason="Access accepted",
            evaluation_time_ms=(time.time() - start_time) * 1000
        )

    async def evaluate_groups(self, groups: Sequence[Sequence[str]],
                              context: Optional[TransitionContext] = None) -> Optional[PrivilegeOutcome]:
        """Evaluate privilege groups in order, stopping at the first that validates.

        Returns ``None`` when there are no groups, the granted outcome of the
        first successful group, or the failure of the last group.
        """
        outcome = None
        for group in groups:
            outcome = await self.evaluate_group(group, context)
            if outcome.granted:
                return outcome
        return outcome

    async def evaluate_group(self, group: Iterable[str],
                             context: Optional[TransitionContext] = None) -> PrivilegeOutcome:
        """Check all privileges of a group concurrently; any one validating is enough."""
        tasks = [asyncio.create_task(self.check_privilege(name, context)) for name in group]
        if not tasks:
            raise ValueError("Privilege group must contain at least one name")

        last_failure = None
        try:
            for settled in asyncio.as_completed(tasks):
                outcome = await settled
                if outcome.granted:
                    return outcome
                last_failure = outcome
        finally:
            self._release([task for task in tasks if not task.done()])

        return last_failure

    async def check_privilege(self, name: str, context: Optional[TransitionContext] = None) -> PrivilegeOutcome:
        """Validate one privilege name, roles taking precedence over permissions."""
        if self.role_store.has_role_definition(name):
            source = PrivilegeSource.ROLE
            definition = self.role_store.get_role_definition(name)
            validate = definition.validate_role
        elif self.permission_store.has_permission_definition(name):
            source = PrivilegeSource.PERMISSION
            definition = self.permission_store.get_permission_definition(name)
            validate = definition.validate_permission
        else:
            if self.settings.warn_on_unregistered:
                self.logger.warning("Permission or role was not defined", privilege=name)
            self._record_check(PrivilegeSource.UNREGISTERED, "unregistered")
            return PrivilegeOutcome(
                name=name,
                granted=False,
                source=PrivilegeSource.UNREGISTERED,
                error=UnregisteredPrivilegeError(name)
            )

        try:
            result = validate(context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self.logger.debug("Privilege rejected", privilege=name, source=source.value, error=str(e))
            self._record_check(source, "rejected")
            return PrivilegeOutcome(
                name=name,
                granted=False,
                source=source,
                error=ValidationRejection(name, str(e) or type(e).__name__)
            )

        if result is False:
            self._record_check(source, "rejected")
            return PrivilegeOutcome(name=name, granted=False, source=source, error=ValidationRejection(name))

        self._record_check(source, "granted")
        return PrivilegeOutcome(name=name, granted=True, source=source, payload=result)

    def _release(self, tasks: Sequence[asyncio.Task]):
        """Cancel or keep track of checks still running once their group is decided."""
        for task in tasks:
            if self.settings.cancel_pending_checks:
                task.cancel()
            else:
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)

    def _record(self, decision: str, start_time: float):
        if self.metrics:
            self.metrics.record_decision(decision, time.time() - start_time)

    def _record_check(self, source: PrivilegeSource, outcome: str):
        if self.metrics:
            self.metrics.record_privilege_check(source.value, outcome)
