"""
State authorization: authorizes transitions into states and turns denials
into redirect decisions.
"""

from typing import Any, Iterable, Optional

from shared.config import HierarchyOrder, Settings, get_settings
from shared.errors import AuthorizationDenied, RedirectResolutionError
from shared.logging import configure_logging, get_logger, transition_logging_context
from .rules.composite import from_state_path
from .rules.engine import AuthorizationEngine
from .rules.models import Decision, DecisionOutcome, TransitionContext
from .rules.permission_map import RuleSet
from .rules.stores import PermissionStore, RoleStore


class StateAuthorization:
    """Authorization of state transitions, with or without state inheritance."""

    def __init__(self, engine: AuthorizationEngine, order: Optional[HierarchyOrder] = None):
        self.engine = engine
        self.order = order
        self.logger = get_logger("permissions.state_authorization")

    def build_rule_set(self, path: Iterable[Any], context: Optional[TransitionContext] = None) -> RuleSet:
        """Effective rule set of the last state in a root-to-leaf path."""
        return from_state_path(path, context, self.order)

    async def authorize_by_rule_set(self, rule_set: RuleSet, context: Optional[TransitionContext] = None) -> None:
        await self.engine.authorize(rule_set, context)

    async def authorize_by_state(self, path: Iterable[Any], context: Optional[TransitionContext] = None) -> None:
        """Authorize entering the last state of ``path`` including inherited permissions."""
        await self.engine.authorize(self.build_rule_set(path, context), context)

    async def decide(self, rule_set: RuleSet, context: Optional[TransitionContext] = None) -> Decision:
        """Authorize and, when denied, resolve where to redirect.

        A redirect that cannot be resolved leaves ``redirect`` empty, meaning
        the actor stays on the current state.
        """
        with transition_logging_context(
            to_state=context.to_state if context else None,
            from_state=context.from_state if context else None
        ):
            try:
                await self.engine.authorize(rule_set, context)
            except AuthorizationDenied as e:
                return Decision(
                    outcome=DecisionOutcome.DENIED,
                    rejected_privilege=e.privilege,
                    redirect=await self._resolve_redirect(rule_set, e.privilege, context)
                )

            return Decision(outcome=DecisionOutcome.ACCEPTED)

    async def decide_for_state(self, path: Iterable[Any], context: Optional[TransitionContext] = None) -> Decision:
        return await self.decide(self.build_rule_set(path, context), context)

    async def _resolve_redirect(self, rule_set: RuleSet, privilege: Optional[str],
                                context: Optional[TransitionContext]):
        try:
            target = await rule_set.resolve_redirect(privilege, context)
        except RedirectResolutionError as e:
            self.logger.info("No redirect for rejected privilege", privilege=privilege, reason=e.message)
            self._record_redirect("unresolved")
            return None

        self._record_redirect("resolved")
        self.logger.info("Redirecting rejected transition", privilege=privilege, state=target.state)
        return target

    def _record_redirect(self, outcome: str):
        if self.engine.metrics:
            self.engine.metrics.record_redirect(outcome)


def create_state_authorization(role_store: RoleStore, permission_store: PermissionStore,
                               settings: Optional[Settings] = None) -> StateAuthorization:
    """Wire logging, metrics and the engine into a StateAuthorization."""
    settings = settings or get_settings()
    configure_logging("permissions", settings.log_level)

    engine = AuthorizationEngine(role_store, permission_store, settings=settings)
    return StateAuthorization(engine, order=settings.hierarchy_order)
