"""
Composition of permission maps along a chain of nested states.
"""

from typing import Any, Iterable, Mapping, Optional

from shared.config import HierarchyOrder, get_settings
from .models import TransitionContext
from .permission_map import RuleSet


def extend(parent: RuleSet, child: RuleSet, order: Optional[HierarchyOrder] = None) -> RuleSet:
    """Merge a child scope's rule set into its parent's.

    Groups are concatenated in ``order``; redirect entries of the child
    override the parent's on the same key whatever the order.
    """
    order = order or get_settings().hierarchy_order
    if order == HierarchyOrder.DESCENDANT_FIRST:
        first, second = child, parent
    else:
        first, second = parent, child

    redirect = dict(parent.redirect)
    redirect.update(child.redirect)

    return RuleSet(
        allow=first.allow + second.allow,
        deny=first.deny + second.deny,
        redirect=redirect
    )


def compose(rule_sets: Iterable[RuleSet], order: Optional[HierarchyOrder] = None) -> RuleSet:
    """Fold a root-to-leaf chain of rule sets into one effective rule set."""
    order = order or get_settings().hierarchy_order
    effective = RuleSet()
    for rule_set in rule_sets:
        effective = extend(effective, rule_set, order)
    return effective


def state_permissions(state: Any) -> Optional[Any]:
    """Return the permission policy declared on a state, if any.

    Looks at ``state["data"]["permissions"]`` for mappings and
    ``state.data["permissions"]`` for objects.
    """
    if isinstance(state, Mapping):
        data = state.get("data")
    else:
        data = getattr(state, "data", None)

    if isinstance(data, Mapping) and "permissions" in data:
        return data["permissions"]
    return None


def from_state_path(path: Iterable[Any], context: Optional[TransitionContext] = None,
                    order: Optional[HierarchyOrder] = None) -> RuleSet:
    """Build the effective rule set of the leaf state in a root-to-leaf path.

    States that declare no permissions are skipped.
    """
    rule_sets = []
    for state in path:
        policy = state_permissions(state)
        if policy is not None:
            rule_sets.append(RuleSet.from_policy(policy, context))
    return compose(rule_sets, order)
