"""
Redirect rule normalization and resolution.

A ``redirectTo`` declaration may be a state name, a single target object,
a resolver callable, or a mapping of privilege names (plus ``"default"``)
to any of those. Every shape is converted into a dictionary of resolvers
called as ``resolver(rejected_privilege, context)``.
"""

import inspect
from typing import Any, Callable, Dict, Mapping, Optional

from shared.errors import ConfigurationError, RedirectResolutionError
from shared.logging import get_logger
from .models import RedirectTarget, TransitionContext

DEFAULT_REDIRECT_KEY = "default"

RedirectResolver = Callable[[Optional[str], Optional[TransitionContext]], Any]

logger = get_logger("permissions.redirect")


def _state_resolver(state: str) -> RedirectResolver:
    def resolver(rejected_privilege, context):
        return RedirectTarget(state=state)
    return resolver


def _target_resolver(target: Any) -> RedirectResolver:
    def resolver(rejected_privilege, context):
        return target
    return resolver


def _has_state_attribute(value: Any) -> bool:
    # Objects such as namedtuples or dataclasses exposing a string ``state``.
    return (not isinstance(value, Mapping) and not callable(value)
            and isinstance(getattr(value, "state", None), str))


def _is_single_target(value: Any) -> bool:
    if isinstance(value, RedirectTarget) or _has_state_attribute(value):
        return True
    return isinstance(value, Mapping) and "state" in value


def _normalize_rule(key: str, rule: Any) -> RedirectResolver:
    """Convert one redirect rule (state name, target object or callable) into a resolver."""
    if isinstance(rule, str):
        return _state_resolver(rule)

    if _is_single_target(rule):
        return _target_resolver(rule)

    if callable(rule):
        return rule

    raise ConfigurationError(
        f"Redirect rule for '{key}' must be a state name, a target with 'state' or a callable",
        {"key": key, "type": type(rule).__name__}
    )


def normalize_redirect(redirect_to: Any) -> Dict[str, RedirectResolver]:
    """Convert a ``redirectTo`` declaration into a resolver dictionary."""
    if redirect_to is None:
        return {}

    if isinstance(redirect_to, str) or _is_single_target(redirect_to) or callable(redirect_to):
        return {DEFAULT_REDIRECT_KEY: _normalize_rule(DEFAULT_REDIRECT_KEY, redirect_to)}

    if isinstance(redirect_to, Mapping):
        if DEFAULT_REDIRECT_KEY not in redirect_to:
            raise ConfigurationError(
                "redirectTo object must define a default target",
                {"keys": sorted(str(key) for key in redirect_to)}
            )
        return {
            str(privilege): _normalize_rule(str(privilege), rule)
            for privilege, rule in redirect_to.items()
        }

    raise ConfigurationError(
        "redirectTo must be a state name, a target object, a callable or a mapping",
        {"type": type(redirect_to).__name__}
    )


def _coerce_target(value: Any, rejected_privilege: Optional[str]) -> RedirectTarget:
    if isinstance(value, str):
        return RedirectTarget(state=value)

    if isinstance(value, RedirectTarget):
        return value

    if isinstance(value, Mapping) and "state" in value:
        return RedirectTarget.from_mapping(value)

    if _has_state_attribute(value):
        return RedirectTarget(
            state=value.state,
            params=dict(getattr(value, "params", None) or {}),
            options=dict(getattr(value, "options", None) or {})
        )

    raise RedirectResolutionError(
        "Redirect resolver did not produce a usable target",
        privilege=rejected_privilege,
        details={"result_type": type(value).__name__}
    )


async def resolve_redirect(
    redirects: Mapping[str, RedirectResolver],
    rejected_privilege: Optional[str],
    context: Optional[TransitionContext] = None
) -> RedirectTarget:
    """Resolve the redirect target for a rejected privilege.

    Falls back to the ``"default"`` resolver. Raises
    ``RedirectResolutionError`` when no resolver applies, when the resolver
    fails, or when it produces something other than a state name or target.
    """
    resolver = None
    if rejected_privilege is not None:
        resolver = redirects.get(rejected_privilege)
    if resolver is None:
        resolver = redirects.get(DEFAULT_REDIRECT_KEY)

    if resolver is None:
        raise RedirectResolutionError("No redirect configured", privilege=rejected_privilege)

    try:
        result = resolver(rejected_privilege, context)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        logger.warning("Redirect resolver failed", privilege=rejected_privilege, error=str(e))
        raise RedirectResolutionError(
            f"Redirect resolver failed: {e}",
            privilege=rejected_privilege
        ) from e

    return _coerce_target(result, rejected_privilege)
