"""
Permission map: the normalized access policy of a state.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from shared.errors import ConfigurationError
from .models import PermissionPolicy, RedirectTarget, TransitionContext
from .redirect import RedirectResolver, normalize_redirect, resolve_redirect

Group = Tuple[str, ...]
Groups = Tuple[Group, ...]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _as_group(names: Any, prop: str) -> Group:
    for name in names:
        if not isinstance(name, str):
            raise ConfigurationError(
                f"'{prop}' privilege names must be strings",
                {"property": prop, "type": type(name).__name__}
            )
    return tuple(names)


def normalize_privileges(value: Any, context: Optional[TransitionContext] = None,
                         prop: str = "only") -> Groups:
    """Normalize an ``only``/``except`` declaration into privilege groups.

    A name becomes a single-name group, a flat sequence of names becomes one
    group and a sequence of sequences is taken as already grouped. A callable
    is invoked once with the transition context and its result normalized
    the same way; it may not return another callable.
    """
    if callable(value):
        value = value(context)
        if callable(value):
            raise ConfigurationError(
                f"'{prop}' callable must return privilege names, not another callable",
                {"property": prop}
            )

    if value is None:
        return ()

    if isinstance(value, str):
        return ((value,),)

    if _is_sequence(value):
        if all(_is_sequence(item) for item in value):
            groups = (_as_group(item, prop) for item in value)
            return tuple(group for group in groups if group)

        if any(_is_sequence(item) for item in value):
            raise ConfigurationError(
                f"'{prop}' cannot mix privilege names and privilege groups",
                {"property": prop}
            )

        group = _as_group(value, prop)
        return (group,) if group else ()

    raise ConfigurationError(
        f"'{prop}' must be a name, a sequence of names or a callable",
        {"property": prop, "type": type(value).__name__}
    )


@dataclass(frozen=True)
class RuleSet:
    """Normalized allow/deny groups plus the redirect resolver dictionary.

    Immutable once built and safe to evaluate from concurrent tasks.
    """
    allow: Groups = ()
    deny: Groups = ()
    redirect: Mapping[str, RedirectResolver] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        # Groups are stored as tuples of names and never empty.
        for name in ("allow", "deny"):
            for group in getattr(self, name):
                if not _is_sequence(group):
                    raise ConfigurationError(
                        f"'{name}' must be a sequence of privilege groups",
                        {"property": name, "type": type(group).__name__}
                    )
            groups = tuple(_as_group(group, name) for group in getattr(self, name) if group)
            object.__setattr__(self, name, groups)
        if not isinstance(self.redirect, MappingProxyType):
            object.__setattr__(self, "redirect", MappingProxyType(dict(self.redirect)))

    @classmethod
    def from_policy(cls, policy: Union[PermissionPolicy, Mapping[str, Any], None] = None,
                    context: Optional[TransitionContext] = None) -> "RuleSet":
        """Build a rule set from a raw ``{only, except, redirectTo}`` policy."""
        if policy is None:
            policy = PermissionPolicy()
        elif isinstance(policy, Mapping):
            try:
                policy = PermissionPolicy.model_validate(dict(policy))
            except ValidationError as e:
                raise ConfigurationError(
                    "Invalid permission policy",
                    {"errors": [error["msg"] for error in e.errors()]}
                ) from e
        elif not isinstance(policy, PermissionPolicy):
            raise ConfigurationError(
                "Permission policy must be a mapping",
                {"type": type(policy).__name__}
            )

        return cls(
            allow=normalize_privileges(policy.only, context, "only"),
            deny=normalize_privileges(policy.except_, context, "except"),
            redirect=normalize_redirect(policy.redirect_to)
        )

    @property
    def is_empty(self) -> bool:
        return not self.allow and not self.deny

    async def resolve_redirect(self, rejected_privilege: Optional[str],
                               context: Optional[TransitionContext] = None) -> RedirectTarget:
        """Resolve where to send an actor rejected by ``rejected_privilege``."""
        return await resolve_redirect(self.redirect, rejected_privilege, context)
