"""
Data models for state permission rules.
"""

from typing import Dict, Any, Optional, Mapping
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PrivilegeSource(str, Enum):
    """Where a privilege name was resolved."""
    ROLE = "role"
    PERMISSION = "permission"
    UNREGISTERED = "unregistered"


class DecisionOutcome(str, Enum):
    """Authorization decision types."""
    ACCEPTED = "accepted"
    DENIED = "denied"


@dataclass
class TransitionContext:
    """Properties of the transition being authorized.

    Passed explicitly to dynamic ``only``/``except`` callables, to store
    validators and to redirect resolvers.
    """
    to_state: Optional[str] = None
    to_params: Dict[str, Any] = field(default_factory=dict)
    from_state: Optional[str] = None
    from_params: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RedirectTarget:
    """Concrete navigation target for a rejected transition."""
    state: str
    params: Mapping[str, Any] = field(default_factory=dict)
    options: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, value: Mapping[str, Any]) -> "RedirectTarget":
        """Build a target from a ``{state, params?, options?}`` mapping."""
        return cls(
            state=value["state"],
            params=dict(value.get("params") or {}),
            options=dict(value.get("options") or {})
        )


class PermissionPolicy(BaseModel):
    """Raw access policy declared on a state."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, extra="forbid")

    only: Any = Field(None, description="Privileges allowed to enter")
    except_: Any = Field(None, alias="except", description="Privileges denied from entering")
    redirect_to: Any = Field(None, alias="redirectTo", description="Redirect rules for rejected privileges")


@dataclass
class PrivilegeOutcome:
    """Result of checking one privilege name."""
    name: str
    granted: bool
    source: PrivilegeSource
    payload: Any = None
    error: Optional[Exception] = None


@dataclass
class AuthorizationResult:
    """Result of authorizing a rule set."""
    allowed: bool
    rejected_privilege: Optional[str] = None
    reason: Optional[str] = None
    evaluation_time_ms: float = 0.0


@dataclass
class Decision:
    """Authorization decision plus where to go when denied.

    ``redirect`` is ``None`` for accepted transitions and for denials with
    no usable redirect target, in which case the host stays in place.
    """
    outcome: DecisionOutcome
    rejected_privilege: Optional[str] = None
    redirect: Optional[RedirectTarget] = None

    @property
    def allowed(self) -> bool:
        return self.outcome == DecisionOutcome.ACCEPTED
