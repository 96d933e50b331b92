"""
Contracts of the role and permission definition stores.

The stores are owned by the host application; the engine only looks
definitions up by name and asks them to validate. A validator may return a
plain value or an awaitable; it rejects by raising or by producing
``False``.
"""

from typing import Any, Protocol, runtime_checkable

from .models import TransitionContext


@runtime_checkable
class RoleDefinition(Protocol):
    def validate_role(self, context: TransitionContext) -> Any:
        ...


@runtime_checkable
class PermissionDefinition(Protocol):
    def validate_permission(self, context: TransitionContext) -> Any:
        ...


@runtime_checkable
class RoleStore(Protocol):
    def has_role_definition(self, name: str) -> bool:
        ...

    def get_role_definition(self, name: str) -> RoleDefinition:
        ...


@runtime_checkable
class PermissionStore(Protocol):
    def has_permission_definition(self, name: str) -> bool:
        ...

    def get_permission_definition(self, name: str) -> PermissionDefinition:
        ...
