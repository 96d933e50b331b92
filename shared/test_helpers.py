"""
Test helper functions and factory methods for the state permission layer.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field


class DefinitionRejected(Exception):
    """Raised by test definitions that reject validation."""


@dataclass
class TestDefinition:
    """Role or permission definition with a scripted validation outcome."""
    __test__ = False

    name: str
    granted: bool = True
    delay: float = 0.0
    calls: int = 0
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    cancelled: bool = False
    events: Optional[List[Tuple[str, str]]] = None

    async def _validate(self, context: Any) -> str:
        self.calls += 1
        self.started_at = time.monotonic()
        if self.events is not None:
            self.events.append(("start", self.name))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished_at = time.monotonic()
        if self.events is not None:
            self.events.append(("end", self.name))
        if not self.granted:
            raise DefinitionRejected(self.name)
        return self.name

    def validate_role(self, context: Any):
        return self._validate(context)

    def validate_permission(self, context: Any):
        return self._validate(context)


@dataclass
class InMemoryRoleStore:
    """Role store backed by a dictionary."""
    definitions: Dict[str, TestDefinition] = field(default_factory=dict)

    def add(self, definition: TestDefinition) -> TestDefinition:
        self.definitions[definition.name] = definition
        return definition

    def has_role_definition(self, name: str) -> bool:
        return name in self.definitions

    def get_role_definition(self, name: str) -> TestDefinition:
        return self.definitions[name]


@dataclass
class InMemoryPermissionStore:
    """Permission store backed by a dictionary."""
    definitions: Dict[str, TestDefinition] = field(default_factory=dict)

    def add(self, definition: TestDefinition) -> TestDefinition:
        self.definitions[definition.name] = definition
        return definition

    def has_permission_definition(self, name: str) -> bool:
        return name in self.definitions

    def get_permission_definition(self, name: str) -> TestDefinition:
        return self.definitions[name]


class TestDataFactory:
    """Factory for creating test data."""
    __test__ = False

    @staticmethod
    def create_state_path() -> List[Dict[str, Any]]:
        """Create a root-to-leaf chain of nested states."""
        return [
            {
                "name": "app",
                "data": {
                    "permissions": {
                        "only": ["user"],
                        "redirectTo": "login"
                    }
                }
            },
            {
                "name": "app.reports",
            },
            {
                "name": "app.reports.admin",
                "data": {
                    "permissions": {
                        "only": ["admin"],
                        "except": "suspended",
                        "redirectTo": {
                            "default": "home",
                            "suspended": {"state": "account.suspended", "params": {"reason": "billing"}}
                        }
                    }
                }
            }
        ]
