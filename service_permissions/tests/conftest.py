"""
Shared fixtures for state permission tests.
"""

import pytest
from prometheus_client import CollectorRegistry

from shared.config import Settings
from shared.metrics import MetricsCollector
from shared.test_helpers import InMemoryPermissionStore, InMemoryRoleStore
from service_permissions.app.rules.engine import AuthorizationEngine
from service_permissions.app.rules.models import TransitionContext


@pytest.fixture
def role_store():
    """Create empty role store."""
    return InMemoryRoleStore()


@pytest.fixture
def permission_store():
    """Create empty permission store."""
    return InMemoryPermissionStore()


@pytest.fixture
def settings():
    """Settings without global metrics registration."""
    return Settings(enable_metrics=False)


@pytest.fixture
def metrics():
    """Metrics collector bound to a private registry."""
    return MetricsCollector("permissions", CollectorRegistry())


@pytest.fixture
def engine(role_store, permission_store, settings, metrics):
    """Create AuthorizationEngine instance."""
    return AuthorizationEngine(role_store, permission_store, settings=settings, metrics=metrics)


@pytest.fixture
def context():
    """Create transition context."""
    return TransitionContext(
        to_state="app.reports",
        to_params={"report_id": "r-1"},
        from_state="app",
    )
