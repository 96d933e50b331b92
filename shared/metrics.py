"""
Shared metrics configuration for the state permission layer.
"""

import weakref
from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY

# Metric families per registry; prometheus refuses duplicate registration.
_families: "weakref.WeakKeyDictionary[CollectorRegistry, Dict[str, Any]]" = weakref.WeakKeyDictionary()


def _create_families(registry: CollectorRegistry) -> Dict[str, Any]:
    return {
        "authorization_decisions_total": Counter(
            "authorization_decisions_total",
            "Total authorization decisions",
            ["service", "decision"],
            registry=registry
        ),
        "authorization_duration_seconds": Histogram(
            "authorization_duration_seconds",
            "Authorization evaluation duration in seconds",
            ["service"],
            registry=registry
        ),
        "privilege_checks_total": Counter(
            "privilege_checks_total",
            "Total single privilege checks",
            ["service", "source", "outcome"],
            registry=registry
        ),
        "redirect_resolutions_total": Counter(
            "redirect_resolutions_total",
            "Total redirect resolutions",
            ["service", "outcome"],
            registry=registry
        ),
    }


class MetricsCollector:
    """Centralized metrics collector for the authorization engine."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else REGISTRY
        if self.registry not in _families:
            _families[self.registry] = _create_families(self.registry)
        self._metrics: Dict[str, Any] = _families[self.registry]

    def record_decision(self, decision: str, duration: float):
        """Record an authorization decision."""
        self._metrics["authorization_decisions_total"].labels(
            service=self.service_name,
            decision=decision
        ).inc()
        self._metrics["authorization_duration_seconds"].labels(
            service=self.service_name
        ).observe(duration)

    def record_privilege_check(self, source: str, outcome: str):
        """Record a single privilege check."""
        self._metrics["privilege_checks_total"].labels(
            service=self.service_name,
            source=source,
            outcome=outcome
        ).inc()

    def record_redirect(self, outcome: str):
        """Record a redirect resolution."""
        self._metrics["redirect_resolutions_total"].labels(
            service=self.service_name,
            outcome=outcome
        ).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
