"""Prometheus counters for packaging and verification.

Metrics live on a package-private CollectorRegistry so embedding xtsign never
collides with the host's default registry. Pass ``registry`` to expose them
elsewhere.
"""
from __future__ import annotations

from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter


class MetricsRegistry:
    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self.packages_signed = Counter(
            "xtsign_packages_signed", "Artifacts signed and written", registry=self.registry
        )
        self.packaging_failures = Counter(
            "xtsign_packaging_failures", "Aborted packaging runs", ["stage"], registry=self.registry
        )
        self.verifications = Counter(
            "xtsign_verifications", "Artifact verification outcomes", ["status"], registry=self.registry
        )

    def observe_package(self) -> None:
        self.packages_signed.inc()

    def observe_failure(self, stage: str) -> None:
        self.packaging_failures.labels(stage=stage).inc()

    def observe_verification(self, status: str) -> None:
        self.verifications.labels(status=status).inc()

    def snapshot(self) -> Dict[str, int]:
        """Return current totals as plain ints."""
        def total(name: str) -> int:
            value = 0.0
            for metric in self.registry.collect():
                for sample in metric.samples:
                    if sample.name == name:
                        value += sample.value
            return int(value)

        return {
            "packages_signed_total": total("xtsign_packages_signed_total"),
            "packaging_failures_total": total("xtsign_packaging_failures_total"),
            "verifications_total": total("xtsign_verifications_total"),
        }


_registry: Optional[MetricsRegistry] = None


def get_registry() -> MetricsRegistry:
    global _registry
    if _registry is None:
        _registry = MetricsRegistry()
    return _registry


def snapshot_metrics() -> Dict[str, int]:
    """Return the default registry's counters."""
    return get_registry().snapshot()


__all__ = ["get_registry", "snapshot_metrics", "MetricsRegistry"]
