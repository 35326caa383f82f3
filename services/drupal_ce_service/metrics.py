"""Metrics definitions for the Drupal CE Service."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class DrupalCeMetrics:
    """A container for all Prometheus metrics for the Drupal CE Service."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics with optional registry for test isolation."""
        if registry is None:
            registry = REGISTRY
        self.registry = registry
        self.cms_fetches_total = Counter(
            "drupal_ce_cms_fetches_total",
            "Total number of page and menu fetches against the CMS.",
            ["kind", "outcome"],
            registry=registry,
        )
        self.cms_fetch_duration_seconds = Histogram(
            "drupal_ce_cms_fetch_duration_seconds",
            "Duration of CMS fetches in seconds.",
            ["kind"],
            registry=registry,
        )
        self.proxy_requests_total = Counter(
            "drupal_ce_proxy_requests_total",
            "Total number of requests forwarded through the CMS proxy.",
            ["route", "method", "status_code"],
            registry=registry,
        )
        self.proxy_request_duration_seconds = Histogram(
            "drupal_ce_proxy_request_duration_seconds",
            "Time until the upstream response headers of proxied requests arrive.",
            ["route", "method"],
            registry=registry,
        )
