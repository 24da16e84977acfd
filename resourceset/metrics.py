# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Prometheus metrics for planning passes."""

from prometheus_client import Counter, Histogram

from .config import get_settings

settings = get_settings()
prefix = settings.metrics_prefix


# =============================================================================
# Metrics Definitions
# =============================================================================

PLAN_PASSES_TOTAL = Counter(
    f"{prefix}_plan_passes_total",
    "Total planning passes",
    ["outcome"],
)

PLANNED_RESOURCES = Histogram(
    f"{prefix}_planned_resources",
    "Number of resources emitted by a planning pass",
    ["action"],
    buckets=(5, 10, 15, 20, 25, 30, 40, 50),
)

PLAN_DURATION_SECONDS = Histogram(
    f"{prefix}_plan_duration_seconds",
    "Planning pass duration in seconds",
    buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1),
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_plan(to_create: int, to_prune: int, duration: float) -> None:
    """Record a successful planning pass."""
    if not get_settings().enable_metrics:
        return
    PLAN_PASSES_TOTAL.labels(outcome="success").inc()
    PLANNED_RESOURCES.labels(action="create").observe(to_create)
    PLANNED_RESOURCES.labels(action="prune").observe(to_prune)
    PLAN_DURATION_SECONDS.observe(duration)


def record_plan_error(code: str) -> None:
    """Record a failed planning pass, labelled by error code."""
    if not get_settings().enable_metrics:
        return
    PLAN_PASSES_TOTAL.labels(outcome=code.lower()).inc()
