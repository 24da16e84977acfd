# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pytest configuration and shared fixtures."""

import logging
from typing import Any, Callable

import pytest

from resourceset.config import clear_settings_cache
from resourceset.logging_config import clear_context
from resourceset.models import TemporalCluster


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to captured streams by configure_logging."""
    yield
    logging.getLogger().handlers.clear()
    clear_context()


def cluster_from_spec(spec: dict[str, Any] | None = None, name: str = "prod") -> TemporalCluster:
    """Build a TemporalCluster from a raw spec mapping."""
    return TemporalCluster.model_validate(
        {"metadata": {"name": name, "namespace": "temporal"}, "spec": spec or {}}
    )


@pytest.fixture
def make_cluster() -> Callable[..., TemporalCluster]:
    """Factory building clusters from raw spec mappings."""
    return cluster_from_spec


@pytest.fixture
def base_cluster() -> TemporalCluster:
    """Cluster with every optional block absent."""
    return cluster_from_spec()


@pytest.fixture
def full_mtls_spec() -> dict[str, Any]:
    """cert-manager mTLS with internode and frontend scopes."""
    return {
        "mTLS": {
            "provider": "cert-manager",
            "internode": {"enabled": True},
            "frontend": {"enabled": True},
        }
    }
