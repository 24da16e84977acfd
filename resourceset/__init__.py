# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Resource-set planner for TemporalCluster custom resources."""

__version__ = "0.1.0"

from .builder import ClusterBuilder, PlanResult
from .catalog import BuilderCatalog, BuilderInstance, BuilderKind, Scope, get_catalog
from .errors import (
    ConfigurationLookupError,
    FactoryNotRegisteredError,
    PlanInconsistencyError,
    PlannerError,
    PlannerErrorCode,
    SpecificationLoadError,
)
from .flags import FeatureFlags
from .models import ServiceName, TemporalCluster
from .planner import plan_prunes, plan_resources

__all__ = [
    # Planning
    "ClusterBuilder",
    "PlanResult",
    "plan_resources",
    "plan_prunes",
    "FeatureFlags",
    # Catalog
    "BuilderCatalog",
    "BuilderInstance",
    "BuilderKind",
    "Scope",
    "get_catalog",
    # Models
    "ServiceName",
    "TemporalCluster",
    # Errors
    "PlannerError",
    "PlannerErrorCode",
    "ConfigurationLookupError",
    "SpecificationLoadError",
    "FactoryNotRegisteredError",
    "PlanInconsistencyError",
]
