# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Cluster builder: the entry point reconcilers call on every pass.

Bundles the resource-set and prune planners into a PlanResult and checks the
plan invariants before handing it over. The reconciler upserts every
``to_create`` entry and deletes every ``to_prune`` entry that still exists.
"""

import time
from collections import Counter
from dataclasses import dataclass
from typing import Any

import structlog

from .catalog import BuilderInstance
from .errors import PlanInconsistencyError, PlannerError
from .flags import FeatureFlags
from .metrics import record_plan, record_plan_error
from .models import TemporalCluster
from .planner import plan_prunes, plan_resources

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlanResult:
    """Builder instances to create and to prune for one planning pass."""

    cluster: str
    namespace: str
    to_create: tuple[BuilderInstance, ...]
    to_prune: tuple[BuilderInstance, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster": self.cluster,
            "namespace": self.namespace,
            "toCreate": [i.to_dict(self.cluster) for i in self.to_create],
            "toPrune": [i.to_dict(self.cluster) for i in self.to_prune],
        }


def check_plan(to_create: tuple[BuilderInstance, ...], to_prune: tuple[BuilderInstance, ...]) -> None:
    """Validate plan invariants.

    Raises:
        PlanInconsistencyError: on duplicate creations, or on an instance
            that is both created and pruned
    """
    duplicates = [i.key for i, count in Counter(to_create).items() if count > 1]
    if duplicates:
        raise PlanInconsistencyError("Duplicate builder instances in creation set", duplicates)

    overlap = set(to_create) & set(to_prune)
    if overlap:
        keys = sorted(i.key for i in overlap)
        raise PlanInconsistencyError("Builder instances both created and pruned", keys)


class ClusterBuilder:
    """Plans the resources of one TemporalCluster."""

    def __init__(self, cluster: TemporalCluster):
        self.cluster = cluster

    def resource_builders(self) -> tuple[BuilderInstance, ...]:
        """Instances for every resource that should exist."""
        return plan_resources(self.cluster)

    def resource_pruners(self) -> tuple[BuilderInstance, ...]:
        """Instances for resources of disabled features."""
        return plan_prunes(self.cluster)

    def feature_flags(self) -> FeatureFlags:
        return FeatureFlags.from_cluster(self.cluster)

    def plan(self) -> PlanResult:
        """Run a full planning pass.

        All or nothing: any error aborts the pass and propagates unchanged.

        Raises:
            ConfigurationLookupError: if an active service has no spec
            PlanInconsistencyError: if the plan breaks its invariants
        """
        log = logger.bind(cluster=self.cluster.metadata.name, namespace=self.cluster.metadata.namespace)
        started = time.perf_counter()
        try:
            to_create = self.resource_builders()
            to_prune = self.resource_pruners()
            check_plan(to_create, to_prune)
        except PlannerError as e:
            record_plan_error(e.code.value)
            log.warning("Planning pass failed", code=e.code.value, error=e.message)
            raise

        duration = time.perf_counter() - started
        record_plan(len(to_create), len(to_prune), duration)
        log.debug(
            "Planned resource set",
            to_create=len(to_create),
            to_prune=len(to_prune),
            flags=self.feature_flags().to_dict(),
        )
        return PlanResult(
            cluster=self.cluster.metadata.name,
            namespace=self.cluster.metadata.namespace,
            to_create=to_create,
            to_prune=to_prune,
        )
