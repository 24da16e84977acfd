# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Resource-set and prune planning.

Both planners are ordered rule tables: each rule pairs a feature predicate
with the builder instances it contributes. Rules are evaluated top to bottom
and the creation order is the table order, so resources referenced by
others (the configmap, the CA chain) come first.

The functions here are pure: no I/O, no logging, the cluster is never
mutated, and a failing pass raises before anything is returned.
"""

from dataclasses import dataclass
from typing import Callable, Iterable

from . import flags
from .catalog import BuilderInstance, BuilderKind, Scope
from .models import TemporalCluster

Predicate = Callable[[TemporalCluster], bool]
Emitter = Callable[[TemporalCluster], Iterable[BuilderInstance]]


@dataclass(frozen=True)
class Rule:
    """A feature predicate and the instances it contributes when true."""

    name: str
    applies: Predicate
    emit: Emitter

    def evaluate(self, cluster: TemporalCluster) -> tuple[BuilderInstance, ...]:
        if not self.applies(cluster):
            return ()
        return tuple(self.emit(cluster))


@dataclass(frozen=True)
class ServiceRule:
    """A feature predicate and the per-service kinds it contributes."""

    name: str
    applies: Predicate
    kinds: tuple[BuilderKind, ...]


def _always(cluster: TemporalCluster) -> bool:
    return True


def _fixed(*instances: BuilderInstance) -> Emitter:
    def emit(cluster: TemporalCluster) -> Iterable[BuilderInstance]:
        return instances

    return emit


def _all(*predicates: Predicate) -> Predicate:
    def applies(cluster: TemporalCluster) -> bool:
        return all(p(cluster) for p in predicates)

    return applies


def _negate(predicate: Predicate) -> Predicate:
    def applies(cluster: TemporalCluster) -> bool:
        return not predicate(cluster)

    return applies


def _ca_chain(scope: Scope) -> Emitter:
    """Intermediate CA certificate, its issuer, then the leaf certificate."""
    return _fixed(
        BuilderInstance(BuilderKind.MTLS_INTERMEDIATE_CA_CERTIFICATE, scope=scope),
        BuilderInstance(BuilderKind.MTLS_INTERMEDIATE_CA_ISSUER, scope=scope),
        BuilderInstance(BuilderKind.MTLS_CERTIFICATE, scope=scope),
    )


def _client_certificate(scope: Scope) -> Emitter:
    return _fixed(BuilderInstance(BuilderKind.FRONTEND_CLIENT_CERTIFICATE, scope=scope))


# Evaluated for every active service, in this order, right after each other
SERVICE_RULES: tuple[ServiceRule, ...] = (
    ServiceRule(
        "workload",
        _always,
        (BuilderKind.SERVICE_ACCOUNT, BuilderKind.DEPLOYMENT, BuilderKind.HEADLESS_SERVICE),
    ),
    ServiceRule(
        "istio",
        flags.mesh_mtls_enabled,
        (BuilderKind.PEER_AUTHENTICATION, BuilderKind.DESTINATION_RULE),
    ),
    ServiceRule("service-monitor", flags.metrics_service_monitor_enabled, (BuilderKind.SERVICE_MONITOR,)),
)


def _emit_services(cluster: TemporalCluster) -> list[BuilderInstance]:
    enabled_rules = [rule for rule in SERVICE_RULES if rule.applies(cluster)]
    instances: list[BuilderInstance] = []
    for service in flags.active_services(cluster):
        spec = cluster.spec.services.get_service_spec(service)
        for rule in enabled_rules:
            instances.extend(BuilderInstance(kind, service=service, service_spec=spec) for kind in rule.kinds)
    return instances


RESOURCE_RULES: tuple[Rule, ...] = (
    Rule(
        "base",
        _always,
        _fixed(BuilderInstance(BuilderKind.CONFIG_MAP), BuilderInstance(BuilderKind.FRONTEND_SERVICE)),
    ),
    Rule("services", _always, _emit_services),
    Rule("dynamic-config", flags.dynamic_config_present, _fixed(BuilderInstance(BuilderKind.DYNAMIC_CONFIG_MAP))),
    Rule(
        "mtls-root-ca",
        flags.cert_manager_mtls_enabled,
        _fixed(
            BuilderInstance(BuilderKind.MTLS_BOOTSTRAP_ISSUER),
            BuilderInstance(BuilderKind.MTLS_ROOT_CA_CERTIFICATE),
            BuilderInstance(BuilderKind.MTLS_ROOT_CA_ISSUER),
        ),
    ),
    Rule("mtls-internode", flags.internode_mtls_enabled, _ca_chain(Scope.INTERNODE)),
    Rule("mtls-frontend", flags.frontend_mtls_enabled, _ca_chain(Scope.FRONTEND)),
    # With internal-frontend the worker talks to it instead of the public frontend
    Rule(
        "mtls-worker-frontend-client",
        _all(flags.frontend_mtls_enabled, _negate(flags.internal_frontend_enabled)),
        _client_certificate(Scope.WORKER),
    ),
    Rule(
        "ui",
        flags.ui_enabled,
        _fixed(BuilderInstance(BuilderKind.UI_DEPLOYMENT), BuilderInstance(BuilderKind.UI_SERVICE)),
    ),
    Rule("ui-ingress", flags.ui_ingress_configured, _fixed(BuilderInstance(BuilderKind.UI_INGRESS))),
    Rule(
        "ui-frontend-client",
        _all(flags.ui_enabled, flags.frontend_mtls_enabled),
        _client_certificate(Scope.UI),
    ),
    Rule("admin-tools", flags.admin_tools_enabled, _fixed(BuilderInstance(BuilderKind.ADMIN_TOOLS_DEPLOYMENT))),
    Rule(
        "admin-tools-frontend-client",
        _all(flags.admin_tools_enabled, flags.frontend_mtls_enabled),
        _client_certificate(Scope.ADMIN_TOOLS),
    ),
)


# Only features whose resources are safe to delete once disabled. Certificates
# and mesh resources are left to the operator.
PRUNE_RULES: tuple[Rule, ...] = (
    Rule(
        "ui",
        _negate(flags.ui_enabled),
        _fixed(
            BuilderInstance(BuilderKind.UI_DEPLOYMENT),
            BuilderInstance(BuilderKind.UI_SERVICE),
            BuilderInstance(BuilderKind.UI_INGRESS),
        ),
    ),
    Rule(
        "admin-tools",
        _negate(flags.admin_tools_enabled),
        _fixed(BuilderInstance(BuilderKind.ADMIN_TOOLS_DEPLOYMENT)),
    ),
)


def evaluate_rules(rules: Iterable[Rule], cluster: TemporalCluster) -> tuple[BuilderInstance, ...]:
    """Evaluate a rule table in order and concatenate the results."""
    instances: list[BuilderInstance] = []
    for rule in rules:
        instances.extend(rule.evaluate(cluster))
    return tuple(instances)


def plan_resources(cluster: TemporalCluster) -> tuple[BuilderInstance, ...]:
    """Builder instances for every resource that should exist.

    Raises:
        ConfigurationLookupError: if an active service has no spec
    """
    return evaluate_rules(RESOURCE_RULES, cluster)


def plan_prunes(cluster: TemporalCluster) -> tuple[BuilderInstance, ...]:
    """Builder instances whose resources must be deleted."""
    return evaluate_rules(PRUNE_RULES, cluster)
