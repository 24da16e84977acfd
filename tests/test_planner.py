# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for the resource-set and prune planners."""

import itertools

import pytest

from resourceset.catalog import BuilderInstance, BuilderKind, Scope
from resourceset.errors import ConfigurationLookupError
from resourceset.models import BASE_SERVICES, ServiceName
from resourceset.planner import PRUNE_RULES, RESOURCE_RULES, plan_prunes, plan_resources


CONFIG_MAP = BuilderInstance(BuilderKind.CONFIG_MAP)
FRONTEND_SERVICE = BuilderInstance(BuilderKind.FRONTEND_SERVICE)
UI_DEPLOYMENT = BuilderInstance(BuilderKind.UI_DEPLOYMENT)
UI_SERVICE = BuilderInstance(BuilderKind.UI_SERVICE)
UI_INGRESS = BuilderInstance(BuilderKind.UI_INGRESS)
UI_CLIENT_CERT = BuilderInstance(BuilderKind.FRONTEND_CLIENT_CERTIFICATE, scope=Scope.UI)
ADMIN_TOOLS = BuilderInstance(BuilderKind.ADMIN_TOOLS_DEPLOYMENT)
ADMIN_TOOLS_CLIENT_CERT = BuilderInstance(BuilderKind.FRONTEND_CLIENT_CERTIFICATE, scope=Scope.ADMIN_TOOLS)
WORKER_CLIENT_CERT = BuilderInstance(BuilderKind.FRONTEND_CLIENT_CERTIFICATE, scope=Scope.WORKER)

ROOT_CHAIN = [
    BuilderInstance(BuilderKind.MTLS_BOOTSTRAP_ISSUER),
    BuilderInstance(BuilderKind.MTLS_ROOT_CA_CERTIFICATE),
    BuilderInstance(BuilderKind.MTLS_ROOT_CA_ISSUER),
]


def ca_chain(scope: Scope) -> list[BuilderInstance]:
    return [
        BuilderInstance(BuilderKind.MTLS_INTERMEDIATE_CA_CERTIFICATE, scope=scope),
        BuilderInstance(BuilderKind.MTLS_INTERMEDIATE_CA_ISSUER, scope=scope),
        BuilderInstance(BuilderKind.MTLS_CERTIFICATE, scope=scope),
    ]


def workload(service: ServiceName) -> list[BuilderInstance]:
    return [
        BuilderInstance(BuilderKind.SERVICE_ACCOUNT, service=service),
        BuilderInstance(BuilderKind.DEPLOYMENT, service=service),
        BuilderInstance(BuilderKind.HEADLESS_SERVICE, service=service),
    ]


SERVICE_MONITOR_ON = {"enabled": True, "prometheus": {"scrapeConfig": {"serviceMonitor": {"enabled": True}}}}

FEATURE_BLOCKS = {
    "internal-frontend": {"services": {"internalFrontend": {"enabled": True}}},
    "istio": {"mTLS": {"provider": "istio"}},
    "cert-manager": {
        "mTLS": {"provider": "cert-manager", "internode": {"enabled": True}, "frontend": {"enabled": True}}
    },
    "metrics": {"metrics": SERVICE_MONITOR_ON},
    "dynamic-config": {"dynamicConfig": {"pollInterval": "10s"}},
    "ui": {"ui": {"enabled": True}},
    "ui-ingress": {"ui": {"enabled": True, "ingress": {"hosts": ["ui.example.com"]}}},
    "ui-disabled": {"ui": {"enabled": False, "ingress": {}}},
    "admin-tools": {"adminTools": {"enabled": True}},
    "admin-tools-disabled": {"adminTools": {"enabled": False}},
}


def combined_spec(*names: str) -> dict:
    spec: dict = {}
    for name in names:
        for key, value in FEATURE_BLOCKS[name].items():
            spec[key] = value
    return spec


# Every pair of feature blocks, plus each alone and none at all
FEATURE_COMBINATIONS = [()] + [(n,) for n in FEATURE_BLOCKS] + list(itertools.combinations(FEATURE_BLOCKS, 2))


# =============================================================================
# Scenarios
# =============================================================================


class TestScenarios:
    """End-to-end planning scenarios."""

    def test_base_services_only(self, base_cluster):
        """Default-disabled cluster: 14 resources to create, 4 to prune."""
        to_create = plan_resources(base_cluster)
        to_prune = plan_prunes(base_cluster)

        expected = [CONFIG_MAP, FRONTEND_SERVICE]
        for service in BASE_SERVICES:
            expected.extend(workload(service))
        assert list(to_create) == expected
        assert len(to_create) == 14
        assert list(to_prune) == [UI_DEPLOYMENT, UI_SERVICE, UI_INGRESS, ADMIN_TOOLS]

    def test_internal_frontend_adds_workload(self, make_cluster, base_cluster):
        """Internal frontend adds one service with its three resources."""
        cluster = make_cluster(combined_spec("internal-frontend"))

        to_create = plan_resources(cluster)

        assert len(to_create) == len(plan_resources(base_cluster)) + 3
        assert list(to_create[-3:]) == workload(ServiceName.INTERNAL_FRONTEND)
        services = {i.service for i in to_create if i.service is not None}
        assert len(services) == 5

    def test_cert_manager_full_chain(self, make_cluster, full_mtls_spec):
        """Root, internode and frontend chains plus the worker client certificate."""
        cluster = make_cluster(full_mtls_spec)

        to_create = plan_resources(cluster)

        assert len(to_create) == 14 + 10
        assert list(to_create[14:]) == ROOT_CHAIN + ca_chain(Scope.INTERNODE) + ca_chain(Scope.FRONTEND) + [
            WORKER_CLIENT_CERT
        ]

    def test_ui_with_ingress_and_frontend_mtls(self, make_cluster):
        """UI adds four resources and leaves nothing of the UI to prune."""
        mtls = {"mTLS": {"frontend": {"enabled": True}}}
        without_ui = make_cluster(mtls)
        with_ui = make_cluster({**mtls, **FEATURE_BLOCKS["ui-ingress"]})

        before = plan_resources(without_ui)
        after = plan_resources(with_ui)

        assert len(after) == len(before) + 4
        assert list(after[len(before):]) == [UI_DEPLOYMENT, UI_SERVICE, UI_INGRESS, UI_CLIENT_CERT]
        assert list(plan_prunes(with_ui)) == [ADMIN_TOOLS]

    def test_admin_tools_with_frontend_mtls(self, make_cluster, full_mtls_spec):
        cluster = make_cluster({**full_mtls_spec, **FEATURE_BLOCKS["admin-tools"]})

        to_create = plan_resources(cluster)

        assert list(to_create[-2:]) == [ADMIN_TOOLS, ADMIN_TOOLS_CLIENT_CERT]
        assert list(plan_prunes(cluster)) == [UI_DEPLOYMENT, UI_SERVICE, UI_INGRESS]

    def test_admin_tools_without_mtls(self, make_cluster):
        cluster = make_cluster(combined_spec("admin-tools"))

        assert ADMIN_TOOLS in plan_resources(cluster)
        assert ADMIN_TOOLS_CLIENT_CERT not in plan_resources(cluster)

    def test_istio_and_service_monitor_follow_each_service(self, make_cluster):
        """Conditional per-service resources come right after the service's workload."""
        cluster = make_cluster(combined_spec("istio", "metrics"))

        to_create = plan_resources(cluster)

        assert len(to_create) == 2 + 4 * 6
        for index, service in enumerate(BASE_SERVICES):
            start = 2 + index * 6
            assert list(to_create[start:start + 6]) == workload(service) + [
                BuilderInstance(BuilderKind.PEER_AUTHENTICATION, service=service),
                BuilderInstance(BuilderKind.DESTINATION_RULE, service=service),
                BuilderInstance(BuilderKind.SERVICE_MONITOR, service=service),
            ]

    def test_istio_emits_no_certificates(self, make_cluster):
        cluster = make_cluster(combined_spec("istio", "ui"))

        kinds = {i.kind for i in plan_resources(cluster)}

        assert BuilderKind.MTLS_BOOTSTRAP_ISSUER not in kinds
        assert BuilderKind.FRONTEND_CLIENT_CERTIFICATE not in kinds

    def test_dynamic_config_after_services(self, make_cluster):
        cluster = make_cluster(combined_spec("dynamic-config", "internal-frontend"))

        to_create = plan_resources(cluster)

        assert to_create[-1] == BuilderInstance(BuilderKind.DYNAMIC_CONFIG_MAP)
        assert len(to_create) == 2 + 5 * 3 + 1

    def test_cert_manager_without_scopes_has_root_chain_only(self, make_cluster):
        cluster = make_cluster({"mTLS": {"provider": "cert-manager"}})

        assert list(plan_resources(cluster)[14:]) == ROOT_CHAIN


# =============================================================================
# Properties
# =============================================================================


class TestPlanProperties:
    """Invariants that hold for every specification."""

    @pytest.mark.parametrize("features", FEATURE_COMBINATIONS, ids=lambda f: "+".join(f) or "none")
    def test_deterministic(self, make_cluster, features):
        """Repeated passes over equal input give identical, identically ordered output."""
        cluster = make_cluster(combined_spec(*features))
        twin = make_cluster(combined_spec(*features))

        assert plan_resources(cluster) == plan_resources(cluster) == plan_resources(twin)
        assert plan_prunes(cluster) == plan_prunes(cluster) == plan_prunes(twin)

    @pytest.mark.parametrize("features", FEATURE_COMBINATIONS, ids=lambda f: "+".join(f) or "none")
    def test_create_and_prune_are_disjoint(self, make_cluster, features):
        cluster = make_cluster(combined_spec(*features))

        assert not set(plan_resources(cluster)) & set(plan_prunes(cluster))

    @pytest.mark.parametrize("features", FEATURE_COMBINATIONS, ids=lambda f: "+".join(f) or "none")
    def test_no_duplicates(self, make_cluster, features):
        cluster = make_cluster(combined_spec(*features))
        to_create = plan_resources(cluster)

        assert len(set(to_create)) == len(to_create)

    def test_input_not_mutated(self, make_cluster, full_mtls_spec):
        cluster = make_cluster({**full_mtls_spec, **combined_spec("ui-ingress", "metrics")})
        before = cluster.model_dump()

        plan_resources(cluster)
        plan_prunes(cluster)

        assert cluster.model_dump() == before

    def test_base_resources_first(self, make_cluster, full_mtls_spec):
        """The configmap precedes every workload that mounts it."""
        cluster = make_cluster({**full_mtls_spec, **combined_spec("ui", "admin-tools")})

        assert list(plan_resources(cluster)[:2]) == [CONFIG_MAP, FRONTEND_SERVICE]


class TestCertificateRules:
    """Certificate chain ordering and the internal-frontend exclusion."""

    def test_root_chain_precedes_internode_chain(self, make_cluster):
        cluster = make_cluster({"mTLS": {"internode": {"enabled": True}}})

        to_create = list(plan_resources(cluster))
        positions = [to_create.index(i) for i in ROOT_CHAIN + ca_chain(Scope.INTERNODE)]

        assert positions == sorted(positions)
        assert positions == list(range(positions[0], positions[0] + 6))

    def test_worker_client_cert_without_internal_frontend(self, make_cluster):
        cluster = make_cluster({"mTLS": {"frontend": {"enabled": True}}})

        assert WORKER_CLIENT_CERT in plan_resources(cluster)

    def test_no_worker_client_cert_with_internal_frontend(self, make_cluster):
        """The worker reaches the internal frontend and needs no client certificate."""
        cluster = make_cluster(
            {"mTLS": {"frontend": {"enabled": True}}, **combined_spec("internal-frontend")}
        )

        to_create = plan_resources(cluster)

        assert WORKER_CLIENT_CERT not in to_create
        assert ca_chain(Scope.FRONTEND)[-1] in to_create

    def test_internode_only_emits_no_client_certs(self, make_cluster):
        cluster = make_cluster({"mTLS": {"internode": {"enabled": True}}, **combined_spec("ui", "admin-tools")})

        kinds = [i.kind for i in plan_resources(cluster)]

        assert BuilderKind.FRONTEND_CLIENT_CERTIFICATE not in kinds


class TestUIIngress:
    """UI ingress conditionality."""

    def test_toggling_ingress_flips_one_entry(self, make_cluster):
        with_ingress = plan_resources(make_cluster(combined_spec("ui-ingress")))
        without_ingress = plan_resources(make_cluster(combined_spec("ui")))

        assert set(with_ingress) - set(without_ingress) == {UI_INGRESS}
        assert set(without_ingress) <= set(with_ingress)

    def test_ingress_ignored_when_ui_disabled(self, make_cluster):
        cluster = make_cluster(combined_spec("ui-disabled"))

        assert UI_INGRESS not in plan_resources(cluster)
        assert UI_INGRESS in plan_prunes(cluster)


class TestPrunePlanner:
    """Pruning covers UI and admin tools only."""

    def test_disabled_blocks_are_pruned(self, make_cluster):
        cluster = make_cluster(combined_spec("ui-disabled", "admin-tools-disabled"))

        assert list(plan_prunes(cluster)) == [UI_DEPLOYMENT, UI_SERVICE, UI_INGRESS, ADMIN_TOOLS]

    def test_enabled_blocks_are_not_pruned(self, make_cluster):
        cluster = make_cluster(combined_spec("ui", "admin-tools"))

        assert plan_prunes(cluster) == ()

    def test_certificates_and_mesh_never_pruned(self, make_cluster):
        """Disabling mTLS or istio leaves certificate and mesh resources alone."""
        for spec in ({}, {"mTLS": {"provider": "istio"}}, {"mTLS": {"provider": "cert-manager"}}):
            kinds = {i.kind for i in plan_prunes(make_cluster(spec))}
            assert kinds == {
                BuilderKind.UI_DEPLOYMENT,
                BuilderKind.UI_SERVICE,
                BuilderKind.UI_INGRESS,
                BuilderKind.ADMIN_TOOLS_DEPLOYMENT,
            }


class TestRuleTable:
    """Each rule can be evaluated on its own."""

    def test_rule_names_unique(self):
        assert len({r.name for r in RESOURCE_RULES}) == len(RESOURCE_RULES)
        assert len({r.name for r in PRUNE_RULES}) == len(PRUNE_RULES)

    def test_rule_evaluates_empty_when_disabled(self, base_cluster):
        rules = {r.name: r for r in RESOURCE_RULES}

        assert rules["mtls-root-ca"].evaluate(base_cluster) == ()
        assert rules["base"].evaluate(base_cluster) == (CONFIG_MAP, FRONTEND_SERVICE)

    def test_worker_client_rule(self, make_cluster):
        rule = {r.name: r for r in RESOURCE_RULES}["mtls-worker-frontend-client"]

        assert rule.evaluate(make_cluster({"mTLS": {"frontend": {"enabled": True}}})) == (WORKER_CLIENT_CERT,)
        assert rule.evaluate(make_cluster({"mTLS": {"provider": "istio", "frontend": {"enabled": True}}})) == ()


class TestLookupErrors:
    """Unresolvable service specs abort the pass."""

    def test_missing_service_spec_raises(self, make_cluster):
        cluster = make_cluster({"services": {"matching": None}})

        with pytest.raises(ConfigurationLookupError) as exc_info:
            plan_resources(cluster)

        assert exc_info.value.service == "matching"

    def test_prune_planner_unaffected(self, make_cluster):
        """Pruning does not resolve service specs."""
        cluster = make_cluster({"services": {"matching": None}})

        assert len(plan_prunes(cluster)) == 4

    def test_per_service_instances_carry_spec(self, make_cluster):
        cluster = make_cluster({"services": {"history": {"replicas": 7}}})

        deployments = [i for i in plan_resources(cluster) if i.kind == BuilderKind.DEPLOYMENT]

        assert [d.service for d in deployments] == list(BASE_SERVICES)
        assert deployments[1].service_spec.replicas == 7
