# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Feature flags derived from a TemporalCluster.

Every predicate is total: a missing block at any nesting level reads as
"disabled" and nothing here raises. This is the only place that walks the
optional blocks of the spec.
"""

from dataclasses import asdict, dataclass

from .models import BASE_SERVICES, MTLSProvider, ServiceName, TemporalCluster


def mesh_mtls_enabled(cluster: TemporalCluster) -> bool:
    """mTLS is delegated to the Istio sidecars."""
    mtls = cluster.spec.mTLS
    return mtls is not None and mtls.provider == MTLSProvider.ISTIO


def cert_manager_mtls_enabled(cluster: TemporalCluster) -> bool:
    """mTLS certificates are issued through cert-manager."""
    mtls = cluster.spec.mTLS
    return mtls is not None and mtls.provider == MTLSProvider.CERT_MANAGER


def internode_mtls_enabled(cluster: TemporalCluster) -> bool:
    if not cert_manager_mtls_enabled(cluster):
        return False
    internode = cluster.spec.mTLS.internode
    return internode is not None and internode.enabled


def frontend_mtls_enabled(cluster: TemporalCluster) -> bool:
    if not cert_manager_mtls_enabled(cluster):
        return False
    frontend = cluster.spec.mTLS.frontend
    return frontend is not None and frontend.enabled


def internal_frontend_enabled(cluster: TemporalCluster) -> bool:
    internal = cluster.spec.services.internalFrontend
    return internal is not None and internal.enabled


def ui_enabled(cluster: TemporalCluster) -> bool:
    ui = cluster.spec.ui
    return ui is not None and ui.enabled


def ui_ingress_configured(cluster: TemporalCluster) -> bool:
    return ui_enabled(cluster) and cluster.spec.ui.ingress is not None


def admin_tools_enabled(cluster: TemporalCluster) -> bool:
    admin_tools = cluster.spec.adminTools
    return admin_tools is not None and admin_tools.enabled


def metrics_service_monitor_enabled(cluster: TemporalCluster) -> bool:
    """ServiceMonitors are requested.

    Needs metrics enabled, a prometheus block, a scrape config, a
    serviceMonitor block and its enabled flag.
    """
    metrics = cluster.spec.metrics
    if metrics is None or not metrics.enabled:
        return False
    prometheus = metrics.prometheus
    if prometheus is None or prometheus.scrapeConfig is None:
        return False
    service_monitor = prometheus.scrapeConfig.serviceMonitor
    return service_monitor is not None and service_monitor.enabled


def dynamic_config_present(cluster: TemporalCluster) -> bool:
    return cluster.spec.dynamicConfig is not None


def active_services(cluster: TemporalCluster) -> tuple[ServiceName, ...]:
    """Services that run for this cluster, in deployment order."""
    if internal_frontend_enabled(cluster):
        return BASE_SERVICES + (ServiceName.INTERNAL_FRONTEND,)
    return BASE_SERVICES


@dataclass(frozen=True)
class FeatureFlags:
    """Snapshot of every feature flag for one cluster."""

    mesh_mtls: bool
    cert_manager_mtls: bool
    internode_mtls: bool
    frontend_mtls: bool
    internal_frontend: bool
    ui: bool
    ui_ingress: bool
    admin_tools: bool
    metrics_service_monitor: bool
    dynamic_config: bool

    @classmethod
    def from_cluster(cls, cluster: TemporalCluster) -> "FeatureFlags":
        return cls(
            mesh_mtls=mesh_mtls_enabled(cluster),
            cert_manager_mtls=cert_manager_mtls_enabled(cluster),
            internode_mtls=internode_mtls_enabled(cluster),
            frontend_mtls=frontend_mtls_enabled(cluster),
            internal_frontend=internal_frontend_enabled(cluster),
            ui=ui_enabled(cluster),
            ui_ingress=ui_ingress_configured(cluster),
            admin_tools=admin_tools_enabled(cluster),
            metrics_service_monitor=metrics_service_monitor_enabled(cluster),
            dynamic_config=dynamic_config_present(cluster),
        )

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)
