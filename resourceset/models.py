# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Kubernetes Custom Resource models for the TemporalCluster CRD.

Pydantic models representing the declarative cluster specification the
planner consumes. Every optional block defaults to None; a missing block
means the feature is disabled.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from .errors import ConfigurationLookupError


class ServiceName(str, Enum):
    """Temporal services, in deployment order."""

    FRONTEND = "frontend"
    HISTORY = "history"
    MATCHING = "matching"
    WORKER = "worker"
    INTERNAL_FRONTEND = "internal-frontend"


BASE_SERVICES: tuple[ServiceName, ...] = (
    ServiceName.FRONTEND,
    ServiceName.HISTORY,
    ServiceName.MATCHING,
    ServiceName.WORKER,
)


class MTLSProvider(str, Enum):
    """Mutual TLS providers."""

    CERT_MANAGER = "cert-manager"
    ISTIO = "istio"


# =============================================================================
# Services
# =============================================================================


class ServiceSpec(BaseModel):
    """Per-service overrides."""

    replicas: int | None = Field(default=None, ge=0)
    port: int | None = None
    membershipPort: int | None = None
    httpPort: int | None = None
    resources: dict[str, Any] = Field(default_factory=dict)
    overrides: dict[str, Any] | None = None


class InternalFrontendServiceSpec(ServiceSpec):
    """Internal frontend overrides; the service only runs when enabled."""

    enabled: bool = False


class ServicesSpec(BaseModel):
    """Service overrides for every Temporal service."""

    frontend: ServiceSpec | None = Field(default_factory=ServiceSpec)
    history: ServiceSpec | None = Field(default_factory=ServiceSpec)
    matching: ServiceSpec | None = Field(default_factory=ServiceSpec)
    worker: ServiceSpec | None = Field(default_factory=ServiceSpec)
    internalFrontend: InternalFrontendServiceSpec | None = None
    overrides: dict[str, Any] | None = None

    def get_service_spec(self, service: ServiceName) -> ServiceSpec:
        """Return the spec for a service.

        Raises:
            ConfigurationLookupError: if the service has no spec
        """
        try:
            name = ServiceName(service)
        except ValueError:
            raise ConfigurationLookupError(str(service), f"Unknown service '{service}'") from None

        specs: dict[ServiceName, ServiceSpec | None] = {
            ServiceName.FRONTEND: self.frontend,
            ServiceName.HISTORY: self.history,
            ServiceName.MATCHING: self.matching,
            ServiceName.WORKER: self.worker,
            ServiceName.INTERNAL_FRONTEND: self.internalFrontend,
        }
        spec = specs[name]
        if spec is None:
            raise ConfigurationLookupError(name.value)
        return spec


# =============================================================================
# mTLS
# =============================================================================


class InternodeMTLSSpec(BaseModel):
    """mTLS between Temporal services."""

    enabled: bool = False


class FrontendMTLSSpec(BaseModel):
    """mTLS between clients and the frontend service."""

    enabled: bool = False


class MTLSSpec(BaseModel):
    """Mutual TLS configuration."""

    provider: MTLSProvider = MTLSProvider.CERT_MANAGER
    internode: InternodeMTLSSpec | None = None
    frontend: FrontendMTLSSpec | None = None
    refreshInterval: str | None = None
    renewBefore: str | None = None


# =============================================================================
# Metrics
# =============================================================================


class ServiceMonitorSpec(BaseModel):
    """Prometheus-operator ServiceMonitor configuration."""

    enabled: bool = False
    labels: dict[str, str] = Field(default_factory=dict)
    metricRelabelings: list[dict[str, Any]] = Field(default_factory=list)


class PrometheusScrapeConfigSpec(BaseModel):
    """How Prometheus discovers the metrics endpoints."""

    annotations: bool = False
    serviceMonitor: ServiceMonitorSpec | None = None


class PrometheusSpec(BaseModel):
    """Prometheus metrics endpoint configuration."""

    listenAddress: str | None = None
    listenPort: int | None = None
    scrapeConfig: PrometheusScrapeConfigSpec | None = None


class MetricsSpec(BaseModel):
    """Metrics configuration."""

    enabled: bool = False
    prometheus: PrometheusSpec | None = None


# =============================================================================
# Dynamic config, UI, admin tools
# =============================================================================


class DynamicConfigSpec(BaseModel):
    """Dynamic configuration mounted into every service."""

    pollInterval: str | None = None
    values: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)


class UIIngressTLSSpec(BaseModel):
    """TLS entry of the UI ingress."""

    hosts: list[str] = Field(default_factory=list)
    secretName: str | None = None


class UIIngressSpec(BaseModel):
    """Ingress exposing the web UI."""

    hosts: list[str] = Field(default_factory=list)
    annotations: dict[str, str] = Field(default_factory=dict)
    ingressClassName: str | None = None
    tls: list[UIIngressTLSSpec] = Field(default_factory=list)


class UISpec(BaseModel):
    """Temporal web UI."""

    enabled: bool = False
    version: str | None = None
    image: str | None = None
    replicas: int | None = Field(default=None, ge=0)
    ingress: UIIngressSpec | None = None


class AdminToolsSpec(BaseModel):
    """Temporal admin tools deployment."""

    enabled: bool = False
    image: str | None = None
    version: str | None = None


# =============================================================================
# TemporalCluster CRD
# =============================================================================


class TemporalClusterSpec(BaseModel):
    """Spec section of a TemporalCluster custom resource."""

    version: str | None = None
    numHistoryShards: int = Field(default=1, ge=1)
    services: ServicesSpec = Field(default_factory=ServicesSpec)
    mTLS: MTLSSpec | None = None
    metrics: MetricsSpec | None = None
    dynamicConfig: DynamicConfigSpec | None = None
    ui: UISpec | None = None
    adminTools: AdminToolsSpec | None = None


class TemporalClusterMetadata(BaseModel):
    """Kubernetes metadata for TemporalCluster CR."""

    name: str = Field(..., min_length=1)
    namespace: str = "default"
    uid: str | None = None
    resourceVersion: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class TemporalCluster(BaseModel):
    """Complete TemporalCluster custom resource."""

    apiVersion: str = "temporal.io/v1beta1"
    kind: Literal["TemporalCluster"] = "TemporalCluster"
    metadata: TemporalClusterMetadata
    spec: TemporalClusterSpec = Field(default_factory=TemporalClusterSpec)
