# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Builder catalog.

The closed set of resource builder kinds the planner can emit, the
Kubernetes identity (apiVersion, kind, name pattern) of the resource each
kind stands for, and the registry of resource factories that render bodies.

The planner only deals in BuilderInstance identities. Rendering is done by
factories that resource layers register against a kind.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import structlog

from .errors import FactoryNotRegisteredError
from .models import ServiceName, ServiceSpec, TemporalCluster

logger = structlog.get_logger(__name__)

# Singleton instance
_catalog: "BuilderCatalog | None" = None


class BuilderKind(str, Enum):
    """Resource builder kinds."""

    CONFIG_MAP = "configmap"
    FRONTEND_SERVICE = "frontend-service"
    SERVICE_ACCOUNT = "service-account"
    DEPLOYMENT = "deployment"
    HEADLESS_SERVICE = "headless-service"
    PEER_AUTHENTICATION = "peer-authentication"
    DESTINATION_RULE = "destination-rule"
    SERVICE_MONITOR = "service-monitor"
    DYNAMIC_CONFIG_MAP = "dynamic-configmap"
    MTLS_BOOTSTRAP_ISSUER = "mtls-bootstrap-issuer"
    MTLS_ROOT_CA_CERTIFICATE = "mtls-root-ca-certificate"
    MTLS_ROOT_CA_ISSUER = "mtls-root-ca-issuer"
    MTLS_INTERMEDIATE_CA_CERTIFICATE = "mtls-intermediate-ca-certificate"
    MTLS_INTERMEDIATE_CA_ISSUER = "mtls-intermediate-ca-issuer"
    MTLS_CERTIFICATE = "mtls-certificate"
    FRONTEND_CLIENT_CERTIFICATE = "frontend-client-certificate"
    UI_DEPLOYMENT = "ui-deployment"
    UI_SERVICE = "ui-service"
    UI_INGRESS = "ui-ingress"
    ADMIN_TOOLS_DEPLOYMENT = "admintools-deployment"


class Scope(str, Enum):
    """Certificate scopes."""

    INTERNODE = "internode"
    FRONTEND = "frontend"
    WORKER = "worker"
    UI = "ui"
    ADMIN_TOOLS = "admintools"


@dataclass(frozen=True)
class KindDescriptor:
    """Kubernetes identity of the resource a builder kind produces."""

    kind: BuilderKind
    api_version: str
    resource_kind: str
    name_template: str
    per_service: bool = False
    scopes: frozenset[Scope] = frozenset()

    def resource_name(
        self,
        cluster_name: str,
        service: ServiceName | None = None,
        scope: Scope | None = None,
    ) -> str:
        return self.name_template.format(
            cluster=cluster_name,
            service=service.value if service else "",
            scope=scope.value if scope else "",
        )


_CA_SCOPES = frozenset({Scope.INTERNODE, Scope.FRONTEND})
_CLIENT_SCOPES = frozenset({Scope.WORKER, Scope.UI, Scope.ADMIN_TOOLS})

DEFAULT_DESCRIPTORS: tuple[KindDescriptor, ...] = (
    KindDescriptor(BuilderKind.CONFIG_MAP, "v1", "ConfigMap", "{cluster}-config"),
    KindDescriptor(BuilderKind.FRONTEND_SERVICE, "v1", "Service", "{cluster}-frontend"),
    KindDescriptor(BuilderKind.SERVICE_ACCOUNT, "v1", "ServiceAccount", "{cluster}-{service}", per_service=True),
    KindDescriptor(BuilderKind.DEPLOYMENT, "apps/v1", "Deployment", "{cluster}-{service}", per_service=True),
    KindDescriptor(BuilderKind.HEADLESS_SERVICE, "v1", "Service", "{cluster}-{service}-headless", per_service=True),
    KindDescriptor(
        BuilderKind.PEER_AUTHENTICATION,
        "security.istio.io/v1beta1",
        "PeerAuthentication",
        "{cluster}-{service}",
        per_service=True,
    ),
    KindDescriptor(
        BuilderKind.DESTINATION_RULE,
        "networking.istio.io/v1beta1",
        "DestinationRule",
        "{cluster}-{service}",
        per_service=True,
    ),
    KindDescriptor(
        BuilderKind.SERVICE_MONITOR,
        "monitoring.coreos.com/v1",
        "ServiceMonitor",
        "{cluster}-{service}",
        per_service=True,
    ),
    KindDescriptor(BuilderKind.DYNAMIC_CONFIG_MAP, "v1", "ConfigMap", "{cluster}-dynamic-config"),
    KindDescriptor(BuilderKind.MTLS_BOOTSTRAP_ISSUER, "cert-manager.io/v1", "Issuer", "{cluster}-bootstrap-issuer"),
    KindDescriptor(
        BuilderKind.MTLS_ROOT_CA_CERTIFICATE, "cert-manager.io/v1", "Certificate", "{cluster}-root-ca-certificate"
    ),
    KindDescriptor(BuilderKind.MTLS_ROOT_CA_ISSUER, "cert-manager.io/v1", "Issuer", "{cluster}-root-ca-issuer"),
    KindDescriptor(
        BuilderKind.MTLS_INTERMEDIATE_CA_CERTIFICATE,
        "cert-manager.io/v1",
        "Certificate",
        "{cluster}-{scope}-intermediate-ca-certificate",
        scopes=_CA_SCOPES,
    ),
    KindDescriptor(
        BuilderKind.MTLS_INTERMEDIATE_CA_ISSUER,
        "cert-manager.io/v1",
        "Issuer",
        "{cluster}-{scope}-intermediate-ca-issuer",
        scopes=_CA_SCOPES,
    ),
    KindDescriptor(
        BuilderKind.MTLS_CERTIFICATE,
        "cert-manager.io/v1",
        "Certificate",
        "{cluster}-{scope}-certificate",
        scopes=_CA_SCOPES,
    ),
    KindDescriptor(
        BuilderKind.FRONTEND_CLIENT_CERTIFICATE,
        "cert-manager.io/v1",
        "Certificate",
        "{cluster}-{scope}-frontend-certificate",
        scopes=_CLIENT_SCOPES,
    ),
    KindDescriptor(BuilderKind.UI_DEPLOYMENT, "apps/v1", "Deployment", "{cluster}-ui"),
    KindDescriptor(BuilderKind.UI_SERVICE, "v1", "Service", "{cluster}-ui"),
    KindDescriptor(BuilderKind.UI_INGRESS, "networking.k8s.io/v1", "Ingress", "{cluster}-ui"),
    KindDescriptor(BuilderKind.ADMIN_TOOLS_DEPLOYMENT, "apps/v1", "Deployment", "{cluster}-admintools"),
)

_DESCRIPTORS: dict[BuilderKind, KindDescriptor] = {d.kind: d for d in DEFAULT_DESCRIPTORS}


def describe(kind: BuilderKind) -> KindDescriptor:
    """Return the descriptor of a builder kind."""
    return _DESCRIPTORS[kind]


@dataclass(frozen=True)
class BuilderInstance:
    """Identity of one desired (or to-be-pruned) resource.

    Two instances with the same (kind, service, scope) are the same resource
    across planning passes. The resolved service spec travels along for the
    factory but is not part of the identity.
    """

    kind: BuilderKind
    service: ServiceName | None = None
    scope: Scope | None = None
    service_spec: ServiceSpec | None = field(default=None, compare=False, hash=False, repr=False)

    def __post_init__(self) -> None:
        descriptor = describe(self.kind)
        if descriptor.per_service != (self.service is not None):
            raise ValueError(f"{self.kind.value}: service is {'required' if descriptor.per_service else 'not allowed'}")
        if descriptor.scopes and self.scope not in descriptor.scopes:
            raise ValueError(f"{self.kind.value}: scope must be one of {sorted(s.value for s in descriptor.scopes)}")
        if not descriptor.scopes and self.scope is not None:
            raise ValueError(f"{self.kind.value}: scope is not allowed")

    @property
    def descriptor(self) -> KindDescriptor:
        return describe(self.kind)

    @property
    def key(self) -> str:
        """Stable identity string, e.g. 'deployment/history'."""
        parts = [self.kind.value]
        if self.service is not None:
            parts.append(self.service.value)
        if self.scope is not None:
            parts.append(self.scope.value)
        return "/".join(parts)

    def resource_name(self, cluster_name: str) -> str:
        return self.descriptor.resource_name(cluster_name, self.service, self.scope)

    def to_dict(self, cluster_name: str) -> dict[str, Any]:
        descriptor = self.descriptor
        return {
            "builder": self.kind.value,
            "service": self.service.value if self.service else None,
            "scope": self.scope.value if self.scope else None,
            "apiVersion": descriptor.api_version,
            "kind": descriptor.resource_kind,
            "name": self.resource_name(cluster_name),
        }


ResourceFactory = Callable[[TemporalCluster, BuilderInstance], dict[str, Any]]


class BuilderCatalog:
    """Registry of resource factories, one per builder kind.

    Usage:
        catalog = BuilderCatalog()

        @catalog.register_factory(BuilderKind.CONFIG_MAP)
        def render_configmap(cluster, instance):
            return {"data": {...}}

        body = catalog.render(cluster, instance)
    """

    def __init__(self) -> None:
        self._factories: dict[BuilderKind, ResourceFactory] = {}

    def register_factory(self, kind: BuilderKind, factory: ResourceFactory | None = None):
        """Register a factory for a kind; usable as a decorator."""

        def _register(fn: ResourceFactory) -> ResourceFactory:
            if kind in self._factories:
                logger.warning("Replacing resource factory", kind=kind.value)
            self._factories[kind] = fn
            return fn

        if factory is not None:
            return _register(factory)
        return _register

    def unregister_factory(self, kind: BuilderKind) -> bool:
        return self._factories.pop(kind, None) is not None

    def has_factory(self, kind: BuilderKind) -> bool:
        return kind in self._factories

    @property
    def registered_kinds(self) -> list[BuilderKind]:
        return [k for k in BuilderKind if k in self._factories]

    def render(self, cluster: TemporalCluster, instance: BuilderInstance) -> dict[str, Any]:
        """Render the resource body for an instance.

        The factory output is stamped with the apiVersion, kind, name and
        namespace the planner identifies the resource by.

        Raises:
            FactoryNotRegisteredError: if no factory handles the kind
        """
        factory = self._factories.get(instance.kind)
        if factory is None:
            raise FactoryNotRegisteredError(instance.kind.value)

        body = dict(factory(cluster, instance))
        descriptor = instance.descriptor
        body["apiVersion"] = descriptor.api_version
        body["kind"] = descriptor.resource_kind
        metadata = dict(body.get("metadata") or {})
        metadata["name"] = instance.resource_name(cluster.metadata.name)
        metadata.setdefault("namespace", cluster.metadata.namespace)
        body["metadata"] = metadata
        return body


def get_catalog() -> BuilderCatalog:
    """Get or create the process-wide catalog."""
    global _catalog
    if _catalog is None:
        _catalog = BuilderCatalog()
    return _catalog
