import os
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_NAMESPACE = "default"


class InvalidResourceError(ValueError):
    """Raised when an input resource lacks the fields needed to identify it."""


def _none_as_empty(value: Any) -> Any:
    return [] if value is None else value


def _stringify_labels(value: Any) -> Any:
    if value is None:
        return {}
    if not isinstance(value, dict):
        return value
    return {
        key: str(item).lower() if isinstance(item, bool) else str(item)
        for key, item in value.items()
        if item is not None
    }


# A key present with no value (`parentRefs:`) parses to null; treat it as empty.
EmptyList = BeforeValidator(_none_as_empty)

# YAML reads `version: 2` as an int; label values compare as strings.
Labels = Annotated[dict[str, str], BeforeValidator(_stringify_labels)]


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ---------------------------------------------------------------------------
# Input resources
# ---------------------------------------------------------------------------


class ObjectMeta(_Model):
    name: str = Field(..., min_length=1)
    namespace: str | None = None
    labels: Labels = Field(default_factory=dict)


class _NamespacedResource(_Model):
    api_version: str | None = None
    metadata: ObjectMeta

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or DEFAULT_NAMESPACE

    def __str__(self) -> str:
        return f"{self.kind}/{self.name} (ns: {self.namespace})"  # type: ignore[attr-defined]


class GatewayClass(_Model):
    api_version: str | None = None
    kind: Literal["GatewayClass"] = "GatewayClass"
    metadata: ObjectMeta
    spec: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name


class Listener(_Model):
    name: str | None = None
    hostname: str | None = None
    port: int
    protocol: str

    @property
    def key(self) -> str:
        """Identity of the listener within its gateway: name, else port."""
        return self.name or str(self.port)


class GatewaySpec(_Model):
    gateway_class_name: str | None = None
    listeners: Annotated[list[Listener], EmptyList] = Field(default_factory=list)


class Gateway(_NamespacedResource):
    kind: Literal["Gateway"] = "Gateway"
    spec: GatewaySpec = Field(default_factory=GatewaySpec)


class ParentRef(_Model):
    name: str = Field(..., min_length=1)
    namespace: str | None = None
    section_name: str | None = None
    kind: str | None = None


class BackendRef(_Model):
    name: str = Field(..., min_length=1)
    namespace: str | None = None
    kind: str = "Service"
    port: int | None = None
    weight: int | None = None


class HeaderMatch(_Model):
    name: str
    value: str


class HTTPPathMatch(_Model):
    type: str | None = None
    value: str | None = None


class HTTPRouteMatch(_Model):
    path: HTTPPathMatch | None = None
    method: str | None = None
    headers: Annotated[list[HeaderMatch], EmptyList] = Field(default_factory=list)


class GRPCMethodMatch(_Model):
    type: str | None = None
    service: str | None = None
    method: str | None = None


class GRPCRouteMatch(_Model):
    method: GRPCMethodMatch | None = None
    headers: Annotated[list[HeaderMatch], EmptyList] = Field(default_factory=list)


class RouteRule(_Model):
    backend_refs: Annotated[list[BackendRef], EmptyList] = Field(default_factory=list)


class HTTPRouteRule(RouteRule):
    matches: Annotated[list[HTTPRouteMatch], EmptyList] = Field(default_factory=list)


class GRPCRouteRule(RouteRule):
    matches: Annotated[list[GRPCRouteMatch], EmptyList] = Field(default_factory=list)


class RouteSpec(_Model):
    parent_refs: Annotated[list[ParentRef], EmptyList] = Field(default_factory=list)
    rules: Annotated[list[RouteRule], EmptyList] = Field(default_factory=list)


class TCPRouteSpec(RouteSpec):
    pass


class TLSRouteSpec(RouteSpec):
    hostnames: Annotated[list[str], EmptyList] = Field(default_factory=list)


class HTTPRouteSpec(TLSRouteSpec):
    rules: Annotated[list[HTTPRouteRule], EmptyList] = Field(default_factory=list)


class GRPCRouteSpec(TLSRouteSpec):
    rules: Annotated[list[GRPCRouteRule], EmptyList] = Field(default_factory=list)


class _RouteResource(_NamespacedResource):
    @property
    def parent_refs(self) -> list[ParentRef]:
        return self.spec.parent_refs  # type: ignore[attr-defined]

    def iter_backend_refs(self):
        """Yield every backendRef across all rules, in rule order."""
        for rule in self.spec.rules:  # type: ignore[attr-defined]
            yield from rule.backend_refs


class HTTPRoute(_RouteResource):
    kind: Literal["HTTPRoute"] = "HTTPRoute"
    spec: HTTPRouteSpec = Field(default_factory=HTTPRouteSpec)


class GRPCRoute(_RouteResource):
    kind: Literal["GRPCRoute"] = "GRPCRoute"
    spec: GRPCRouteSpec = Field(default_factory=GRPCRouteSpec)


class TLSRoute(_RouteResource):
    kind: Literal["TLSRoute"] = "TLSRoute"
    spec: TLSRouteSpec = Field(default_factory=TLSRouteSpec)


class TCPRoute(_RouteResource):
    kind: Literal["TCPRoute"] = "TCPRoute"
    spec: TCPRouteSpec = Field(default_factory=TCPRouteSpec)


AnyRoute = HTTPRoute | GRPCRoute | TLSRoute | TCPRoute

Route = Annotated[AnyRoute, Field(discriminator="kind")]

ROUTE_KINDS = ("HTTPRoute", "GRPCRoute", "TLSRoute", "TCPRoute")


class ServicePort(_Model):
    name: str | None = None
    port: int
    target_port: int | str | None = None
    protocol: str | None = None


class ServiceSpec(_Model):
    selector: Labels | None = None
    ports: Annotated[list[ServicePort], EmptyList] = Field(default_factory=list)
    type: str | None = None


class Service(_NamespacedResource):
    kind: Literal["Service"] = "Service"
    spec: ServiceSpec = Field(default_factory=ServiceSpec)


class LabelSelector(_Model):
    match_labels: Labels | None = None


class PodTemplateMeta(_Model):
    labels: Labels | None = None


class PodTemplateSpec(_Model):
    metadata: PodTemplateMeta | None = None
    spec: dict[str, Any] | None = None


class WorkloadSpec(_Model):
    selector: LabelSelector | None = None
    template: PodTemplateSpec | None = None


class _WorkloadResource(_NamespacedResource):
    spec: WorkloadSpec = Field(default_factory=WorkloadSpec)

    @property
    def template_labels(self) -> dict[str, str]:
        template = self.spec.template
        if template is None or template.metadata is None:
            return {}
        return template.metadata.labels or {}


class Deployment(_WorkloadResource):
    kind: Literal["Deployment"] = "Deployment"


class StatefulSet(_WorkloadResource):
    kind: Literal["StatefulSet"] = "StatefulSet"


class DaemonSet(_WorkloadResource):
    kind: Literal["DaemonSet"] = "DaemonSet"


class ReferenceGrantFrom(_Model):
    group: str = ""
    kind: str
    namespace: str


class ReferenceGrantTo(_Model):
    group: str = ""
    kind: str
    name: str | None = None


class ReferenceGrantSpec(_Model):
    from_: Annotated[list[ReferenceGrantFrom], EmptyList] = Field(
        default_factory=list, alias="from"
    )
    to: Annotated[list[ReferenceGrantTo], EmptyList] = Field(default_factory=list)


class ReferenceGrant(_NamespacedResource):
    kind: Literal["ReferenceGrant"] = "ReferenceGrant"
    spec: ReferenceGrantSpec = Field(default_factory=ReferenceGrantSpec)


class ResourceSet(_Model):
    """
    Snapshot of every resource collection the builder consumes.

    Only gateways and routes are mandatory in spirit; every collection
    defaults to empty.
    """

    gateways: list[Gateway] = Field(default_factory=list)
    routes: list[Route] = Field(default_factory=list)
    services: list[Service] = Field(default_factory=list)
    deployments: list[Deployment] = Field(default_factory=list)
    stateful_sets: list[StatefulSet] = Field(default_factory=list)
    daemon_sets: list[DaemonSet] = Field(default_factory=list)
    gateway_classes: list[GatewayClass] = Field(default_factory=list)
    reference_grants: list[ReferenceGrant] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Derived graph
# ---------------------------------------------------------------------------


class NodeType(str, Enum):
    GATEWAY = "gateway"
    LISTENER = "listener"
    ROUTE = "route"
    GATEWAY_CLASS = "gatewayclass"
    SERVICE = "service"
    WORKLOAD = "workload"
    REFERENCE_GRANT = "referencegrant"


class EdgeType(str, Enum):
    OWNS = "owns"
    ROUTES = "routes"
    CLASS_OF = "class-of"
    BACKEND = "backend"
    SERVES = "serves"
    GRANT = "grant"


class _OutputModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
    )


class GraphNode(_OutputModel):
    id: str
    type: NodeType
    label: str
    data: dict[str, Any] | None = None


class GraphEdge(_OutputModel):
    id: str
    source: str
    target: str
    type: EdgeType
    data: dict[str, Any] | None = None


class ObjectRef(_OutputModel):
    name: str
    namespace: str


class BackendResolution(_OutputModel):
    id: str
    service: str
    namespace: str
    resolved: bool
    cross_namespace: bool
    granted: bool


class RouteCoverageDetail(_OutputModel):
    id: str
    name: str
    namespace: str
    kind: str
    covered: bool
    parent_refs: list[str] = Field(default_factory=list)
    missing_parent_refs: list[ObjectRef] | None = None
    backend_refs: list[BackendResolution] | None = None
    missing_backends: list[ObjectRef] | None = None


class CoverageSummary(_OutputModel):
    gateways: int = 0
    routes: int = 0
    covered_routes: int = 0
    uncovered_routes: int = 0
    coverage_percent: float = 0.0
    services: int = 0
    workloads: int = 0
    gateway_classes: int = 0
    reference_grants: int = 0
    backend_refs: int = 0
    resolved_backends: int = 0
    missing_backends: int = 0


class CoverageGraph(_OutputModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    summary: CoverageSummary = Field(default_factory=CoverageSummary)
    route_coverage: list[RouteCoverageDetail] = Field(default_factory=list)

    def get_node(self, node_id: str) -> GraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def edges_of_type(self, edge_type: EdgeType | str) -> list[GraphEdge]:
        return [edge for edge in self.edges if edge.type == edge_type]

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting absent optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class LoadOptions(BaseModel):
    """Options for loading manifests from disk."""

    data_dir: Path = Field(default=Path("data"))
    extensions: tuple[str, ...] = Field(default=(".yaml", ".yml"), min_length=1)
    recursive: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls, **overrides: Any) -> "LoadOptions":
        """Build options from ``DATA_DIR``, falling back to ``./data``."""
        data_dir = os.environ.get("DATA_DIR") or str(Path.cwd() / "data")
        return cls(data_dir=Path(data_dir), **overrides)
