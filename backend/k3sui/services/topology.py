"""Ingress -> Service -> Deployment -> Pod topology for one namespace.

The resolver joins already-fetched object lists by label selector and renders
the result as an indented text tree. It never talks to the cluster: callers
fetch the four lists (possibly at slightly different instants, so the tree is
only as consistent as those reads) and hand them over.

Deployment attribution is label based. A Service that matches any Deployment
lists its Pods only through those Deployments, even when some selected Pod is
owned by something else; owner references are not consulted.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

NO_CONNECTIONS = "No connections found in this namespace."
INDENT = "  "
BRANCH = "└─ "


def matches(selector: Mapping[str, str] | None, labels: Mapping[str, str] | None) -> bool:
    """Subset match of ``selector`` against ``labels``.

    An empty or missing selector matches nothing.
    """
    if not selector:
        return False
    labels = labels or {}
    return all(key in labels and labels[key] == value for key, value in selector.items())


def _get(obj: Mapping[str, Any] | None, *keys: str) -> Any:
    """Return the first present key, so camelCase API JSON and snake_case
    client ``to_dict()`` output are both accepted."""
    if not isinstance(obj, Mapping):
        return None
    for key in keys:
        if obj.get(key) is not None:
            return obj[key]
    return None


def _labels(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): str(v) for k, v in value.items()}


@dataclass(frozen=True)
class ObjectRef:
    kind: str
    namespace: str
    name: str

    @classmethod
    def from_manifest(cls, kind: str, manifest: Mapping[str, Any]) -> "ObjectRef":
        metadata = _get(manifest, "metadata") or {}
        return cls(kind=kind, namespace=str(_get(metadata, "namespace") or ""), name=str(_get(metadata, "name") or ""))


@dataclass(frozen=True)
class IngressPath:
    service_name: str | None
    path: str | None = None
    service_port: str | int | None = None


@dataclass(frozen=True)
class IngressRule:
    host: str | None = None
    paths: tuple[IngressPath, ...] = ()


@dataclass(frozen=True)
class IngressInfo:
    ref: ObjectRef
    rules: tuple[IngressRule, ...] = ()

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> "IngressInfo":
        spec = _get(manifest, "spec") or {}
        rules = []
        for rule in _get(spec, "rules") or []:
            http = _get(rule, "http") or {}
            paths = []
            for path in _get(http, "paths") or []:
                backend_service = _get(_get(path, "backend"), "service") or {}
                port = _get(backend_service, "port") or {}
                paths.append(
                    IngressPath(
                        service_name=_get(backend_service, "name"),
                        path=_get(path, "path"),
                        service_port=_get(port, "number", "name"),
                    )
                )
            rules.append(IngressRule(host=_get(rule, "host"), paths=tuple(paths)))
        return cls(ref=ObjectRef.from_manifest("Ingress", manifest), rules=tuple(rules))

    def service_names(self) -> list[str]:
        """Distinct backend service names in first-seen order."""
        seen: dict[str, None] = {}
        for rule in self.rules:
            for path in rule.paths:
                if path.service_name:
                    seen.setdefault(path.service_name, None)
        return list(seen)


@dataclass(frozen=True)
class ServiceInfo:
    ref: ObjectRef
    selector: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> "ServiceInfo":
        spec = _get(manifest, "spec") or {}
        return cls(ref=ObjectRef.from_manifest("Service", manifest), selector=_labels(_get(spec, "selector")))


@dataclass(frozen=True)
class DeploymentInfo:
    ref: ObjectRef
    template_labels: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> "DeploymentInfo":
        spec = _get(manifest, "spec") or {}
        template_meta = _get(_get(spec, "template"), "metadata") or {}
        return cls(
            ref=ObjectRef.from_manifest("Deployment", manifest),
            template_labels=_labels(_get(template_meta, "labels")),
        )


@dataclass(frozen=True)
class PodInfo:
    ref: ObjectRef
    labels: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> "PodInfo":
        metadata = _get(manifest, "metadata") or {}
        return cls(ref=ObjectRef.from_manifest("Pod", manifest), labels=_labels(_get(metadata, "labels")))


@dataclass(frozen=True)
class TopologyLine:
    depth: int
    ref: ObjectRef

    def render(self) -> str:
        label = f"{self.ref.name} ({self.ref.kind})"
        if self.depth == 0:
            return label
        return f"{INDENT * self.depth}{BRANCH}{label}"


@dataclass
class Topology:
    ingresses: list[IngressInfo]
    services: list[ServiceInfo]
    service_to_ingresses: dict[str, list[str]]
    service_to_deployments: dict[str, list[DeploymentInfo]]
    deployment_to_pods: dict[str, list[PodInfo]]
    service_to_pods: dict[str, list[PodInfo]]

    def lines(self) -> Iterator[TopologyLine]:
        known = {svc.ref.name: svc for svc in self.services}
        emitted: set[str] = set()

        for ingress in self.ingresses:
            yield TopologyLine(0, ingress.ref)
            for name in ingress.service_names():
                if name in emitted or name not in known:
                    continue
                emitted.add(name)
                yield TopologyLine(1, known[name].ref)
                yield from self._service_children(name, depth=2)

        for svc in self.services:
            if svc.ref.name in emitted:
                continue
            emitted.add(svc.ref.name)
            yield TopologyLine(0, svc.ref)
            yield from self._service_children(svc.ref.name, depth=1)

    def _service_children(self, service_name: str, depth: int) -> Iterator[TopologyLine]:
        for deployment in self.service_to_deployments.get(service_name, []):
            yield TopologyLine(depth, deployment.ref)
            for pod in self.deployment_to_pods.get(deployment.ref.name, []):
                yield TopologyLine(depth + 1, pod.ref)
        for pod in self.service_to_pods.get(service_name, []):
            yield TopologyLine(depth, pod.ref)

    def render(self) -> Iterator[str]:
        empty = True
        for line in self.lines():
            empty = False
            yield line.render()
        if empty:
            yield NO_CONNECTIONS


def _coerce(items: Iterable[Any], model: type) -> list[Any]:
    return [item if isinstance(item, model) else model.from_manifest(item) for item in items or []]


def resolve(
    ingresses: Iterable[IngressInfo | Mapping[str, Any]],
    services: Iterable[ServiceInfo | Mapping[str, Any]],
    pods: Iterable[PodInfo | Mapping[str, Any]],
    deployments: Iterable[DeploymentInfo | Mapping[str, Any]],
) -> Topology:
    """Join the four lists. Inputs are assumed to share a namespace."""
    ingress_list: list[IngressInfo] = _coerce(ingresses, IngressInfo)
    service_list: list[ServiceInfo] = _coerce(services, ServiceInfo)
    pod_list: list[PodInfo] = _coerce(pods, PodInfo)
    deployment_list: list[DeploymentInfo] = _coerce(deployments, DeploymentInfo)

    service_to_ingresses: dict[str, list[str]] = {}
    for ingress in ingress_list:
        for name in ingress.service_names():
            linked = service_to_ingresses.setdefault(name, [])
            if ingress.ref.name not in linked:
                linked.append(ingress.ref.name)

    service_to_deployments: dict[str, list[DeploymentInfo]] = {}
    for svc in service_list:
        for deployment in deployment_list:
            if matches(svc.selector, deployment.template_labels):
                service_to_deployments.setdefault(svc.ref.name, []).append(deployment)

    deployment_to_pods: dict[str, list[PodInfo]] = {}
    for deployment in deployment_list:
        for pod in pod_list:
            if matches(deployment.template_labels, pod.labels):
                deployment_to_pods.setdefault(deployment.ref.name, []).append(pod)

    service_to_pods: dict[str, list[PodInfo]] = {}
    for svc in service_list:
        if service_to_deployments.get(svc.ref.name):
            continue
        for pod in pod_list:
            if matches(svc.selector, pod.labels):
                service_to_pods.setdefault(svc.ref.name, []).append(pod)

    return Topology(
        ingresses=ingress_list,
        services=service_list,
        service_to_ingresses=service_to_ingresses,
        service_to_deployments=service_to_deployments,
        deployment_to_pods=deployment_to_pods,
        service_to_pods=service_to_pods,
    )


def render_topology(
    ingresses: Iterable[Any],
    services: Iterable[Any],
    pods: Iterable[Any],
    deployments: Iterable[Any],
) -> Iterator[str]:
    """Lazily yield the display lines; a lone sentinel when nothing connects."""
    return resolve(ingresses, services, pods, deployments).render()
