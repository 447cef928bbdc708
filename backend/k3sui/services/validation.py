"""Request parameter checks shared by the HTTP routes.

Names follow the Kubernetes DNS-1123 rules; everything that ends up in an
external command's argument list goes through one of these first.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

from k3sui.exceptions import BadRequest

ALL_NAMESPACES = "all"
DEFAULT_NAMESPACE = "default"

_NAMESPACE_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_RESOURCE_NAME_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")

GENERIC_RESOURCE_TYPES = frozenset(
    {
        "pod",
        "service",
        "deployment",
        "configmap",
        "secret",
        "ingress",
        "daemonset",
        "replicaset",
        "statefulset",
        "job",
        "cronjob",
    }
)
SCALABLE_RESOURCE_TYPES = frozenset({"deployment", "replicaset", "statefulset"})

MAX_REPLICAS = 10000

DISALLOWED_YAML_PATTERNS = (
    re.compile(r"--with-fields="),
    re.compile(r"--dry-run=client"),
)


def validate_namespace(namespace: str | None, allow_all: bool = True) -> str:
    if not namespace:
        return DEFAULT_NAMESPACE
    if namespace == ALL_NAMESPACES:
        if not allow_all:
            raise BadRequest("A single namespace is required", details={"namespace": namespace})
        return namespace
    if len(namespace) > 63 or not _NAMESPACE_RE.match(namespace):
        raise BadRequest("Invalid namespace name", details={"namespace": namespace})
    return namespace


def validate_resource_name(name: str | None) -> str:
    if not name or len(name) > 253 or not _RESOURCE_NAME_RE.match(name):
        raise BadRequest("Invalid resource name", details={"name": name})
    return name


def validate_replicas(replicas: Any) -> int:
    try:
        value = int(replicas)
    except (TypeError, ValueError):
        value = -1
    if isinstance(replicas, bool) or value < 0 or value > MAX_REPLICAS:
        raise BadRequest(f"Invalid replica count (must be 0-{MAX_REPLICAS})")
    return value


def _singular(kind: str) -> str:
    kind = kind.lower()
    if kind.endswith("sses"):
        return kind[:-2]
    if kind.endswith("s") and kind[:-1] in GENERIC_RESOURCE_TYPES:
        return kind[:-1]
    return kind


def validate_resource_type(kind: str, allowed: frozenset[str] = GENERIC_RESOURCE_TYPES) -> str:
    """Return the singular lowercase kind, accepting plural spellings."""
    singular = _singular(kind or "")
    if singular not in allowed:
        if allowed is SCALABLE_RESOURCE_TYPES:
            raise BadRequest(f"Resource type '{kind}' cannot be scaled")
        raise BadRequest(f"Resource type '{kind}' is not allowed")
    return singular


def validate_apply_yaml(text: Any) -> str:
    if not isinstance(text, str) or not text.strip():
        raise BadRequest("YAML content is required")
    for pattern in DISALLOWED_YAML_PATTERNS:
        if pattern.search(text):
            raise BadRequest("YAML contains disallowed patterns")
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as exc:
        raise BadRequest("Invalid YAML", details=str(exc)) from exc
    if not documents or not all(isinstance(doc, dict) for doc in documents):
        raise BadRequest("YAML must contain at least one resource mapping")
    return text
