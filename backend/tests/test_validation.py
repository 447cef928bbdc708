"""
Tests for request parameter validation.
"""

import pytest

from k3sui.exceptions import BadRequest
from k3sui.services.validation import (
    MAX_REPLICAS,
    SCALABLE_RESOURCE_TYPES,
    validate_apply_yaml,
    validate_namespace,
    validate_replicas,
    validate_resource_name,
    validate_resource_type,
)


class TestNamespace:
    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_defaults(self, value):
        assert validate_namespace(value) == "default"

    def test_all_namespaces(self):
        assert validate_namespace("all") == "all"

    def test_all_rejected_when_single_required(self):
        with pytest.raises(BadRequest, match="single namespace"):
            validate_namespace("all", allow_all=False)

    @pytest.mark.parametrize("value", ["kube-system", "team-a1", "x"])
    def test_valid(self, value):
        assert validate_namespace(value) == value

    @pytest.mark.parametrize("value", ["Kube", "-lead", "trail-", "a_b", "a" * 64, "ns;rm"])
    def test_invalid(self, value):
        with pytest.raises(BadRequest):
            validate_namespace(value)


class TestResourceName:
    @pytest.mark.parametrize("value", ["web", "web-7d9f8", "metrics.k8s.io"])
    def test_valid(self, value):
        assert validate_resource_name(value) == value

    @pytest.mark.parametrize("value", [None, "", "Web", "a b", "x/../y", "a" * 254])
    def test_invalid(self, value):
        with pytest.raises(BadRequest):
            validate_resource_name(value)


class TestReplicas:
    @pytest.mark.parametrize("value,expected", [(0, 0), (3, 3), ("5", 5), (MAX_REPLICAS, MAX_REPLICAS)])
    def test_valid(self, value, expected):
        assert validate_replicas(value) == expected

    @pytest.mark.parametrize("value", [-1, MAX_REPLICAS + 1, "three", None, True, 2.5j])
    def test_invalid(self, value):
        with pytest.raises(BadRequest):
            validate_replicas(value)


class TestResourceType:
    @pytest.mark.parametrize("value,expected", [("pods", "pod"), ("Deployment", "deployment"), ("ingresses", "ingress")])
    def test_plural_and_case(self, value, expected):
        assert validate_resource_type(value) == expected

    def test_unknown_type(self):
        with pytest.raises(BadRequest, match="is not allowed"):
            validate_resource_type("nodes")

    def test_scalable_types(self):
        assert validate_resource_type("statefulsets", SCALABLE_RESOURCE_TYPES) == "statefulset"
        with pytest.raises(BadRequest, match="cannot be scaled"):
            validate_resource_type("pod", SCALABLE_RESOURCE_TYPES)


class TestApplyYaml:
    def test_valid(self):
        text = "apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: x\n"
        assert validate_apply_yaml(text) == text

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing(self, value):
        with pytest.raises(BadRequest, match="required"):
            validate_apply_yaml(value)

    def test_disallowed_patterns(self):
        with pytest.raises(BadRequest, match="disallowed"):
            validate_apply_yaml("kind: Pod\n# --dry-run=client\n")

    def test_unparseable_yaml(self):
        with pytest.raises(BadRequest, match="Invalid YAML"):
            validate_apply_yaml("kind: [Pod\n")

    def test_scalar_document_rejected(self):
        with pytest.raises(BadRequest, match="mapping"):
            validate_apply_yaml("just a string\n")

    def test_multi_document(self):
        text = "kind: ConfigMap\n---\nkind: Secret\n---\n"
        assert validate_apply_yaml(text) == text
