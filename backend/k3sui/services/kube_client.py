from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import structlog
from kubernetes import client, config
from kubernetes.client import ApiClient
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from k3sui.config import Settings, get_settings
from k3sui.exceptions import BadRequest, ExecutionFailure, KubernetesApiError
from k3sui.services.executor import CommandRunner
from k3sui.services.topology import Topology, resolve
from k3sui.services.validation import ALL_NAMESPACES

logger = structlog.get_logger(__name__)

MISSING_RESOURCE_TYPE = "the server doesn't have a resource type"


@dataclass(frozen=True)
class ResourceLister:
    api: type
    namespaced: str | None = None
    all_namespaces: str | None = None
    cluster: str | None = None


LISTERS: dict[str, ResourceLister] = {
    "namespaces": ResourceLister(client.CoreV1Api, cluster="list_namespace"),
    "nodes": ResourceLister(client.CoreV1Api, cluster="list_node"),
    "persistentvolumes": ResourceLister(client.CoreV1Api, cluster="list_persistent_volume"),
    "storageclasses": ResourceLister(client.StorageV1Api, cluster="list_storage_class"),
    "clusterroles": ResourceLister(client.RbacAuthorizationV1Api, cluster="list_cluster_role"),
    "pods": ResourceLister(client.CoreV1Api, "list_namespaced_pod", "list_pod_for_all_namespaces"),
    "services": ResourceLister(client.CoreV1Api, "list_namespaced_service", "list_service_for_all_namespaces"),
    "deployments": ResourceLister(client.AppsV1Api, "list_namespaced_deployment", "list_deployment_for_all_namespaces"),
    "ingresses": ResourceLister(client.NetworkingV1Api, "list_namespaced_ingress", "list_ingress_for_all_namespaces"),
    "daemonsets": ResourceLister(client.AppsV1Api, "list_namespaced_daemon_set", "list_daemon_set_for_all_namespaces"),
    "replicasets": ResourceLister(client.AppsV1Api, "list_namespaced_replica_set", "list_replica_set_for_all_namespaces"),
    "persistentvolumeclaims": ResourceLister(
        client.CoreV1Api,
        "list_namespaced_persistent_volume_claim",
        "list_persistent_volume_claim_for_all_namespaces",
    ),
    "serviceaccounts": ResourceLister(
        client.CoreV1Api, "list_namespaced_service_account", "list_service_account_for_all_namespaces"
    ),
    "roles": ResourceLister(client.RbacAuthorizationV1Api, "list_namespaced_role", "list_role_for_all_namespaces"),
    "rolebindings": ResourceLister(
        client.RbacAuthorizationV1Api, "list_namespaced_role_binding", "list_role_binding_for_all_namespaces"
    ),
    "configmaps": ResourceLister(client.CoreV1Api, "list_namespaced_config_map", "list_config_map_for_all_namespaces"),
    "secrets": ResourceLister(client.CoreV1Api, "list_namespaced_secret", "list_secret_for_all_namespaces"),
}

HELM_CRDS = {
    "helmcharts": "helmcharts.helm.cattle.io",
    "helmchartconfigs": "helmchartconfigs.helm.cattle.io",
}


def _api_error_message(exc: ApiException) -> str:
    try:
        body = json.loads(exc.body or "{}")
    except (TypeError, ValueError):
        body = {}
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return str(exc.reason or exc)


class KubernetesService:
    """Async facade over the Kubernetes Python client and ``kubectl``.

    List calls go through the generated API client and come back as plain
    JSON dicts (the same shapes ``kubectl get -o json`` prints). Actions the
    client has no single call for (YAML apply, generic get/delete/scale,
    CRDs) go through ``kubectl`` with an argument array.
    """

    def __init__(self, settings: Settings | None = None, kubectl: CommandRunner | None = None) -> None:
        self.settings = settings or get_settings()
        self.kubectl = kubectl or CommandRunner(self.settings.kubectl_binary, self.settings.command_timeout_seconds)
        self._client_lock = asyncio.Lock()
        self._api_client: ApiClient | None = None
        self._context_name = self.settings.kube_context or "default"

    # ---------------------------
    # Client lifecycle
    # ---------------------------

    async def _ensure_client(self) -> ApiClient:
        if self._api_client is not None:
            return self._api_client

        async with self._client_lock:
            if self._api_client is not None:
                return self._api_client

            def _build() -> ApiClient:
                try:
                    if self.settings.service_account_token_path:
                        config.load_incluster_config()
                        self._context_name = "in-cluster"
                    else:
                        config.load_kube_config(
                            config_file=self.settings.kube_config_path,
                            context=self.settings.kube_context,
                        )
                except ConfigException as exc:
                    logger.warning("kubernetes.config_missing", error=str(exc))
                return client.ApiClient()

            self._api_client = await asyncio.to_thread(_build)
            return self._api_client

    @property
    def context_name(self) -> str:
        return self._context_name

    async def invalidate(self) -> None:
        """Drop the API client so the next call reloads the kubeconfig."""
        async with self._client_lock:
            api_client = self._api_client
            self._api_client = None
        if api_client is not None:
            await asyncio.to_thread(api_client.close)

    # ---------------------------
    # Lists
    # ---------------------------

    async def list_resources(self, resource: str, namespace: str | None = None) -> list[dict[str, Any]]:
        lister = LISTERS.get(resource)
        if lister is None:
            raise BadRequest(f"Unknown resource list '{resource}'")
        api_client = await self._ensure_client()
        api = lister.api(api_client)

        def _collect() -> list[dict[str, Any]]:
            if lister.cluster:
                result = getattr(api, lister.cluster)()
            elif namespace == ALL_NAMESPACES:
                result = getattr(api, lister.all_namespaces)()
            else:
                result = getattr(api, lister.namespaced)(namespace=namespace or "default")
            return api_client.sanitize_for_serialization(result.items or [])

        try:
            return await asyncio.to_thread(_collect)
        except ApiException as exc:
            logger.warning("kubernetes.list_error", resource=resource, namespace=namespace, status=exc.status)
            raise KubernetesApiError("Kubernetes API error", details=_api_error_message(exc)) from exc

    async def list_helm_crds(self, resource: str, namespace: str) -> list[dict[str, Any]]:
        """List k3s HelmChart / HelmChartConfig objects; empty when the CRD is absent."""
        crd = HELM_CRDS[resource]
        scope = ["--all-namespaces"] if namespace == ALL_NAMESPACES else ["-n", namespace]
        try:
            output = await self.kubectl.run(["get", crd, *scope, "-o", "json"])
        except ExecutionFailure as exc:
            if MISSING_RESOURCE_TYPE in str(exc.details or ""):
                return []
            raise
        return json.loads(output or "{}").get("items", [])

    async def topology(self, namespace: str) -> Topology:
        """Fetch the four inputs concurrently and join them.

        The reads are independent, so an object removed between them may
        still show up; the view is a best-effort snapshot.
        """
        ingresses, services, pods, deployments = await asyncio.gather(
            self.list_resources("ingresses", namespace),
            self.list_resources("services", namespace),
            self.list_resources("pods", namespace),
            self.list_resources("deployments", namespace),
        )
        return resolve(ingresses, services, pods, deployments)

    # ---------------------------
    # Generic resource actions
    # ---------------------------

    async def get_yaml(self, kind: str, name: str, namespace: str) -> str:
        return await self.kubectl.run(["get", kind, name, "-n", namespace, "-o", "yaml"])

    async def apply_yaml(self, yaml_text: str) -> str:
        return await self.kubectl.run(["apply", "-f", "-"], stdin=yaml_text)

    async def delete_resource(self, kind: str, name: str, namespace: str) -> str:
        return await self.kubectl.run(["delete", kind, name, "-n", namespace])

    async def scale_resource(self, kind: str, name: str, replicas: int, namespace: str) -> str:
        return await self.kubectl.run(["scale", kind, name, f"--replicas={replicas}", "-n", namespace])

    # ---------------------------
    # Cluster info
    # ---------------------------

    async def recent_events(self, limit: int = 10) -> list[dict[str, Any]]:
        output = await self.kubectl.run(
            ["get", "events", "--all-namespaces", "--sort-by=.lastTimestamp", "-o", "json"]
        )
        items = json.loads(output or "{}").get("items", [])
        return items[-limit:]

    async def kubectl_version(self) -> str:
        return (await self.kubectl.run(["version"])).strip()
