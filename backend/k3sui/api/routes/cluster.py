from typing import Any

from fastapi import APIRouter, Depends

from k3sui.dependencies import get_k3d_service, get_kubernetes_service
from k3sui.exceptions import ExecutionFailure
from k3sui.schemas.kubernetes import VersionInfo
from k3sui.services.k3d import K3dService
from k3sui.services.kube_client import KubernetesService

router = APIRouter(tags=["cluster"])


@router.get("/namespaces", response_model=list[dict[str, Any]], summary="List namespaces")
async def list_namespaces(service: KubernetesService = Depends(get_kubernetes_service)) -> list[dict[str, Any]]:
    return await service.list_resources("namespaces")


@router.get("/nodes", response_model=list[dict[str, Any]], summary="List nodes")
async def list_nodes(service: KubernetesService = Depends(get_kubernetes_service)) -> list[dict[str, Any]]:
    return await service.list_resources("nodes")


@router.get("/events", response_model=list[dict[str, Any]], summary="Ten most recent events across namespaces")
async def recent_events(service: KubernetesService = Depends(get_kubernetes_service)) -> list[dict[str, Any]]:
    return await service.recent_events()


@router.get("/cluster/version", response_model=VersionInfo, summary="Kubernetes and k3d versions")
async def cluster_version(
    service: KubernetesService = Depends(get_kubernetes_service),
    k3d: K3dService = Depends(get_k3d_service),
) -> VersionInfo:
    try:
        k8s_version = await service.kubectl_version()
    except ExecutionFailure as exc:
        raise ExecutionFailure("Failed to get version info", details=exc.details) from exc
    return VersionInfo(k8s=k8s_version, k3d=await k3d.version_line())
