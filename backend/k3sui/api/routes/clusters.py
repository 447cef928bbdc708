from typing import Any

from fastapi import APIRouter, Depends

from k3sui.dependencies import get_k3d_service, get_kubernetes_service
from k3sui.exceptions import BadRequest
from k3sui.schemas.kubernetes import ClusterCreatePayload, K3dStatus, OperationResult
from k3sui.services.k3d import K3dService
from k3sui.services.kube_client import KubernetesService
from k3sui.services.validation import validate_resource_name


router = APIRouter(tags=["clusters"])


def _cluster_name(name: str | None) -> str:
    if not name or not name.strip():
        raise BadRequest("Cluster name is required")
    return validate_resource_name(name.strip())


@router.get("/clusters", response_model=list[dict[str, Any]], summary="List k3d clusters")
async def list_clusters(k3d: K3dService = Depends(get_k3d_service)) -> list[dict[str, Any]]:
    return await k3d.list_clusters()


@router.post("/clusters", response_model=OperationResult, summary="Create a k3d cluster")
async def create_cluster(payload: ClusterCreatePayload, k3d: K3dService = Depends(get_k3d_service)) -> OperationResult:
    name = _cluster_name(payload.name)
    options = payload.options.model_dump() if payload.options else None
    output = await k3d.create_cluster(name, options)
    return OperationResult(message="Cluster created successfully", output=output)


@router.get("/clusters/{name}", response_model=dict[str, Any], summary="Get a k3d cluster")
async def get_cluster(name: str, k3d: K3dService = Depends(get_k3d_service)) -> dict[str, Any]:
    return await k3d.get_cluster(_cluster_name(name))


@router.delete("/clusters/{name}", response_model=OperationResult, summary="Delete a k3d cluster")
async def delete_cluster(name: str, k3d: K3dService = Depends(get_k3d_service)) -> OperationResult:
    output = await k3d.delete_cluster(_cluster_name(name))
    return OperationResult(message="Cluster deleted successfully", output=output)


@router.post("/clusters/{name}/switch", response_model=OperationResult, summary="Switch kubectl context")
async def switch_cluster(
    name: str,
    k3d: K3dService = Depends(get_k3d_service),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> OperationResult:
    output = await k3d.switch_context(_cluster_name(name))
    # the API client caches the previous context
    await service.invalidate()
    return OperationResult(message="Switched kubectl context successfully", output=output)


@router.get("/k3d/status", response_model=K3dStatus, summary="Check whether k3d is usable")
async def k3d_status(k3d: K3dService = Depends(get_k3d_service)) -> K3dStatus:
    return K3dStatus(**await k3d.status())
