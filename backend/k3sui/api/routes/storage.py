from typing import Any

from fastapi import APIRouter, Depends, Query

from k3sui.dependencies import get_kubernetes_service
from k3sui.services.kube_client import KubernetesService
from k3sui.services.validation import validate_namespace


router = APIRouter(tags=["storage"])


@router.get("/persistentvolumes", response_model=list[dict[str, Any]], summary="List persistent volumes")
async def list_persistent_volumes(service: KubernetesService = Depends(get_kubernetes_service)) -> list[dict[str, Any]]:
    return await service.list_resources("persistentvolumes")


@router.get("/persistentvolumeclaims", response_model=list[dict[str, Any]], summary="List persistent volume claims")
async def list_persistent_volume_claims(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("persistentvolumeclaims", validate_namespace(namespace))


@router.get("/storageclasses", response_model=list[dict[str, Any]], summary="List storage classes")
async def list_storage_classes(service: KubernetesService = Depends(get_kubernetes_service)) -> list[dict[str, Any]]:
    return await service.list_resources("storageclasses")
