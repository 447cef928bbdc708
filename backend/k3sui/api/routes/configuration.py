from typing import Any

from fastapi import APIRouter, Depends, Query

from k3sui.dependencies import get_kubernetes_service
from k3sui.services.kube_client import KubernetesService
from k3sui.services.validation import validate_namespace


router = APIRouter(tags=["configuration"])


@router.get("/configmaps", response_model=list[dict[str, Any]], summary="List config maps")
async def list_configmaps(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("configmaps", validate_namespace(namespace))


@router.get("/secrets", response_model=list[dict[str, Any]], summary="List secrets")
async def list_secrets(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("secrets", validate_namespace(namespace))
