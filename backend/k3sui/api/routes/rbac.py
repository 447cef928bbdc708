from typing import Any

from fastapi import APIRouter, Depends, Query

from k3sui.dependencies import get_kubernetes_service
from k3sui.services.kube_client import KubernetesService
from k3sui.services.validation import validate_namespace


router = APIRouter(tags=["rbac"])


@router.get("/serviceaccounts", response_model=list[dict[str, Any]], summary="List service accounts")
async def list_service_accounts(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("serviceaccounts", validate_namespace(namespace))


@router.get("/roles", response_model=list[dict[str, Any]], summary="List roles")
async def list_roles(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("roles", validate_namespace(namespace))


@router.get("/clusterroles", response_model=list[dict[str, Any]], summary="List cluster roles")
async def list_cluster_roles(service: KubernetesService = Depends(get_kubernetes_service)) -> list[dict[str, Any]]:
    return await service.list_resources("clusterroles")


@router.get("/rolebindings", response_model=list[dict[str, Any]], summary="List role bindings")
async def list_role_bindings(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("rolebindings", validate_namespace(namespace))
