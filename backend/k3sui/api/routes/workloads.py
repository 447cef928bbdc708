from typing import Any

from fastapi import APIRouter, Depends, Query

from k3sui.dependencies import get_kubernetes_service
from k3sui.services.kube_client import KubernetesService
from k3sui.services.validation import validate_namespace


router = APIRouter(tags=["workloads"])


@router.get("/pods", response_model=list[dict[str, Any]], summary="List pods")
async def list_pods(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("pods", validate_namespace(namespace))


@router.get("/deployments", response_model=list[dict[str, Any]], summary="List deployments")
async def list_deployments(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("deployments", validate_namespace(namespace))


@router.get("/daemonsets", response_model=list[dict[str, Any]], summary="List daemonsets")
async def list_daemonsets(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("daemonsets", validate_namespace(namespace))


@router.get("/replicasets", response_model=list[dict[str, Any]], summary="List replicasets")
async def list_replicasets(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("replicasets", validate_namespace(namespace))
