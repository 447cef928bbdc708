from typing import Any

from fastapi import APIRouter, Depends, Query

from k3sui.dependencies import get_kubernetes_service
from k3sui.schemas.kubernetes import TopologyView
from k3sui.services.kube_client import KubernetesService
from k3sui.services.validation import validate_namespace


router = APIRouter(tags=["network"])


@router.get("/services", response_model=list[dict[str, Any]], summary="List services")
async def list_services(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("services", validate_namespace(namespace))


@router.get("/ingresses", response_model=list[dict[str, Any]], summary="List ingresses")
async def list_ingresses(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_resources("ingresses", validate_namespace(namespace))


@router.get("/topology", response_model=TopologyView, summary="Ingress to Pod tree for one namespace")
async def get_topology(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> TopologyView:
    ns = validate_namespace(namespace, allow_all=False)
    topology = await service.topology(ns)
    return TopologyView(namespace=ns, lines=list(topology.render()))
