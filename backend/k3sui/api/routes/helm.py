from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from k3sui.dependencies import get_helm_service, get_kubernetes_service
from k3sui.exceptions import BadRequest
from k3sui.schemas.kubernetes import HelmInstallPayload, HelmInstallResult, OperationResult
from k3sui.services.helm import HelmService
from k3sui.services.kube_client import KubernetesService
from k3sui.services.validation import validate_namespace, validate_resource_name


router = APIRouter(tags=["helm"])


@router.get("/helmcharts", response_model=list[dict[str, Any]], summary="List k3s HelmChart objects")
async def list_helm_charts(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_helm_crds("helmcharts", validate_namespace(namespace))


@router.get("/helmchartconfigs", response_model=list[dict[str, Any]], summary="List k3s HelmChartConfig objects")
async def list_helm_chart_configs(
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> list[dict[str, Any]]:
    return await service.list_helm_crds("helmchartconfigs", validate_namespace(namespace))


@router.get("/helm/search", summary="Search Artifact Hub for charts")
async def search_charts(
    query: str | None = Query(default=None),
    helm: HelmService = Depends(get_helm_service),
) -> dict[str, Any]:
    return await helm.search_charts(query)


@router.post("/helm/install", response_model=HelmInstallResult, summary="Install a chart")
async def install_chart(payload: HelmInstallPayload, helm: HelmService = Depends(get_helm_service)) -> HelmInstallResult:
    if not (payload.chart and payload.repo and payload.release_name and payload.namespace):
        raise BadRequest("Chart, repo, releaseName, and namespace are required")
    output = await helm.install(
        release=validate_resource_name(payload.release_name),
        chart=payload.chart,
        namespace=validate_namespace(payload.namespace, allow_all=False),
        repo=payload.repo,
        version=payload.version,
        values_yaml=payload.values_yaml,
    )
    return HelmInstallResult(output=output)


@router.get("/helm/releases", response_model=list[dict[str, Any]], summary="List Helm releases")
async def list_releases(
    namespace: str | None = Query(default=None),
    helm: HelmService = Depends(get_helm_service),
) -> list[dict[str, Any]]:
    return await helm.list_releases(validate_namespace(namespace))


@router.delete("/helm/releases/{namespace}/{release}", response_model=OperationResult, summary="Uninstall a release")
async def uninstall_release(namespace: str, release: str, helm: HelmService = Depends(get_helm_service)) -> OperationResult:
    ns = validate_namespace(namespace, allow_all=False)
    name = validate_resource_name(release)
    output = await helm.uninstall(name, ns)
    return OperationResult(message=f"Release {name} uninstalled", output=output)
