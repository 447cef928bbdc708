from fastapi import APIRouter, Depends, Query

from k3sui.dependencies import get_kubernetes_service
from k3sui.exceptions import ExecutionFailure
from k3sui.schemas.kubernetes import OperationResult, ScalePayload, YamlContent
from k3sui.services.kube_client import KubernetesService
from k3sui.services.validation import (
    SCALABLE_RESOURCE_TYPES,
    validate_apply_yaml,
    validate_namespace,
    validate_replicas,
    validate_resource_name,
    validate_resource_type,
)


router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("/{kind}/{name}/yaml", response_model=YamlContent, summary="Get resource YAML")
async def get_resource_yaml(
    kind: str,
    name: str,
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> YamlContent:
    ns = validate_namespace(namespace, allow_all=False)
    text = await service.get_yaml(validate_resource_type(kind), validate_resource_name(name), ns)
    return YamlContent(yaml=text)


@router.post("/apply", response_model=OperationResult, summary="Create or update resources from YAML")
async def apply_resource(payload: YamlContent, service: KubernetesService = Depends(get_kubernetes_service)) -> OperationResult:
    text = validate_apply_yaml(payload.yaml)
    try:
        output = await service.apply_yaml(text)
    except ExecutionFailure as exc:
        raise ExecutionFailure("Failed to apply resource", details=exc.details) from exc
    return OperationResult(message="Resource applied successfully", output=output)


@router.delete("/{kind}/{name}", response_model=OperationResult, summary="Delete resource")
async def delete_resource(
    kind: str,
    name: str,
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> OperationResult:
    ns = validate_namespace(namespace, allow_all=False)
    resource_type = validate_resource_type(kind)
    resource_name = validate_resource_name(name)
    await service.delete_resource(resource_type, resource_name, ns)
    return OperationResult(message=f"{resource_type} {resource_name} deleted successfully")


@router.post("/{kind}/{name}/scale", response_model=OperationResult, summary="Scale resource")
async def scale_resource(
    kind: str,
    name: str,
    payload: ScalePayload,
    namespace: str | None = Query(default=None),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> OperationResult:
    ns = validate_namespace(namespace, allow_all=False)
    resource_type = validate_resource_type(kind, SCALABLE_RESOURCE_TYPES)
    resource_name = validate_resource_name(name)
    replicas = validate_replicas(payload.replicas)
    await service.scale_resource(resource_type, resource_name, replicas, ns)
    return OperationResult(message=f"{resource_type} {resource_name} scaled to {replicas} replicas")
