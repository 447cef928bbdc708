from fastapi import APIRouter, Depends

from k3sui.dependencies import get_gatekeeper, get_kubernetes_service
from k3sui.exceptions import ExecutionFailure
from k3sui.schemas.kubernetes import KubectlCommand, KubectlOutput
from k3sui.services.gatekeeper import CommandGatekeeper
from k3sui.services.kube_client import KubernetesService


router = APIRouter(tags=["terminal"])


@router.post("/kubectl", response_model=KubectlOutput, summary="Run a whitelisted kubectl command")
async def run_kubectl(
    payload: KubectlCommand,
    gatekeeper: CommandGatekeeper = Depends(get_gatekeeper),
    service: KubernetesService = Depends(get_kubernetes_service),
) -> KubectlOutput:
    command = gatekeeper.validate(payload.command)
    try:
        output = await service.kubectl.run_validated(command)
    except ExecutionFailure as exc:
        raise ExecutionFailure("Kubectl command failed", details=exc.details) from exc
    return KubectlOutput(output=output)
