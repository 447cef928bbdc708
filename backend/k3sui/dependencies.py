from functools import lru_cache

from k3sui.config import get_settings
from k3sui.services.gatekeeper import CommandGatekeeper, GatekeeperConfig
from k3sui.services.helm import HelmService
from k3sui.services.k3d import K3dService
from k3sui.services.kube_client import KubernetesService


@lru_cache(maxsize=1)
def _get_kubernetes_service() -> KubernetesService:
    return KubernetesService(get_settings())


def get_kubernetes_service() -> KubernetesService:
    return _get_kubernetes_service()


@lru_cache(maxsize=1)
def get_gatekeeper() -> CommandGatekeeper:
    return CommandGatekeeper(GatekeeperConfig.from_settings(get_settings()))


@lru_cache(maxsize=1)
def get_k3d_service() -> K3dService:
    return K3dService(get_settings())


@lru_cache(maxsize=1)
def get_helm_service() -> HelmService:
    return HelmService(get_settings())
