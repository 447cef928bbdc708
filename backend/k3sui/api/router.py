from fastapi import APIRouter

from k3sui.api.routes import (
    cluster,
    clusters,
    configuration,
    helm,
    kubectl,
    network,
    rbac,
    resources,
    storage,
    workloads,
)

api_router = APIRouter(prefix="/api")
api_router.include_router(cluster.router)
api_router.include_router(workloads.router)
api_router.include_router(network.router)
api_router.include_router(storage.router)
api_router.include_router(rbac.router)
api_router.include_router(configuration.router)
api_router.include_router(helm.router)
api_router.include_router(resources.router)
api_router.include_router(clusters.router)
api_router.include_router(kubectl.router)
