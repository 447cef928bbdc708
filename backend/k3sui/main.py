import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from k3sui import __version__
from k3sui.api.router import api_router
from k3sui.config import get_settings
from k3sui.core.logging import setup_logging
from k3sui.core.request_context import request_id_var
from k3sui.dependencies import get_kubernetes_service
from k3sui.exceptions import register_exception_handlers
from k3sui.services.kube_client import KubernetesService

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app.startup", version=__version__)
    yield
    await get_kubernetes_service().invalidate()
    logger.info("app.shutdown")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="k3s UI Management API",
        description="Backend for the local k3s/k3d cluster dashboard",
        version=__version__,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def request_id_and_access_log(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.info(
                "http.request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            return response
        finally:
            request_id_var.reset(token)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["health"])
    async def health(service: KubernetesService = Depends(get_kubernetes_service)) -> dict[str, str]:
        return {"status": "ok", "context": service.context_name}

    return app


setup_logging()
app = create_app()
