import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from calshare.api.router import api_router
from calshare.api.v1 import resources
from calshare.core.config import settings
from calshare.core.errors import StoreFailure
from calshare.db import init_db

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_application() -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.debug(f"[REQUEST] {request.method} {request.url.path}")
        response = await call_next(request)
        logger.debug(
            f"[RESPONSE] {response.status_code} for {request.method} {request.url.path}"
        )
        return response

    @app.exception_handler(StoreFailure)
    async def store_failure_handler(request: Request, exc: StoreFailure):
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Storage failure"},
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)
    app.include_router(resources.router, prefix=settings.DAV_PREFIX, tags=["dav"])

    @app.on_event("startup")
    def _startup() -> None:
        configure_logging()
        init_db()

    return app


app = create_application()
