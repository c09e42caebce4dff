"""
FastAPI application entry point

InternBooth admin console backend: the two-round application pipeline
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from loguru import logger

from internbooth import __version__
from internbooth.core.config import settings
from internbooth.core.database import init_db, close_db
from internbooth.core.response import success_response, DictResponse
from internbooth.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from internbooth.api import api_router


def custom_generate_unique_id(route: APIRoute) -> str:
    """Use the route function name as the OpenAPI operationId"""
    return route.name


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan

    Creates tables on startup and disposes the engine on shutdown.
    """
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"Environment: {settings.app_env}")
    logger.info(f"Debug: {settings.debug}")

    await init_db()
    logger.info("Database initialised")

    yield

    await close_db()
    logger.info("Application stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="InternBooth admin console API",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", tags=["System"], response_model=DictResponse)
    async def health_check():
        return success_response(data={"status": "healthy"})

    @app.get("/", tags=["System"], response_model=DictResponse)
    async def root():
        return success_response(data={
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        })

    # added last so it runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "internbooth.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.debug,
    )
