"""
FastAPI application entry

ClinicOps clinic operations backend
"""
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger

from app.core.config import settings
from app.core.database import Database
from app.core.realtime import ConnectionManager
from app.core.response import success_response, DictResponse
from app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from app.services.outbox import OutboxDispatcher
from app.api import api_router

VERSION = "1.0.0"


def custom_generate_unique_id(route: APIRoute) -> str:
    """Use the route function name as the OpenAPI operationId"""
    return route.name


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Connect the database and run the outbox dispatcher while serving
    """
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"Environment: {settings.app_env}")
    logger.info(f"Debug: {settings.debug}")

    await app.state.database.connect()
    if settings.outbox_enabled:
        app.state.outbox.start()

    yield

    await app.state.outbox.stop()
    await app.state.database.disconnect()
    logger.info("Application stopped")


def create_app(
    database: Optional[Database] = None,
    connections: Optional[ConnectionManager] = None,
) -> FastAPI:
    """
    Build the application

    Args:
        database: handle to use; defaults to one built from settings
        connections: live socket registry; a fresh one by default
    """
    app = FastAPI(
        title=settings.app_name,
        description="ClinicOps clinic operations API",
        version=VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.state.database = database or Database(
        settings.database_url,
        echo=False,
        create_tables=settings.auto_create_tables,
    )
    app.state.connections = connections or ConnectionManager()
    app.state.outbox = OutboxDispatcher(app.state.database, app.state.connections)

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Routes
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", tags=["System"], response_model=DictResponse)
    async def health_check():
        """Health check"""
        return success_response(data={
            "status": "healthy",
            "database": app.state.database.is_connected,
        })

    @app.get("/", tags=["System"], response_model=DictResponse)
    async def root():
        return success_response(data={
            "name": settings.app_name,
            "version": VERSION,
            "docs": "/docs" if settings.debug else None,
        })

    # CORS goes last so it runs first
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
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.debug,
    )
