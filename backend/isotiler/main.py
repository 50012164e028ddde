"""
Main application module for the isotiler backend.

This file sets up the FastAPI application, configures CORS, and exposes
a health check endpoint.  Routers for the library and scene APIs are
included under the ``/api`` namespace.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes_libraries import router as libraries_router
from .api.routes_scenes import router as scenes_router
from .services.library_store import init_db


def create_app() -> FastAPI:
    """Factory to create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    # Table creation is idempotent, so doing it here also covers clients
    # that never trigger the lifespan events.
    init_db()

    app = FastAPI(title="isotiler")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(libraries_router, prefix="/api", tags=["libraries"])
    app.include_router(scenes_router, prefix="/api", tags=["scenes"])

    return app


# Uvicorn imports this when running `uvicorn isotiler.main:app` from backend/
app = create_app()
