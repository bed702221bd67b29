"""FastAPI application entry point."""

from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import migrators as migrator_routes
from ..cli import build_migrators, build_store, load_settings
from ..migrators import Migrator


def create_app(migrators: Optional[Dict[str, Migrator]] = None) -> FastAPI:
    """
    Create the API application.

    Args:
        migrators: Migrators to serve; defaults to one of each kind built
            from the environment settings
    """
    if migrators is None:
        settings = load_settings()
        migrators = build_migrators(settings, build_store(settings))

    app = FastAPI(
        title="Player Data Migration API",
        description="API for configuring and running legacy player data migrations",
        version="2.0.0",
    )

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.migrators = migrators

    # Include routers
    app.include_router(migrator_routes.router, prefix="/api/migrators", tags=["migrators"])

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
