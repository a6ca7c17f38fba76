"""
FastAPI application for the Cooking Assistant.

Serves recipes, ingredients, meal plans and the aggregated shopping list.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import Settings, configure_logging
from ..data.database import DatabaseInterface
from ..data.errors import RepositoryError
from .routes import meal_plans, recipes

logger = logging.getLogger(__name__)


def create_app(
    database: Optional[DatabaseInterface] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        database: Database to serve from (opened from settings.db_dir at startup if omitted)
        settings: Runtime settings (read from the environment if omitted)
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Cooking Assistant API...")
        if getattr(app.state, "db", None) is None:
            app.state.db = DatabaseInterface(db_dir=settings.db_dir)
        yield
        logger.info("Cooking Assistant API shutdown complete")

    app = FastAPI(
        title="Cooking Assistant API",
        description="Recipes, meal planning and weekly shopping lists",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.db = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RepositoryError)
    async def repository_error_handler(request: Request, exc: RepositoryError):
        logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers."""
        return {"status": "healthy"}

    app.include_router(meal_plans.router, prefix="/api", tags=["meal-plans"])
    app.include_router(recipes.router, prefix="/api", tags=["recipes"])

    return app


_settings = Settings()
configure_logging(_settings.debug)
app = create_app(settings=_settings)
