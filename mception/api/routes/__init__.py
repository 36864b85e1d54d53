"""API route registration."""

from fastapi import FastAPI

from mception.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI) -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    from mception.api.routes.admin import router as admin_router
    from mception.api.routes.agent import router as agent_router
    from mception.api.routes.health import router as health_router
    from mception.api.routes.leaf import router as leaf_router

    app.include_router(admin_router, tags=["Admin"])
    app.include_router(agent_router, tags=["Agent"])
    app.include_router(leaf_router, tags=["Leaf"])
    app.include_router(health_router, tags=["Health"])

    logger.info("routes_registered")
