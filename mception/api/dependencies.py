"""Dependency injection for API routes.

The configuration service and settings live on ``app.state`` and are
handed to routes through these dependencies, so tests can build an app
around any service instance.
"""

from typing import Annotated

from fastapi import Depends, Request

from mception.registry.service import ConfigService


def get_config_service(request: Request) -> ConfigService:
    """Get the application's configuration service."""
    return request.app.state.config_service


def get_actor(request: Request) -> str:
    """Actor recorded for admin requests."""
    return request.app.state.settings.api.default_actor


ConfigServiceDep = Annotated[ConfigService, Depends(get_config_service)]
ActorDep = Annotated[str, Depends(get_actor)]
