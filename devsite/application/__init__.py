"""Application services."""

from .compilation import CompileService, configure_compile_service, get_compile_service
from .site import (
    SiteService,
    configure_site_service,
    get_site_repository,
    get_site_service,
    reset_site_state,
)

__all__ = [
    "CompileService",
    "SiteService",
    "configure_compile_service",
    "configure_site_service",
    "get_compile_service",
    "get_site_repository",
    "get_site_service",
    "reset_site_state",
]
