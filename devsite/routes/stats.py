from __future__ import annotations

import asyncio

from fastapi import APIRouter

from devsite.application import get_site_service

router = APIRouter(tags=["stats"])


@router.get("/projectStats")
async def project_stats() -> dict:
    """Coding-time statistics for each tracked project."""

    service = get_site_service()
    return await asyncio.to_thread(service.project_stats)
