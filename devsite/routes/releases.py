from __future__ import annotations

from fastapi import APIRouter

from devsite.application import get_site_service

router = APIRouter(tags=["releases"])


@router.get("/releases")
async def list_releases() -> dict:
    service = get_site_service()
    return service.list_releases()


@router.get("/releaseCount")
async def release_count() -> dict:
    service = get_site_service()
    return service.release_count()


@router.post("/downloadedRelease")
async def downloaded_release(payload: dict) -> dict:
    service = get_site_service()
    message = service.record_download(payload)
    return {"status": message}
