from __future__ import annotations

from fastapi import APIRouter

from devsite.application import get_site_service

router = APIRouter(tags=["commits"])


@router.post("/newCommits")
async def new_commits(payload: dict) -> dict:
    service = get_site_service()
    message = service.add_commits(payload)
    return {"status": message}


@router.get("/latestCommit")
async def latest_commit() -> dict:
    service = get_site_service()
    return service.latest_commit()
