from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from devsite.application import get_compile_service

router = APIRouter(tags=["compile"])


@router.post("/compile")
async def compile_source(payload: dict) -> JSONResponse:
    """Compile the submitted source and return the compiler's result verbatim."""

    service = get_compile_service()
    result = await service.submit(payload)
    return JSONResponse(result.to_wire())
