import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from devsite.application import (
    CompileService,
    SiteService,
    configure_compile_service,
    configure_site_service,
    get_site_repository,
)
from devsite.core.config import Settings
from devsite.core.errors import BadRequest, DevsiteError
from devsite.infrastructure import CompilerInvoker, SiteRepository, WakatimeClient
from devsite.routes import commits, compilation, releases, stats
from devsite.workers.token_refresh import TokenRefreshWorker

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    compiler: CompilerInvoker | None = None,
    repository: SiteRepository | None = None,
    wakatime: WakatimeClient | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    compile_service = CompileService(settings, compiler=compiler)
    site_service = SiteService(repository or get_site_repository(), settings, wakatime=wakatime)
    configure_compile_service(compile_service)
    configure_site_service(site_service)
    refresher = TokenRefreshWorker(site_service, settings.token_refresh_interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        compile_service.workspaces.purge()
        if settings.token_refresh_interval > 0:
            refresher.start()
        try:
            yield
        finally:
            await refresher.stop()

    app = FastAPI(title="Devsite API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.allowed_origin],
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=15,
    )

    @app.exception_handler(DevsiteError)
    async def devsite_error_handler(request: Request, exc: DevsiteError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"status": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Error decoding request body for %s", request.url.path)
        error = BadRequest()
        return JSONResponse(status_code=error.status_code, content={"status": error.message})

    app.include_router(compilation.router)
    app.include_router(releases.router)
    app.include_router(commits.router)
    app.include_router(stats.router)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse({"message": "Devsite API", "docs": "/docs"})

    return app


app = create_app()
