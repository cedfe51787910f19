"""Application service orchestrating a compile request end to end."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from devsite.core.config import Settings
from devsite.core.gate import admit_compile
from devsite.core.harvest import harvest
from devsite.core.schema import CompileResult
from devsite.core.workspaces import WorkspaceManager
from devsite.domain import CompileRequest
from devsite.infrastructure import CompilerInvoker, SubprocessCompiler

logger = logging.getLogger(__name__)


class CompileService:
    """Gate, provision, write, invoke, harvest, and always tear down.

    Every stage either hands over to the next one or raises the error specific
    to that stage. There is no retry and no partial result.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        compiler: CompilerInvoker | None = None,
        workspaces: WorkspaceManager | None = None,
    ) -> None:
        self._settings = settings
        self._workspaces = workspaces or WorkspaceManager(
            settings.compile_dir,
            source_extension=settings.source_extension,
        )
        self._compiler = compiler or SubprocessCompiler(
            settings.compiler_executable,
            build_command=settings.build_command,
            timeout=settings.compile_timeout,
        )
        self._slots = asyncio.Semaphore(max(1, settings.max_concurrent_compiles))

    @property
    def workspaces(self) -> WorkspaceManager:
        return self._workspaces

    def compile(self, request: CompileRequest) -> CompileResult:
        """Run the blocking pipeline for an already admitted request."""

        started = time.perf_counter()
        with self._workspaces.workspace() as workspace:
            self._workspaces.write_source(workspace, request.content)
            self._compiler.run(workspace.source, workspace.build_dir)
            result = harvest(workspace.build_dir, self._settings.result_filename)
        logger.info(
            "Compiled workspace %s in %.3fs (status=%s, problems=%d)",
            workspace.id,
            time.perf_counter() - started,
            result.status,
            len(result.problems),
        )
        return result

    async def submit(self, payload: Any) -> CompileResult:
        """Admit a decoded request body and compile it on a worker thread.

        The pipeline, including workspace removal, finishes on its thread even
        when the awaiting request is cancelled, so the compiler is drained
        before its workspace disappears. The admission slot is held until that
        thread is done, not until the caller stops waiting.
        """

        request = admit_compile(payload, self._settings.confirmation_key)
        await self._slots.acquire()
        try:
            pipeline = asyncio.ensure_future(asyncio.to_thread(self.compile, request))
        except BaseException:
            self._slots.release()
            raise
        pipeline.add_done_callback(self._release_slot)
        return await asyncio.shield(pipeline)

    def _release_slot(self, pipeline: asyncio.Future[CompileResult]) -> None:
        self._slots.release()
        if not pipeline.cancelled():
            # the awaiting request may be gone, leaving nobody to collect the outcome
            pipeline.exception()


_service: CompileService | None = None


def configure_compile_service(service: CompileService) -> None:
    """Install the compile service used by the HTTP routes."""

    global _service
    _service = service


def get_compile_service() -> CompileService:
    if _service is None:
        raise RuntimeError("compile service has not been configured")
    return _service
