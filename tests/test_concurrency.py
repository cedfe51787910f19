from __future__ import annotations

import asyncio
import json
import sys
import threading
import time
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from devsite.application import CompileService
from devsite.core.config import Settings
from devsite.core.errors import Unauthorized


class EchoCompiler:
    """Reports the submitted source back as a problem message."""

    def __init__(self, delay: float = 0.05) -> None:
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.workspaces: list[Path] = []
        self._lock = threading.Lock()

    def run(self, source: Path, build_dir: Path) -> None:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
            self.workspaces.append(source.parent)
        try:
            content = source.read_text(encoding="utf-8")
            time.sleep(self.delay)
            result = {
                "problems": [{"isError": False, "message": content, "hasRange": False}],
                "status": True,
                "compilationTime": 1,
                "linkingTime": 1,
                "binarySizes": [len(content)],
                "hasMain": True,
            }
            (build_dir / "QatCompilationResult.json").write_text(json.dumps(result), encoding="utf-8")
        finally:
            with self._lock:
                self.active -= 1


def _service(tmp_path: Path, compiler: EchoCompiler, limit: int = 8, key: str | None = "secret") -> CompileService:
    settings = Settings(
        compile_dir=tmp_path / "compile",
        confirmation_key=key,
        max_concurrent_compiles=limit,
    )
    return CompileService(settings, compiler=compiler)


async def _submit_all(service: CompileService, sources: list[str]):
    return await asyncio.gather(
        *(service.submit({"content": source, "confirmationKey": "secret"}) for source in sources)
    )


def test_simultaneous_requests_get_independent_workspaces(tmp_path):
    compiler = EchoCompiler()
    service = _service(tmp_path, compiler)
    sources = [f"func main() {{ say {index} }}" for index in range(12)]

    results = asyncio.run(_submit_all(service, sources))

    assert [result.problems[0].message for result in results] == sources
    assert [result.binary_sizes for result in results] == [[len(source)] for source in sources]
    assert len(set(compiler.workspaces)) == len(sources)
    assert list((tmp_path / "compile").iterdir()) == []


def test_admission_gate_bounds_parallel_compiles(tmp_path):
    compiler = EchoCompiler(delay=0.1)
    service = _service(tmp_path, compiler, limit=2)

    asyncio.run(_submit_all(service, [f"source {index}" for index in range(6)]))

    assert compiler.peak <= 2
    assert len(compiler.workspaces) == 6


def test_submit_rejects_before_compiling(tmp_path):
    compiler = EchoCompiler()
    service = _service(tmp_path, compiler)

    with pytest.raises(Unauthorized):
        asyncio.run(service.submit({"content": "func main() {}", "confirmationKey": "wrong"}))

    assert compiler.workspaces == []
    assert not (tmp_path / "compile").exists()


def test_cancelled_request_still_cleans_up(tmp_path):
    compiler = EchoCompiler(delay=0.3)
    service = _service(tmp_path, compiler)

    async def scenario() -> None:
        task = asyncio.create_task(service.submit({"content": "slow", "confirmationKey": "secret"}))
        while not compiler.workspaces:
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    # asyncio.run waits for the default executor, so the pipeline has finished
    assert compiler.active == 0
    assert compiler.peak == 1
    assert list((tmp_path / "compile").iterdir()) == []


def test_cancelled_request_keeps_its_slot_until_the_compiler_finishes(tmp_path):
    compiler = EchoCompiler(delay=0.3)
    service = _service(tmp_path, compiler, limit=1)

    async def scenario():
        abandoned = asyncio.create_task(service.submit({"content": "first", "confirmationKey": "secret"}))
        while not compiler.workspaces:
            await asyncio.sleep(0.01)
        abandoned.cancel()
        with pytest.raises(asyncio.CancelledError):
            await abandoned
        return await service.submit({"content": "second", "confirmationKey": "secret"})

    result = asyncio.run(scenario())

    assert result.problems[0].message == "second"
    assert compiler.peak <= 1
    assert len(compiler.workspaces) == 2
    assert list((tmp_path / "compile").iterdir()) == []
