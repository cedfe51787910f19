"""Invocation of the external compiler toolchain.

The orchestrator only depends on :class:`CompilerInvoker`, so tests can swap in
a callable that writes a controlled result file instead of spawning a process.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from devsite.core.errors import ProcessError, ProcessTimeout

logger = logging.getLogger(__name__)

STDERR_TAIL = 2000


class CompilerInvoker(Protocol):
    """Contract for running the compiler against a workspace."""

    def run(self, source: Path, build_dir: Path) -> None:
        """Compile ``source`` into ``build_dir`` or raise :class:`ProcessError`."""


class SubprocessCompiler:
    """Runs the compiler executable as a blocking child process with a deadline."""

    def __init__(
        self,
        executable: str,
        *,
        build_command: str = "build",
        timeout: float | None = 30.0,
    ) -> None:
        self._executable = executable
        self._build_command = build_command
        self._timeout = timeout

    def command(self, source: Path, build_dir: Path) -> list[str]:
        return [
            self._executable,
            self._build_command,
            str(source),
            "-o",
            str(build_dir),
            "--no-colors",
        ]

    def run(self, source: Path, build_dir: Path) -> None:
        args = self.command(source, build_dir)
        logger.debug("Running compiler: %s", args)
        try:
            # run() kills and reaps the child before re-raising TimeoutExpired
            completed = subprocess.run(
                args,
                cwd=str(build_dir.parent),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            message = f"Compiler did not finish within {self._timeout:g} seconds"
            logger.error(message)
            raise ProcessTimeout(message) from exc
        except OSError as exc:
            message = f"Running compiler failed: {exc}"
            logger.error(message)
            raise ProcessError(message) from exc

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            message = f"Running compiler failed: exit status {completed.returncode}"
            if stderr:
                message = f"{message}: {stderr[-STDERR_TAIL:]}"
            logger.error(message)
            raise ProcessError(message)
