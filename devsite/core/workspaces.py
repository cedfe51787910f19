from __future__ import annotations

import logging
import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from devsite.core.errors import WorkspaceCreateFailed, WorkspaceWriteFailed
from devsite.domain import Workspace

logger = logging.getLogger(__name__)

BUILD_SUBDIR = "build"
SOURCE_STEM = "main"
DIR_MODE = 0o755


class WorkspaceManager:
    """Allocates one isolated directory per compile request under ``base``."""

    def __init__(self, base: Path, *, source_extension: str = "qat") -> None:
        # workspace paths are handed to a compiler whose cwd is the workspace root
        self._base = Path(base).absolute()
        self._extension = source_extension.lstrip(".")

    @property
    def base(self) -> Path:
        return self._base

    def provision(self) -> Workspace:
        """Create ``<base>/<id>/build`` and return the new workspace."""

        ws_id = uuid.uuid4().hex
        root = self._base / ws_id
        workspace = Workspace(
            id=ws_id,
            root=root,
            build_dir=root / BUILD_SUBDIR,
            source=root / f"{SOURCE_STEM}.{self._extension}",
        )
        try:
            self._base.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            # exist_ok=False on the root: a pre-existing directory is never reused
            root.mkdir(mode=DIR_MODE)
            workspace.build_dir.mkdir(mode=DIR_MODE)
        except OSError as exc:
            logger.error("Cannot create build directory %s: %s", workspace.build_dir, exc)
            if root.exists() and not isinstance(exc, FileExistsError):
                self.destroy(workspace)
            raise WorkspaceCreateFailed() from exc
        logger.debug("Provisioned workspace %s", root)
        return workspace

    def write_source(self, workspace: Workspace, content: str) -> Path:
        """Persist the submitted source text inside the workspace."""

        try:
            workspace.source.write_text(content, encoding="utf-8")
        except (OSError, UnicodeError) as exc:
            logger.error("Cannot write source to %s: %s", workspace.source, exc)
            raise WorkspaceWriteFailed() from exc
        return workspace.source

    def destroy(self, workspace: Workspace) -> None:
        """Remove the workspace tree; missing or partial trees are not an error."""

        try:
            shutil.rmtree(workspace.root)
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.error("Failed to remove workspace %s: %s", workspace.root, exc)
            return
        logger.debug("Removed workspace %s", workspace.root)

    @contextmanager
    def workspace(self) -> Iterator[Workspace]:
        """Provision a workspace and destroy it however the block exits."""

        workspace = self.provision()
        try:
            yield workspace
        finally:
            self.destroy(workspace)

    def purge(self) -> None:
        """Drop everything left under ``base`` by a previous process."""

        if not self._base.exists():
            return
        try:
            shutil.rmtree(self._base)
        except OSError as exc:
            logger.error("Failed to purge compile directory %s: %s", self._base, exc)
            return
        logger.info("Purged compile directory %s", self._base)
