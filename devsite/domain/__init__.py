"""Domain layer definitions."""

from .compilation import CompileRequest, Workspace

__all__ = [
    "CompileRequest",
    "Workspace",
]
