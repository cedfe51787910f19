"""Infrastructure layer exports."""

from .compiler import CompilerInvoker, SubprocessCompiler
from .store import InMemorySiteRepository, SiteRepository
from .wakatime import WakatimeClient

__all__ = [
    "CompilerInvoker",
    "InMemorySiteRepository",
    "SiteRepository",
    "SubprocessCompiler",
    "WakatimeClient",
]
