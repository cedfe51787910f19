"""Process configuration assembled from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_path(name: str) -> Path | None:
    raw = os.getenv(name)
    if not raw:
        return None
    return Path(raw).expanduser().resolve()


def _default_compile_dir() -> Path:
    return Path(__file__).resolve().parents[2] / "compile"


@dataclass(frozen=True, slots=True)
class Settings:
    """Explicit configuration handed to services at construction time."""

    compile_dir: Path
    compiler_dir: Path | None = None
    compiler_name: str = "qat"
    build_command: str = "build"
    source_extension: str = "qat"
    result_filename: str = "QatCompilationResult.json"
    confirmation_key: str | None = None
    compile_timeout: float = 30.0
    max_concurrent_compiles: int = 4
    allowed_origin: str = "*"
    token_refresh_interval: float = 4 * 60 * 60
    token_refresh_threshold: float = 24 * 60 * 60
    wakatime_api_base: str = "https://wakatime.com/api/v1"
    wakatime_redirect_uri: str = "https://qat.dev"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: str | os.PathLike[str] | None = None) -> "Settings":
        """Load ``.env`` (if present) and read every setting from the environment."""

        load_dotenv(env_file)
        return cls(
            compile_dir=_env_path("COMPILE_DIR") or _default_compile_dir(),
            compiler_dir=_env_path("COMPILER_DIR"),
            compiler_name=os.getenv("COMPILER_NAME") or "qat",
            build_command=os.getenv("COMPILER_BUILD_COMMAND") or "build",
            source_extension=(os.getenv("SOURCE_EXTENSION") or "qat").lstrip("."),
            result_filename=os.getenv("RESULT_FILENAME") or "QatCompilationResult.json",
            confirmation_key=os.getenv("CONFIRMATION_KEY") or None,
            compile_timeout=_env_float("COMPILE_TIMEOUT", 30.0),
            max_concurrent_compiles=_env_int("MAX_CONCURRENT_COMPILES", 4),
            allowed_origin=os.getenv("ALLOWED_ORIGIN") or "*",
            token_refresh_interval=_env_float("TOKEN_REFRESH_INTERVAL", 4 * 60 * 60),
            token_refresh_threshold=_env_float("TOKEN_REFRESH_THRESHOLD", 24 * 60 * 60),
            wakatime_api_base=os.getenv("WAKATIME_API_BASE") or "https://wakatime.com/api/v1",
            wakatime_redirect_uri=os.getenv("WAKATIME_REDIRECT_URI") or "https://qat.dev",
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def compiler_executable(self) -> str:
        """Absolute path under ``compiler_dir`` or a bare name resolved from ``PATH``."""

        if self.compiler_dir is not None:
            return str(self.compiler_dir / self.compiler_name)
        return self.compiler_name
