"""Reading the compiler's structured result artifact."""
from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from devsite.core.errors import ResultMalformed, ResultMissing, ResultUnreadable
from devsite.core.schema import CompileResult

logger = logging.getLogger(__name__)

RESULT_FILENAME = "QatCompilationResult.json"


def harvest(build_dir: Path, filename: str = RESULT_FILENAME) -> CompileResult:
    """Locate, read and decode the result file written into ``build_dir``.

    The decoded result is returned as the compiler wrote it. Values are never
    coerced: a string where an integer belongs is a malformed file.
    """

    path = Path(build_dir) / filename
    if not path.is_file():
        logger.error("Result file does not exist: %s", path)
        raise ResultMissing()

    try:
        payload = path.read_bytes()
    except OSError as exc:
        logger.error("Reading result file %s failed: %s", path, exc)
        raise ResultUnreadable() from exc

    try:
        return CompileResult.model_validate_json(payload, strict=True)
    except ValidationError as exc:
        logger.error("Parsing result file %s failed: %s", path, exc.errors(include_url=False))
        raise ResultMalformed() from exc
