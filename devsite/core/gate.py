"""Validation and confirmation of inbound request bodies.

Nothing in here touches the filesystem; callers must pass the gate before any
workspace or process work begins.
"""
from __future__ import annotations

import hmac
import logging
from typing import Any, TypeVar

from pydantic import ValidationError

from devsite.core.errors import BadRequest, Unauthorized
from devsite.core.schema import CompileRequestBody, ConfirmedBody
from devsite.domain import CompileRequest

logger = logging.getLogger(__name__)

BodyT = TypeVar("BodyT", bound=ConfirmedBody)


def decode_body(payload: Any, model: type[BodyT]) -> BodyT:
    """Decode ``payload`` into ``model`` or raise :class:`BadRequest`."""

    if not isinstance(payload, dict):
        logger.warning("Rejected request body of type %s", type(payload).__name__)
        raise BadRequest()
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Rejected request body: %s", exc.errors(include_url=False))
        raise BadRequest() from exc


def confirm(
    supplied: str | None,
    expected: str | None,
    *,
    error: type[Unauthorized] = Unauthorized,
) -> None:
    """Compare the supplied confirmation key with the configured one.

    A missing ``expected`` key disables confirmation entirely.
    """

    if not expected:
        return
    if supplied is None or not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Source not confirmed")
        raise error()


def admit_compile(payload: Any, expected_key: str | None) -> CompileRequest:
    body = decode_body(payload, CompileRequestBody)
    confirm(body.confirmation_key, expected_key)
    return CompileRequest(content=body.content, confirmation_key=body.confirmation_key)
