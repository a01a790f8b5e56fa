"""Classify and decode individual stream lines."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from ..errors import RemoteAPIError, StreamDecodeError
from .models import HEARTBEAT_TYPE, Heartbeat, StreamModel


logger = logging.getLogger(__name__)


def decode_line(
    line: bytes,
    model: type[StreamModel],
    discriminated: bool = True,
) -> StreamModel | None:
    """
    Decode one stream line into a heartbeat or a record of ``model``.

    Heartbeats are recognized by the value of their "type" field, not by the
    raw text, so key order and spacing on the wire do not matter.

    Args:
        line: One non-empty line from the stream body
        model: Record model expected on this stream
        discriminated: Records on this stream must carry a non-empty "type"

    Returns:
        A Heartbeat, a ``model`` instance, or None for a malformed heartbeat
        (logged and skipped)

    Raises:
        RemoteAPIError: The line is an error object ({"errorMessage": ...})
        StreamDecodeError: The line is not valid JSON or not a valid record
    """
    try:
        payload = json.loads(line)
    except ValueError as e:
        raise StreamDecodeError(f"Invalid JSON on stream: {e}", line=line) from e

    if not isinstance(payload, dict):
        raise StreamDecodeError(
            f"Expected a JSON object on stream, got {type(payload).__name__}",
            line=line,
        )

    if payload.get("type") == HEARTBEAT_TYPE:
        try:
            return Heartbeat.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Skipping malformed heartbeat: {e.error_count()} error(s) in {line[:200]!r}")
            return None

    if not payload.get("type") and payload.get("errorMessage"):
        raise RemoteAPIError(str(payload["errorMessage"]), line=line)

    if discriminated and not payload.get("type"):
        raise StreamDecodeError(f"{model.__name__} record has no type", line=line)

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise StreamDecodeError(
            f"Invalid {model.__name__} record: {e.error_count()} validation error(s)",
            line=line,
        ) from e
