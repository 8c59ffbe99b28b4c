"""
Serialization Utilities for the Blueprint AI Server.

Converts channel event data into JSON-safe payloads and validates the
payloads of incoming client requests.

Handles:
- Pydantic models (graph deltas, tool results) -> camelCase dicts
- datetime objects -> ISO 8601 strings
- Enums -> their values
- Nested dicts and lists
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ValidationError

from blueprint_ai.graph.models import Blueprint
from blueprint_ai.server.models import (
    ImportBlueprintPayload,
    SendMessagePayload,
    SetProviderPayload,
)

logger = logging.getLogger(__name__)


# ============================================================================
# OUTBOUND
# ============================================================================

def serialize_event_data(data: Any) -> Dict[str, Any]:
    """
    Serialize event data to a JSON-safe dictionary.

    Examples:
        >>> serialize_event_data({"text": "Hi"})
        {'text': 'Hi'}
        >>> serialize_event_data(None)
        {}
    """
    if data is None:
        return {}

    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)

    if isinstance(data, dict):
        return {k: _serialize_value(v) for k, v in data.items()}

    return {"value": _serialize_value(data)}


def _serialize_value(value: Any) -> Any:
    if value is None:
        return None

    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)

    if isinstance(value, datetime):
        return value.isoformat()

    if isinstance(value, Enum):
        return value.value

    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [_serialize_value(v) for v in value]

    if isinstance(value, (str, int, float, bool)):
        return value

    logger.warning(f"Serializing unexpected type {type(value).__name__} as string")
    return str(value)


# ============================================================================
# INBOUND
# ============================================================================

def _first_error(error: ValidationError) -> str:
    detail = error.errors()[0]
    location = ".".join(str(part) for part in detail.get("loc", ())) or "payload"
    return f"{location}: {detail.get('msg', 'invalid value')}"


def deserialize_send_message(payload: Dict[str, Any]) -> str:
    """
    Extract the user message from a SEND_MESSAGE payload.

    Raises:
        ValueError: If the message is missing or blank.
    """
    try:
        text = SendMessagePayload.model_validate(payload).message.strip()
    except ValidationError as e:
        raise ValueError(f"message is required and must be a string ({_first_error(e)})") from e
    if not text:
        raise ValueError("message must not be blank")
    return text


def deserialize_set_provider(payload: Dict[str, Any]) -> str:
    """
    Extract the provider id from a SET_PROVIDER payload.

    Raises:
        ValueError: If the provider id is missing.
    """
    try:
        return SetProviderPayload.model_validate(payload).provider.strip()
    except ValidationError as e:
        raise ValueError(f"provider is required and must be a string ({_first_error(e)})") from e


def deserialize_blueprint(payload: Dict[str, Any]) -> Blueprint:
    """
    Validate an IMPORT_BLUEPRINT payload into a Blueprint.

    Raises:
        ValueError: If the payload or the graph is malformed.
    """
    try:
        raw = ImportBlueprintPayload.model_validate(payload).blueprint
        return Blueprint.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid blueprint: {_first_error(e)}") from e


__all__ = [
    "serialize_event_data",
    "deserialize_send_message",
    "deserialize_set_provider",
    "deserialize_blueprint",
]
