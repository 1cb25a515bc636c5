"""
Shutterfeed Backend — Shared Schema Building Blocks
====================================================

What:  Base model, boundary coercion helpers, and the error/health/message
       response models used by every router.
How:   All API models inherit from ApiModel, which serializes field names in
       camelCase (first_name → firstName) and accepts either spelling on
       input. Entity ids are exposed as `_id`.

Reference-list coercion:
    Clients have historically sent user-id lists in several shapes: a JSON
    string (multipart forms), a list of strings, or a list of populated
    objects such as {"_id": "..."}. `coerce_id_list` flattens all of them
    into one de-duplicated list of id strings, in first-seen order. It is the
    only place such shapes are recognised; services receive plain lists.
"""

import json
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for every request/response model in the API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _id_of(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("_id", "id", "userId", "user_id"):
            if item.get(key):
                return str(item[key]).strip()
        raise ValueError(f"Object {item!r} does not carry an id")
    return str(item).strip()


def coerce_id_list(value: Any) -> Optional[List[str]]:
    """
    Normalize a reference list arriving at the API boundary.

        None / ""                    → None (field not supplied)
        '["a", "b"]'                 → ["a", "b"]
        "a"                          → ["a"]
        ["a", {"_id": "b"}, "a"]     → ["a", "b"]
    """
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        if stripped.startswith("["):
            try:
                value = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Malformed id list: {e.msg}")
        else:
            value = [stripped]
    if not isinstance(value, (list, tuple)):
        value = [value]

    seen = set()
    ids: List[str] = []
    for item in value:
        item_id = _id_of(item)
        if item_id and item_id not in seen:
            seen.add(item_id)
            ids.append(item_id)
    return ids


# ══════════════════════════════════════════════════════════════════════════
# Generic Response Models
# ══════════════════════════════════════════════════════════════════════════


class MessageResponse(ApiModel):
    """Plain acknowledgement, e.g. {"message": "Comment deleted successfully"}."""
    message: str = Field(description="Human-readable result")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "authorization_error",
            "message": "Not authorized to comment on this photo",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Photo storage: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
