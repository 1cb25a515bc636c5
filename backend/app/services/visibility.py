"""
Shutterfeed Backend — Visibility Evaluator
===========================================

What:  Decides whether a viewer may see a photo.
Who:   CommentService (before commenting), PhotoService (detail, like,
       listing), UserService (user page highlights).

Rule:
    1. The owner always sees their own photo.
    2. A photo with an empty or absent sharing list is public.
    3. Otherwise the viewer must be on the sharing list.

`can_view` evaluates the rule for one loaded photo and is a pure function.
`visible_to` expresses the same rule as a SQL filter so list queries never
load photos the viewer is not allowed to see.
"""

import uuid
from typing import Any, Iterable, Optional

from sqlalchemy import ColumnElement, exists, not_, or_, select

from app.models.associations import photo_shares
from app.models.photo import Photo


def normalize_id(value: Any) -> Any:
    """
    Reduce an identifier to a comparable value.

    UUID instances, UUID strings in any case or with braces, and objects
    carrying an `id` attribute all reduce to the same uuid.UUID. Values that
    are not UUIDs fall back to their string form.
    """
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    inner = getattr(value, "id", None)
    if inner is not None:
        return normalize_id(inner)
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return str(value)


def same_id(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return False
    return normalize_id(a) == normalize_id(b)


def can_view(photo: Any, viewer_id: Any) -> bool:
    """
    Return True when `viewer_id` may see `photo`.

    `photo` needs an `owner_id` and a `shared_with_ids` iterable (None or
    empty means public). No I/O and no side effects.
    """
    if same_id(photo.owner_id, viewer_id):
        return True

    shared: Optional[Iterable[Any]] = getattr(photo, "shared_with_ids", None)
    shared = list(shared) if shared else []
    if not shared:
        return True

    return any(same_id(member, viewer_id) for member in shared)


def visible_to(viewer_id: uuid.UUID) -> ColumnElement[bool]:
    """
    SQL filter for photos `viewer_id` may see (same rule as can_view).

    Usage:
        select(Photo).where(visible_to(viewer_id))
    """
    has_shares = exists(
        select(photo_shares.c.photo_id).where(photo_shares.c.photo_id == Photo.id)
    )
    shared_with_viewer = exists(
        select(photo_shares.c.photo_id).where(
            photo_shares.c.photo_id == Photo.id,
            photo_shares.c.user_id == viewer_id,
        )
    )
    return or_(
        Photo.owner_id == viewer_id,
        not_(has_shares),
        shared_with_viewer,
    )
