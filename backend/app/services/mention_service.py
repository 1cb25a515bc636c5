"""
Shutterfeed Backend — Mention Resolver
=======================================

What:  Turns `@username` tokens (or an explicit id list) into User rows.
Who:   Called by CommentService while creating a comment.

Two input paths, deliberately asymmetric:

    Text path (best-effort)
        parse_mentions("hi @bob and @alice, @bob again") → ["bob", "alice"]
        resolve_mentions(...) drops usernames that match nobody.

    Explicit path (strict)
        resolve_explicit_mentions(...) receives ids the user picked in the
        UI. Every id must exist; the first unknown or malformed id fails the
        whole comment with a ValidationError.

Token grammar:
    "@" followed by one or more ASCII word characters (A-Z, a-z, 0-9, "_"),
    ending at the first non-word character or end of text. Matches are
    non-overlapping, scanned left to right. Lookup is exact and
    case-sensitive.
"""

import logging
import re
import uuid
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ValidationError
from app.models.user import User

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@(\w+)", re.ASCII)


def parse_mentions(text: str) -> List[str]:
    """
    Extract candidate usernames from free text.

    Order of first occurrence is kept; repeats collapse to one candidate.
    """
    if not text:
        return []
    seen = set()
    candidates: List[str] = []
    for match in MENTION_PATTERN.finditer(text):
        username = match.group(1)
        if username not in seen:
            seen.add(username)
            candidates.append(username)
    return candidates


async def resolve_mentions(db: AsyncSession, candidates: Iterable[str]) -> List[User]:
    """
    Look up candidate usernames; unknown ones are silently dropped.

    Returns users in candidate order, each at most once.
    """
    wanted = list(dict.fromkeys(candidates))
    if not wanted:
        return []

    result = await db.execute(select(User).where(User.username.in_(wanted)))
    by_username: Dict[str, User] = {user.username: user for user in result.scalars().all()}

    resolved = [by_username[name] for name in wanted if name in by_username]
    missed = len(wanted) - len(resolved)
    if missed:
        logger.debug("Mention resolution skipped %d unknown username(s)", missed)
    return resolved


def _parse_user_id(raw: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(raw).strip())
    except ValueError:
        return None


async def resolve_explicit_mentions(db: AsyncSession, user_ids: Sequence[str]) -> List[User]:
    """
    Resolve a client-supplied id list; every id must name an existing user.

    Raises:
        ValidationError: on the first malformed or unknown id (list order)
    """
    parsed = [(raw, _parse_user_id(raw)) for raw in user_ids]
    valid = [user_id for _, user_id in parsed if user_id is not None]

    by_id: Dict[uuid.UUID, User] = {}
    if valid:
        result = await db.execute(select(User).where(User.id.in_(set(valid))))
        by_id = {user.id: user for user in result.scalars().all()}

    for raw, user_id in parsed:
        if user_id is None:
            raise ValidationError(
                message=f"Mentioned user id '{raw}' is not a valid identifier",
                field="mentions",
                context={"user_id": str(raw)},
            )
        if user_id not in by_id:
            raise ValidationError(
                message=f"Mentioned user '{user_id}' does not exist",
                field="mentions",
                context={"user_id": str(user_id)},
            )
    return [by_id[user_id] for user_id in dict.fromkeys(valid)]
