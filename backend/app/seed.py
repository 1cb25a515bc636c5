"""
Shutterfeed Backend — Sample Data Loader
=========================================

What:  Fills an empty database with three users, six photos, comments
       (one of them mentioning a user) and the matching activities.
How:   Goes through the same services the API uses, so every row obeys
       the usual invariants (mention sets, last-activity pointers, ...).
       Photo rows point at samples/sampleN.jpg under the storage root; the
       image files themselves are not created.

Usage:
    python -m app.seed                  # seed an empty database
    python -m app.seed --create-tables  # create tables first (no Alembic)
    python -m app.seed --reset          # delete all users first

Every sample account uses the password "password123".
"""

import argparse
import asyncio
import logging
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base, async_session_factory, dispose_engine, engine
from app.models.activity import ActivityKind
from app.models.photo import Photo
from app.models.user import User
from app.schemas.user import RegisterRequest
from app.services.activity_service import activity_service
from app.services.comment_service import comment_service
from app.services.user_service import user_service
from app.services.visibility import can_view

logger = logging.getLogger(__name__)

SAMPLE_PASSWORD = "password123"

SAMPLE_USERS = [
    {"first_name": "John", "last_name": "Doe", "username": "johndoe",
     "location": "San Francisco, CA", "description": "Photography enthusiast",
     "occupation": "Software Engineer"},
    {"first_name": "Jane", "last_name": "Smith", "username": "janesmith",
     "location": "New York, NY", "description": "Travel lover",
     "occupation": "Graphic Designer"},
    {"first_name": "Bob", "last_name": "Johnson", "username": "bobjohnson",
     "location": "Chicago, IL", "description": "Food blogger",
     "occupation": "Chef"},
]

SAMPLE_CAPTIONS = [
    "Beautiful sunset at the beach",
    "Downtown skyline",
    "Mountain hiking trip",
    "Family picnic",
    "Concert night",
    "My new puppy",
]

SAMPLE_COMMENTS = [
    "Great photo!",
    "Love the colors!",
    "Where was this taken?",
    "Beautiful shot!",
    "Awesome!",
    "This is incredible!",
    "Nice composition!",
    "What camera did you use?",
    "Perfect timing!",
    "Wow, stunning!",
    "I wish I was there!",
    "This made my day!",
]


async def load_sample_data(db: AsyncSession) -> Dict[str, int]:
    """
    Seed an empty database.

    Does nothing when users already exist. The caller commits.

    Returns:
        Counts of created users, photos and comments
    """
    existing = (await db.execute(select(func.count(User.id)))).scalar_one()
    if existing:
        logger.info("Database already has %d user(s); skipping sample data", existing)
        return {"users": 0, "photos": 0, "comments": 0}

    users: List[User] = []
    for data in SAMPLE_USERS:
        auth = await user_service.register(db, RegisterRequest(password=SAMPLE_PASSWORD, **data))
        users.append(await db.get(User, auth.user.id))

    # Photos are distributed round-robin; the last one is shared with its
    # owner's neighbour only, to have one private photo in the set.
    photos: List[Photo] = []
    for index, caption in enumerate(SAMPLE_CAPTIONS):
        owner = users[index % len(users)]
        private = index == len(SAMPLE_CAPTIONS) - 1
        photo = Photo(
            owner_id=owner.id,
            file_path=f"samples/sample{index + 1}.jpg",
            caption=caption,
            shared_with=[users[(index + 1) % len(users)]] if private else [],
        )
        db.add(photo)
        await db.flush()
        await activity_service.record(db, owner.id, ActivityKind.PHOTO_UPLOAD, photo_id=photo.id)
        photos.append(photo)

    # Every user except the owner comments on each photo.
    comment_count = 0
    for index, photo in enumerate(photos):
        commenters = [user for user in users if user.id != photo.owner_id]
        for offset, author in enumerate(commenters):
            if not can_view(photo, author.id):
                continue
            text = SAMPLE_COMMENTS[(index * 2 + offset) % len(SAMPLE_COMMENTS)]
            if index == 0 and offset == 0:
                text = f"{text} @{users[2].username} you have to see this"
            await comment_service.add_comment(db, photo.id, author.id, text)
            comment_count += 1

    logger.info(
        "Sample data loaded: %d users, %d photos, %d comments",
        len(users), len(photos), comment_count,
    )
    return {"users": len(users), "photos": len(photos), "comments": comment_count}


async def _run(create_tables: bool, reset: bool) -> None:
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        try:
            if reset:
                result = await session.execute(select(User.id))
                for user_id in result.scalars().all():
                    await user_service.delete_user(session, user_id)
            counts = await load_sample_data(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    await dispose_engine()
    print(
        f"Created {counts['users']} users, {counts['photos']} photos, "
        f"{counts['comments']} comments"
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Load Shutterfeed sample data")
    parser.add_argument("--create-tables", action="store_true", help="create tables before seeding")
    parser.add_argument("--reset", action="store_true", help="delete every user before seeding")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    asyncio.run(_run(create_tables=args.create_tables, reset=args.reset))


if __name__ == "__main__":
    main()
