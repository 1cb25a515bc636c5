"""
Shutterfeed Backend — Photo Service Tests
==========================================

What:  Upload, feed ordering and visibility, likes, tags and deletion.
How:   Real SQLite database; FileService is rooted in a temp directory and
       libmagic is patched to report JPEG.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from app.exceptions import AuthorizationError, DatabaseError, NotFoundError, ValidationError
from app.models.activity import Activity, ActivityKind
from app.models.associations import user_favorites
from app.models.comment import Comment
from app.models.photo import Photo
from app.schemas.photo import Rect
from app.services.comment_service import comment_service
from app.services.file_service import FileService
from app.services.photo_service import PhotoService
from app.services.user_service import user_service


@pytest.fixture
def storage(temp_storage):
    """A FileService on a temp directory, swapped into PhotoService."""
    service = FileService(storage_root=temp_storage)
    with patch("app.services.photo_service.file_service", service), \
         patch("app.services.file_service.magic.from_buffer", return_value="image/jpeg"):
        yield service


class TestUpload:

    def setup_method(self):
        self.service = PhotoService()

    @pytest.mark.asyncio
    async def test_public_upload(self, db_session, make_user, storage, sample_image_bytes):
        alice = await make_user("alice")

        photo = await self.service.upload_photo(
            db_session, alice.id, "beach.jpg", sample_image_bytes, caption="  Beach  "
        )

        assert photo.caption == "Beach"
        assert photo.shared_with == []
        assert photo.user.username == "alice"
        assert photo.file.startswith("/api/files/")
        stored = storage.storage_root / photo.file.removeprefix("/api/files/")
        assert stored.read_bytes() == sample_image_bytes

        result = await db_session.execute(select(Activity).where(Activity.photo_id == photo.id))
        assert result.scalar_one().kind == ActivityKind.PHOTO_UPLOAD

    @pytest.mark.asyncio
    async def test_shared_upload(self, db_session, make_user, storage, sample_image_bytes):
        alice = await make_user("alice")
        bob = await make_user("bob")

        photo = await self.service.upload_photo(
            db_session, alice.id, "p.png", sample_image_bytes, shared_with=[str(bob.id), str(bob.id)]
        )
        assert [user.id for user in photo.shared_with] == [bob.id]

    @pytest.mark.asyncio
    async def test_unknown_share_user_rejected_before_storing(self, db_session, make_user, storage, sample_image_bytes):
        alice = await make_user("alice")

        with pytest.raises(ValidationError, match="does not exist") as exc_info:
            await self.service.upload_photo(
                db_session, alice.id, "p.jpg", sample_image_bytes, shared_with=[str(uuid.uuid4())]
            )
        assert exc_info.value.field == "sharedWith"
        assert list(storage.storage_root.iterdir()) == []
        assert (await db_session.execute(select(func.count(Photo.id)))).scalar_one() == 0

    @pytest.mark.asyncio
    async def test_malformed_share_id_rejected(self, db_session, make_user, storage, sample_image_bytes):
        alice = await make_user("alice")
        with pytest.raises(ValidationError, match="not a valid identifier"):
            await self.service.upload_photo(
                db_session, alice.id, "p.jpg", sample_image_bytes, shared_with=["bob"]
            )

    @pytest.mark.asyncio
    async def test_file_removed_when_insert_fails(self, db_session, make_user, storage, sample_image_bytes):
        alice = await make_user("alice")

        with patch("app.services.photo_service.activity_service") as mock_activity:
            mock_activity.record = AsyncMock(side_effect=RuntimeError("boom"))
            with pytest.raises(DatabaseError):
                await self.service.upload_photo(db_session, alice.id, "p.jpg", sample_image_bytes)

        assert [p for p in storage.storage_root.rglob("*") if p.is_file()] == []


class TestFeed:

    def setup_method(self):
        self.service = PhotoService()

    @pytest.mark.asyncio
    async def test_most_liked_first_then_newest(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        old = await make_photo(alice, caption="old")
        liked = await make_photo(alice, caption="liked")
        new = await make_photo(alice, caption="new")

        await self.service.like_photo(db_session, liked.id, bob.id)

        feed = await self.service.list_photos(db_session, alice.id)
        assert [photo.id for photo in feed] == [liked.id, new.id, old.id]
        assert feed[0].like_count == 1

    @pytest.mark.asyncio
    async def test_private_photos_hidden(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        public = await make_photo(alice)
        private = await make_photo(alice, shared_with=[bob])

        assert {p.id for p in await self.service.list_photos(db_session, bob.id)} == {public.id, private.id}
        assert {p.id for p in await self.service.list_photos(db_session, carol.id)} == {public.id}

    @pytest.mark.asyncio
    async def test_filter_by_owner(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await make_photo(alice)
        bobs = await make_photo(bob)

        photos = await self.service.list_photos(db_session, alice.id, owner_id=bob.id)
        assert [photo.id for photo in photos] == [bobs.id]

    @pytest.mark.asyncio
    async def test_unknown_owner(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(NotFoundError):
            await self.service.list_photos(db_session, alice.id, owner_id=uuid.uuid4())

    @pytest.mark.asyncio
    async def test_detail_of_hidden_photo_forbidden(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        private = await make_photo(alice, shared_with=[bob])

        with pytest.raises(AuthorizationError):
            await self.service.get_photo(db_session, private.id, carol.id)
        with pytest.raises(NotFoundError):
            await self.service.get_photo(db_session, uuid.uuid4(), carol.id)


class TestLikesAndTags:

    def setup_method(self):
        self.service = PhotoService()

    @pytest.mark.asyncio
    async def test_like_twice_rejected(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)

        await self.service.like_photo(db_session, photo.id, bob.id)
        with pytest.raises(ValidationError, match="already liked"):
            await self.service.like_photo(db_session, photo.id, bob.id)

    @pytest.mark.asyncio
    async def test_like_hidden_photo_forbidden(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        photo = await make_photo(alice, shared_with=[bob])

        with pytest.raises(AuthorizationError):
            await self.service.like_photo(db_session, photo.id, carol.id)

    @pytest.mark.asyncio
    async def test_unlike_hidden_photo_forbidden(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        photo = await make_photo(alice, caption="secret", shared_with=[bob])
        await self.service.like_photo(db_session, photo.id, bob.id)

        with pytest.raises(AuthorizationError):
            await self.service.unlike_photo(db_session, photo.id, carol.id)

        detail = await self.service.get_photo(db_session, photo.id, alice.id)
        assert detail.like_count == 1

    @pytest.mark.asyncio
    async def test_unlike_is_idempotent(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)
        await self.service.like_photo(db_session, photo.id, bob.id)

        first = await self.service.unlike_photo(db_session, photo.id, bob.id)
        second = await self.service.unlike_photo(db_session, photo.id, bob.id)
        assert first.like_count == 0
        assert second.like_count == 0

    @pytest.mark.asyncio
    async def test_owner_tags_user(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)

        detail = await self.service.add_tag(
            db_session, photo.id, alice.id, bob.id, Rect(x=0.1, y=0.2, width=0.3, height=0.4)
        )
        assert len(detail.tags) == 1
        assert detail.tags[0].user.id == bob.id
        assert detail.tags[0].rect.width == pytest.approx(0.3)

    @pytest.mark.asyncio
    async def test_non_owner_cannot_tag(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)

        with pytest.raises(AuthorizationError):
            await self.service.add_tag(db_session, photo.id, bob.id, bob.id, Rect(x=0, y=0, width=1, height=1))

    @pytest.mark.asyncio
    async def test_tag_unknown_user(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        photo = await make_photo(alice)

        with pytest.raises(NotFoundError):
            await self.service.add_tag(
                db_session, photo.id, alice.id, uuid.uuid4(), Rect(x=0, y=0, width=1, height=1)
            )


class TestDelete:

    def setup_method(self):
        self.service = PhotoService()

    @pytest.mark.asyncio
    async def test_delete_removes_dependents(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)
        await self.service.like_photo(db_session, photo.id, bob.id)
        await comment_service.add_comment(db_session, photo.id, bob.id, "@alice nice")
        await user_service.add_favorite(db_session, bob.id, photo.id)

        path = await self.service.delete_photo(db_session, photo.id, alice.id)

        assert path == photo.file_path
        assert (await db_session.execute(select(func.count(Comment.id)))).scalar_one() == 0
        result = await db_session.execute(
            select(func.count()).select_from(Activity).where(Activity.kind == ActivityKind.COMMENT_ADDED)
        )
        assert result.scalar_one() == 0
        result = await db_session.execute(select(func.count()).select_from(user_favorites))
        assert result.scalar_one() == 0
        with pytest.raises(NotFoundError):
            await self.service.get_photo(db_session, photo.id, alice.id)

    @pytest.mark.asyncio
    async def test_only_owner_deletes(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)

        with pytest.raises(AuthorizationError):
            await self.service.delete_photo(db_session, photo.id, bob.id)
