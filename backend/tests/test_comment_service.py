"""
Shutterfeed Backend — Comment Pipeline Tests
=============================================

What:  add_comment / delete_comment / list_comments against a real SQLite
       database, including the fan-out writes (mentions, activity) and the
       behaviour under two overlapping sessions.

What we test:
    ✅ Text validation happens before any lookup
    ✅ 404 / 403 ordering
    ✅ Mentions from text (best-effort) and explicit ids (strict)
    ✅ Photo mention set only grows
    ✅ COMMENT_ADDED activity and last-activity pointer
    ✅ A failed explicit mention leaves nothing behind
    ✅ Deletion permissions and activity cleanup
    ✅ Two sessions commenting on one photo both persist
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select

from app.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.activity import Activity, ActivityKind
from app.models.comment import Comment
from app.models.user import User
from app.services.comment_service import CommentService
from app.services.photo_service import photo_service


async def _count(db, model, *where):
    result = await db.execute(select(func.count()).select_from(model).where(*where))
    return result.scalar_one()


class TestCommentModel:

    def test_text_column_and_server_timestamp(self):
        columns = Comment.__table__.c
        assert not columns["text"].nullable
        assert "CURRENT_TIMESTAMP" in str(columns["created_at"].server_default.arg)

    @pytest.mark.asyncio
    async def test_created_at_filled_on_insert(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        photo = await make_photo(alice)
        comment = Comment(photo_id=photo.id, author_id=alice.id, text="first")
        db_session.add(comment)
        await db_session.flush()

        assert comment.created_at is not None


class TestAddCommentValidation:

    def setup_method(self):
        self.service = CommentService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   \n\t"])
    async def test_blank_text_rejected_without_touching_store(self, text):
        db = MagicMock()
        db.execute = AsyncMock()

        with pytest.raises(ValidationError, match="Comment text is required"):
            await self.service.add_comment(db, uuid.uuid4(), uuid.uuid4(), text)
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_photo(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(NotFoundError):
            await self.service.add_comment(db_session, uuid.uuid4(), alice.id, "hello")

    @pytest.mark.asyncio
    async def test_private_photo_forbidden(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        photo = await make_photo(alice, shared_with=[bob])

        with pytest.raises(AuthorizationError, match="Not authorized to comment"):
            await self.service.add_comment(db_session, photo.id, carol.id, "let me in")
        assert await _count(db_session, Comment) == 0


class TestAddComment:

    def setup_method(self):
        self.service = CommentService()

    @pytest.mark.asyncio
    async def test_plain_comment(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)

        comment = await self.service.add_comment(db_session, photo.id, bob.id, "Great shot")

        assert comment.text == "Great shot"
        assert comment.photo_id == photo.id
        assert comment.user.username == "bob"
        assert comment.mentions == []

    @pytest.mark.asyncio
    async def test_text_mentions_resolved_and_unioned_into_photo(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        photo = await make_photo(alice)

        comment = await self.service.add_comment(
            db_session, photo.id, bob.id, "@carol look, and @ghost too"
        )
        assert [user.username for user in comment.mentions] == ["carol"]

        detail = await photo_service.get_photo(db_session, photo.id, alice.id)
        assert [user.id for user in detail.mentions] == [carol.id]
        assert detail.comment_count == 1

    @pytest.mark.asyncio
    async def test_repeated_mention_stays_single_in_photo_set(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)

        await self.service.add_comment(db_session, photo.id, alice.id, "@bob hi")
        await self.service.add_comment(db_session, photo.id, alice.id, "@bob hi again @bob")

        detail = await photo_service.get_photo(db_session, photo.id, alice.id)
        assert [user.id for user in detail.mentions] == [bob.id]

    @pytest.mark.asyncio
    async def test_explicit_mentions_skip_text_parsing(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        photo = await make_photo(alice)

        comment = await self.service.add_comment(
            db_session, photo.id, alice.id, "hey @carol", explicit_mentions=[str(bob.id)]
        )
        assert [user.id for user in comment.mentions] == [bob.id]
        assert carol.id not in {user.id for user in comment.mentions}

    @pytest.mark.asyncio
    async def test_empty_explicit_list_falls_back_to_text(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        await make_user("bob")
        photo = await make_photo(alice)

        comment = await self.service.add_comment(
            db_session, photo.id, alice.id, "hey @bob", explicit_mentions=[]
        )
        assert [user.username for user in comment.mentions] == ["bob"]

    @pytest.mark.asyncio
    async def test_unknown_explicit_mention_leaves_nothing_behind(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        photo = await make_photo(alice)
        activities_before = await _count(db_session, Activity)

        with pytest.raises(ValidationError, match="does not exist"):
            await self.service.add_comment(
                db_session, photo.id, alice.id, "hi", explicit_mentions=[str(uuid.uuid4())]
            )

        assert await _count(db_session, Comment) == 0
        assert await _count(db_session, Activity) == activities_before

    @pytest.mark.asyncio
    async def test_activity_recorded_and_pointer_moved(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)

        comment = await self.service.add_comment(db_session, photo.id, bob.id, "nice")

        result = await db_session.execute(
            select(Activity).where(Activity.comment_id == comment.id)
        )
        activity = result.scalar_one()
        assert activity.kind == ActivityKind.COMMENT_ADDED
        assert activity.user_id == bob.id
        assert activity.photo_id == photo.id

        author = await db_session.get(User, bob.id)
        assert author.last_activity_id == activity.id

    @pytest.mark.asyncio
    async def test_shared_user_may_comment(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice, shared_with=[bob])

        comment = await self.service.add_comment(db_session, photo.id, bob.id, "thanks for sharing")
        assert comment.user.id == bob.id


class TestDeleteComment:

    def setup_method(self):
        self.service = CommentService()

    @pytest.mark.asyncio
    async def test_author_can_delete(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)
        comment = await self.service.add_comment(db_session, photo.id, bob.id, "oops")

        await self.service.delete_comment(db_session, comment.id, bob.id)

        assert await _count(db_session, Comment) == 0
        assert await _count(db_session, Activity, Activity.comment_id == comment.id) == 0
        author = await db_session.get(User, bob.id)
        assert author.last_activity_id is None

    @pytest.mark.asyncio
    async def test_photo_owner_can_delete(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)
        comment = await self.service.add_comment(db_session, photo.id, bob.id, "spam")

        await self.service.delete_comment(db_session, comment.id, alice.id)
        assert await _count(db_session, Comment) == 0

    @pytest.mark.asyncio
    async def test_other_user_forbidden(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        photo = await make_photo(alice)
        comment = await self.service.add_comment(db_session, photo.id, bob.id, "mine")

        with pytest.raises(AuthorizationError):
            await self.service.delete_comment(db_session, comment.id, carol.id)
        assert await _count(db_session, Comment) == 1

    @pytest.mark.asyncio
    async def test_missing_comment(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(NotFoundError):
            await self.service.delete_comment(db_session, uuid.uuid4(), alice.id)

    @pytest.mark.asyncio
    async def test_photo_mentions_kept_after_delete(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        photo = await make_photo(alice)
        comment = await self.service.add_comment(db_session, photo.id, alice.id, "@bob")

        await self.service.delete_comment(db_session, comment.id, alice.id)

        detail = await photo_service.get_photo(db_session, photo.id, alice.id)
        assert detail.comments == []
        assert [user.id for user in detail.mentions] == [bob.id]


class TestListComments:

    def setup_method(self):
        self.service = CommentService()

    @pytest.mark.asyncio
    async def test_oldest_first(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        photo = await make_photo(alice)
        for text in ("one", "two", "three"):
            await self.service.add_comment(db_session, photo.id, alice.id, text)

        comments = await self.service.list_comments(db_session, photo.id, alice.id)
        assert [comment.text for comment in comments] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_hidden_photo_forbidden(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        photo = await make_photo(alice, shared_with=[bob])

        with pytest.raises(AuthorizationError):
            await self.service.list_comments(db_session, photo.id, carol.id)


class TestOverlappingSessions:
    """Two requests that loaded the photo before either one wrote."""

    @pytest.mark.asyncio
    async def test_both_comments_persist(self, session_factory, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        photo = await make_photo(alice)
        await db_session.commit()

        service = CommentService()
        async with session_factory() as first, session_factory() as second:
            # Both sessions read the photo before either comment exists
            await photo_service.get_photo(first, photo.id, bob.id)
            await photo_service.get_photo(second, photo.id, carol.id)

            await service.add_comment(first, photo.id, bob.id, "first @alice")
            await first.commit()

            await service.add_comment(second, photo.id, carol.id, "second @alice")
            await second.commit()

        async with session_factory() as check:
            comments = await service.list_comments(check, photo.id, alice.id)
            assert sorted(comment.text for comment in comments) == ["first @alice", "second @alice"]

            detail = await photo_service.get_photo(check, photo.id, alice.id)
            assert [user.id for user in detail.mentions] == [alice.id]
            assert detail.comment_count == 2
