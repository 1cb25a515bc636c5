"""
Shutterfeed Backend — Visibility Evaluator Tests
=================================================

What:  can_view() on plain objects, and visible_to() against a real query.
"""

import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy import select

from app.models.photo import Photo
from app.services.visibility import can_view, normalize_id, same_id, visible_to


def _photo(owner_id, shared_with_ids=None):
    return SimpleNamespace(owner_id=owner_id, shared_with_ids=shared_with_ids)


class TestCanView:

    def setup_method(self):
        self.owner = uuid.uuid4()
        self.friend = uuid.uuid4()
        self.stranger = uuid.uuid4()

    def test_owner_always_sees_own_photo(self):
        assert can_view(_photo(self.owner, [self.friend]), self.owner)

    def test_public_photo_visible_to_anyone(self):
        assert can_view(_photo(self.owner, []), self.stranger)
        assert can_view(_photo(self.owner, None), self.stranger)

    def test_shared_photo_visible_to_listed_user(self):
        assert can_view(_photo(self.owner, [self.friend]), self.friend)

    def test_shared_photo_hidden_from_others(self):
        assert not can_view(_photo(self.owner, [self.friend]), self.stranger)

    def test_owner_not_on_share_list_still_sees_photo(self):
        assert can_view(_photo(self.owner, [self.friend, self.stranger]), self.owner)

    def test_string_and_uuid_ids_compare_equal(self):
        photo = _photo(str(self.owner).upper(), [str(self.friend)])
        assert can_view(photo, self.owner)
        assert can_view(photo, self.friend)
        assert not can_view(photo, str(self.stranger))


class TestIdHelpers:

    def test_normalize_id_accepts_objects_with_id(self):
        user_id = uuid.uuid4()
        assert normalize_id(SimpleNamespace(id=user_id)) == user_id

    def test_normalize_id_non_uuid_falls_back_to_string(self):
        assert normalize_id(42) == "42"

    def test_same_id_none_never_matches(self):
        assert not same_id(None, None)
        assert not same_id(uuid.uuid4(), None)


class TestVisibleToFilter:

    @pytest.mark.asyncio
    async def test_filter_matches_can_view(self, db_session, make_user, make_photo):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")

        public = await make_photo(alice, caption="public")
        for_bob = await make_photo(alice, caption="for bob", shared_with=[bob])
        carols = await make_photo(carol, caption="carol private", shared_with=[alice])

        async def visible_ids(viewer):
            result = await db_session.execute(select(Photo.id).where(visible_to(viewer.id)))
            return set(result.scalars().all())

        assert await visible_ids(alice) == {public.id, for_bob.id, carols.id}
        assert await visible_ids(bob) == {public.id, for_bob.id}
        assert await visible_ids(carol) == {public.id, carols.id}
