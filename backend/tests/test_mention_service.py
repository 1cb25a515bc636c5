"""
Shutterfeed Backend — Mention Resolver Tests
=============================================

What:  Token parsing, best-effort username resolution, and the strict
       explicit-id path.
"""

import uuid

import pytest

from app.exceptions import ValidationError
from app.services.mention_service import (
    parse_mentions,
    resolve_explicit_mentions,
    resolve_mentions,
)


class TestParseMentions:

    def test_single_mention(self):
        assert parse_mentions("nice one @bob") == ["bob"]

    def test_order_kept_and_repeats_collapsed(self):
        assert parse_mentions("hi @bob and @alice, @bob again") == ["bob", "alice"]

    def test_token_ends_at_punctuation(self):
        assert parse_mentions("@bob's cat, @alice!") == ["bob", "alice"]

    def test_word_characters_only(self):
        assert parse_mentions("@user_1-two") == ["user_1"]

    def test_bare_at_sign_is_ignored(self):
        assert parse_mentions("email me @ home") == []

    def test_no_text(self):
        assert parse_mentions("") == []
        assert parse_mentions(None) == []

    def test_case_is_preserved(self):
        assert parse_mentions("@Bob @bob") == ["Bob", "bob"]

    def test_ascii_word_characters_only(self):
        assert parse_mentions("hey @bob\u00e9 and @j\u00fcrgen") == ["bob", "j"]


class TestResolveMentions:

    @pytest.mark.asyncio
    async def test_unknown_usernames_dropped(self, db_session, make_user):
        bob = await make_user("bob")
        alice = await make_user("alice")

        users = await resolve_mentions(db_session, ["nobody", "alice", "bob"])
        assert [user.id for user in users] == [alice.id, bob.id]

    @pytest.mark.asyncio
    async def test_lookup_is_case_sensitive(self, db_session, make_user):
        await make_user("bob")
        assert await resolve_mentions(db_session, ["Bob"]) == []

    @pytest.mark.asyncio
    async def test_empty_candidates(self, db_session):
        assert await resolve_mentions(db_session, []) == []


class TestResolveExplicitMentions:

    @pytest.mark.asyncio
    async def test_all_known_ids(self, db_session, make_user):
        bob = await make_user("bob")
        alice = await make_user("alice")

        users = await resolve_explicit_mentions(db_session, [str(bob.id), str(alice.id), str(bob.id)])
        assert [user.id for user in users] == [bob.id, alice.id]

    @pytest.mark.asyncio
    async def test_unknown_id_fails(self, db_session, make_user):
        bob = await make_user("bob")
        missing = uuid.uuid4()

        with pytest.raises(ValidationError, match="does not exist") as exc_info:
            await resolve_explicit_mentions(db_session, [str(bob.id), str(missing)])
        assert exc_info.value.context["user_id"] == str(missing)
        assert exc_info.value.field == "mentions"

    @pytest.mark.asyncio
    async def test_malformed_id_fails(self, db_session):
        with pytest.raises(ValidationError, match="not a valid identifier"):
            await resolve_explicit_mentions(db_session, ["not-a-uuid"])

    @pytest.mark.asyncio
    async def test_first_bad_id_in_list_order_reported(self, db_session):
        missing = uuid.uuid4()

        with pytest.raises(ValidationError, match="does not exist") as exc_info:
            await resolve_explicit_mentions(db_session, [str(missing), "not-a-uuid"])
        assert exc_info.value.context["user_id"] == str(missing)

        with pytest.raises(ValidationError, match="not a valid identifier"):
            await resolve_explicit_mentions(db_session, ["not-a-uuid", str(missing)])
