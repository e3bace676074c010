"""Tests for the record store repositories against SQLite."""

from datetime import timedelta

import pytest
import pytest_asyncio

from nonceauth.core.clock import utcnow
from nonceauth.domain.entities import EmailChangeToken, LoginToken, User
from nonceauth.infrastructure.persistence.repositories import (
    EmailChangeTokenRepository,
    LoginTokenRepository,
    UserRepository,
)
from nonceauth.infrastructure.persistence.store import UniqueConstraintError

TTL = timedelta(minutes=15)


@pytest.fixture
def user_repo(db_session) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def login_repo(db_session) -> LoginTokenRepository:
    return LoginTokenRepository(db_session)


@pytest.fixture
def change_repo(db_session) -> EmailChangeTokenRepository:
    return EmailChangeTokenRepository(db_session)


def expired_login_token(email_address: str, codec) -> LoginToken:
    token, _ = LoginToken.generate(
        email_address, TTL, codec, now=utcnow() - timedelta(hours=1)
    )
    return token


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_create_and_fetch(self, user_repo, db_session):
        user = await user_repo.create(User(email_address="a@example.com"))
        await db_session.commit()

        by_id = await user_repo.get_by_id(user.id)
        by_email = await user_repo.get_by_email("a@example.com")

        assert by_id.email_address == "a@example.com"
        assert by_email.id == user.id
        assert by_id.session_nonces == []
        assert by_id.verified is True
        assert by_id.created_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_email_raises_unique_error(self, user_repo, db_session):
        await user_repo.create(User(email_address="a@example.com"))
        await db_session.commit()

        with pytest.raises(UniqueConstraintError) as exc_info:
            await user_repo.create(User(email_address="a@example.com"))

        assert exc_info.value.collection == "users"
        assert "email_address" in exc_info.value.fields

    @pytest.mark.asyncio
    async def test_session_usable_after_unique_error(self, user_repo, db_session):
        await user_repo.create(User(email_address="a@example.com"))
        await db_session.commit()

        with pytest.raises(UniqueConstraintError):
            await user_repo.create(User(email_address="a@example.com"))

        assert await user_repo.email_exists("a@example.com") is True

    @pytest.mark.asyncio
    async def test_save_persists_session_nonces(self, user_repo, db_session):
        user = await user_repo.create(User(email_address="a@example.com"))
        await db_session.commit()

        user.add_session_nonce("hash-1")
        user.add_session_nonce("hash-2")
        await user_repo.save(user)
        await db_session.commit()
        db_session.expunge_all()

        reloaded = await user_repo.get_by_id(user.id)
        assert reloaded.session_nonces == ["hash-1", "hash-2"]

    @pytest.mark.asyncio
    async def test_save_missing_user_returns_none(self, user_repo):
        assert await user_repo.save(User(email_address="ghost@example.com")) is None

    @pytest.mark.asyncio
    async def test_save_to_taken_email_raises(self, user_repo, db_session):
        await user_repo.create(User(email_address="a@example.com"))
        other = await user_repo.create(User(email_address="b@example.com"))
        await db_session.commit()

        other.email_address = "a@example.com"
        with pytest.raises(UniqueConstraintError):
            await user_repo.save(other)

    @pytest.mark.asyncio
    async def test_delete(self, user_repo, db_session):
        user = await user_repo.create(User(email_address="a@example.com"))
        await db_session.commit()

        assert await user_repo.delete(user.id) is True
        assert await user_repo.delete(user.id) is False
        assert await user_repo.get_by_id(user.id) is None


class TestLoginTokenRepository:
    @pytest.mark.asyncio
    async def test_create_and_lookup(self, login_repo, codec):
        token, _ = LoginToken.generate("a@example.com", TTL, codec)
        await login_repo.create(token)

        found = await login_repo.get_by_email("a@example.com")

        assert found.id == token.id
        assert await login_repo.exists_for_email("a@example.com") is True
        assert await login_repo.exists_for_email("b@example.com") is False

    @pytest.mark.asyncio
    async def test_one_live_token_per_address(self, login_repo, codec):
        first, _ = LoginToken.generate("a@example.com", TTL, codec)
        second, _ = LoginToken.generate("a@example.com", TTL, codec)
        await login_repo.create(first)

        with pytest.raises(UniqueConstraintError) as exc_info:
            await login_repo.create(second)

        assert exc_info.value.collection == "login_tokens"

    @pytest.mark.asyncio
    async def test_expired_token_is_invisible(self, login_repo, codec):
        await login_repo.create(expired_login_token("a@example.com", codec))

        assert await login_repo.get_by_email("a@example.com") is None
        assert await login_repo.exists_for_email("a@example.com") is False

    @pytest.mark.asyncio
    async def test_expired_token_does_not_block_new_one(self, login_repo, codec):
        await login_repo.create(expired_login_token("a@example.com", codec))
        fresh, _ = LoginToken.generate("a@example.com", TTL, codec)

        await login_repo.create(fresh)

        assert (await login_repo.get_by_email("a@example.com")).id == fresh.id

    @pytest.mark.asyncio
    async def test_delete_expired_only_removes_expired(self, login_repo, codec):
        await login_repo.create(expired_login_token("old@example.com", codec))
        live, _ = LoginToken.generate("new@example.com", TTL, codec)
        await login_repo.create(live)

        assert await login_repo.delete_expired() == 1
        assert await login_repo.get_by_email("new@example.com") is not None

    @pytest.mark.asyncio
    async def test_delete(self, login_repo, codec):
        token, _ = LoginToken.generate("a@example.com", TTL, codec)
        await login_repo.create(token)

        assert await login_repo.delete(token.id) is True
        assert await login_repo.delete(token.id) is False


class TestEmailChangeTokenRepository:
    @pytest_asyncio.fixture
    async def owner(self, user_repo, db_session) -> User:
        user = await user_repo.create(User(email_address="a@example.com"))
        await db_session.commit()
        return user

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, change_repo, owner, codec):
        token, _ = EmailChangeToken.generate(owner.id, owner.email_address, "b@example.com", TTL, codec)
        await change_repo.create(token)

        assert (await change_repo.get_for_user(owner.id)).new_email_address == "b@example.com"
        assert await change_repo.exists_for_new_email("b@example.com") is True
        assert await change_repo.exists_for_new_email("a@example.com") is False

    @pytest.mark.asyncio
    async def test_new_address_unique(self, change_repo, user_repo, owner, codec, db_session):
        other = await user_repo.create(User(email_address="c@example.com"))
        await db_session.commit()
        first, _ = EmailChangeToken.generate(owner.id, owner.email_address, "b@example.com", TTL, codec)
        second, _ = EmailChangeToken.generate(other.id, other.email_address, "b@example.com", TTL, codec)
        await change_repo.create(first)

        with pytest.raises(UniqueConstraintError) as exc_info:
            await change_repo.create(second)

        assert exc_info.value.fields == ("new_email_address",)

    @pytest.mark.asyncio
    async def test_current_address_unique(self, change_repo, owner, codec):
        first, _ = EmailChangeToken.generate(owner.id, owner.email_address, "b@example.com", TTL, codec)
        second, _ = EmailChangeToken.generate(owner.id, owner.email_address, "c@example.com", TTL, codec)
        await change_repo.create(first)

        with pytest.raises(UniqueConstraintError) as exc_info:
            await change_repo.create(second)

        assert exc_info.value.fields == ("email_address",)

    @pytest.mark.asyncio
    async def test_expired_token_invisible_and_replaceable(self, change_repo, owner, codec):
        stale, _ = EmailChangeToken.generate(
            owner.id,
            owner.email_address,
            "b@example.com",
            TTL,
            codec,
            now=utcnow() - timedelta(hours=1),
        )
        await change_repo.create(stale)

        assert await change_repo.get_for_user(owner.id) is None
        assert await change_repo.exists_for_new_email("b@example.com") is False

        fresh, _ = EmailChangeToken.generate(owner.id, owner.email_address, "b@example.com", TTL, codec)
        await change_repo.create(fresh)
        assert (await change_repo.get_for_user(owner.id)).id == fresh.id

    @pytest.mark.asyncio
    async def test_create_clears_owners_expired_token_for_other_addresses(
        self, change_repo, owner, codec
    ):
        stale, _ = EmailChangeToken.generate(
            owner.id,
            "old@example.com",
            "x@example.com",
            TTL,
            codec,
            now=utcnow() - timedelta(hours=1),
        )
        await change_repo.create(stale)

        fresh, _ = EmailChangeToken.generate(owner.id, owner.email_address, "b@example.com", TTL, codec)
        await change_repo.create(fresh)

        assert await change_repo.delete(stale.id) is False
        assert (await change_repo.get_for_user(owner.id)).id == fresh.id

    @pytest.mark.asyncio
    async def test_delete_for_user_covers_owner_and_address(self, change_repo, user_repo, owner, codec, db_session):
        other = await user_repo.create(User(email_address="z@example.com"))
        await db_session.commit()
        owned, _ = EmailChangeToken.generate(owner.id, "old@example.com", "b@example.com", TTL, codec)
        by_address, _ = EmailChangeToken.generate(other.id, owner.email_address, "c@example.com", TTL, codec)
        unrelated, _ = EmailChangeToken.generate(other.id, other.email_address, "d@example.com", TTL, codec)
        for token in (owned, by_address, unrelated):
            await change_repo.create(token)

        assert await change_repo.delete_for_user(owner.id, owner.email_address) == 2
        assert await change_repo.exists_for_new_email("d@example.com") is True

    @pytest.mark.asyncio
    async def test_user_delete_cascades(self, change_repo, user_repo, owner, codec, db_session):
        token, _ = EmailChangeToken.generate(owner.id, owner.email_address, "b@example.com", TTL, codec)
        await change_repo.create(token)
        await db_session.commit()
        db_session.expunge_all()

        await user_repo.delete(owner.id)
        await db_session.commit()

        assert await change_repo.exists_for_new_email("b@example.com") is False

    @pytest.mark.asyncio
    async def test_delete_expired(self, change_repo, owner, codec):
        stale, _ = EmailChangeToken.generate(
            owner.id,
            owner.email_address,
            "b@example.com",
            TTL,
            codec,
            now=utcnow() - timedelta(hours=1),
        )
        await change_repo.create(stale)

        assert await change_repo.delete_expired() == 1
        assert await change_repo.delete_expired() == 0
