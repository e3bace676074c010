"""Unit tests for the session manager."""

from datetime import timedelta

import pytest
import pytest_asyncio

from nonceauth.core.exceptions import AuthenticationError, SessionExpiredError
from nonceauth.domain.entities import User
from nonceauth.core.clock import utcnow


@pytest_asyncio.fixture
async def user(production, db_session) -> User:
    created = await production.users.create(User(email_address="a@example.com"))
    await db_session.commit()
    return created


def expired_bearer(user: User, codec, jwt) -> tuple[str, str]:
    """Attach a session to ``user`` and mint a token that has already expired."""
    session_id = codec.generate_secret()
    user.add_session_nonce(codec.hash_secret(session_id))
    return session_id, jwt.create_session_token(
        user_id=user.id,
        session_id=session_id,
        expires_delta=timedelta(hours=1),
        now=utcnow() - timedelta(hours=2),
    )


@pytest.mark.asyncio
async def test_create_and_verify(production, user):
    token = await production.sessions.create_session(user)

    authenticated = await production.sessions.verify_bearer(token)

    assert authenticated.user.id == user.id
    assert authenticated.user.find_session(authenticated.session_id, production.sessions.codec) == 0


@pytest.mark.asyncio
async def test_sessions_are_independent(production, user):
    first = await production.sessions.create_session(user)
    second = await production.sessions.create_session(user)

    one = await production.sessions.verify_bearer(first)
    await production.sessions.revoke_session(one.user, one.session_id)

    with pytest.raises(AuthenticationError):
        await production.sessions.verify_bearer(first)
    assert (await production.sessions.verify_bearer(second)).user.id == user.id


@pytest.mark.asyncio
async def test_revoke_is_idempotent(production, user):
    token = await production.sessions.create_session(user)
    authenticated = await production.sessions.verify_bearer(token)

    assert await production.sessions.revoke_session(authenticated.user, authenticated.session_id) is True
    assert await production.sessions.revoke_session(authenticated.user, authenticated.session_id) is False
    assert authenticated.user.session_nonces == []


@pytest.mark.asyncio
async def test_revoke_all(production, user):
    tokens = [await production.sessions.create_session(user) for _ in range(3)]

    assert await production.sessions.revoke_all_sessions(user) == 3

    for token in tokens:
        with pytest.raises(AuthenticationError):
            await production.sessions.verify_bearer(token)
    assert (await production.users.get_by_id(user.id)).session_nonces == []


@pytest.mark.asyncio
async def test_expired_token_removes_its_session(production, user, codec, jwt, db_session):
    live = await production.sessions.create_session(user)
    _, expired = expired_bearer(user, codec, jwt)
    await production.users.save(user)
    await db_session.commit()

    with pytest.raises(SessionExpiredError) as exc_info:
        await production.sessions.verify_bearer(expired)

    assert exc_info.value.status_code == 401
    stored = await production.users.get_by_id(user.id)
    assert len(stored.session_nonces) == 1
    assert (await production.sessions.verify_bearer(live)).user.id == user.id


@pytest.mark.asyncio
async def test_expired_token_for_missing_user(production, codec, jwt):
    ghost = User(email_address="ghost@example.com")
    _, expired = expired_bearer(ghost, codec, jwt)

    with pytest.raises(SessionExpiredError):
        await production.sessions.verify_bearer(expired)


@pytest.mark.asyncio
async def test_garbage_token(production):
    with pytest.raises(AuthenticationError) as exc_info:
        await production.sessions.verify_bearer("not.a.jwt")

    assert not isinstance(exc_info.value, SessionExpiredError)


@pytest.mark.asyncio
async def test_token_signed_with_other_key(production, user):
    from nonceauth.infrastructure.auth.jwt_service import JWTService

    forged = JWTService(secret_key="someone-elses-key").create_session_token(
        user_id=user.id, session_id="whatever", expires_delta=timedelta(hours=1)
    )

    with pytest.raises(AuthenticationError):
        await production.sessions.verify_bearer(forged)


@pytest.mark.asyncio
async def test_deleted_user(production, user, db_session):
    token = await production.sessions.create_session(user)
    await production.users.delete(user.id)
    await db_session.commit()

    with pytest.raises(AuthenticationError):
        await production.sessions.verify_bearer(token)


@pytest.mark.asyncio
async def test_unverified_user(production, user, db_session):
    token = await production.sessions.create_session(user)
    user.verified = False
    await production.users.save(user)
    await db_session.commit()

    with pytest.raises(AuthenticationError):
        await production.sessions.verify_bearer(token)


@pytest.mark.asyncio
async def test_create_session_for_missing_user(production):
    with pytest.raises(AuthenticationError):
        await production.sessions.create_session(User(email_address="ghost@example.com"))
