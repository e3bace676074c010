"""Unit tests for the login token lifecycle."""

from datetime import timedelta

import pytest

from nonceauth.core.config import Mode
from nonceauth.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from nonceauth.domain.entities import EmailChangeToken, LoginToken, User
from nonceauth.core.clock import as_utc, utcnow

ADDRESS = "a@example.com"


class TestRequestLogin:
    @pytest.mark.asyncio
    async def test_issues_token_and_emails_code(self, production, email_provider, codec):
        result = await production.logins.request_login(ADDRESS)

        token = await production.login_tokens.get_by_email(ADDRESS)
        code = email_provider.last_login_code(ADDRESS)
        assert token is not None
        assert result.email_address == ADDRESS
        assert token.check(code, result.nonce, codec) is True
        assert code not in (token.code_hash, token.nonce_hash)

    @pytest.mark.asyncio
    async def test_production_hides_code(self, production):
        result = await production.logins.request_login(ADDRESS)

        assert result.code is None

    @pytest.mark.asyncio
    async def test_development_exposes_code(self, development, email_provider):
        result = await development.logins.request_login(ADDRESS)

        assert result.code == email_provider.last_login_code(ADDRESS)

    @pytest.mark.asyncio
    async def test_token_expires_after_ttl(self, build_services):
        services = build_services(Mode.PRODUCTION, token_ttl=timedelta(minutes=5))

        before = utcnow()
        await services.logins.request_login(ADDRESS)

        token = await services.login_tokens.get_by_email(ADDRESS)
        remaining = as_utc(token.expires_at) - before
        assert timedelta(minutes=4) < remaining <= timedelta(minutes=5, seconds=5)

    @pytest.mark.asyncio
    async def test_second_request_conflicts(self, production, email_provider):
        await production.logins.request_login(ADDRESS)

        with pytest.raises(ConflictError) as exc_info:
            await production.logins.request_login(ADDRESS)

        assert exc_info.value.details[0].field == "email_address"
        assert len(email_provider.messages_to(ADDRESS)) == 1

    @pytest.mark.asyncio
    async def test_expired_token_does_not_block(self, production, codec):
        stale, _ = LoginToken.generate(
            ADDRESS, timedelta(minutes=15), codec, now=utcnow() - timedelta(hours=1)
        )
        await production.login_tokens.create(stale)

        result = await production.logins.request_login(ADDRESS)

        assert result.nonce

    @pytest.mark.asyncio
    async def test_pending_email_change_target_conflicts(self, production, codec, db_session):
        owner = await production.users.create(User(email_address="owner@example.com"))
        change, _ = EmailChangeToken.generate(
            owner.id, owner.email_address, ADDRESS, timedelta(minutes=15), codec
        )
        await production.email_change_tokens.create(change)
        await db_session.commit()

        with pytest.raises(ConflictError):
            await production.logins.request_login(ADDRESS)

    @pytest.mark.asyncio
    async def test_invalid_address(self, production, email_provider):
        with pytest.raises(ValidationError) as exc_info:
            await production.logins.request_login("not-an-address")

        assert exc_info.value.details[0].code == "invalid_format"
        assert email_provider.sent == []

    @pytest.mark.asyncio
    async def test_transport_failure_leaves_no_token(self, production, email_provider):
        email_provider.failing_recipients.add(ADDRESS)

        with pytest.raises(TransportError):
            await production.logins.request_login(ADDRESS)

        assert await production.login_tokens.exists_for_email(ADDRESS) is False

        email_provider.failing_recipients.clear()
        assert (await production.logins.request_login(ADDRESS)).nonce


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_creates_user_on_first_login(self, production, email_provider, jwt):
        result = await production.logins.request_login(ADDRESS)
        code = email_provider.last_login_code(ADDRESS)

        login = await production.logins.authenticate(ADDRESS, code, result.nonce)

        assert login.created_user is True
        assert login.user.email_address == ADDRESS
        assert login.expires_in == 48 * 3600
        assert len(login.user.session_nonces) == 1
        assert jwt.decode_session_claims(login.token).subject_id == login.user.id
        assert await production.login_tokens.exists_for_email(ADDRESS) is False

    @pytest.mark.asyncio
    async def test_existing_user_gains_second_session(self, production, email_provider):
        for _ in range(2):
            result = await production.logins.request_login(ADDRESS)
            login = await production.logins.authenticate(
                ADDRESS, email_provider.last_login_code(ADDRESS), result.nonce
            )

        assert login.created_user is False
        stored = await production.users.get_by_email(ADDRESS)
        assert len(stored.session_nonces) == 2

    @pytest.mark.asyncio
    async def test_no_pending_token(self, production):
        with pytest.raises(NotFoundError):
            await production.logins.authenticate(ADDRESS, "code", "nonce")

    @pytest.mark.asyncio
    async def test_expired_token_is_not_found(self, production, codec):
        stale, secrets = LoginToken.generate(
            ADDRESS, timedelta(minutes=15), codec, now=utcnow() - timedelta(hours=1)
        )
        await production.login_tokens.create(stale)

        with pytest.raises(NotFoundError):
            await production.logins.authenticate(ADDRESS, secrets.code, secrets.nonce)

    @pytest.mark.asyncio
    async def test_production_consumes_token_on_failure(self, production, email_provider):
        result = await production.logins.request_login(ADDRESS)
        code = email_provider.last_login_code(ADDRESS)

        with pytest.raises(AuthenticationError):
            await production.logins.authenticate(ADDRESS, "wrong", result.nonce)

        with pytest.raises(NotFoundError):
            await production.logins.authenticate(ADDRESS, code, result.nonce)
        assert await production.users.get_by_email(ADDRESS) is None

    @pytest.mark.asyncio
    async def test_development_keeps_token_on_failure(self, development, email_provider):
        result = await development.logins.request_login(ADDRESS)

        with pytest.raises(AuthenticationError):
            await development.logins.authenticate(ADDRESS, result.code, "wrong-nonce")

        login = await development.logins.authenticate(ADDRESS, result.code, result.nonce)
        assert login.user.email_address == ADDRESS
        assert await development.login_tokens.exists_for_email(ADDRESS) is False

    @pytest.mark.asyncio
    async def test_code_and_nonce_both_required(self, development):
        result = await development.logins.request_login(ADDRESS)

        for code, nonce in ((result.code, None), (None, result.nonce), (result.nonce, result.code)):
            with pytest.raises(AuthenticationError):
                await development.logins.authenticate(ADDRESS, code, nonce)

    @pytest.mark.asyncio
    async def test_unverified_user_rejected(self, production, email_provider, db_session):
        await production.users.create(User(email_address=ADDRESS, verified=False))
        await db_session.commit()
        result = await production.logins.request_login(ADDRESS)

        with pytest.raises(AuthenticationError):
            await production.logins.authenticate(
                ADDRESS, email_provider.last_login_code(ADDRESS), result.nonce
            )

        stored = await production.users.get_by_email(ADDRESS)
        assert stored.session_nonces == []
