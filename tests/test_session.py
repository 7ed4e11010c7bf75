"""Tests for SessionStore."""

import asyncio
import logging
import pickle

import pytest

from hostel_store.store.session import SessionState, SessionStore
from hostel_store.utils.errors import AuthError


class TestSessionRestore:
    def test_without_token_is_signed_out(self, db):
        session = SessionStore(db)

        assert session.state is SessionState.SIGNED_OUT
        assert session.current_identity() is None

    @pytest.mark.asyncio
    async def test_with_token_reports_loading_until_ready(self, db, identity):
        session = SessionStore(db, token=identity.token)

        assert session.state is SessionState.LOADING
        assert session.current_identity() is None

        restored = await session.ready()

        assert restored == identity
        assert session.state is SessionState.SIGNED_IN

    @pytest.mark.asyncio
    async def test_expired_token_resolves_signed_out(self, db):
        session = SessionStore(db, token='stale')

        assert await session.ready() is None
        assert session.state is SessionState.SIGNED_OUT

    @pytest.mark.asyncio
    async def test_backend_failure_resolves_signed_out(self, db, identity):
        db.fail.add('get_session')
        session = SessionStore(db, token=identity.token)

        await session.ready()

        assert session.state is SessionState.SIGNED_OUT

    @pytest.mark.asyncio
    async def test_concurrent_waiters_share_one_lookup(self, db, identity):
        session = SessionStore(db, token=identity.token)

        await asyncio.gather(session.ready(), session.ready(), session.ready())

        assert db.calls.count('get_session') == 1


class TestSignInOut:
    @pytest.mark.asyncio
    async def test_sign_in(self, db, identity):
        session = SessionStore(db)

        signed_in = await session.sign_in('Guest@Hostel.test ', 'secret123')

        assert signed_in.user_id == identity.user_id
        assert session.state is SessionState.SIGNED_IN

    @pytest.mark.asyncio
    async def test_bad_password_raises_and_stays_signed_out(self, db, identity):
        session = SessionStore(db)

        with pytest.raises(AuthError):
            await session.sign_in('guest@hostel.test', 'wrong')

        assert session.current_identity() is None

    @pytest.mark.asyncio
    async def test_sign_up_signs_in(self, db):
        session = SessionStore(db)

        identity = await session.sign_up('new@hostel.test', 'longenough')

        assert session.current_identity() == identity

    @pytest.mark.asyncio
    async def test_sign_up_is_logged(self, db, caplog):
        session = SessionStore(db)

        with caplog.at_level(logging.INFO, logger='hostel_store.store.session'):
            identity = await session.sign_up('new@hostel.test', 'longenough')

        assert f'User {identity.user_id} registered' in caplog.text

    @pytest.mark.asyncio
    async def test_sign_out_ends_remote_session(self, db, identity):
        session = SessionStore(db, token=identity.token)
        await session.ready()

        await session.sign_out()

        assert session.state is SessionState.SIGNED_OUT
        assert identity.token not in db.sessions

    @pytest.mark.asyncio
    async def test_sign_out_clears_locally_when_backend_fails(self, db, identity):
        db.fail.add('sign_out')
        session = SessionStore(db, token=identity.token)
        await session.ready()

        await session.sign_out()

        assert session.current_identity() is None


class TestPersistence:
    @pytest.mark.asyncio
    async def test_unpickled_store_revalidates_token(self, db, identity):
        session = SessionStore(db, token=identity.token)
        await session.ready()

        restored = pickle.loads(pickle.dumps(session))

        assert restored.backend is None
        assert restored.state is SessionState.LOADING
        restored.attach(db)
        assert await restored.ready() == identity
