import pytest

from storefront.core.config import settings
from storefront.core.errors import (
    DuplicateUser,
    InvalidCredentials,
    InvalidToken,
    MissingToken,
    RevokedToken,
    StoreUnavailable,
)
from storefront.db.models import Role
from storefront.services import sessions as sessions_module
from storefront.services.sessions import ACCESS_COOKIE, REFRESH_COOKIE, SessionManager
from storefront.store.token_cache import TokenCache, refresh_key
from storefront.store.users import UserRepository


@pytest.fixture
def sessions(db, redis_double):
    return SessionManager(UserRepository(db), TokenCache(redis_double))


@pytest.fixture
def registered(sessions):
    return sessions.register("Ada", "ada@example.com", "s3cret-pw")


class TestRegisterAndAuthenticate:
    def test_register_then_authenticate_returns_same_identity(self, sessions, registered):
        session = sessions.authenticate("ada@example.com", "s3cret-pw")
        assert session.user.id == registered.user.id
        assert session.user.email == "ada@example.com"
        assert session.user.role == Role.customer
        assert int(sessions.decode_refresh_token(session.tokens.refresh_token)) == registered.user.id

    def test_projection_never_exposes_password_hash(self, registered):
        dumped = registered.user.model_dump()
        assert "password_hash" not in dumped
        assert set(dumped) == {"id", "name", "email", "role", "cart_items"}

    def test_duplicate_email_rejected_regardless_of_password(self, sessions, registered):
        with pytest.raises(DuplicateUser):
            sessions.register("Other", "ada@example.com", "something-else")

    def test_wrong_password(self, sessions, registered):
        with pytest.raises(InvalidCredentials):
            sessions.authenticate("ada@example.com", "wrong")

    def test_unknown_email(self, sessions):
        with pytest.raises(InvalidCredentials):
            sessions.authenticate("nobody@example.com", "whatever")

    def test_unknown_email_still_pays_for_a_hash_check(self, sessions, monkeypatch):
        calls = []
        monkeypatch.setattr(sessions_module, "dummy_verify", lambda: calls.append(1))
        with pytest.raises(InvalidCredentials):
            sessions.authenticate("nobody@example.com", "whatever")
        assert calls == [1]

    def test_known_email_skips_the_dummy_check(self, sessions, registered, monkeypatch):
        calls = []
        monkeypatch.setattr(sessions_module, "dummy_verify", lambda: calls.append(1))
        with pytest.raises(InvalidCredentials):
            sessions.authenticate("ada@example.com", "wrong")
        assert calls == []

    def test_email_lookup_is_exact(self, sessions, registered):
        with pytest.raises(InvalidCredentials):
            sessions.authenticate("ADA@example.com", "s3cret-pw")

    def test_register_persists_refresh_record_with_ttl(self, registered, redis_double):
        key = refresh_key(registered.user.id)
        assert redis_double.get(key) == registered.tokens.refresh_token
        assert redis_double.ttl(key) == 7 * 24 * 60 * 60

    def test_register_admin_role_is_not_enforced_here(self, sessions):
        session = sessions.register("Root", "root@example.com", "pw", Role.admin)
        assert session.user.role == Role.admin


class TestRefresh:
    def test_refresh_issues_access_token_only(self, sessions, registered, redis_double):
        access = sessions.refresh(registered.tokens.refresh_token)
        assert sessions.verify_access_token(access) == registered.user.id
        # refresh token is not rotated
        assert redis_double.get(refresh_key(registered.user.id)) == registered.tokens.refresh_token
        sessions.refresh(registered.tokens.refresh_token)

    def test_missing_token(self, sessions):
        with pytest.raises(MissingToken):
            sessions.refresh(None)
        with pytest.raises(MissingToken):
            sessions.refresh("")

    def test_garbage_token(self, sessions):
        with pytest.raises(InvalidToken):
            sessions.refresh("not-a-jwt")

    def test_access_token_is_not_a_refresh_token(self, sessions, registered):
        with pytest.raises(InvalidToken):
            sessions.refresh(registered.tokens.access_token)

    def test_expired_refresh_token(self, db, redis_double, registered):
        expired = SessionManager(
            UserRepository(db),
            TokenCache(redis_double),
            settings.model_copy(update={"REFRESH_TOKEN_EXPIRES_SECONDS": -60}),
        )
        pair = expired.issue_token_pair(registered.user.id)
        expired.persist_session(registered.user.id, pair.refresh_token)
        with pytest.raises(InvalidToken):
            expired.refresh(pair.refresh_token)

    def test_overwritten_session_revokes_previous_token(self, sessions, registered):
        user_id = registered.user.id
        t1 = sessions.issue_token_pair(user_id).refresh_token
        t2 = sessions.issue_token_pair(user_id).refresh_token
        sessions.persist_session(user_id, t1)
        sessions.persist_session(user_id, t2)
        with pytest.raises(RevokedToken):
            sessions.refresh(t1)
        assert sessions.refresh(t2)

    def test_second_login_invalidates_first(self, sessions, registered):
        first = sessions.authenticate("ada@example.com", "s3cret-pw")
        second = sessions.authenticate("ada@example.com", "s3cret-pw")
        with pytest.raises(RevokedToken):
            sessions.refresh(first.tokens.refresh_token)
        sessions.refresh(second.tokens.refresh_token)

    def test_signature_check_passes_while_store_check_fails(self, sessions, registered, redis_double):
        token = registered.tokens.refresh_token
        redis_double.delete(refresh_key(registered.user.id))
        user_id = sessions.decode_refresh_token(token)
        assert int(user_id) == registered.user.id
        with pytest.raises(RevokedToken):
            sessions.check_stored_token(user_id, token)

    def test_token_cache_outage_is_a_store_error(self, sessions, registered, redis_double):
        redis_double.fail_reads = True
        with pytest.raises(StoreUnavailable):
            sessions.refresh(registered.tokens.refresh_token)


class TestRevoke:
    def test_revoke_then_refresh_fails(self, sessions, registered, redis_double):
        token = registered.tokens.refresh_token
        sessions.revoke(token)
        assert redis_double.get(refresh_key(registered.user.id)) is None
        with pytest.raises(RevokedToken):
            sessions.refresh(token)

    def test_revoke_is_idempotent(self, sessions, registered):
        sessions.revoke(registered.tokens.refresh_token)
        sessions.revoke(registered.tokens.refresh_token)

    def test_revoke_without_or_with_bad_token_is_a_no_op(self, sessions, registered, redis_double):
        sessions.revoke(None)
        sessions.revoke("garbage")
        sessions.revoke(registered.tokens.access_token)
        assert redis_double.get(refresh_key(registered.user.id)) == registered.tokens.refresh_token


class TestAccessTokens:
    def test_verify_access_token(self, sessions, registered):
        assert sessions.verify_access_token(registered.tokens.access_token) == registered.user.id

    def test_access_token_survives_logout(self, sessions, registered):
        sessions.revoke(registered.tokens.refresh_token)
        assert sessions.verify_access_token(registered.tokens.access_token) == registered.user.id

    def test_missing_and_invalid(self, sessions, registered):
        with pytest.raises(MissingToken):
            sessions.verify_access_token(None)
        with pytest.raises(InvalidToken):
            sessions.verify_access_token(registered.tokens.refresh_token)


def test_cookie_directives(sessions, registered):
    cookies = {c.name: c for c in sessions.session_cookies(registered.tokens)}
    assert cookies[ACCESS_COOKIE].value == registered.tokens.access_token
    assert cookies[ACCESS_COOKIE].max_age == 15 * 60
    assert cookies[REFRESH_COOKIE].value == registered.tokens.refresh_token
    assert cookies[REFRESH_COOKIE].max_age == 7 * 24 * 60 * 60
    assert all(c.max_age == 0 and c.value == "" for c in sessions.cleared_cookies())
