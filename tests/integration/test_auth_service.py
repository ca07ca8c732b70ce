"""
Integration tests for AuthService against an in-memory database.
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from salehunter.services import AuthService
from salehunter.services.auth_service import FORGOT_PASSWORD_MESSAGE, INVALID_CREDENTIALS
from salehunter.storage.models import User, utcnow


@pytest.fixture
def auth_service(uow, hasher, token_issuer, email_sender) -> AuthService:
    return AuthService(
        uow=uow,
        hasher=hasher,
        tokens=token_issuer,
        email_sender=email_sender,
        app_base_url="https://salehunter.test",
    )


async def register(service: AuthService, email: str = "sara@example.com", password: str = "secret123"):
    result = await service.register("Sara", email, password, phone_number="+20100")
    assert result.succeeded, result.message
    return result.data


class TestRegisterAndLogin:
    """Tests for registration and login."""

    async def test_register_creates_customer(self, auth_service, token_issuer):
        result = await auth_service.register("Sara", "sara@example.com", "secret123")

        assert result.code == 201
        assert result.message == "Registration successful"
        user = result.data.user
        assert user.id is not None
        assert user.role == "Customer"
        assert user.is_active
        assert user.password_hash != "secret123"
        assert user.refresh_token == result.data.tokens.refresh_token

        claims = token_issuer.verify_access(result.data.tokens.access_token)
        assert claims["sub"] == str(user.id)

    async def test_register_then_login(self, auth_service, token_issuer):
        registered = await register(auth_service)

        result = await auth_service.login("sara@example.com", "secret123")

        assert result.code == 200
        assert result.message == "Login successful"
        claims = token_issuer.verify_access(result.data.tokens.access_token)
        assert claims["sub"] == str(registered.user.id)
        assert result.data.user.last_login_at is not None

    async def test_duplicate_email_rejected(self, auth_service, db_session):
        await register(auth_service)

        result = await auth_service.register("Other", "sara@example.com", "another1")

        assert not result.succeeded
        assert result.code == 400
        assert result.message == "User with this email already exists"
        count = await db_session.scalar(select(func.count()).select_from(User))
        assert count == 1

    async def test_unknown_email_and_wrong_password_look_identical(self, auth_service):
        await register(auth_service)

        unknown = await auth_service.login("nobody@example.com", "secret123")
        wrong = await auth_service.login("sara@example.com", "wrong-password")

        assert unknown.code == wrong.code == 401
        assert unknown.message == wrong.message == INVALID_CREDENTIALS

    async def test_deactivated_user_cannot_login(self, auth_service, uow):
        registered = await register(auth_service)
        registered.user.is_active = False
        await uow.commit()

        result = await auth_service.login("sara@example.com", "secret123")

        assert result.code == 401
        assert result.message == "user was deactivated"

    async def test_deactivated_user_with_wrong_password_gets_generic_message(self, auth_service, uow):
        registered = await register(auth_service)
        registered.user.is_active = False
        await uow.commit()

        result = await auth_service.login("sara@example.com", "wrong-password")

        assert result.message == INVALID_CREDENTIALS

    async def test_login_rotates_refresh_token(self, auth_service):
        registered = await register(auth_service)
        first_refresh = registered.tokens.refresh_token

        result = await auth_service.login("sara@example.com", "secret123")

        assert result.data.tokens.refresh_token != first_refresh


class TestRefreshAndLogout:
    """Tests for refresh-token rotation and logout."""

    async def test_refresh_issues_new_access_token(self, auth_service, token_issuer):
        registered = await register(auth_service)
        old_refresh = registered.tokens.refresh_token

        result = await auth_service.refresh_token(old_refresh)

        assert result.code == 200
        assert result.message == "Token refreshed successfully"
        assert token_issuer.verify_access(result.data.access_token)["sub"] == str(registered.user.id)
        # Rotated: the presented token is no longer current
        assert registered.user.refresh_token != old_refresh

    async def test_old_refresh_token_unusable_after_rotation(self, auth_service):
        registered = await register(auth_service)
        old_refresh = registered.tokens.refresh_token
        await auth_service.refresh_token(old_refresh)

        result = await auth_service.refresh_token(old_refresh)

        assert result.code == 401

    async def test_unknown_refresh_token(self, auth_service):
        await register(auth_service)

        result = await auth_service.refresh_token("00000000-0000-0000-0000-000000000000")

        assert result.code == 401
        assert result.message == "Invalid or expired refresh token"

    async def test_expired_refresh_token(self, auth_service, uow):
        registered = await register(auth_service)
        registered.user.refresh_token_expiry = utcnow() - timedelta(minutes=1)
        await uow.commit()

        result = await auth_service.refresh_token(registered.tokens.refresh_token)

        assert result.code == 401
        assert result.message == "Invalid or expired refresh token"

    async def test_logout_clears_refresh_token(self, auth_service):
        registered = await register(auth_service)

        result = await auth_service.logout(registered.user.id)

        assert result.data is True
        assert registered.user.refresh_token is None
        assert registered.user.refresh_token_expiry is None
        assert (await auth_service.refresh_token(registered.tokens.refresh_token)).code == 401

    async def test_logout_unknown_user(self, auth_service):
        result = await auth_service.logout(999)

        assert result.code == 404


class TestPasswords:
    """Tests for change, forgot and reset password."""

    async def test_change_password(self, auth_service):
        registered = await register(auth_service)

        result = await auth_service.change_password(registered.user.id, "secret123", "newsecret")

        assert result.succeeded
        assert (await auth_service.login("sara@example.com", "newsecret")).succeeded
        assert (await auth_service.login("sara@example.com", "secret123")).code == 401

    async def test_change_password_wrong_current(self, auth_service):
        registered = await register(auth_service)

        result = await auth_service.change_password(registered.user.id, "wrong", "newsecret")

        assert result.code == 400
        assert result.message == "Current password is incorrect"

    async def test_forgot_password_response_identical_for_unknown_email(self, auth_service, email_sender):
        await register(auth_service)

        known = await auth_service.forgot_password("sara@example.com")
        unknown = await auth_service.forgot_password("ghost@example.com")

        assert (known.code, known.message, known.data) == (unknown.code, unknown.message, unknown.data)
        assert known.message == FORGOT_PASSWORD_MESSAGE
        assert len(email_sender.sent) == 1

    async def test_forgot_password_sends_reset_link(self, auth_service, email_sender):
        registered = await register(auth_service)

        await auth_service.forgot_password("sara@example.com")

        token = registered.user.password_reset_token
        assert token
        assert registered.user.password_reset_token_expiry > utcnow()
        message = email_sender.sent[0]
        assert message["to"] == "sara@example.com"
        assert message["subject"] == "Reset Your Password"
        assert f"https://salehunter.test/reset-password?token={token}" in message["html"]

    async def test_forgot_password_ignores_send_failure(self, auth_service, email_sender):
        await register(auth_service)
        email_sender.deliver = False

        result = await auth_service.forgot_password("sara@example.com")

        assert result.succeeded
        assert result.message == FORGOT_PASSWORD_MESSAGE

    async def test_reset_password(self, auth_service):
        registered = await register(auth_service)
        await auth_service.forgot_password("sara@example.com")
        token = registered.user.password_reset_token

        assert (await auth_service.verify_reset_token(token)).succeeded

        result = await auth_service.reset_password(token, "brandnew1")

        assert result.message == "Password reset successfully"
        assert registered.user.password_reset_token is None
        assert (await auth_service.login("sara@example.com", "brandnew1")).succeeded
        # Single use
        assert (await auth_service.reset_password(token, "again123")).code == 400

    async def test_expired_reset_token(self, auth_service, uow):
        registered = await register(auth_service)
        await auth_service.forgot_password("sara@example.com")
        token = registered.user.password_reset_token
        registered.user.password_reset_token_expiry = utcnow() - timedelta(seconds=1)
        await uow.commit()

        verify = await auth_service.verify_reset_token(token)
        reset = await auth_service.reset_password(token, "brandnew1")

        assert verify.code == reset.code == 400
        assert verify.message == reset.message == "Invalid or expired reset token"

    async def test_unknown_reset_token(self, auth_service):
        result = await auth_service.verify_reset_token("no-such-token")

        assert result.code == 400
