"""
Authentication Service for SaleHunter

Account and token lifecycle over the User entity:
- Login / Register issue a fresh access+refresh pair
- Refresh rotates the pair when the presented refresh token is current
- Logout clears the refresh token
- Change / forgot / reset password

Failure messages on security-sensitive paths are identical regardless
of the underlying cause (unknown email vs wrong password, unknown vs
expired token) so callers cannot enumerate accounts.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from salehunter.security import PasswordHasher, TokenIssuer, TokenPair
from salehunter.storage.models import SignInMethod, User, utcnow
from salehunter.storage.unit_of_work import UnitOfWork

from .result import ServiceResult

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"
INVALID_RESET_TOKEN = "Invalid or expired reset token"
FORGOT_PASSWORD_MESSAGE = "If an account with this email exists, a password reset link has been sent"

RESET_EMAIL_SUBJECT = "Reset Your Password"
RESET_EMAIL_TEMPLATE = """
<p>Hello,</p>
<p>We received a request to reset your password. Click the link below to choose a new one:</p>
<p><a href="{link}">Reset Password</a></p>
<p>This link will expire in {hours} hour{plural}.</p>
<p>If you did not request this, please ignore this email.</p>
"""


@dataclass
class AuthResult:
    """Successful login/registration."""
    user: User
    tokens: TokenPair


@dataclass
class RefreshResult:
    access_token: str
    expires_at: datetime


class AuthService:
    """
    Orchestrates authentication flows.

    Args:
        uow: Unit of work for the current request
        hasher: Password hasher
        tokens: Token issuer
        email_sender: Object with async send(to, subject, html) -> bool
        reset_expiry_hours: Password-reset token lifetime
        app_base_url: Prefix for the reset link sent by email
        log: Request-bound logger
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        email_sender,
        reset_expiry_hours: int = 1,
        app_base_url: str = "http://localhost:8000/",
        log=None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.hasher = hasher
        self.tokens = tokens
        self.email_sender = email_sender
        self.reset_expiry_hours = reset_expiry_hours
        self.app_base_url = app_base_url if app_base_url.endswith("/") else app_base_url + "/"
        self.log = log or logger
        self.clock = clock

    # =========================================================================
    # Sessions
    # =========================================================================

    async def login(self, email: str, password: str) -> ServiceResult:
        user = await self.uow.users.get_by_email(email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            self.log.info("Failed login attempt")
            return ServiceResult.unauthorized(INVALID_CREDENTIALS)

        if not user.is_active:
            self.log.info(f"Login refused for deactivated user {user.id}")
            return ServiceResult.unauthorized("user was deactivated")

        user.last_login_at = self.clock()
        pair = self.tokens.issue_token_pair(user)
        await self.uow.commit()

        self.log.info(f"User {user.id} logged in")
        return ServiceResult.ok(AuthResult(user=user, tokens=pair), "Login successful")

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        phone_number: Optional[str] = None,
    ) -> ServiceResult:
        if await self.uow.users.get_by_email(email) is not None:
            return ServiceResult.conflict("User with this email already exists")

        now = self.clock()
        user = User(
            name=name,
            email=email,
            phone_number=phone_number or None,
            password_hash=self.hasher.hash(password),
            role="Customer",
            is_active=True,
            signed_in_with=SignInMethod.EMAIL,
            created_at=now,
            last_login_at=now,
        )

        try:
            await self.uow.users.add(user)
            pair = self.tokens.issue_token_pair(user)
            await self.uow.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.uow.rollback()
            return ServiceResult.conflict("User with this email already exists")

        self.log.info(f"Registered user {user.id}")
        return ServiceResult.created(AuthResult(user=user, tokens=pair), "Registration successful")

    async def refresh_token(self, refresh_token: str) -> ServiceResult:
        user = await self.uow.users.get_by_refresh_token(refresh_token)
        if not self.tokens.refresh_token_valid(user):
            return ServiceResult.unauthorized(INVALID_REFRESH_TOKEN)

        pair = self.tokens.issue_token_pair(user)
        user.updated_at = self.clock()
        await self.uow.commit()

        return ServiceResult.ok(
            RefreshResult(access_token=pair.access_token, expires_at=pair.expires_at),
            "Token refreshed successfully",
        )

    async def logout(self, user_id: int) -> ServiceResult:
        user = await self.uow.users.get(user_id)
        if user is None:
            return ServiceResult.not_found("User not found")

        user.refresh_token = None
        user.refresh_token_expiry = None
        await self.uow.commit()

        self.log.info(f"User {user_id} logged out")
        return ServiceResult.ok(True, "Logout successful")

    # =========================================================================
    # Passwords
    # =========================================================================

    async def change_password(
        self,
        user_id: int,
        current_password: str,
        new_password: str,
    ) -> ServiceResult:
        user = await self.uow.users.get(user_id)
        if user is None:
            return ServiceResult.not_found("User not found")

        if not self.hasher.verify(current_password, user.password_hash):
            return ServiceResult.invalid("Current password is incorrect")

        user.password_hash = self.hasher.hash(new_password)
        user.updated_at = self.clock()
        await self.uow.commit()

        self.log.info(f"User {user_id} changed password")
        return ServiceResult.ok(True, "Password changed successfully")

    async def forgot_password(self, email: str) -> ServiceResult:
        """
        Start a password reset.

        Always returns the same success result. When the account exists
        a one-hour reset token is stored and mailed; a failed send is
        logged and not reported.
        """
        user = await self.uow.users.get_by_email(email)
        if user is not None:
            token = str(uuid.uuid4())
            user.password_reset_token = token
            user.password_reset_token_expiry = self.clock() + timedelta(hours=self.reset_expiry_hours)
            await self.uow.commit()

            link = f"{self.app_base_url}reset-password?token={token}"
            body = RESET_EMAIL_TEMPLATE.format(
                link=link,
                hours=self.reset_expiry_hours,
                plural="" if self.reset_expiry_hours == 1 else "s",
            )
            sent = await self.email_sender.send(user.email, RESET_EMAIL_SUBJECT, body)
            if not sent:
                self.log.warning(f"Password reset email for user {user.id} was not delivered")

        return ServiceResult.ok(None, FORGOT_PASSWORD_MESSAGE)

    async def reset_password(self, token: str, new_password: str) -> ServiceResult:
        user = await self._user_for_reset_token(token)
        if user is None:
            return ServiceResult.invalid(INVALID_RESET_TOKEN)

        user.password_hash = self.hasher.hash(new_password)
        user.password_reset_token = None
        user.password_reset_token_expiry = None
        user.updated_at = self.clock()
        await self.uow.commit()

        self.log.info(f"User {user.id} reset password")
        return ServiceResult.ok(True, "Password reset successfully")

    async def verify_reset_token(self, token: str) -> ServiceResult:
        if await self._user_for_reset_token(token) is None:
            return ServiceResult.invalid(INVALID_RESET_TOKEN)
        return ServiceResult.ok(True, "Reset token is valid")

    async def _user_for_reset_token(self, token: str) -> Optional[User]:
        user = await self.uow.users.get_by_password_reset_token(token)
        if user is None or user.password_reset_token_expiry is None:
            return None
        if user.password_reset_token_expiry <= self.clock():
            return None
        return user
