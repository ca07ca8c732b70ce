"""
Password hashing and token policy for SaleHunter.

- Passwords: bcrypt through passlib's CryptContext
- Access tokens: HS256 JWT (python-jose) carrying sub/email/name/role/jti,
  validated for signature, issuer, audience and expiry with no leeway
- Refresh tokens: opaque UUID values stored on the user row; issuing a
  new pair overwrites the previous refresh token
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from salehunter.storage.models import User, utcnow

ALGORITHM = "HS256"


class InvalidToken(Exception):
    """Access token failed validation. Deliberately carries no cause."""

    def __init__(self):
        super().__init__("Invalid or expired token")


class PasswordHasher:
    """One-way salted password hashing."""

    def __init__(self, schemes: Optional[list[str]] = None):
        self._context = CryptContext(schemes=schemes or ["bcrypt"], deprecated="auto")

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, hashed: Optional[str]) -> bool:
        if not hashed:
            return False
        try:
            return self._context.verify(plaintext, hashed)
        except (ValueError, TypeError):
            # Malformed/unknown hash format counts as a mismatch
            return False


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    expires_at: datetime


class TokenIssuer:
    """
    Issues and verifies tokens.

    Args:
        secret: HMAC signing key
        issuer: `iss` claim written and required
        audience: `aud` claim written and required
        access_minutes: Access-token lifetime
        refresh_days: Refresh-token lifetime
        clock: Returns naive UTC "now"; overridable in tests
    """

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        access_minutes: int = 60,
        refresh_days: int = 7,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.access_minutes = access_minutes
        self.refresh_days = refresh_days
        self.clock = clock

    def create_access_token(self, user: User) -> tuple[str, datetime]:
        now = self.clock()
        expires_at = now + timedelta(minutes=self.access_minutes)
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "name": user.name,
            "role": user.role or "Customer",
            "jti": str(uuid.uuid4()),
            "iss": self.issuer,
            "aud": self.audience,
            "iat": _timestamp(now),
            "exp": _timestamp(expires_at),
        }
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM), expires_at

    @staticmethod
    def create_refresh_token() -> str:
        return str(uuid.uuid4())

    def issue_token_pair(self, user: User) -> TokenPair:
        """
        Create a new access/refresh pair for the user.

        Mutates user.refresh_token and user.refresh_token_expiry; the
        caller persists them.
        """
        access_token, expires_at = self.create_access_token(user)
        refresh_token = self.create_refresh_token()

        user.refresh_token = refresh_token
        user.refresh_token_expiry = self.clock() + timedelta(days=self.refresh_days)

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )

    def verify_access(self, token: str) -> dict[str, Any]:
        """
        Validate an access token and return its claims.

        Raises:
            InvalidToken: On any signature, issuer, audience, expiry or
                format problem.
        """
        if not token:
            raise InvalidToken()
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options={"leeway": 0, "require_exp": True, "require_sub": True},
            )
        except JWTError as e:
            raise InvalidToken() from e

        try:
            int(claims["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidToken() from e
        return claims

    def refresh_token_valid(self, user: Optional[User]) -> bool:
        """True when the user holds a refresh token that has not expired."""
        if user is None or not user.refresh_token or user.refresh_token_expiry is None:
            return False
        return user.refresh_token_expiry > self.clock()


def _timestamp(value: datetime) -> int:
    return int(value.replace(tzinfo=timezone.utc).timestamp())
