"""
freemodule/security/tokens.py
Bearer token issue and verification

Tokens are HS256 JWTs carrying the user's id and email. Verification is a
pure function of the signing secret and the token string.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from freemodule.errors import ErrorCode, UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenUser:
    """Identity carried by a verified token."""
    id: int
    email: str


class TokenService:
    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60):
        if not secret:
            raise ValueError("TokenService requires a signing secret")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed access token for the given user"""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        claims = {
            "id": user_id,
            "email": email,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenUser:
        """
        Decode a token and return the identity it carries.

        Raises UnauthorizedError with TOKEN_EXPIRED, INVALID_TOKEN or
        INVALID_PAYLOAD.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise UnauthorizedError("Token has expired", code=ErrorCode.TOKEN_EXPIRED)
        except JWTError as e:
            logger.debug(f"Rejected token: {e}")
            raise UnauthorizedError("Invalid token", code=ErrorCode.INVALID_TOKEN)

        user_id = payload.get("id")
        email = payload.get("email")
        if isinstance(user_id, bool) or not isinstance(user_id, int) or not isinstance(email, str) or not email:
            raise UnauthorizedError("Invalid token payload", code=ErrorCode.INVALID_PAYLOAD)
        return TokenUser(id=user_id, email=email)
