"""
freemodule/security/dependencies.py
Bearer authentication dependency
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from freemodule.dependencies import get_token_service
from freemodule.errors import ErrorCode, UnauthorizedError
from freemodule.security.tokens import TokenService, TokenUser

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> TokenUser:
    """
    Resolve the caller from an `Authorization: Bearer <token>` header.

    A missing header or a non-bearer scheme is UNAUTHENTICATED; token
    problems are reported by TokenService.verify.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authorization header missing or malformed", code=ErrorCode.UNAUTHENTICATED)
    return tokens.verify(credentials.credentials)
