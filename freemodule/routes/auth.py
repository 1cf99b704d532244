"""
freemodule/routes/auth.py
Signup and login
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.dependencies import get_token_service, get_user_service
from freemodule.schemas.auth import LoginUser, TokenResponse, UserLogin, UserRegister, UserResponse
from freemodule.security.rate_limit import login_limit, signup_limit
from freemodule.security.tokens import TokenService
from freemodule.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


async def _register(db: AsyncSession, users: UserService, payload: UserRegister) -> UserResponse:
    user = await users.create(db, payload.name, payload.email, payload.password)
    return UserResponse.model_validate(user)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@signup_limit
async def register(
    request: Request,
    payload: UserRegister,
    db: AsyncSession = Depends(get_db),
    users: UserService = Depends(get_user_service),
):
    """
    Create an account.

    The email must belong to the institution's domain. The response never
    includes the password hash.
    """
    return await _register(db, users, payload)


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@signup_limit
async def signup(
    request: Request,
    payload: UserRegister,
    db: AsyncSession = Depends(get_db),
    users: UserService = Depends(get_user_service),
):
    """Alias of /auth/register"""
    return await _register(db, users, payload)


@router.post("/login", response_model=TokenResponse)
@login_limit
async def login(
    request: Request,
    payload: UserLogin,
    db: AsyncSession = Depends(get_db),
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
):
    """Exchange credentials for a bearer token"""
    user = await users.authenticate(db, payload.email, payload.password)
    token = tokens.issue(user.id, user.email)
    logger.info(f"User {user.id} logged in")
    return TokenResponse(
        token=token,
        expires_in=tokens.expire_minutes * 60,
        user=LoginUser(id=user.id, name=user.name, email=user.email),
    )
