"""
freemodule/routes/users.py
The caller's own account
"""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.database import get_db
from freemodule.dependencies import get_user_service
from freemodule.schemas.auth import AccountDeleted, PasswordChange, ProfileUpdate, UserResponse
from freemodule.schemas.common import MessageResponse
from freemodule.security.dependencies import get_current_user
from freemodule.security.rate_limit import action_limit
from freemodule.security.tokens import TokenUser
from freemodule.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return UserResponse.model_validate(await users.get(db, current_user.id))


@router.put("/me", response_model=UserResponse)
@action_limit
async def update_me(
    request: Request,
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Change name and/or email. At least one must be given."""
    user = await users.update_profile(db, current_user.id, name=payload.name, email=payload.email)
    return UserResponse.model_validate(user)


@router.put("/me/password", response_model=MessageResponse)
@action_limit
async def change_password(
    request: Request,
    payload: PasswordChange,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    await users.change_password(db, current_user.id, payload.current_password, payload.new_password)
    return MessageResponse(message="Password updated successfully")


@router.delete("/me", response_model=AccountDeleted)
@action_limit
async def delete_me(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Delete the account along with every note, comment, like and post it owns."""
    deleted = await users.delete(db, current_user.id)
    return AccountDeleted(
        message="User account deleted successfully",
        deleted=UserResponse.model_validate(deleted),
    )
