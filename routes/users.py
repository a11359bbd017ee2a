from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from config import OPERATION_TIMEOUT_SECONDS
from database import get_db
from models.User import User
from schemas import UserWrite, UserRead, UserUpdate, UserProfileRead, FCMTokenUpdate, PostRead
from services import follow_service, post_service, user_service
from utils.auth import get_active_user, get_current_user_id

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    payload: UserWrite,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Register the signed-in identity as a user.
    """
    return user_service.create_user(
        db,
        uid=user_id,
        username=payload.username,
        display_name=payload.display_name,
        email=payload.email,
        photo_url=payload.photo_url,
        bio=payload.bio,
        timeout=OPERATION_TIMEOUT_SECONDS,
    )


@router.get("/me", response_model=UserRead)
def get_me(user: User = Depends(get_active_user)):
    return user


@router.patch("/me", response_model=UserRead)
def update_me(
    user_update: UserUpdate,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    """
    Update the current user's settings.
    """
    return user_service.update_user(
        db, user.firebase_uid, user_update.model_dump(exclude_unset=True), timeout=OPERATION_TIMEOUT_SECONDS
    )


@router.put("/me/fcm-token", status_code=status.HTTP_200_OK)
def update_fcm_token(
    payload: FCMTokenUpdate,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    """Register the device token used for push notifications"""
    user_service.set_fcm_token(db, user.firebase_uid, payload.fcm_token)
    return {"message": "FCM token updated"}


@router.get("/by-username/{username}", response_model=UserProfileRead)
def get_user_by_username(
    username: str,
    current_user_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    user = user_service.get_user_by_username(db, username)
    return _profile(db, user, current_user_id)


@router.get("/{user_id}", response_model=UserProfileRead)
def get_user_profile(
    user_id: str,
    current_user_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Get user profile with follow status.
    """
    user = user_service.get_user(db, user_id)
    return _profile(db, user, current_user_id)


def _profile(db: Session, user: User, current_user_id: Optional[str]) -> UserProfileRead:
    profile = UserProfileRead.model_validate(user)
    if current_user_id:
        profile.is_following = follow_service.check_if_following(db, current_user_id, user.firebase_uid)
        profile.is_followed_by = follow_service.check_if_following(db, user.firebase_uid, current_user_id)
    return profile


@router.get("/{user_id}/posts", response_model=List[PostRead])
def get_user_posts(
    user_id: str,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
):
    """
    Public posts by a user, newest first.
    """
    user_service.get_user(db, user_id)
    return post_service.get_user_posts(db, user_id, skip=skip, limit=limit)
