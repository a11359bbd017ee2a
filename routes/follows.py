from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from config import OPERATION_TIMEOUT_SECONDS
from database import get_db
from models.User import User
from schemas import FollowRead, UserRead
from services import follow_service, user_service
from utils.auth import get_active_user

router = APIRouter(prefix="/follows", tags=["Follows"])


@router.post("/{following_id}", response_model=FollowRead, status_code=201)
def follow_user(
    following_id: str,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    """
    Follow a user.
    """
    return follow_service.follow_user(db, user.firebase_uid, following_id, timeout=OPERATION_TIMEOUT_SECONDS)


@router.delete("/{following_id}", status_code=204)
def unfollow_user(
    following_id: str,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    """
    Unfollow a user.
    """
    follow_service.unfollow_user(db, user.firebase_uid, following_id, timeout=OPERATION_TIMEOUT_SECONDS)


@router.get("/{user_id}/following", response_model=List[UserRead])
def get_following(
    user_id: str,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """
    Get list of users that a user is following.
    """
    user_service.get_user(db, user_id)
    return follow_service.get_following(db, user_id, skip=skip, limit=limit)


@router.get("/{user_id}/followers", response_model=List[UserRead])
def get_followers(
    user_id: str,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """
    Get list of users that follow a user.
    """
    user_service.get_user(db, user_id)
    return follow_service.get_followers(db, user_id, skip=skip, limit=limit)


@router.get("/{follower_id}/is-following/{following_id}", response_model=bool)
def is_following(
    follower_id: str,
    following_id: str,
    db: Session = Depends(get_db)
):
    """
    Check if a user is following another user.
    """
    return follow_service.check_if_following(db, follower_id, following_id)
