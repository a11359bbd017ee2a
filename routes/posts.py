from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from config import OPERATION_TIMEOUT_SECONDS
from database import get_db
from models.User import User
from schemas import (
    PostWrite,
    PostRead,
    LikeState,
    LikeToggle,
    CommentWrite,
    CommentRead,
    ReportWrite,
    ReportRead,
)
from services import comment_service, like_service, moderation_service, post_service
from utils.auth import get_active_user, get_current_user_id

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.post("/", response_model=PostRead, status_code=201)
def create_post(
    payload: PostWrite,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    """
    Publish a post whose media is already uploaded. Setting
    `original_post_id` makes it a remix of that post.
    """
    return post_service.create_post(
        db,
        author_id=user.firebase_uid,
        timeout=OPERATION_TIMEOUT_SECONDS,
        **payload.model_dump(),
    )


@router.get("/feed", response_model=List[PostRead])
def get_feed(
    skip: int = 0,
    limit: int = 20,
    db: Session = Depends(get_db)
):
    """
    Public posts, newest first.
    """
    return post_service.get_feed(db, skip=skip, limit=limit)


@router.get("/explore", response_model=List[PostRead])
def get_explore(
    order_by: str = "likes",
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """
    Public posts ranked by `likes`, `remixes` or `recent`.
    """
    return post_service.get_explore(db, order_by=order_by, limit=limit)


@router.get("/{post_id}", response_model=PostRead)
def get_post(post_id: int, db: Session = Depends(get_db)):
    return post_service.get_post(db, post_id)


@router.delete("/{post_id}", status_code=204)
def delete_post(
    post_id: int,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    """
    Delete a post (author or admin).
    """
    post_service.delete_post(db, post_id, user.firebase_uid, timeout=OPERATION_TIMEOUT_SECONDS)


# ---------- Likes ----------

@router.post("/{post_id}/like", response_model=LikeState)
def toggle_like(
    post_id: int,
    payload: LikeToggle,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    """
    Like or unlike a post. `currently_liked` is the state the client is
    showing; a stale value is answered with 409/404 so the client can reload.
    """
    post = like_service.toggle_like(
        db, post_id, user.firebase_uid, payload.currently_liked, timeout=OPERATION_TIMEOUT_SECONDS
    )
    return LikeState(is_liked=not payload.currently_liked, likes_count=post.likes_count)


@router.get("/{post_id}/is-liked", response_model=LikeState)
def check_if_liked(
    post_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Check if the current user has liked this post.
    """
    post = post_service.get_post(db, post_id)
    return LikeState(
        is_liked=like_service.check_if_liked(db, post_id, user_id),
        likes_count=post.likes_count,
    )


# ---------- Comments ----------

@router.get("/{post_id}/comments", response_model=List[CommentRead])
def list_comments(post_id: int, db: Session = Depends(get_db)):
    post_service.get_post(db, post_id)
    return comment_service.list_comments(db, post_id)


@router.post("/{post_id}/comments", response_model=CommentRead, status_code=201)
def add_comment(
    post_id: int,
    payload: CommentWrite,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    return comment_service.add_comment(db, post_id, user.firebase_uid, payload.text, timeout=OPERATION_TIMEOUT_SECONDS)


@router.delete("/{post_id}/comments/{comment_id}", status_code=204)
def delete_comment(
    post_id: int,
    comment_id: int,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    """
    Delete a comment (author only).
    """
    comment_service.delete_comment(db, post_id, comment_id, user.firebase_uid, timeout=OPERATION_TIMEOUT_SECONDS)


# ---------- Reports ----------

@router.post("/{post_id}/report", response_model=ReportRead, status_code=201)
def report_post(
    post_id: int,
    payload: ReportWrite,
    user: User = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    """
    Report a post. Each user can report a post once.
    """
    return moderation_service.submit_report(
        db, post_id, user.firebase_uid, payload.reason, timeout=OPERATION_TIMEOUT_SECONDS
    )
