"""Follow edges and the follower/following counters.

A single ``follows`` row is both the forward edge (indexed on
``follower_id``) and the reverse one (indexed on ``following_id``), so
both directions change in the same write as the two counters.
"""
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from errors import Conflict, NotFound, ValidationError
from models.Follow import Follow
from models.User import User
from services import trigger_service
from services.transaction import decrement, run_in_transaction


def check_if_following(db: Session, follower_id: str, followee_id: str) -> bool:
    return db.query(Follow).filter(
        Follow.follower_id == follower_id,
        Follow.following_id == followee_id
    ).first() is not None


def _load_pair(db: Session, follower_id: str, followee_id: str) -> None:
    follower = db.query(User).filter(User.firebase_uid == follower_id).first()
    following = db.query(User).filter(User.firebase_uid == followee_id).first()

    if not follower:
        raise NotFound("Follower user not found")
    if not following:
        raise NotFound("Following user not found")


def follow_user(db: Session, follower_id: str, followee_id: str, timeout: Optional[float] = None) -> Follow:
    if follower_id == followee_id:
        raise ValidationError("Cannot follow yourself")

    def work(deadline):
        _load_pair(db, follower_id, followee_id)
        if check_if_following(db, follower_id, followee_id):
            raise Conflict("Already following this user")

        follow = Follow(follower_id=follower_id, following_id=followee_id)
        db.add(follow)
        db.flush()
        deadline.check()

        db.query(User).filter(User.firebase_uid == follower_id).update(
            {User.following_count: User.following_count + 1}, synchronize_session=False
        )
        db.query(User).filter(User.firebase_uid == followee_id).update(
            {User.followers_count: User.followers_count + 1}, synchronize_session=False
        )
        return follow

    follow = run_in_transaction(db, work, timeout=timeout)
    db.refresh(follow)
    trigger_service.dispatch(db, "follows", {"follower_id": follower_id, "following_id": followee_id})
    return follow


def unfollow_user(db: Session, follower_id: str, followee_id: str, timeout: Optional[float] = None) -> None:
    def work(deadline):
        _load_pair(db, follower_id, followee_id)
        deleted = db.query(Follow).filter(
            Follow.follower_id == follower_id,
            Follow.following_id == followee_id
        ).delete(synchronize_session=False)
        if not deleted:
            raise NotFound("Follow relationship not found")
        deadline.check()

        db.query(User).filter(User.firebase_uid == follower_id).update(
            {User.following_count: decrement(User.following_count)}, synchronize_session=False
        )
        db.query(User).filter(User.firebase_uid == followee_id).update(
            {User.followers_count: decrement(User.followers_count)}, synchronize_session=False
        )

    run_in_transaction(db, work, timeout=timeout)


def get_following(db: Session, user_id: str, skip: int = 0, limit: int = 50) -> List[User]:
    """Users that ``user_id`` follows, most recent first."""
    return db.query(User).join(
        Follow, Follow.following_id == User.firebase_uid
    ).filter(
        Follow.follower_id == user_id
    ).order_by(desc(Follow.created_at), desc(Follow.id)).offset(skip).limit(limit).all()


def get_followers(db: Session, user_id: str, skip: int = 0, limit: int = 50) -> List[User]:
    """Users following ``user_id``, most recent first."""
    return db.query(User).join(
        Follow, Follow.follower_id == User.firebase_uid
    ).filter(
        Follow.following_id == user_id
    ).order_by(desc(Follow.created_at), desc(Follow.id)).offset(skip).limit(limit).all()
