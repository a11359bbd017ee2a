from typing import Optional

from sqlalchemy.orm import Session

from errors import Conflict, NotFound
from models.Like import Like
from models.Post import Post
from models.User import User
from services import trigger_service
from services.transaction import decrement, run_in_transaction


def check_if_liked(db: Session, post_id: int, user_id: str) -> bool:
    return db.query(Like).filter(
        Like.post_id == post_id,
        Like.user_id == user_id
    ).first() is not None


def toggle_like(
    db: Session,
    post_id: int,
    user_id: str,
    currently_liked: bool,
    timeout: Optional[float] = None,
) -> Post:
    """
    Like (``currently_liked=False``) or unlike (``True``) a post.
    The edge and ``likes_count`` change in one transaction, and the caller's
    view of the edge is re-checked there: liking twice is a Conflict and
    unliking a post that is not liked is NotFound.
    """
    def work(deadline):
        post = db.query(Post).filter(Post.id == post_id).first()
        if not post:
            raise NotFound("Post not found")
        if not db.query(User).filter(User.firebase_uid == user_id).first():
            raise NotFound("User not found")

        if currently_liked:
            deleted = db.query(Like).filter(
                Like.post_id == post_id,
                Like.user_id == user_id
            ).delete(synchronize_session=False)
            if not deleted:
                raise NotFound("Like not found")
            deadline.check()
            db.query(Post).filter(Post.id == post_id).update(
                {Post.likes_count: decrement(Post.likes_count)}, synchronize_session=False
            )
        else:
            if check_if_liked(db, post_id, user_id):
                raise Conflict("Post is already liked")
            db.add(Like(post_id=post_id, user_id=user_id))
            db.flush()
            deadline.check()
            db.query(Post).filter(Post.id == post_id).update(
                {Post.likes_count: Post.likes_count + 1}, synchronize_session=False
            )
        return post

    post = run_in_transaction(db, work, timeout=timeout)
    db.refresh(post)
    if not currently_liked:
        trigger_service.dispatch(db, "likes", {"post_id": post_id, "user_id": user_id})
    return post
