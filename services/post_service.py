"""Posts and the remix counter.

``Post.remix_count`` counts the posts whose ``original_post_id`` points at it;
creating or deleting a remix adjusts the original in the same transaction.
"""
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from errors import NotFound, PermissionDenied, ValidationError
from models.Post import Post
from models.User import User
from services import trigger_service
from services.transaction import decrement, run_in_transaction

POST_TYPES = ("image", "video", "audio")

EXPLORE_ORDERINGS = {
    "recent": Post.created_at,
    "likes": Post.likes_count,
    "remixes": Post.remix_count,
}


def get_post(db: Session, post_id: int) -> Post:
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise NotFound("Post not found")
    return post


def create_post(
    db: Session,
    author_id: str,
    prompt: str,
    media_url: str,
    type: str = "image",
    negative_prompt: Optional[str] = None,
    model: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
    is_public: bool = True,
    original_post_id: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Post:
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt cannot be empty")
    if not media_url:
        raise ValidationError("Media URL is required")
    if type not in POST_TYPES:
        raise ValidationError(f"Post type must be one of {', '.join(POST_TYPES)}")

    def work(deadline):
        if not db.query(User).filter(User.firebase_uid == author_id).first():
            raise NotFound("Author not found")
        if original_post_id is not None and not db.query(Post).filter(Post.id == original_post_id).first():
            raise NotFound("Original post not found")

        post = Post(
            author_id=author_id,
            type=type,
            prompt=prompt.strip(),
            negative_prompt=(negative_prompt or "").strip() or None,
            model=(model or "").strip() or None,
            media_url=media_url,
            thumbnail_url=thumbnail_url,
            is_public=is_public,
            original_post_id=original_post_id,
            likes_count=0,
            comments_count=0,
            remix_count=0,
        )
        db.add(post)
        db.flush()
        deadline.check()

        if original_post_id is not None:
            db.query(Post).filter(Post.id == original_post_id).update(
                {Post.remix_count: Post.remix_count + 1}, synchronize_session=False
            )
        return post

    post = run_in_transaction(db, work, timeout=timeout)
    db.refresh(post)
    trigger_service.dispatch(db, "posts", {
        "post_id": post.id,
        "author_id": post.author_id,
        "original_post_id": post.original_post_id,
    })
    return post


def remove_post(db: Session, post: Post) -> None:
    """Delete ``post`` inside the caller's transaction.

    Likes, comments and reports go with it through the foreign keys. Remixes of
    it keep existing with ``original_post_id`` cleared.
    """
    if post.original_post_id is not None:
        db.query(Post).filter(Post.id == post.original_post_id).update(
            {Post.remix_count: decrement(Post.remix_count)}, synchronize_session=False
        )
    db.query(Post).filter(Post.original_post_id == post.id).update(
        {Post.original_post_id: None}, synchronize_session=False
    )
    db.delete(post)
    db.flush()


def delete_post(db: Session, post_id: int, actor_id: str, timeout: Optional[float] = None) -> None:
    """Delete a post. Only its author or an admin may do this."""
    def work(deadline):
        post = get_post(db, post_id)
        if post.author_id != actor_id:
            actor = db.query(User).filter(User.firebase_uid == actor_id).first()
            if not actor or not actor.is_admin:
                raise PermissionDenied("Not authorized to delete this post")
        remove_post(db, post)

    run_in_transaction(db, work, timeout=timeout)


def get_feed(db: Session, skip: int = 0, limit: int = 20) -> List[Post]:
    return db.query(Post).filter(
        Post.is_public.is_(True)
    ).order_by(desc(Post.created_at), desc(Post.id)).offset(skip).limit(limit).all()


def get_explore(db: Session, order_by: str = "likes", limit: int = 50) -> List[Post]:
    column = EXPLORE_ORDERINGS.get(order_by)
    if column is None:
        raise ValidationError(f"Unknown ordering '{order_by}', expected one of {sorted(EXPLORE_ORDERINGS)}")
    return db.query(Post).filter(
        Post.is_public.is_(True)
    ).order_by(desc(column), desc(Post.id)).limit(limit).all()


def get_user_posts(db: Session, author_id: str, skip: int = 0, limit: int = 50) -> List[Post]:
    return db.query(Post).filter(
        Post.author_id == author_id,
        Post.is_public.is_(True)
    ).order_by(desc(Post.created_at), desc(Post.id)).offset(skip).limit(limit).all()
