from typing import List, Optional

from sqlalchemy.orm import Session

from errors import NotFound, PermissionDenied, ValidationError
from models.Comment import Comment
from models.Post import Post
from models.User import User
from services import trigger_service
from services.transaction import decrement, run_in_transaction

MAX_COMMENT_LENGTH = 1000


def list_comments(db: Session, post_id: int) -> List[Comment]:
    """Comments on a post, oldest first."""
    return db.query(Comment).filter(
        Comment.post_id == post_id
    ).order_by(Comment.created_at.asc(), Comment.id.asc()).all()


def add_comment(db: Session, post_id: int, author_id: str, text: str, timeout: Optional[float] = None) -> Comment:
    body = (text or "").strip()
    if not body:
        raise ValidationError("Comment cannot be empty")
    if len(body) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment cannot be longer than {MAX_COMMENT_LENGTH} characters")

    def work(deadline):
        if not db.query(Post).filter(Post.id == post_id).first():
            raise NotFound("Post not found")
        if not db.query(User).filter(User.firebase_uid == author_id).first():
            raise NotFound("User not found")
        comment = Comment(post_id=post_id, author_id=author_id, text=body)
        db.add(comment)
        db.flush()
        deadline.check()
        db.query(Post).filter(Post.id == post_id).update(
            {Post.comments_count: Post.comments_count + 1}, synchronize_session=False
        )
        return comment

    comment = run_in_transaction(db, work, timeout=timeout)
    db.refresh(comment)
    trigger_service.dispatch(db, "comments", {
        "comment_id": comment.id,
        "post_id": post_id,
        "author_id": author_id,
    })
    return comment


def delete_comment(db: Session, post_id: int, comment_id: int, actor_id: str, timeout: Optional[float] = None) -> None:
    """Remove a comment; only its author may do so."""
    def work(deadline):
        comment = db.query(Comment).filter(
            Comment.id == comment_id,
            Comment.post_id == post_id
        ).first()
        if not comment:
            raise NotFound("Comment not found")
        if comment.author_id != actor_id:
            raise PermissionDenied("Only the author can delete this comment")
        deleted = db.query(Comment).filter(Comment.id == comment_id).delete(synchronize_session=False)
        if not deleted:
            raise NotFound("Comment not found")
        deadline.check()
        db.query(Post).filter(Post.id == post_id).update(
            {Post.comments_count: decrement(Post.comments_count)}, synchronize_session=False
        )

    run_in_transaction(db, work, timeout=timeout)
