"""Reports and automatic moderation.

Once AUTO_BAN_THRESHOLD distinct users have reported a post, its author is
banned and the post is deleted. There is no review step or appeal.
"""
import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from config import AUTO_BAN_THRESHOLD
from errors import NotFound, ValidationError
from models.Post import Post
from models.Report import Report
from models.User import User
from services import trigger_service
from services.post_service import remove_post
from services.transaction import run_in_transaction

logger = logging.getLogger("together.moderation")

DEFAULT_REASON = "No reason provided"
MAX_REASON_LENGTH = 500


def submit_report(
    db: Session,
    post_id: int,
    reporter_id: str,
    reason: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Report:
    """File a report. Each user can report a given post once (Conflict otherwise)."""
    reason = (reason or "").strip() or DEFAULT_REASON
    if len(reason) > MAX_REASON_LENGTH:
        raise ValidationError(f"Reason cannot be longer than {MAX_REASON_LENGTH} characters")

    def work(deadline):
        if not db.query(Post).filter(Post.id == post_id).first():
            raise NotFound("Post not found")
        if not db.query(User).filter(User.firebase_uid == reporter_id).first():
            raise NotFound("User not found")
        report = Report(post_id=post_id, reporter_id=reporter_id, reason=reason)
        db.add(report)
        db.flush()
        return report

    report = run_in_transaction(db, work, timeout=timeout)
    db.refresh(report)
    trigger_service.dispatch(db, "reports", {"post_id": post_id, "reporter_id": reporter_id})
    return report


def count_reports(db: Session, post_id: int) -> int:
    return db.query(Report).filter(Report.post_id == post_id).count()


def list_reports(db: Session, skip: int = 0, limit: int = 100) -> List[Report]:
    return db.query(Report).order_by(
        desc(Report.created_at), desc(Report.id)
    ).offset(skip).limit(limit).all()


def dismiss_report(db: Session, post_id: int, reporter_id: str, timeout: Optional[float] = None) -> None:
    def work(deadline):
        deleted = db.query(Report).filter(
            Report.post_id == post_id,
            Report.reporter_id == reporter_id
        ).delete(synchronize_session=False)
        if not deleted:
            raise NotFound("Report not found")

    run_in_transaction(db, work, timeout=timeout)


def apply_auto_moderation(db: Session, post_id: int, timeout: Optional[float] = None) -> bool:
    """Ban the author and delete the post once it has enough reports.

    Returns True when the action was taken.
    """
    def work(deadline):
        post = db.query(Post).filter(Post.id == post_id).first()
        if not post:
            return None
        if count_reports(db, post_id) < AUTO_BAN_THRESHOLD:
            return None
        author_id = post.author_id
        db.query(User).filter(User.firebase_uid == author_id).update(
            {User.is_banned: True}, synchronize_session=False
        )
        deadline.check()
        remove_post(db, post)
        return author_id

    author_id = run_in_transaction(db, work, timeout=timeout)
    if author_id is None:
        return False
    logger.warning("Auto-moderation: post %s removed and user %s banned after %s reports",
                   post_id, author_id, AUTO_BAN_THRESHOLD)
    return True


@trigger_service.on_create("reports")
def on_report_created(db: Session, payload: dict) -> None:
    apply_auto_moderation(db, payload["post_id"])
