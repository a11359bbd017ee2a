"""Per-recipient notifications: fan-in, read state and live subscriptions.

Entries are rows keyed by ``(recipient_id, key)`` so that a redelivered
event never creates a duplicate. ``NotificationInbox.unread_count`` is kept
equal to the number of unread rows for the recipient.
"""
import logging
import queue
import threading
from collections import defaultdict
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from config import NOTIFICATION_MAX_ENTRIES, PUSH_NOTIFICATIONS_ENABLED
from errors import NotFound
from models.Notification import Notification
from models.NotificationInbox import NotificationInbox
from models.Post import Post
from models.User import User
from schemas import NotificationRead
from services import fcm_service, trigger_service
from services.transaction import run_in_transaction

logger = logging.getLogger("together.notifications")

NOTIFICATION_TYPES = ("like", "remix", "comment", "follow")

Snapshot = Tuple[List[NotificationRead], int]

_PUSH_BODIES = {
    "like": "{username} liked your post",
    "remix": "{username} remixed your post",
    "comment": "{username} commented on your post",
    "follow": "{username} started following you",
}


# ---------- Subscriptions ----------

class NotificationHub:
    """Delivers snapshots to callbacks registered per recipient."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[Callable[[List[NotificationRead], int], None]]] = defaultdict(list)

    def add(self, uid: str, callback) -> Callable[[], None]:
        with self._lock:
            self._subscribers[uid].append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(uid, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(uid, None)
        return unsubscribe

    def has_subscribers(self, uid: str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(uid))

    def publish(self, db: Session, uid: str) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(uid, ()))
        if not callbacks:
            return
        notifications, unread_count = get_notifications(db, uid)
        for callback in callbacks:
            try:
                callback(notifications, unread_count)
            except Exception:
                logger.exception("Notification subscriber for %s failed", uid)


hub = NotificationHub()


def subscribe_to_notifications(db: Session, uid: str, callback) -> Callable[[], None]:
    """Call ``callback(notifications, unread_count)`` now and after every change.

    Returns a function that cancels the subscription.
    """
    unsubscribe = hub.add(uid, callback)
    notifications, unread_count = get_notifications(db, uid)
    callback(notifications, unread_count)
    return unsubscribe


def notification_stream(session_factory, uid: str) -> Iterator[Snapshot]:
    """Yield ``(notifications, unread_count)`` for ``uid`` forever.

    The first item is the current state; each following item is produced by a
    committed change. Closing the generator cancels the subscription, and
    calling this again starts over from the current state.
    """
    updates: "queue.Queue[Snapshot]" = queue.Queue()
    db = session_factory()
    try:
        unsubscribe = subscribe_to_notifications(db, uid, lambda items, count: updates.put((items, count)))
    finally:
        db.close()
    try:
        while True:
            yield updates.get()
    finally:
        unsubscribe()


# ---------- Reads ----------

def get_unread_count(db: Session, uid: str) -> int:
    inbox = db.query(NotificationInbox.unread_count).filter(NotificationInbox.user_id == uid).first()
    return inbox.unread_count if inbox else 0


def get_notifications(db: Session, uid: str, limit: int = 50, before_id: Optional[int] = None) -> Snapshot:
    """Newest-first page of entries plus the recipient's unread count."""
    query = db.query(Notification).filter(Notification.recipient_id == uid)
    if before_id is not None:
        query = query.filter(Notification.id < before_id)
    rows = query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit).all()
    return [NotificationRead.model_validate(n) for n in rows], get_unread_count(db, uid)


# ---------- Fan-in ----------

def _unread_rows(db: Session, uid: str):
    return db.query(func.count(Notification.id)).filter(
        Notification.recipient_id == uid,
        Notification.read.is_(False)
    ).scalar_subquery()


def _recount_unread(db: Session, uid: str) -> None:
    db.query(NotificationInbox).filter(NotificationInbox.user_id == uid).update(
        {NotificationInbox.unread_count: _unread_rows(db, uid)}, synchronize_session=False
    )


def _prune(db: Session, uid: str) -> int:
    keep = db.query(Notification.id).filter(
        Notification.recipient_id == uid
    ).order_by(desc(Notification.created_at), desc(Notification.id)).limit(NOTIFICATION_MAX_ENTRIES)
    return db.query(Notification).filter(
        Notification.recipient_id == uid,
        Notification.id.not_in(keep.scalar_subquery())
    ).delete(synchronize_session=False)


def notify(
    db: Session,
    recipient_id: str,
    notification_type: str,
    from_user_id: str,
    key: str,
    post_id: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Optional[Notification]:
    """Append one entry to ``recipient_id``'s notifications.

    Returns ``None`` without writing when the actor is the recipient, when
    either user is gone, or when an entry with the same key already exists.
    """
    if notification_type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {notification_type}")
    if recipient_id == from_user_id:
        return None

    def work(deadline):
        recipient = db.query(User).filter(User.firebase_uid == recipient_id).first()
        sender = db.query(User).filter(User.firebase_uid == from_user_id).first()
        if recipient is None or sender is None:
            return None
        exists = db.query(Notification).filter(
            Notification.recipient_id == recipient_id,
            Notification.key == key
        ).first()
        if exists:
            return None

        if not db.query(NotificationInbox).filter(NotificationInbox.user_id == recipient_id).first():
            db.add(NotificationInbox(user_id=recipient_id, unread_count=0))
        entry = Notification(
            recipient_id=recipient_id,
            key=key,
            type=notification_type,
            from_user_id=from_user_id,
            from_username=sender.username,
            from_user_photo=sender.photo_url,
            post_id=post_id,
            read=False,
        )
        db.add(entry)
        db.flush()
        deadline.check()

        db.query(NotificationInbox).filter(NotificationInbox.user_id == recipient_id).update(
            {NotificationInbox.unread_count: NotificationInbox.unread_count + 1}, synchronize_session=False
        )
        if _prune(db, recipient_id):
            _recount_unread(db, recipient_id)
        return entry, recipient.fcm_token, sender.username

    outcome = run_in_transaction(db, work, timeout=timeout)
    if outcome is None:
        return None
    entry, fcm_token, sender_username = outcome
    logger.info("Notification %s -> %s (%s)", notification_type, recipient_id, key)

    if PUSH_NOTIFICATIONS_ENABLED and fcm_token:
        fcm_service.send_notification(
            fcm_token,
            title="Together with AI",
            body=_PUSH_BODIES[notification_type].format(username=sender_username),
            data={"type": notification_type, "postId": str(post_id) if post_id is not None else ""},
        )
    hub.publish(db, recipient_id)
    return entry


# ---------- Read state ----------

def mark_notification_as_read(db: Session, uid: str, notification_id: int, timeout: Optional[float] = None) -> int:
    """Mark one entry read and return the recomputed unread count."""
    def work(deadline):
        entry = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.recipient_id == uid
        ).first()
        if entry is None:
            raise NotFound("Notification not found")
        entry.read = True
        db.flush()
        _recount_unread(db, uid)
        return get_unread_count(db, uid)

    unread_count = run_in_transaction(db, work, timeout=timeout)
    hub.publish(db, uid)
    return unread_count


def mark_all_notifications_as_read(db: Session, uid: str, timeout: Optional[float] = None) -> int:
    def work(deadline):
        db.query(Notification).filter(
            Notification.recipient_id == uid,
            Notification.read.is_(False)
        ).update({Notification.read: True}, synchronize_session=False)
        _recount_unread(db, uid)
        return get_unread_count(db, uid)

    unread_count = run_in_transaction(db, work, timeout=timeout)
    hub.publish(db, uid)
    return unread_count


# ---------- Fan-in triggers ----------

@trigger_service.on_create("likes")
def on_like_created(db: Session, payload: dict) -> None:
    post = db.query(Post).filter(Post.id == payload["post_id"]).first()
    if not post:
        return
    liker_id = payload["user_id"]
    notify(db, post.author_id, "like", liker_id,
           key=f"{post.id}_like_{liker_id}", post_id=post.id)


@trigger_service.on_create("comments")
def on_comment_created(db: Session, payload: dict) -> None:
    post = db.query(Post).filter(Post.id == payload["post_id"]).first()
    if not post:
        return
    notify(db, post.author_id, "comment", payload["author_id"],
           key=f"{post.id}_comment_{payload['comment_id']}", post_id=post.id)


@trigger_service.on_create("follows")
def on_follow_created(db: Session, payload: dict) -> None:
    follower_id = payload["follower_id"]
    notify(db, payload["following_id"], "follow", follower_id, key=f"follow_{follower_id}")


@trigger_service.on_create("posts")
def on_remix_created(db: Session, payload: dict) -> None:
    original_id = payload.get("original_post_id")
    if original_id is None:
        return
    original = db.query(Post).filter(Post.id == original_id).first()
    if not original:
        return
    notify(db, original.author_id, "remix", payload["author_id"],
           key=f"{original_id}_remix_{payload['post_id']}", post_id=payload["post_id"])
