from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from errors import Conflict, NotFound, ValidationError
from models.NotificationInbox import NotificationInbox
from models.User import User
from services.transaction import run_in_transaction
from utils import normalize_username, validate_username


def get_user(db: Session, uid: str) -> User:
    user = db.query(User).filter(User.firebase_uid == uid).first()
    if not user:
        raise NotFound("User not found")
    return user


def get_user_by_username(db: Session, username: str) -> User:
    user = db.query(User).filter(User.username == normalize_username(username)).first()
    if not user:
        raise NotFound("User not found")
    return user


def create_user(
    db: Session,
    uid: str,
    username: str,
    display_name: Optional[str] = None,
    email: Optional[str] = None,
    photo_url: Optional[str] = None,
    bio: Optional[str] = None,
    timeout: Optional[float] = None,
) -> User:
    """Register a signed-up identity. The notification inbox is created with it."""
    if not validate_username(username):
        raise ValidationError("Username must be 3-20 characters and contain only letters, numbers, and underscores")
    handle = normalize_username(username)

    def work(deadline):
        clauses = [User.firebase_uid == uid, User.username == handle]
        if email:
            clauses.append(User.email == email)
        if db.query(User).filter(or_(*clauses)).first():
            raise Conflict("UID, username or email already exists")
        user = User(
            firebase_uid=uid,
            username=handle,
            display_name=(display_name or username).strip(),
            email=email,
            photo_url=photo_url,
            bio=bio,
            is_admin=False,
            is_banned=False,
            followers_count=0,
            following_count=0,
        )
        db.add(user)
        db.add(NotificationInbox(user_id=uid, unread_count=0))
        db.flush()
        return user

    user = run_in_transaction(db, work, timeout=timeout)
    db.refresh(user)
    return user


def update_user(db: Session, uid: str, changes: dict, timeout: Optional[float] = None) -> User:
    """Apply a settings edit (display name, bio, photo)."""
    if "username" in changes:
        raise ValidationError("Username cannot be changed")
    if "display_name" in changes:
        if not (changes["display_name"] or "").strip():
            raise ValidationError("Display name cannot be empty")
        changes["display_name"] = changes["display_name"].strip()
    if changes.get("bio") is not None:
        changes["bio"] = changes["bio"].strip() or None

    def work(deadline):
        user = get_user(db, uid)
        for key, value in changes.items():
            setattr(user, key, value)
        db.flush()
        return user

    user = run_in_transaction(db, work, timeout=timeout)
    db.refresh(user)
    return user


def set_fcm_token(db: Session, uid: str, fcm_token: str) -> User:
    return update_user(db, uid, {"fcm_token": fcm_token})


def set_admin(db: Session, uid: str, is_admin: bool = True, timeout: Optional[float] = None) -> User:
    """Grant (or with ``is_admin=False`` revoke) access to the moderation tools."""
    def work(deadline):
        user = get_user(db, uid)
        user.is_admin = is_admin
        db.flush()
        return user

    user = run_in_transaction(db, work, timeout=timeout)
    db.refresh(user)
    return user
