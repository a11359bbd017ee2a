from typing import Optional

from fastapi import Depends, Header, HTTPException
from firebase_admin import auth
from sqlalchemy.orm import Session

from config import AUTH_TRUST_USER_HEADER
from database import get_db
from errors import NotFound, PermissionDenied
from models.User import User
from services.fcm_service import initialize_firebase_admin


def verify_id_token(token: str) -> str:
    """Return the uid of a Firebase ID token or raise 401."""
    if not initialize_firebase_admin():
        raise HTTPException(status_code=401, detail="Token verification is not configured")
    try:
        decoded = auth.verify_id_token(token)
    except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid authentication token")
    return decoded["uid"]


def get_current_user_id(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
) -> str:
    """
    Resolve the acting user's uid.
    A Firebase ID token in `Authorization: Bearer ...` always wins; the
    `X-User-Id` header is only honoured when AUTH_TRUST_USER_HEADER is on.
    """
    if authorization and authorization.lower().startswith("bearer "):
        return verify_id_token(authorization.split(" ", 1)[1].strip())

    if x_user_id and AUTH_TRUST_USER_HEADER:
        return x_user_id

    raise HTTPException(status_code=401, detail="Not authenticated")


def get_active_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    """The acting user, who must exist and not be banned."""
    user = db.query(User).filter(User.firebase_uid == user_id).first()
    if not user:
        raise NotFound("User not found")
    if user.is_banned:
        raise PermissionDenied("This account has been banned")
    return user


def get_admin_user(user: User = Depends(get_active_user)) -> User:
    if not user.is_admin:
        raise PermissionDenied("Admin access required")
    return user
