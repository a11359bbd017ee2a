from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from config import OPERATION_TIMEOUT_SECONDS
from database import get_db
from models.User import User
from schemas import AdminRoleUpdate, ReportRead, UserRead
from services import moderation_service, post_service, user_service
from utils.auth import get_admin_user

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/reports", response_model=List[ReportRead])
def list_reports(
    skip: int = 0,
    limit: int = 100,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """
    Most recent reports first.
    """
    return moderation_service.list_reports(db, skip=skip, limit=limit)


@router.delete("/reports/{post_id}/{reporter_id}", status_code=204)
def dismiss_report(
    post_id: int,
    reporter_id: str,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    moderation_service.dismiss_report(db, post_id, reporter_id, timeout=OPERATION_TIMEOUT_SECONDS)


@router.delete("/posts/{post_id}", status_code=204)
def delete_post(
    post_id: int,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    post_service.delete_post(db, post_id, admin.firebase_uid, timeout=OPERATION_TIMEOUT_SECONDS)


@router.put("/users/{user_id}/admin", response_model=UserRead)
def set_admin(
    user_id: str,
    payload: AdminRoleUpdate,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """
    Grant or revoke the admin role. The first admin is created with
    `python set_admin.py <uid>`.
    """
    return user_service.set_admin(db, user_id, payload.is_admin, timeout=OPERATION_TIMEOUT_SECONDS)
