from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, func, UniqueConstraint, Index
from database import Base

class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint("recipient_id", "key", name="uq_notification_key"),
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(String, ForeignKey("users.firebase_uid", ondelete="CASCADE"), nullable=False, index=True)
    key = Column(String(200), nullable=False)  # e.g. "{post_id}_like_{user_id}", dedupes redelivered events
    type = Column(String(20), nullable=False)  # like, remix, comment, follow
    from_user_id = Column(String(64), nullable=False)
    from_username = Column(String(20), nullable=False)
    from_user_photo = Column(String(500), nullable=True)
    post_id = Column(Integer, nullable=True)  # no FK: the entry outlives a deleted post
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
