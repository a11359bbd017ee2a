from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

class NotificationInbox(Base):
    __tablename__ = "notification_inboxes"

    user_id = Column(String, ForeignKey("users.firebase_uid", ondelete="CASCADE"), primary_key=True)
    unread_count = Column(Integer, default=0, nullable=False)  # Unread rows in notifications

    user = relationship("User", back_populates="inbox")
