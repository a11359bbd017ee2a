# Import every model so Base.metadata knows all tables before create_all
from models.User import User
from models.Post import Post
from models.Like import Like
from models.Follow import Follow
from models.Comment import Comment
from models.Notification import Notification
from models.NotificationInbox import NotificationInbox
from models.Report import Report

__all__ = [
    "User",
    "Post",
    "Like",
    "Follow",
    "Comment",
    "Notification",
    "NotificationInbox",
    "Report",
]
