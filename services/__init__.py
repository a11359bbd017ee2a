# Trigger handlers register themselves on import, so every service module is
# loaded with the package.
from . import transaction
from . import trigger_service
from . import fcm_service
from . import notification_service
from . import user_service
from . import post_service
from . import like_service
from . import comment_service
from . import follow_service
from . import moderation_service

__all__ = [
    "transaction",
    "trigger_service",
    "fcm_service",
    "notification_service",
    "user_service",
    "post_service",
    "like_service",
    "comment_service",
    "follow_service",
    "moderation_service",
]
