from . import users
from . import posts
from . import follows
from . import notifications
from . import admin

__all__ = [
    "users",
    "posts",
    "follows",
    "notifications",
    "admin",
]
