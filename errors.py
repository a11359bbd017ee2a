"""Domain errors raised by the consistency layer.

Each error carries the HTTP status the API layer answers with, so routers can
let them propagate and `main.py` translates them in one place.
"""


class SocialError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(SocialError):
    """Referenced user, post, comment or edge does not exist."""
    status_code = 404


class Conflict(SocialError):
    """The write raced another writer or the caller's view of an edge is stale."""
    status_code = 409


class ValidationError(SocialError):
    status_code = 422


class Timeout(SocialError):
    status_code = 504


class PermissionDenied(SocialError):
    status_code = 403
