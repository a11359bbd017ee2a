import re

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")


def validate_username(username: str) -> bool:
    return bool(username) and USERNAME_PATTERN.fullmatch(username) is not None


def normalize_username(username: str) -> str:
    """Usernames are unique case-insensitively, so they are stored lowercase."""
    return username.strip().lower()
