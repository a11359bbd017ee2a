import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./together.db")
LOG_DIR = os.getenv("LOG_DIR")

# Firebase Admin (token verification + push)
FIREBASE_CREDENTIALS_PATH = os.getenv(
    "FIREBASE_CREDENTIALS_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "serviceAccountKey.json"),
)
AUTH_TRUST_USER_HEADER = _flag("AUTH_TRUST_USER_HEADER", "true")
PUSH_NOTIFICATIONS_ENABLED = _flag("PUSH_NOTIFICATIONS_ENABLED", "false")

# Consistency layer
OPERATION_TIMEOUT_SECONDS = float(os.getenv("OPERATION_TIMEOUT_SECONDS", "10"))
TRANSACTION_ATTEMPTS = int(os.getenv("TRANSACTION_ATTEMPTS", "3"))
NOTIFICATION_MAX_ENTRIES = int(os.getenv("NOTIFICATION_MAX_ENTRIES", "200"))

# Moderation policy, intentionally not read from the environment
AUTO_BAN_THRESHOLD = 5
