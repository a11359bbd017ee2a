"""
Grant or revoke the admin role from the command line.

Usage: python set_admin.py <user-uid> [--revoke]
"""
import argparse
import sys

import models  # noqa: F401
from config import OPERATION_TIMEOUT_SECONDS
from database import Base, SessionLocal, engine
from errors import SocialError
from services import user_service


def main(argv=None):
    parser = argparse.ArgumentParser(description="Grant or revoke the admin role")
    parser.add_argument("uid", help="Firebase uid of the user")
    parser.add_argument("--revoke", action="store_true", help="remove the admin role instead of granting it")
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = user_service.set_admin(db, args.uid, not args.revoke, timeout=OPERATION_TIMEOUT_SECONDS)
    except SocialError as e:
        print(f"Error setting admin: {e.detail}", file=sys.stderr)
        return 1
    finally:
        db.close()

    role = "an admin" if user.is_admin else "a regular user"
    print(f"{user.username} ({user.firebase_uid}) is now {role}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
