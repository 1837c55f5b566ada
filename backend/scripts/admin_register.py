"""Register an identity-provider account as a question-bank administrator.

Usage:
    python -m scripts.admin_register <user_id> [--display-name "Name"] [--inactive]
"""
from __future__ import annotations

import argparse
import sys
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import SessionLocal
from app.models.admin_user import AdminUser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register an admin user")
    parser.add_argument("user_id", help="Subject of the admin's identity-provider tokens")
    parser.add_argument("--display-name", dest="display_name", help="Optional display name", default=None)
    parser.add_argument("--inactive", action="store_true", help="Register the admin in an inactive state")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)

    with SessionLocal() as session:
        existing = session.scalar(select(AdminUser).where(AdminUser.user_id == args.user_id))
        if existing:
            print(f"[ERROR] admin user '{args.user_id}' already exists (id={existing.id})", file=sys.stderr)
            return 1

        admin = AdminUser(
            user_id=args.user_id,
            display_name=args.display_name,
            is_active=not args.inactive,
        )
        session.add(admin)
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            print(f"[ERROR] Failed to register admin user: {exc}", file=sys.stderr)
            return 1

        session.refresh(admin)
        print(f"[OK] Registered admin user '{admin.user_id}' (id={admin.id})")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
