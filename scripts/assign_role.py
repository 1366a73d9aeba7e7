#!/usr/bin/env python3
"""Attach a role to a user (idempotent).

Usage:
  python scripts/assign_role.py --email writer@example.com --role writer
"""

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.ctms.constants import ROLES
from app.ctms.models import Role, User
from scripts._db_utils import script_session


def assign_role(db_url: str, email: str, role_key: str) -> str:
    with script_session(db_url) as s:
        user = s.query(User).filter(User.email == email.strip().lower()).one_or_none()
        if not user:
            return f"User not found: {email}"
        role = s.query(Role).filter(Role.key == role_key).one_or_none()
        if not role:
            return f"Role {role_key!r} not found. Run python scripts/init_db.py first."
        if role in (user.roles or []):
            return f"User already has {role_key} role: {email}"
        user.roles.append(role)
    return f"{role_key} role attached to {email}"


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True, help="User email")
    parser.add_argument("--role", default="admin", choices=ROLES, help="Role to attach")
    args = parser.parse_args()

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///ctms.db").strip()
    print(assign_role(db_url, args.email, args.role))


if __name__ == "__main__":
    main()
