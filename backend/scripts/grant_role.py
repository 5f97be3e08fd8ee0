#!/usr/bin/env python3
"""Grant a user read, write or admin on a calendar collection."""

import argparse

from sqlmodel import Session, select

from calshare.db import engine, init_db
from calshare.models import User
from calshare.services.accounts import grant_role
from calshare.services.permissions import PERMISSION_LEVELS


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("username")
    parser.add_argument("collection", help="collection path, e.g. /team/")
    parser.add_argument("permission", choices=sorted(PERMISSION_LEVELS))
    args = parser.parse_args()

    init_db()
    with Session(engine) as session:
        user = session.exec(select(User).where(User.username == args.username)).first()
        if not user:
            print(f"✗ User {args.username} not found")
            return 1

        role = grant_role(
            session,
            user_id=user.id,
            collection_name=args.collection,
            permission=args.permission,
        )
        print(f"✓ {user.username} holds {role.permission} on collection #{role.collection_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
