#!/usr/bin/env python3
"""Create a calendar user, or reset the password of an existing one."""

from sqlmodel import Session, select

from calshare.db import engine, init_db
from calshare.models import User
from calshare.services.accounts import create_user as create_account
from calshare.services.accounts import set_password


def create_user():
    """Prompt for the account details and store them."""
    print("=" * 60)
    print("Create user")
    print("=" * 60)

    username = input("Username: ").strip()
    if not username:
        print("Error: username is required")
        return

    password = input("Password: ").strip()
    if not password:
        print("Error: password is required")
        return

    init_db()
    with Session(engine) as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            print(f"\nUser {username} already exists!")
            response = input("Reset the password? (y/n): ").strip().lower()
            if response != "y":
                print("Cancelled")
                return
            set_password(session, existing, password)
            user = existing
        else:
            email = input("Email: ").strip()
            if not email:
                print("Error: email is required")
                return
            user = create_account(session, username=username, password=password, email=email)

        print(f"\n✓ User {'updated' if existing else 'created'}")
        print(f"  ID: {user.id}")
        print(f"  Username: {user.username}")
        print(f"  Email: {user.email}")
        print("=" * 60)


if __name__ == "__main__":
    try:
        create_user()
    except KeyboardInterrupt:
        print("\n\nCancelled by user")
