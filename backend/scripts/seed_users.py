#!/usr/bin/env python
"""
Seed script for creating a demo manager and employee.
Run with: cd backend; python scripts/seed_users.py
Requires DATABASE_URL and SECRET_KEY in .env.
"""

import os
import sys

# Add app to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from app.database import Base, SessionLocal, engine
from app.models.user import User
from app.auth import get_password_hash
from app.config import settings

DEMO_EMPLOYEE = {
    'username': 'employee',
    'full_name': 'Demo Employee',
    'email': 'employee@example.com',
    'password': 'changeme',
}


def _ensure_user(db, username, full_name, email, password, is_manager):
    user = db.query(User).filter(User.username == username).first()
    if user:
        print(f"User '{username}' already exists. Skipping.")
        return user

    user = User(
        username=username,
        full_name=full_name,
        email=email,
        hashed_password=get_password_hash(password),
        is_active=True,
        is_manager=is_manager
    )
    db.add(user)
    role = "manager" if is_manager else "employee"
    print(f"Created demo {role}: {username} / {password}")
    return user


def seed_users():
    # Tables are normally created by alembic; create_all is a no-op when they exist
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        _ensure_user(
            db,
            settings.admin_username,
            'Admin Manager',
            'admin@example.com',
            settings.admin_password,
            is_manager=True
        )
        _ensure_user(
            db,
            DEMO_EMPLOYEE['username'],
            DEMO_EMPLOYEE['full_name'],
            DEMO_EMPLOYEE['email'],
            DEMO_EMPLOYEE['password'],
            is_manager=False
        )

        db.commit()
        print("\nDemo users seeded successfully!")
        print("Next steps:")
        print(f"1. Log in at POST /token as {settings.admin_username}")
        print("2. Clock in with POST /api/v1/time-entries/clock-in")

    except Exception as e:
        db.rollback()
        print(f"Error seeding users: {e}")
        raise
    finally:
        db.close()

if __name__ == '__main__':
    seed_users()
