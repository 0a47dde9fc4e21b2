"""Create tables and seed the default roles.

Usage: python scripts/seed.py
"""

import sys
import os

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import SQLAlchemyError

from adminpanel.application.services.role_service import ensure_default_roles
from adminpanel.infrastructure.database import SessionLocal, init_db


def seed():
    print("Creating tables...")
    init_db()

    db = SessionLocal()
    try:
        ensure_default_roles(db)
        print("Default roles ready: user, admin")
    except SQLAlchemyError as e:
        print(f"Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
