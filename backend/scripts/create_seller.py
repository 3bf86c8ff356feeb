#!/usr/bin/env python3
"""
Create (or look up) a seller account and print a session token for it.

Logging in through an identity provider is handled outside this service;
this script is the local-development way to get a usable session.

Usage:
    cd backend
    python scripts/create_seller.py --email seller@example.com --name "Jane" --business-name "Jane's Shop"

Send the printed token either as the session cookie or as
``Authorization: Bearer <token>``.
"""

import argparse

from marketplace.config import settings
from marketplace.database import build_engine, build_session_factory, init_db
from marketplace.models.user import UserCreate
from marketplace.services.auth import create_access_token
from marketplace.services.user_service import user_service
from marketplace.utils.logger import logger


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a seller and print a session token.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default=None)
    parser.add_argument("--business-name", default=None)
    args = parser.parse_args()

    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)
    db = build_session_factory(engine)()
    try:
        user = user_service.get_user_by_email(db, args.email)
        if user is None:
            user = user_service.create_user(
                db,
                UserCreate(email=args.email, name=args.name, business_name=args.business_name),
            )
        else:
            logger.info(f"Seller already exists: {user.email} (id={user.id})")
        token = create_access_token({"sub": user.id}, settings)
    finally:
        db.close()

    print(f"user_id={user.id}")
    print(f"{settings.SESSION_COOKIE_NAME}={token}")


if __name__ == "__main__":
    main()
