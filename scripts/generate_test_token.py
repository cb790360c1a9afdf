#!/usr/bin/env python3
"""
Test Token Generator

Mints a signed JWT accepted by the API (same secret as the server), for
curl / extension testing.

Usage:
    python scripts/generate_test_token.py
    python scripts/generate_test_token.py --uid admin-1 --email admin@hireall.app --admin
"""
import argparse
import sys
from datetime import timedelta
sys.path.insert(0, '.')

from hireall.core.auth import MOCK_USER_EMAIL, MOCK_USER_ID, create_access_token
from hireall.core.config import get_settings


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate a HireAll API test token")
    parser.add_argument("--uid", default=MOCK_USER_ID)
    parser.add_argument("--email", default=MOCK_USER_EMAIL)
    parser.add_argument("--name", default="Test User")
    parser.add_argument("--admin", action="store_true", help="add the admin claim")
    parser.add_argument("--minutes", type=int, default=None, help="lifetime (default from settings)")
    args = parser.parse_args(argv)

    claims = {"sub": args.uid, "email": args.email, "name": args.name, "email_verified": True}
    if args.admin:
        claims["admin"] = True

    expires = timedelta(minutes=args.minutes) if args.minutes else None
    token = create_access_token(claims, expires_delta=expires)

    settings = get_settings()
    print("🔐 Test token generated")
    print(f"User ID: {args.uid}")
    print(f"Email: {args.email}")
    print(f"Admin: {args.admin}")
    print(f"Expires in: {args.minutes or settings.jwt_expire_minutes} minutes")
    print("\n📋 Use this token in your API tests:")
    print(f'export AUTH_TOKEN="{token}"')
    print(f'curl -H "Authorization: Bearer $AUTH_TOKEN" http://localhost:8000/api/user/usage')
    return token


if __name__ == "__main__":
    main()
