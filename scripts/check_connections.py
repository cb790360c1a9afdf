#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB and the AI provider are reachable.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from hireall.core.config import get_settings
from hireall.db.mongodb import COLLECTIONS, get_mongo_db, test_mongo_connection
from hireall.services.ai_client import get_ai_client


def main():
    settings = get_settings()
    print("=" * 50)
    print("HIREALL API - CONNECTION CHECK")
    print("=" * 50)

    # MongoDB
    print("\n[1] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    mongo_ok = test_mongo_connection()
    if mongo_ok:
        print("    ✅ MongoDB: CONNECTED")
        db = get_mongo_db()
        for key, name in COLLECTIONS.items():
            print(f"       {key:<15} {db[name].estimated_document_count()} documents")
    else:
        print("    ❌ MongoDB: FAILED")

    # AI provider (only if API key is set)
    print("\n[2] Checking AI provider...")
    ai_ok = True
    if settings.ai_enabled:
        print(f"    Base URL: {settings.ai_base_url}")
        print(f"    Model: {settings.ai_model}")
        ai_ok = get_ai_client().test_connection()
        print("    ✅ AI: CONNECTED" if ai_ok else "    ❌ AI: FAILED")
    else:
        print("    ⚠️  AI: API key not configured (cover letters fall back to templates)")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)
    return 0 if mongo_ok and ai_ok else 1


if __name__ == "__main__":
    sys.exit(main())
