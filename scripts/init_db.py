#!/usr/bin/env python3
"""
Create the Snowflake document tables and, optionally, an admin account.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --create-admin --username admin --email admin@example.com --password admin123

Requires:
    - .env file with Snowflake credentials (or SNOWFLAKE_MOCK_MODE=true for a dry check)
"""

import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.api.dependencies import snowflake_config_from
from src.config.settings import get_settings
from src.core.community.models import User
from src.infrastructure.security.passwords import hash_password
from src.infrastructure.snowflake.client import SnowflakeConnectionError, create_snowflake_connection
from src.infrastructure.snowflake.repositories import UserRepository, create_schema


def create_admin(conn, username: str, email: str, password: str, rounds: int) -> bool:
    """Create a verified admin unless the username is taken. Returns True if created."""
    users = UserRepository(conn)

    if users.find_by_username(username):
        print(f"Admin '{username}' already exists, skipping")
        return False

    admin = User(
        username=username,
        email=email,
        password_hash=hash_password(password, rounds),
        is_admin=True,
        verified=True,
    )
    users.save(admin)

    print(f"[OK] Created admin: {admin.username}")
    return True


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Create Baho ng Lahat tables in Snowflake')
    parser.add_argument('--create-admin', action='store_true', help='Also create an admin account')
    parser.add_argument('--username', default='admin', help='Admin username')
    parser.add_argument('--email', default='admin@example.com', help='Admin email')
    parser.add_argument('--password', help='Admin password (required with --create-admin)')
    args = parser.parse_args()

    if args.create_admin and not args.password:
        parser.error('--password is required with --create-admin')

    settings = get_settings()

    missing = settings.validate_required_fields()
    if missing:
        print(f"ERROR: Missing configuration: {', '.join(missing)}")
        sys.exit(1)

    try:
        with create_snowflake_connection(
            config=snowflake_config_from(settings),
            mock_mode=settings.snowflake_mock_mode,
        ) as conn:
            print(f"Using database {settings.snowflake_database}, schema {settings.snowflake_schema}")
            create_schema(conn)
            print("[OK] Tables ready")

            if args.create_admin:
                create_admin(
                    conn,
                    username=args.username,
                    email=args.email,
                    password=args.password,
                    rounds=settings.password_hash_rounds,
                )
    except (SnowflakeConnectionError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()
