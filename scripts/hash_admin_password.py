#!/usr/bin/env python3
"""
Generate the bcrypt hash for ADMIN_PASSWORD_HASH.

Usage:
    python scripts/hash_admin_password.py
    python scripts/hash_admin_password.py --password "s3cret"

Run from the project root with a .env present; the app settings are loaded on import.
"""

import argparse
import getpass
import sys

from app.core.security import get_password_hash


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Hash the back office admin password")
    parser.add_argument(
        "--password",
        type=str,
        help="Password to hash (prompted for when omitted)",
    )
    args = parser.parse_args()

    password = args.password
    if password is None:
        password = getpass.getpass("Admin password: ")
        if password != getpass.getpass("Repeat password: "):
            print("Error: passwords do not match", file=sys.stderr)
            sys.exit(1)

    if not password:
        print("Error: password must not be empty", file=sys.stderr)
        sys.exit(1)

    print(f"ADMIN_PASSWORD_HASH={get_password_hash(password)}")


if __name__ == "__main__":
    main()
