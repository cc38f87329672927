# create_admin.py
"""Prints ADMIN_* lines for .env so the admin password is stored as a bcrypt hash."""
import os
import sys
from getpass import getpass

os.environ.setdefault("SECRET_KEY", "unused-by-this-script")

try:
    from app.core.security import get_password_hash, verify_password
except ImportError as e:
    print(f"Error importing application modules: {e}")
    print("Run this script from the project root with the virtualenv active.")
    sys.exit(1)


def build_admin_env(admin_id: str, password: str, email: str = "") -> str:
    hashed = get_password_hash(password)
    if not verify_password(password, hashed):
        raise RuntimeError("bcrypt round-trip failed")
    lines = [f"ADMIN_ID={admin_id}", f"ADMIN_PASSWORD_HASH='{hashed}'"]
    if email:
        lines.append(f"ADMIN_EMAIL={email}")
    return "\n".join(lines)


def main():
    print("--- Create Admin Credentials ---")
    while True:
        admin_id = input("Enter admin ID: ").strip()
        if admin_id:
            break
        print("Admin ID cannot be empty.")

    while True:
        password = getpass("Enter admin password: ")
        if not password:
            print("Password cannot be empty.")
            continue
        if password == getpass("Confirm admin password: "):
            break
        print("Passwords do not match. Please try again.")

    email = input("Enter admin email (optional, press Enter to skip): ").strip()

    print("\nAdd these lines to your .env:\n")
    print(build_admin_env(admin_id, password, email))


if __name__ == "__main__":
    main()
