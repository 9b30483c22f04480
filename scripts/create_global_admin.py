"""
Script to create a Global Admin
Run this to create the first administrator; everyone else registers and is approved
"""

import sys
import asyncio
import getpass
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import select, or_
from portal.auth import hash_password
from portal.config import get_settings
from portal.database import create_database, connect_db, disconnect_db
from portal.models import Account
from portal.roles import Role, AccountStatus

accounts = Account.__table__


async def create_global_admin(full_name: str, email: str, mobile: str, password: str) -> bool:
    """
    Create an active, verified GLOBAL_ADMIN account

    Returns:
        False if an account already uses the email or mobile
    """
    database = create_database(get_settings().DATABASE_URL)
    await connect_db(database)

    try:
        existing = await database.fetch_one(
            select(accounts.c.id).where(or_(accounts.c.email == email, accounts.c.mobile == mobile))
        )
        if existing:
            print(f"An account with email {email} or mobile {mobile} already exists")
            return False

        account_id = await database.fetch_val(
            accounts.insert()
            .values(
                full_name=full_name,
                email=email,
                mobile=mobile,
                password_hash=hash_password(password),
                role=Role.GLOBAL_ADMIN.value,
                otp_verified=True,
                verified=True,
                status=AccountStatus.ACTIVE.value,
            )
            .returning(accounts.c.id)
        )

        print("Global Admin created successfully")
        print(f"   Id: {account_id}")
        print(f"   Email: {email}")
        return True

    finally:
        await disconnect_db(database)


async def main():
    """Main function"""
    print("\n" + "="*60)
    print("CREATE GLOBAL ADMIN")
    print("="*60 + "\n")

    full_name = input("Enter full name: ").strip()
    email = input("Enter email: ").strip().lower()
    mobile = input("Enter mobile: ").strip()

    password = getpass.getpass("Enter password: ")
    confirm = getpass.getpass("Confirm password: ")

    if password != confirm:
        print("Passwords do not match!")
        return

    if len(password) < 8:
        print("Password must be at least 8 characters!")
        return

    print()
    await create_global_admin(full_name, email, mobile, password)


if __name__ == "__main__":
    asyncio.run(main())
