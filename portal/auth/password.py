"""
Password Hashing and Verification
Uses bcrypt for secure password storage
"""

from passlib.context import CryptContext
import secrets

# Password context for hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plain password

    Args:
        password: Plain text password

    Returns:
        Hashed password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash

    Only hashed credentials are accepted. Unrecognised hash formats
    (e.g. a plaintext value left in the column) never match.
    """
    if not hashed_password or not pwd_context.identify(hashed_password):
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Spend the same time as a real check when the account does not exist"""
    pwd_context.dummy_verify()


def generate_otp() -> str:
    """Six-digit numeric one-time code"""
    return str(secrets.randbelow(900000) + 100000)
