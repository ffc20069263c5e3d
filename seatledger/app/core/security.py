"""
Password hashing helpers.
"""

from passlib.hash import pbkdf2_sha256


def get_password_hash(password: str) -> str:
    """Hash a plain-text password for storage."""
    return pbkdf2_sha256.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain-text password against a stored hash."""
    try:
        return pbkdf2_sha256.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed stored hash
        return False
