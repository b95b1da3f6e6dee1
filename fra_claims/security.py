# fra_claims/security.py
from passlib.context import CryptContext

# pbkdf2_sha256 is pure passlib: no bcrypt backend, no 72-byte password limit
pwd_ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_ctx.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify password against stored hash; malformed hashes count as a mismatch."""
    try:
        return pwd_ctx.verify(plain, hashed)
    except ValueError:
        return False
