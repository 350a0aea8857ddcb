import secrets

from passlib.context import CryptContext

# pbkdf2_sha256 needs no native backend
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# No 0/O or 1/l/I lookalikes
_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a password against a stored hash. Unknown hash formats never match."""
    if not password_hash:
        return False
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        return False


def generate_password(length: int = 8) -> str:
    """Random alphanumeric password for newly provisioned accounts."""
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))
