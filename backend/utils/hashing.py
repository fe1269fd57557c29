# utils/hashing.py
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, password_hash: str) -> bool:
    # Accounts created through Google sign-in have no password
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)
