import bcrypt
from .config import settings

def hash_password(password: str, rounds: int = None) -> str:
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    if rounds is None:
        rounds = settings.bcrypt_rounds
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")

def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8")[:72], hashed_password.encode("utf-8"))
