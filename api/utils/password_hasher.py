from api import ph
from argon2.exceptions import InvalidHashError, VerificationError


def hash_password(password):
    """password hasher
    """
    return ph.hash(password)


def check_password(hashed_password, password):
    """True when password matches hashed_password; a missing or corrupt hash never matches
    """
    if not hashed_password:
        return False
    try:
        return ph.verify(hashed_password, password)
    except (VerificationError, InvalidHashError):
        return False
