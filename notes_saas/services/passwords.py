from __future__ import annotations

import bcrypt

from notes_saas.core.config import BCRYPT_ROUNDS

# bcrypt only reads the first 72 bytes of the secret
_BCRYPT_MAX_BYTES = 72


def _encode_for_bcrypt(password: str) -> bytes:
    return (password or "").encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode_for_bcrypt(password), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_encode_for_bcrypt(plain_password), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


# Compared against when the e-mail is unknown so both paths pay the bcrypt cost.
_DUMMY_HASH = hash_password("timing-equaliser")


def burn_password_check(plain_password: str) -> None:
    verify_password(plain_password, _DUMMY_HASH)
