"""Password hashing with bcrypt."""

from __future__ import annotations

import bcrypt

from xkit.errors import Code, Op, e

_DEFAULT_COST = 10
_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Return the bcrypt hash of a password."""
    op = Op("xhash.hash_password")

    raw = password.encode()
    if len(raw) > _MAX_PASSWORD_BYTES:
        raise e(op, Code.INTERNAL, ValueError("bcrypt: password length exceeds 72 bytes"))
    try:
        hashed = bcrypt.hashpw(raw, bcrypt.gensalt(rounds=_DEFAULT_COST))
    except ValueError as exc:
        raise e(op, Code.INTERNAL, exc) from exc
    return hashed.decode()


def compare_password(hashed_password: str, password: str) -> None:
    """Raise an INVALID error unless the password matches the hash."""
    op = Op("xhash.compare_password")

    try:
        matched = bcrypt.checkpw(password.encode(), hashed_password.encode())
    except ValueError as exc:
        raise e(op, Code.INVALID, exc) from exc
    if not matched:
        raise e(
            op,
            Code.INVALID,
            ValueError("bcrypt: hashed password is not the hash of the given password"),
        )