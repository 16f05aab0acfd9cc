"""Random values for tests and fixtures."""

from __future__ import annotations

import random
import string
from datetime import datetime, timedelta, timezone

_ALPHABET = string.ascii_lowercase
_START_DATE = datetime(2000, 1, 1, tzinfo=timezone.utc)
_END_DATE = datetime(2022, 12, 31, tzinfo=timezone.utc)


def random_int(low: int, high: int) -> int:
    """Return a random integer in [low, high]."""
    return random.randint(low, high)


def random_string(n: int) -> str:
    """Return n random lower-case letters."""
    return "".join(random.choices(_ALPHABET, k=max(n, 0)))


def random_string6() -> str:
    """Return six random lower-case letters."""
    return random_string(6)


def random_email() -> str:
    """Return a random e-mail address."""
    return f"{random_string6()}@example.com"


def random_password() -> str:
    """Return a random password with an upper-case letter, a digit and a symbol."""
    return f"{random_string6()}A1$"


def random_url() -> str:
    """Return a random https URL."""
    return f"https://{random_string6()}.com"


def random_date() -> datetime:
    """Return a random UTC midnight from 2000-01-01 up to, not including, 2022-12-31."""
    days = (_END_DATE - _START_DATE).days
    return _START_DATE + timedelta(days=random.randrange(days))


def random_string_list(size: int, string_length: int) -> list[str]:
    """Return size random strings of the given length."""
    return [random_string(string_length) for _ in range(size)]