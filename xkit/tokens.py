"""Session tokens: PASETO v2.local tokens carrying a user payload."""

from __future__ import annotations

import base64
import hashlib
import json
import os
import re
import struct
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from nacl.bindings import (
    crypto_aead_xchacha20poly1305_ietf_decrypt,
    crypto_aead_xchacha20poly1305_ietf_encrypt,
)
from nacl.exceptions import CryptoError

from xkit.errors import Code, Message, Op, XError, e

EXPIRED_TOKEN_MESSAGE = Message("Your session has expired")

_KEY_SIZE = 32
_NONCE_SIZE = 24
_TAG_SIZE = 16
_HEADER = "v2.local."
_FRACTION = re.compile(r"\.(\d+)")


def _format_time(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_time(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Payload:
    """The claims carried by a token."""

    token_id: str
    user_id: str
    email: str
    issued_at: datetime
    expired_at: datetime

    def validate(self) -> None:
        """Raise an EXPIRED error if the payload has expired."""
        op = Op("xtoken.Payload.validate")
        if datetime.now(timezone.utc) > self.expired_at:
            raise e(op, Code.EXPIRED, Message("Your session has expired, please login again."))

    def _to_json(self) -> bytes:
        return json.dumps(
            {
                "token_id": self.token_id,
                "user_id": self.user_id,
                "email": self.email,
                "issued_at": _format_time(self.issued_at),
                "expired_at": _format_time(self.expired_at),
            }
        ).encode()

    @classmethod
    def _from_json(cls, raw: bytes) -> Payload:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError("token payload is not an object")
        return cls(
            token_id=str(data["token_id"]),
            user_id=str(data["user_id"]),
            email=str(data["email"]),
            issued_at=_parse_time(data["issued_at"]),
            expired_at=_parse_time(data["expired_at"]),
        )


def new_payload(user_id: str, email: str, duration: timedelta) -> Payload:
    """Return a fresh payload that expires after the given duration."""
    now = datetime.now(timezone.utc)
    return Payload(
        token_id=str(uuid.uuid4()),
        user_id=user_id,
        email=email,
        issued_at=now,
        expired_at=now + duration,
    )


class Maker(ABC):
    """Creates and verifies tokens."""

    @abstractmethod
    def create_token(self, user_id: str, email: str, duration: timedelta) -> tuple[str, Payload]:
        """Return a new token and the payload it carries."""

    @abstractmethod
    def verify_token(self, token: str) -> Payload:
        """Return the payload of a valid token, raising otherwise."""


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _pae(pieces: list[bytes]) -> bytes:
    encoded = [struct.pack("<Q", len(pieces))]
    for piece in pieces:
        encoded.append(struct.pack("<Q", len(piece)))
        encoded.append(piece)
    return b"".join(encoded)


def _encrypt(key: bytes, message: bytes, footer: bytes = b"") -> str:
    nonce = hashlib.blake2b(message, key=os.urandom(_NONCE_SIZE), digest_size=_NONCE_SIZE).digest()
    aad = _pae([_HEADER.encode(), nonce, footer])
    ciphertext = crypto_aead_xchacha20poly1305_ietf_encrypt(message, aad, nonce, key)
    token = _HEADER + _b64encode(nonce + ciphertext)
    if footer:
        token += "." + _b64encode(footer)
    return token


def _decrypt(key: bytes, token: str) -> bytes:
    if not token.startswith(_HEADER):
        raise ValueError("invalid token header")
    parts = token[len(_HEADER):].split(".")
    if len(parts) > 2:
        raise ValueError("invalid token format")
    body = _b64decode(parts[0])
    footer = _b64decode(parts[1]) if len(parts) == 2 else b""
    if len(body) < _NONCE_SIZE + _TAG_SIZE:
        raise ValueError("token is too short")
    nonce, ciphertext = body[:_NONCE_SIZE], body[_NONCE_SIZE:]
    aad = _pae([_HEADER.encode(), nonce, footer])
    try:
        return crypto_aead_xchacha20poly1305_ietf_decrypt(ciphertext, aad, nonce, key)
    except CryptoError as exc:
        raise ValueError("token authentication failed") from exc


class PasetoMaker(Maker):
    """A maker of symmetric PASETO v2 tokens."""

    def __init__(self, symmetric_key: str) -> None:
        op = Op("xtoken.PasetoMaker")
        raw = symmetric_key.encode()
        if len(raw) != _KEY_SIZE:
            raise e(
                op,
                Code.INVALID,
                ValueError(f"invalid key size: must be exactly {_KEY_SIZE} characters"),
            )
        self._key = raw

    def create_token(self, user_id: str, email: str, duration: timedelta) -> tuple[str, Payload]:
        op = Op("xtoken.PasetoMaker.create_token")
        payload = new_payload(user_id, email, duration)
        try:
            token = _encrypt(self._key, payload._to_json())
        except (CryptoError, ValueError, TypeError) as exc:
            raise e(op, Code.INTERNAL, exc) from exc
        return token, payload

    def verify_token(self, token: str) -> Payload:
        op = Op("xtoken.PasetoMaker.verify_token")
        try:
            payload = Payload._from_json(_decrypt(self._key, token))
        except (CryptoError, ValueError, KeyError, TypeError) as exc:
            raise e(op, Code.INVALID, exc, EXPIRED_TOKEN_MESSAGE) from exc
        try:
            payload.validate()
        except XError as exc:
            raise e(op, Code.INVALID, exc) from exc
        return payload