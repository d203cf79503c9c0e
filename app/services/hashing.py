# app/services/hashing.py
"""Slow, salted one-way hashing for Password and Basic secrets.

bcrypt carries its own salt and cost inside the digest, so a digest produced
with one ``BCRYPT_ROUNDS`` value still verifies after the setting changes.
"""
import logging
from typing import Optional

import bcrypt

from app.core.config import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of input
MAX_SECRET_BYTES = 72


def hash_secret(plaintext: str, rounds: Optional[int] = None) -> str:
    if not plaintext:
        raise ValueError("secret must not be empty")
    encoded = plaintext.encode("utf-8")
    if len(encoded) > MAX_SECRET_BYTES:
        raise ValueError(f"secret must be at most {MAX_SECRET_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_secret(plaintext: str, digest: str) -> bool:
    if not plaintext or not digest:
        return False
    # older bcrypt releases truncate instead of raising, which would let
    # "<72-byte secret>" + anything match
    if len(plaintext.encode("utf-8")) > MAX_SECRET_BYTES:
        return False
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
    except (ValueError, TypeError) as e:
        # malformed digest
        logger.info(f"Secret verification rejected: {e}")
        return False
