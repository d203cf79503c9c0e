# app/services/url_generator.py
import secrets
import string
from typing import Optional
from uuid import uuid4

from app.core.config import settings

API_KEY_ALPHABET = string.ascii_letters + string.digits
API_KEY_LENGTH = 32


def generate_url_id() -> str:
    return str(uuid4())


def endpoint_url(url_id: str, base_url: Optional[str] = None) -> str:
    """Public URL clients call to reach a protected endpoint."""
    base = (base_url or settings.APP_URL).rstrip("/")
    return f"{base}/api/v1/{url_id}"


def generate_api_key(length: int = API_KEY_LENGTH) -> str:
    return "".join(secrets.choice(API_KEY_ALPHABET) for _ in range(length))
