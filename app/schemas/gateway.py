# app/schemas/gateway.py
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, field_validator
from starlette.requests import Request

from app.schemas.endpoint import EndpointRecord

UNKNOWN = "unknown"


class InboundRequest(BaseModel):
    """The parts of an HTTP request the credential schemes look at."""

    headers: Dict[str, str] = {}
    body: bytes = b""

    @field_validator("headers")
    @classmethod
    def lowercase_header_names(cls, value: Dict[str, str]) -> Dict[str, str]:
        return {k.lower(): v for k, v in value.items()}

    @classmethod
    async def from_request(cls, request: Request) -> "InboundRequest":
        return cls(headers=dict(request.headers.items()), body=await request.body())

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    @property
    def client_ip(self) -> str:
        forwarded = self.header("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        return self.header("x-real-ip") or UNKNOWN

    @property
    def user_agent(self) -> str:
        return self.header("user-agent") or UNKNOWN


class Outcome(str, Enum):
    ALLOWED = "allowed"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    REJECTED = "rejected"
    ERROR = "error"


class Decision(BaseModel):
    allowed: bool
    outcome: Outcome
    auth_method: str
    endpoint: Optional[EndpointRecord] = None
