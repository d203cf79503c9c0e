# app/schemas/endpoint.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AuthType(str, Enum):
    PASSWORD = "password"
    BASIC = "basic"
    APIKEY = "apikey"
    OAUTH = "oauth"


class _StoredConfig(BaseModel):
    # stored as camelCase JSON; snake_case accepted on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PasswordAuthConfig(_StoredConfig):
    password: str = Field(min_length=1)


class BasicAuthConfig(_StoredConfig):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ApiKeyAuthConfig(_StoredConfig):
    api_key: str = Field(min_length=1)


class OAuthAuthConfig(_StoredConfig):
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    allowed_tokens: List[str] = []
    provider: Optional[Literal["google", "github", "custom"]] = None
    scopes: List[str] = []
    introspection_url: Optional[str] = None

    # null and "" mean "not configured"
    @field_validator("client_id", "client_secret", "redirect_uri", mode="before")
    @classmethod
    def null_as_empty_string(cls, value):
        return "" if value is None else value

    @field_validator("allowed_tokens", "scopes", mode="before")
    @classmethod
    def null_as_empty_list(cls, value):
        return [] if value is None else value

    @field_validator("provider", "introspection_url", mode="before")
    @classmethod
    def empty_as_unset(cls, value):
        return None if value == "" else value


AUTH_CONFIG_MODELS = {
    AuthType.PASSWORD: PasswordAuthConfig,
    AuthType.BASIC: BasicAuthConfig,
    AuthType.APIKEY: ApiKeyAuthConfig,
    AuthType.OAUTH: OAuthAuthConfig,
}


class EndpointRecord(BaseModel):
    """Snapshot of a protected endpoint as read by the gateway."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    description: str = ""
    auth_type: str
    auth_config: Dict[str, Any] = {}
    is_active: bool = True
    access_count: int = 0
    last_accessed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class EndpointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    description: str
    auth_type: str
    is_active: bool
    access_count: int
    last_accessed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class EndpointCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    auth_type: AuthType
    auth_config: Dict[str, Any]
    description: str = Field(default="", max_length=500)


class EndpointUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None
    auth_config: Optional[Dict[str, Any]] = None


class EndpointCreateResponse(BaseModel):
    url: EndpointResponse
    endpoint: str
    credentials: Dict[str, str] = {}


class EndpointListResponse(BaseModel):
    urls: List[EndpointResponse]
