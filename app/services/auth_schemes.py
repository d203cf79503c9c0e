# app/services/auth_schemes.py
"""Credential schemes for protected endpoints.

Each scheme is a small class with one coroutine,
``validate(request, config) -> bool``, that pulls a credential out of the
inbound request and checks it against the endpoint's stored ``auth_config``.
The gateway picks the scheme from :func:`build_scheme_table` by the
endpoint's ``auth_type``.

Schemes fail closed: a malformed request, a stored config that does not
match the scheme, an upstream outage or any unexpected error all come back
as ``False``.
"""
import base64
import binascii
import functools
import hmac
import json
import logging
from typing import Any, Dict, Optional, Protocol, Tuple

import httpx
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import MalformedRequest, UpstreamUnavailable
from app.schemas.endpoint import (
    ApiKeyAuthConfig,
    AuthType,
    BasicAuthConfig,
    OAuthAuthConfig,
    PasswordAuthConfig,
)
from app.schemas.gateway import InboundRequest
from app.services.hashing import verify_secret

logger = logging.getLogger(__name__)


class CredentialScheme(Protocol):
    name: str

    async def validate(self, request: InboundRequest, config: Dict[str, Any]) -> bool:
        ...


def fail_closed(validate):
    """Turn every failure raised by ``validate`` into a deny."""

    @functools.wraps(validate)
    async def wrapper(self, request: InboundRequest, config: Dict[str, Any]) -> bool:
        try:
            return bool(await validate(self, request, config))
        except ValidationError:
            logger.warning(f"{self.name}: stored auth config does not match the auth type")
        except MalformedRequest as e:
            logger.info(f"{self.name}: malformed credential: {e}")
        except UpstreamUnavailable as e:
            logger.warning(f"{self.name}: remote token check failed: {e}")
        except Exception:
            logger.exception(f"{self.name}: unexpected error while validating credential")
        return False

    return wrapper


def _constant_time_equals(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def _password_from_body(request: InboundRequest) -> str:
    if not request.body:
        raise MalformedRequest("request body is empty")
    try:
        payload = json.loads(request.body)
    except ValueError:
        raise MalformedRequest("request body is not valid JSON")
    if not isinstance(payload, dict):
        raise MalformedRequest("request body is not a JSON object")
    password = payload.get("password")
    if not isinstance(password, str) or not password:
        raise MalformedRequest("password field missing or not a string")
    return password


def _basic_credentials(request: InboundRequest) -> Tuple[str, str]:
    header = request.header("authorization")
    if not header or not header.startswith("Basic "):
        raise MalformedRequest("no Basic authorization header")
    try:
        decoded = base64.b64decode(header[6:].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise MalformedRequest("Basic credentials are not valid base64")
    # the password may itself contain colons
    username, sep, password = decoded.partition(":")
    if not sep or not username or not password:
        raise MalformedRequest("Basic credentials are not username:password")
    return username, password


def _bearer_token(request: InboundRequest) -> Optional[str]:
    header = request.header("authorization")
    if header and header.startswith("Bearer "):
        return header[7:] or None
    return None


class PasswordScheme:
    name = AuthType.PASSWORD.value

    @fail_closed
    async def validate(self, request: InboundRequest, config: Dict[str, Any]) -> bool:
        stored = PasswordAuthConfig.model_validate(config)
        supplied = _password_from_body(request)
        return await run_in_threadpool(verify_secret, supplied, stored.password)


class BasicScheme:
    name = AuthType.BASIC.value

    @fail_closed
    async def validate(self, request: InboundRequest, config: Dict[str, Any]) -> bool:
        stored = BasicAuthConfig.model_validate(config)
        username, password = _basic_credentials(request)
        # verify even on a username mismatch so timing does not reveal which part was wrong
        password_ok = await run_in_threadpool(verify_secret, password, stored.password)
        return username == stored.username and password_ok


class ApiKeyScheme:
    name = AuthType.APIKEY.value

    @fail_closed
    async def validate(self, request: InboundRequest, config: Dict[str, Any]) -> bool:
        stored = ApiKeyAuthConfig.model_validate(config)
        supplied = request.header("x-api-key") or _bearer_token(request)
        if not supplied:
            raise MalformedRequest("no X-Api-Key or Bearer authorization header")
        return _constant_time_equals(supplied, stored.api_key)


class OAuthScheme:
    """Bearer token check against an allow-list, an introspection endpoint or a provider.

    With none of those configured any non-empty bearer token is accepted.
    Remote checks are bounded by ``timeout`` and never retried.
    """

    name = AuthType.OAUTH.value

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        google_tokeninfo_url: Optional[str] = None,
        github_user_url: Optional[str] = None,
    ):
        self.timeout = timeout or settings.OAUTH_TIMEOUT_SECONDS
        self.transport = transport
        self.google_tokeninfo_url = google_tokeninfo_url or settings.GOOGLE_TOKENINFO_URL
        self.github_user_url = github_user_url or settings.GITHUB_USER_URL

    @fail_closed
    async def validate(self, request: InboundRequest, config: Dict[str, Any]) -> bool:
        stored = OAuthAuthConfig.model_validate(config)
        token = _bearer_token(request)
        if not token:
            raise MalformedRequest("no Bearer authorization header")

        if stored.allowed_tokens:
            matches = [_constant_time_equals(token, allowed) for allowed in stored.allowed_tokens]
            return any(matches)

        if stored.introspection_url:
            return await self.introspect(token, stored)

        if stored.provider:
            return await self.check_with_provider(token, stored)

        return True

    async def introspect(self, token: str, stored: OAuthAuthConfig) -> bool:
        data = await self._fetch_json(
            "POST",
            stored.introspection_url,
            data={"token": token},
            auth=(stored.client_id, stored.client_secret),
        )
        if data.get("active") is not True:
            logger.info("oauth: introspection reported an inactive token")
            return False

        if stored.scopes:
            scope = data.get("scope")
            granted = scope.split() if isinstance(scope, str) else []
            missing = [s for s in stored.scopes if s not in granted]
            if missing:
                logger.info(f"oauth: token is missing required scopes {missing}")
                return False

        return True

    async def check_with_provider(self, token: str, stored: OAuthAuthConfig) -> bool:
        if stored.provider == "google":
            data = await self._fetch_json(
                "GET", self.google_tokeninfo_url, params={"access_token": token}
            )
            return bool(stored.client_id) and data.get("audience") == stored.client_id

        if stored.provider == "github":
            data = await self._fetch_json(
                "GET",
                self.github_user_url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/vnd.github+json",
                },
            )
            return bool(data.get("id"))

        logger.info(f"oauth: no remote check available for provider {stored.provider!r}")
        return False

    async def _fetch_json(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
            follow_redirects=False,
        ) as client:
            try:
                response = await client.request(method, url, **kwargs)
            except httpx.TimeoutException as e:
                raise UpstreamUnavailable(f"timed out calling {url}") from e
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise UpstreamUnavailable(f"{type(e).__name__} calling {url}") from e

        if not response.is_success:
            raise UpstreamUnavailable(f"{url} answered {response.status_code}")
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"{url} returned malformed JSON") from e
        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"{url} returned JSON that is not an object")
        return data


def build_scheme_table(
    oauth_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[AuthType, CredentialScheme]:
    return {
        AuthType.PASSWORD: PasswordScheme(),
        AuthType.BASIC: BasicScheme(),
        AuthType.APIKEY: ApiKeyScheme(),
        AuthType.OAUTH: OAuthScheme(transport=oauth_transport),
    }
