"""
Unit tests for the four credential schemes.

Every scheme must fail closed: missing, malformed or mismatched input
returns False instead of raising.
"""

import base64
import json

import httpx
import pytest

from app.schemas.gateway import InboundRequest
from app.services.auth_schemes import (
    ApiKeyScheme,
    BasicScheme,
    OAuthScheme,
    PasswordScheme,
    build_scheme_table,
)
from app.schemas.endpoint import AuthType
from app.services.hashing import hash_secret

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]

SECRET_DIGEST = hash_secret("secret", rounds=4)


def make_request(headers=None, body=b""):
    return InboundRequest(headers=headers or {}, body=body)


def json_body(payload):
    return json.dumps(payload).encode()


def basic_header(credentials: str) -> dict:
    encoded = base64.b64encode(credentials.encode()).decode()
    return {"Authorization": f"Basic {encoded}"}


def oauth_with(handler) -> OAuthScheme:
    return OAuthScheme(
        transport=httpx.MockTransport(handler),
        google_tokeninfo_url="https://google.test/tokeninfo",
        github_user_url="https://github.test/user",
    )


# =============================================================================
# Password
# =============================================================================


class TestPasswordScheme:
    config = {"password": SECRET_DIGEST}

    async def test_correct_password(self):
        request = make_request(body=json_body({"password": "secret"}))
        assert await PasswordScheme().validate(request, self.config) is True

    async def test_wrong_password(self):
        request = make_request(body=json_body({"password": "wrong"}))
        assert await PasswordScheme().validate(request, self.config) is False

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"not json",
            b"\xff\xfe",
            json_body(["secret"]),
            json_body({}),
            json_body({"pass": "secret"}),
            json_body({"password": 12345}),
            json_body({"password": None}),
            json_body({"password": ""}),
        ],
    )
    async def test_malformed_body_denied(self, body):
        assert await PasswordScheme().validate(make_request(body=body), self.config) is False

    async def test_plaintext_config_never_matches(self):
        """Stored values are digests; a plaintext config cannot be satisfied."""
        request = make_request(body=json_body({"password": "secret"}))
        assert await PasswordScheme().validate(request, {"password": "secret"}) is False

    @pytest.mark.parametrize("config", [{}, {"password": ""}, {"apiKey": "x"}])
    async def test_mismatched_config_denied(self, config):
        request = make_request(body=json_body({"password": "secret"}))
        assert await PasswordScheme().validate(request, config) is False

    async def test_longest_password_matches(self):
        config = {"password": hash_secret("a" * 72, rounds=4)}
        request = make_request(body=json_body({"password": "a" * 72}))
        assert await PasswordScheme().validate(request, config) is True

    async def test_suffix_past_72_bytes_denied(self):
        config = {"password": hash_secret("a" * 72, rounds=4)}
        request = make_request(body=json_body({"password": "a" * 72 + "WRONG"}))
        assert await PasswordScheme().validate(request, config) is False


# =============================================================================
# Basic
# =============================================================================


class TestBasicScheme:
    config = {"username": "alice", "password": SECRET_DIGEST}

    async def test_correct_credentials(self):
        request = make_request(basic_header("alice:secret"))
        assert await BasicScheme().validate(request, self.config) is True

    async def test_header_name_is_case_insensitive(self):
        encoded = base64.b64encode(b"alice:secret").decode()
        request = make_request({"authorization": f"Basic {encoded}"})
        assert await BasicScheme().validate(request, self.config) is True

    async def test_wrong_password(self):
        request = make_request(basic_header("alice:wrong"))
        assert await BasicScheme().validate(request, self.config) is False

    async def test_wrong_username(self):
        request = make_request(basic_header("bob:secret"))
        assert await BasicScheme().validate(request, self.config) is False

    async def test_password_may_contain_colon(self):
        config = {"username": "alice", "password": hash_secret("se:cr:et", rounds=4)}
        request = make_request(basic_header("alice:se:cr:et"))
        assert await BasicScheme().validate(request, config) is True

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "Bearer abc"},
            {"Authorization": "basic YWxpY2U6c2VjcmV0"},
            {"Authorization": "Basic "},
            {"Authorization": "Basic !!!not-base64!!!"},
            {"Authorization": "Basic " + base64.b64encode(b"\xff\xfe:secret").decode()},
            basic_header("alicesecret"),
            basic_header(":secret"),
            basic_header("alice:"),
        ],
    )
    async def test_malformed_header_denied(self, headers):
        assert await BasicScheme().validate(make_request(headers), self.config) is False

    async def test_mismatched_config_denied(self):
        request = make_request(basic_header("alice:secret"))
        assert await BasicScheme().validate(request, {"password": SECRET_DIGEST}) is False

    async def test_suffix_past_72_bytes_denied(self):
        config = {"username": "alice", "password": hash_secret("a" * 72, rounds=4)}
        request = make_request(basic_header("alice:" + "a" * 72 + "WRONG"))
        assert await BasicScheme().validate(request, config) is False


# =============================================================================
# API key
# =============================================================================


class TestApiKeyScheme:
    config = {"apiKey": "K3y"}

    async def test_x_api_key_header(self):
        request = make_request({"X-Api-Key": "K3y"})
        assert await ApiKeyScheme().validate(request, self.config) is True

    async def test_bearer_header(self):
        request = make_request({"Authorization": "Bearer K3y"})
        assert await ApiKeyScheme().validate(request, self.config) is True

    async def test_wrong_key(self):
        request = make_request({"X-Api-Key": "nope"})
        assert await ApiKeyScheme().validate(request, self.config) is False

    async def test_x_api_key_takes_precedence(self):
        request = make_request({"X-Api-Key": "nope", "Authorization": "Bearer K3y"})
        assert await ApiKeyScheme().validate(request, self.config) is False

    async def test_empty_x_api_key_falls_back_to_bearer(self):
        request = make_request({"X-Api-Key": "", "Authorization": "Bearer K3y"})
        assert await ApiKeyScheme().validate(request, self.config) is True

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"X-Api-Key": ""},
            {"Authorization": "Bearer "},
            {"Authorization": "Basic K3y"},
            {"Authorization": "K3y"},
        ],
    )
    async def test_missing_key_denied(self, headers):
        assert await ApiKeyScheme().validate(make_request(headers), self.config) is False

    @pytest.mark.parametrize("header", ["Bearer  K3y", "Bearer K3y ", "Bearer \tK3y"])
    async def test_bearer_value_is_not_trimmed(self, header):
        request = make_request({"Authorization": header})
        assert await ApiKeyScheme().validate(request, self.config) is False

    async def test_snake_case_config_accepted(self):
        request = make_request({"X-Api-Key": "K3y"})
        assert await ApiKeyScheme().validate(request, {"api_key": "K3y"}) is True

    @pytest.mark.parametrize("config", [{}, {"apiKey": ""}, {"password": "K3y"}])
    async def test_mismatched_config_denied(self, config):
        request = make_request({"X-Api-Key": "K3y"})
        assert await ApiKeyScheme().validate(request, config) is False


# =============================================================================
# OAuth
# =============================================================================


def unreachable(request):
    raise AssertionError(f"unexpected remote call to {request.url}")


class TestOAuthAllowedTokens:
    config = {"allowedTokens": ["T1", "T2"]}

    @pytest.mark.parametrize("token", ["T1", "T2"])
    async def test_listed_token(self, token):
        request = make_request({"Authorization": f"Bearer {token}"})
        assert await oauth_with(unreachable).validate(request, self.config) is True

    @pytest.mark.parametrize("token", ["T3", "t1", "T1T2"])
    async def test_unlisted_token(self, token):
        request = make_request({"Authorization": f"Bearer {token}"})
        assert await oauth_with(unreachable).validate(request, self.config) is False

    async def test_list_wins_over_introspection(self):
        config = dict(self.config, introspectionUrl="https://idp.test/introspect")
        request = make_request({"Authorization": "Bearer T1"})
        assert await oauth_with(unreachable).validate(request, config) is True

    @pytest.mark.parametrize(
        "headers",
        [{}, {"Authorization": "Bearer "}, {"Authorization": "Basic T1"}, {"X-Api-Key": "T1"}],
    )
    async def test_missing_bearer_denied(self, headers):
        assert await oauth_with(unreachable).validate(make_request(headers), self.config) is False

    @pytest.mark.parametrize("header", ["Bearer  T1", "Bearer T1 "])
    async def test_bearer_value_is_not_trimmed(self, header):
        request = make_request({"Authorization": header})
        assert await oauth_with(unreachable).validate(request, self.config) is False


class TestOAuthPermissiveDefault:
    @pytest.mark.parametrize("config", [{}, {"clientId": "cid", "redirectUri": "https://x.test/cb"}])
    async def test_any_bearer_token_allowed(self, config):
        request = make_request({"Authorization": "Bearer anything-at-all"})
        assert await oauth_with(unreachable).validate(request, config) is True

    async def test_empty_allow_list_is_permissive(self):
        request = make_request({"Authorization": "Bearer anything"})
        assert await oauth_with(unreachable).validate(request, {"allowedTokens": []}) is True

    async def test_still_requires_a_token(self):
        assert await oauth_with(unreachable).validate(make_request(), {}) is False

    @pytest.mark.parametrize(
        "config",
        [
            {"allowedTokens": None},
            {"allowedTokens": None, "scopes": None},
            {"provider": None, "introspectionUrl": None},
            {"provider": "", "introspectionUrl": ""},
            {"clientId": None, "clientSecret": None, "redirectUri": None},
        ],
    )
    async def test_null_or_empty_fields_count_as_unset(self, config):
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(unreachable).validate(request, config) is True


class TestOAuthIntrospection:
    config = {
        "clientId": "cid",
        "clientSecret": "csecret",
        "introspectionUrl": "https://idp.test/introspect",
    }

    async def test_active_token(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["auth"] = request.headers["authorization"]
            seen["body"] = request.content
            return httpx.Response(200, json={"active": True})

        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, self.config) is True
        assert seen["method"] == "POST"
        assert seen["auth"] == "Basic " + base64.b64encode(b"cid:csecret").decode()
        assert seen["body"] == b"token=tok"

    @pytest.mark.parametrize("payload", [{"active": False}, {}, {"active": "true"}])
    async def test_inactive_token(self, payload):
        handler = lambda request: httpx.Response(200, json=payload)  # noqa: E731
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, self.config) is False

    async def test_required_scopes_present(self):
        config = dict(self.config, scopes=["read", "write"])
        handler = lambda request: httpx.Response(  # noqa: E731
            200, json={"active": True, "scope": "write admin read"}
        )
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, config) is True

    @pytest.mark.parametrize("scope", ["read", "", None, ["read", "write"]])
    async def test_required_scope_missing(self, scope):
        config = dict(self.config, scopes=["read", "write"])
        handler = lambda request: httpx.Response(  # noqa: E731
            200, json={"active": True, "scope": scope}
        )
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, config) is False

    @pytest.mark.parametrize("status_code", [400, 401, 500, 503])
    async def test_non_2xx_denied(self, status_code):
        handler = lambda request: httpx.Response(status_code, json={"active": True})  # noqa: E731
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, self.config) is False

    async def test_malformed_json_denied(self):
        handler = lambda request: httpx.Response(200, content=b"<html>")  # noqa: E731
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, self.config) is False

    async def test_non_object_json_denied(self):
        handler = lambda request: httpx.Response(200, json=[True])  # noqa: E731
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, self.config) is False

    async def test_timeout_denied(self):
        def handler(request):
            raise httpx.ReadTimeout("upstream too slow", request=request)

        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, self.config) is False

    async def test_connection_error_denied(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, self.config) is False

    async def test_null_allow_list_falls_through_to_introspection(self):
        config = dict(self.config, allowedTokens=None)
        handler = lambda request: httpx.Response(200, json={"active": False})  # noqa: E731
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(handler).validate(request, config) is False


class TestOAuthProviders:
    async def test_google_audience_matches(self):
        def handler(request):
            assert request.url.host == "google.test"
            assert request.url.params["access_token"] == "gtok"
            return httpx.Response(200, json={"audience": "cid", "expires_in": 3000})

        request = make_request({"Authorization": "Bearer gtok"})
        config = {"provider": "google", "clientId": "cid"}
        assert await oauth_with(handler).validate(request, config) is True

    async def test_google_audience_mismatch(self):
        handler = lambda request: httpx.Response(200, json={"audience": "someone-else"})  # noqa: E731
        request = make_request({"Authorization": "Bearer gtok"})
        config = {"provider": "google", "clientId": "cid"}
        assert await oauth_with(handler).validate(request, config) is False

    async def test_google_without_client_id_denied(self):
        handler = lambda request: httpx.Response(200, json={"audience": ""})  # noqa: E731
        request = make_request({"Authorization": "Bearer gtok"})
        assert await oauth_with(handler).validate(request, {"provider": "google"}) is False

    async def test_github_user_found(self):
        def handler(request):
            assert request.url.host == "github.test"
            assert request.headers["authorization"] == "Bearer ghtok"
            return httpx.Response(200, json={"id": 42, "login": "octocat"})

        request = make_request({"Authorization": "Bearer ghtok"})
        assert await oauth_with(handler).validate(request, {"provider": "github"}) is True

    async def test_github_bad_token(self):
        handler = lambda request: httpx.Response(401, json={"message": "Bad credentials"})  # noqa: E731
        request = make_request({"Authorization": "Bearer ghtok"})
        assert await oauth_with(handler).validate(request, {"provider": "github"}) is False

    async def test_github_without_id_denied(self):
        handler = lambda request: httpx.Response(200, json={"login": "octocat"})  # noqa: E731
        request = make_request({"Authorization": "Bearer ghtok"})
        assert await oauth_with(handler).validate(request, {"provider": "github"}) is False

    async def test_custom_provider_denied(self):
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(unreachable).validate(request, {"provider": "custom"}) is False

    async def test_unknown_provider_denied(self):
        request = make_request({"Authorization": "Bearer tok"})
        assert await oauth_with(unreachable).validate(request, {"provider": "okta"}) is False


async def test_scheme_table_covers_every_auth_type():
    table = build_scheme_table()

    assert set(table) == set(AuthType)
    for auth_type, scheme in table.items():
        assert scheme.name == auth_type.value
