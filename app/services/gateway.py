# app/services/gateway.py
"""Authentication gateway for protected endpoints.

``AuthenticationGateway.authenticate`` is the single decision point for the
public ``/api/v1/{url_id}`` route: look the endpoint up, check it is active,
run the credential scheme for its ``auth_type``, then record the attempt.
Exactly one access-log entry is written per call, and the access counter is
only touched when the request is allowed.

``prepare_auth_config`` is the write-side counterpart used when endpoints are
created or reconfigured: it checks the config shape and hashes secrets so
plaintext passwords never reach the store.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from app.schemas.endpoint import AUTH_CONFIG_MODELS, AuthType, EndpointRecord
from app.schemas.gateway import Decision, InboundRequest, Outcome
from app.services.access_logger import AccessLogger
from app.services.auth_schemes import CredentialScheme, build_scheme_table
from app.services.endpoint_store import EndpointStore
from app.services.hashing import hash_secret
from app.services.url_generator import generate_api_key

logger = logging.getLogger(__name__)

HASHED_AUTH_TYPES = (AuthType.PASSWORD, AuthType.BASIC)


class AuthenticationGateway:
    def __init__(
        self,
        store: EndpointStore,
        recorder: AccessLogger,
        schemes: Optional[Dict[AuthType, CredentialScheme]] = None,
    ):
        self.store = store
        self.recorder = recorder
        self.schemes = schemes if schemes is not None else build_scheme_table()

    async def authenticate(self, request: InboundRequest, endpoint_id: str) -> Decision:
        try:
            endpoint = await self.store.get(endpoint_id)
        except Exception:
            logger.exception(f"Endpoint lookup failed for {endpoint_id}")
            decision = Decision(allowed=False, outcome=Outcome.ERROR, auth_method="error")
        else:
            if endpoint is None:
                decision = Decision(
                    allowed=False, outcome=Outcome.NOT_FOUND, auth_method="not_found"
                )
            elif not endpoint.is_active:
                decision = Decision(
                    allowed=False,
                    outcome=Outcome.INACTIVE,
                    auth_method="inactive",
                    endpoint=endpoint,
                )
            else:
                decision = await self._run_scheme(request, endpoint)

        await self._record(endpoint_id, decision, request)
        return decision

    async def _run_scheme(self, request: InboundRequest, endpoint: EndpointRecord) -> Decision:
        try:
            scheme = self.schemes.get(AuthType(endpoint.auth_type))
        except ValueError:
            scheme = None
        if scheme is None:
            logger.error(f"Endpoint {endpoint.id} has unsupported auth type {endpoint.auth_type!r}")
            return Decision(
                allowed=False,
                outcome=Outcome.REJECTED,
                auth_method=endpoint.auth_type,
                endpoint=endpoint,
            )

        try:
            allowed = await scheme.validate(request, endpoint.auth_config or {})
        except Exception:
            logger.exception(f"{scheme.name} scheme raised for endpoint {endpoint.id}")
            return Decision(
                allowed=False, outcome=Outcome.ERROR, auth_method="error", endpoint=endpoint
            )

        return Decision(
            allowed=allowed is True,
            outcome=Outcome.ALLOWED if allowed is True else Outcome.REJECTED,
            auth_method=scheme.name,
            endpoint=endpoint,
        )

    async def _record(self, endpoint_id: str, decision: Decision, request: InboundRequest) -> None:
        # the verdict is already final; bookkeeping failures are only logged
        try:
            await self.recorder.record(
                endpoint_id,
                decision.allowed,
                decision.auth_method,
                ip_address=request.client_ip,
                user_agent=request.user_agent,
            )
        except Exception:
            logger.exception(f"Failed to write access log for {endpoint_id}")

        if decision.allowed:
            try:
                await self.store.increment_access_count(endpoint_id)
            except Exception:
                logger.exception(f"Failed to update access count for {endpoint_id}")


async def prepare_auth_config(
    auth_type: AuthType, raw_config: Dict[str, Any]
) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """Validate an owner-supplied config and turn it into its stored form.

    Returns the config to persist and any credentials generated on the
    owner's behalf (currently only a missing API key). Raises
    ``pydantic.ValidationError`` when the config does not fit ``auth_type``
    and ``ValueError`` when a secret cannot be hashed.
    """
    auth_type = AuthType(auth_type)
    config = dict(raw_config)
    generated: Dict[str, str] = {}

    if auth_type == AuthType.APIKEY and not (config.get("apiKey") or config.get("api_key")):
        config.pop("api_key", None)
        config["apiKey"] = generated["apiKey"] = generate_api_key()

    parsed = AUTH_CONFIG_MODELS[auth_type].model_validate(config)

    if auth_type in HASHED_AUTH_TYPES:
        parsed.password = await run_in_threadpool(hash_secret, parsed.password)

    return parsed.model_dump(by_alias=True, exclude_none=True), generated
