# app/api/v1/endpoints/gateway.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_gateway
from app.schemas.gateway import InboundRequest, Outcome
from app.services.gateway import AuthenticationGateway

router = APIRouter()

# client-facing bodies stay generic; the precise cause is only in the access log
FAILURE_RESPONSES = {
    Outcome.NOT_FOUND: (404, "URL not found"),
    Outcome.INACTIVE: (403, "URL is inactive"),
    Outcome.REJECTED: (401, "Authentication failed"),
    Outcome.ERROR: (500, "Internal server error"),
}

@router.api_route("/{url_id}", methods=["GET", "POST", "PUT", "DELETE"])
async def access_protected_url(
    url_id: str,
    request: Request,
    gateway: AuthenticationGateway = Depends(get_gateway),
):
    inbound = await InboundRequest.from_request(request)
    decision = await gateway.authenticate(inbound, url_id)

    if not decision.allowed:
        status_code, message = FAILURE_RESPONSES.get(decision.outcome, FAILURE_RESPONSES[Outcome.REJECTED])
        return JSONResponse(status_code=status_code, content={"error": message})

    return {
        "message": "Authentication successful",
        "urlId": decision.endpoint.id,
        "name": decision.endpoint.name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
