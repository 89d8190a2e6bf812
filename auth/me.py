from __future__ import annotations

from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from auth import session_token
from auth.errors import VerificationError
from auth.signer import Signer
from auth.urls import extract_bearer_token
from genui.constants import LOGGER

PLAN_FEATURES = {
    "intelligentGeneration": True,
    "safeRegeneration": True,
    "uiOverrides": True,
    "maxGenerations": -1,
}


def me_route(signer: Signer) -> Route:
    async def handle_me(request: Request) -> Response:
        token = extract_bearer_token(request.headers.get("authorization"))
        if token is None:
            return JSONResponse(
                {"error": "missing token"}, status_code=VerificationError.status_code
            )

        try:
            claims = session_token.verify(token, signer)
        except VerificationError as error:
            LOGGER.info("Rejected bearer token: %s", error.__class__.__name__)
            return JSONResponse({"error": "invalid token"}, status_code=error.status_code)

        return JSONResponse({"plan": claims.plan, "features": dict(PLAN_FEATURES)})

    return Route("/me", handle_me, methods=["GET"])
