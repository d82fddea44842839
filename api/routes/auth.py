import logging
from typing import Optional

from fastapi import APIRouter

from .. import store, tokens
from ..deps import run_blocking
from ..errors import BadRequest, Unauthorized
from ..schemas import LoginTokenRequest, SignInRequest, ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.post("/auth", summary="Password sign-in")
async def sign_in(request: SignInRequest) -> dict:
    session = await run_blocking(store.sign_in, request.email, request.password)
    if session is None:
        raise Unauthorized("Invalid credentials")
    return ok(token=session["token"], user={"email": session["email"]})


@router.post("/auth-token", summary="Exchange a session for a one-time login token")
async def create_login_token(request: LoginTokenRequest) -> dict:
    """
    The editor opens a client site with `?token=...`; that site redeems the
    token through GET /api/auth-token to pick up the session. Tokens expire
    after AUTH_TOKEN_TTL_SECONDS and can be redeemed once.
    """
    user = await run_blocking(store.get_user, request.supabaseToken)
    if user is None:
        raise Unauthorized("Invalid session")

    token = tokens.create_token(user.email, request.supabaseToken)
    logger.info("Issued login token for %s", user.email)
    return ok(token=token)


@router.get("/auth-token", summary="Redeem a one-time login token")
async def redeem_login_token(token: Optional[str] = None) -> dict:
    if not token:
        raise BadRequest("Missing token parameter", valid=False)

    payload = tokens.consume_token(token)
    if payload is None:
        return {"valid": False}
    return {"valid": True, "email": payload["email"], "sessionToken": payload["sessionToken"]}
