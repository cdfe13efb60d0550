"""
Sample web app using LINE Login.
GET /login/ starts the flow, /login/callback completes it; /profile and /logout use the stored tokens.
Configuration from LINE_LOGIN_* env vars; port 5000 by default.
"""
import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from line_login.config import ClientConfig
from line_login.errors import LineLoginError, ProviderError, ProviderRequestError
from line_login.flow import LineLogin
from line_login.models import TokenResponse

logger = logging.getLogger(__name__)

TOKENS_KEY = "line_tokens"

# Session cookie lifetime; also bounds how long a pending state/nonce survives
SESSION_MAX_AGE = int(os.environ.get("LINE_LOGIN_SESSION_MAX_AGE", "1800"))

config = ClientConfig.from_env()
login = LineLogin(config)

app = FastAPI(title="LINE Login sample", version="0.1.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("LINE_LOGIN_SESSION_SECRET") or config.channel_secret,
    max_age=SESSION_MAX_AGE,
    same_site="lax",
)


def _store_tokens(request: Request, tokens: TokenResponse) -> None:
    request.session[TOKENS_KEY] = {
        "access_token": tokens.access_token,
        "token_type": tokens.token_type,
        "expires_in": tokens.expires_in,
        "scope": tokens.scope,
        "refresh_token": tokens.refresh_token,
        "issued_at": tokens.issued_at,
    }


def _load_tokens(request: Request) -> TokenResponse | None:
    data = request.session.get(TOKENS_KEY)
    if not data:
        return None
    return TokenResponse(**data)


def on_login_success(request: Request, tokens: TokenResponse):
    _store_tokens(request, tokens)
    return JSONResponse(tokens.to_dict())


def on_login_failure(request: Request, error: LineLoginError):
    status_code = 502 if isinstance(error, ProviderRequestError) else 400
    return JSONResponse(
        {"error": error.__class__.__name__, "error_description": str(error)},
        status_code=status_code,
    )


app.include_router(login.router(on_login_success, on_login_failure), prefix="/login", tags=["login"])


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "line_login"}


@app.get("/profile")
def profile(request: Request):
    """
    Profile and friendship status for the logged-in user.
    Refreshes the access token first if it is expired or about to expire.
    """
    tokens = _load_tokens(request)
    if tokens is None:
        return JSONResponse({"error": "not_logged_in"}, status_code=401)

    if tokens.access_token_expired_or_soon(buffer_seconds=60):
        if not tokens.refresh_token:
            request.session.pop(TOKENS_KEY, None)
            return JSONResponse({"error": "token_expired"}, status_code=401)
        try:
            tokens = login.refresh_access_token(tokens.refresh_token)
        except ProviderError as e:
            logger.info("Token refresh failed: %s", e)
            request.session.pop(TOKENS_KEY, None)
            return JSONResponse({"error": "refresh_failed", "error_description": str(e)}, status_code=401)
        _store_tokens(request, tokens)

    try:
        user = login.get_user_profile(tokens.access_token)
        friendship = login.get_friendship_status(tokens.access_token)
    except ProviderError as e:
        status_code = 401 if e.status_code == 401 else 502
        return JSONResponse({"error": "provider_error", "error_description": str(e)}, status_code=status_code)

    return {
        "user_id": user.user_id,
        "display_name": user.display_name,
        "picture_url": user.picture_url,
        "status_message": user.status_message,
        "friend_flag": friendship.friend_flag,
    }


@app.get("/logout")
def logout(request: Request):
    """Revoke the access token (best effort) and clear the session."""
    tokens = _load_tokens(request)
    if tokens is not None:
        try:
            login.revoke_access_token(tokens.access_token)
        except ProviderError as e:
            logger.info("Token revoke failed: %s", e)
    request.session.clear()
    return {"status": "logged_out"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "line_login.main:app",
        host="127.0.0.1",
        port=int(os.environ.get("PORT", "5000")),
        reload=True,
    )
