"""
Authorization flow controller: redirect to LINE, validate the callback, exchange the code,
verify the ID token and its nonce. Each LineLogin instance builds its own routers.
"""
import logging
from typing import Any, Callable, Mapping
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse, Response

from line_login.api_client import LineApiClient
from line_login.config import AUTHORIZE_URL, LINE_ISSUER, ClientConfig
from line_login.errors import (
    AuthorizationFailedError,
    ConfigError,
    LineLoginError,
    NonceMismatchError,
    StateMismatchError,
)
from line_login.id_token import verify_id_token
from line_login.models import AccessTokenInfo, FriendshipStatus, Profile, TokenResponse
from line_login.session_store import NONCE_KEY, STATE_KEY, SessionStore, request_session_store
from line_login.tokens import generate_nonce, generate_state, tokens_match

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[Request, TokenResponse], Response]
FailureHandler = Callable[[Request, LineLoginError], Response]


def _first(params: Mapping[str, Any], key: str) -> str | None:
    value = params.get(key)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return value or None


class LineLogin:
    """
    LINE Login for one channel.

    Build with keyword options (validated like ClientConfig.from_options) or a ClientConfig:

        login = LineLogin(channel_id=..., channel_secret=..., callback_url=...)
        app.include_router(login.router(on_success, on_failure), prefix="/login")
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        session_store_factory: Callable[[Request], SessionStore] = request_session_store,
        api_client: LineApiClient | None = None,
        **options: Any,
    ):
        if config is None:
            config = ClientConfig.from_options(options)
        elif options:
            raise ConfigError("Pass either a ClientConfig or keyword options, not both.")
        self.config = config
        self.session_store_factory = session_store_factory
        self.api = api_client or LineApiClient(config)

    # --- Initiate (Idle -> Pending) ---

    def authorization_url(self, state: str, nonce: str) -> str:
        """Build the LINE /authorize URL. Nonce is always sent, whether or not ID tokens are verified."""
        params = {
            "response_type": "code",
            "client_id": self.config.channel_id,
            "redirect_uri": self.config.callback_url,
            "scope": self.config.scope,
            "bot_prompt": self.config.bot_prompt.value,
            "state": state,
        }
        if self.config.prompt:
            params["prompt"] = self.config.prompt
        params["nonce"] = nonce
        return f"{AUTHORIZE_URL}?{urlencode(params, quote_via=quote)}"

    def start(self, store: SessionStore) -> str:
        """Issue a fresh state and nonce, persist them in the session, return the redirect URL."""
        state = generate_state()
        nonce = generate_nonce()
        store.set(STATE_KEY, state)
        store.set(NONCE_KEY, nonce)
        logger.debug("Starting LINE Login for channel %s", self.config.channel_id)
        return self.authorization_url(state, nonce)

    # --- Callback (Pending -> Resolved) ---

    def resolve_callback(self, params: Mapping[str, Any], store: SessionStore) -> TokenResponse:
        """
        Validate callback query params against the session and exchange the code.
        Raises a LineLoginError subclass on any failure. State and nonce are single-use:
        they are deleted once the flow resolves. A callback whose state does not match
        (with or without a code) leaves a genuine pending flow untouched.
        """
        code = _first(params, "code")
        state = _first(params, "state")
        friendship_changed = _first(params, "friendship_status_changed")
        if friendship_changed is not None:
            logger.debug("friendship_status_changed=%s", friendship_changed)

        if not code:
            logger.info("Authorization failed (error=%s)", _first(params, "error"))
            # only a callback carrying our state may end the pending flow
            if tokens_match(store.get(STATE_KEY), state):
                self._clear(store)
            raise AuthorizationFailedError()

        if not tokens_match(store.get(STATE_KEY), state):
            logger.warning("Authorization failed. State does not match.")
            raise StateMismatchError()
        logger.debug("State verified; exchanging authorization code")

        try:
            tokens = self.api.exchange_code(code)
            if self.config.verify_id_token and tokens.id_token:
                claims = verify_id_token(
                    tokens.id_token,
                    self.config.channel_secret,
                    audience=self.config.channel_id,
                    issuer=LINE_ISSUER,
                    leeway=self.config.id_token_leeway,
                )
                if not tokens_match(store.get(NONCE_KEY), claims.nonce):
                    raise NonceMismatchError()
                tokens.id_token = claims
                logger.debug("ID token verified")
        except LineLoginError as e:
            logger.warning("LINE Login callback failed: %s (%s)", e, getattr(e, "reason", ""))
            self._clear(store)
            raise
        self._clear(store)
        logger.info("LINE Login succeeded for channel %s", self.config.channel_id)
        return tokens

    def _clear(self, store: SessionStore) -> None:
        store.delete(STATE_KEY)
        store.delete(NONCE_KEY)

    # --- FastAPI wiring ---

    def router(
        self,
        on_success: SuccessHandler,
        on_failure: FailureHandler | None = None,
        *,
        auth_path: str = "/",
        callback_path: str = "/callback",
    ) -> APIRouter:
        """
        New router owned by this instance. GET auth_path redirects to LINE;
        GET callback_path calls exactly one of on_success / on_failure.
        Without on_failure the error propagates to the app as an unhandled exception.
        """
        router = APIRouter()

        @router.get(auth_path)
        def line_login_auth(request: Request):
            url = self.start(self.session_store_factory(request))
            return RedirectResponse(url=url, status_code=302)

        @router.get(callback_path)
        def line_login_callback(request: Request):
            store = self.session_store_factory(request)
            try:
                tokens = self.resolve_callback(request.query_params, store)
            except LineLoginError as e:
                if on_failure is None:
                    raise
                return on_failure(request, e)
            return on_success(request, tokens)

        return router

    # --- Direct API calls ---

    def get_user_profile(self, access_token: str) -> Profile:
        return self.api.get_profile(access_token)

    def get_friendship_status(self, access_token: str) -> FriendshipStatus:
        return self.api.get_friendship_status(access_token)

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        return self.api.refresh(refresh_token)

    def verify_access_token(self, access_token: str) -> AccessTokenInfo:
        return self.api.verify(access_token)

    def revoke_access_token(self, access_token: str) -> None:
        return self.api.revoke(access_token)
