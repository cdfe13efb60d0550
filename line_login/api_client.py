"""
HTTP client for LINE Login API endpoints: token exchange, refresh, verify, revoke, profile, friendship.
Every call is a single round trip with a bounded timeout; nothing is retried here.
"""
import logging
from typing import Any

import httpx

from line_login.config import (
    FRIENDSHIP_STATUS_URL,
    PROFILE_URL,
    REVOKE_URL,
    TOKEN_URL,
    VERIFY_URL,
    ClientConfig,
)
from line_login.errors import ProviderError, ProviderRequestError
from line_login.models import AccessTokenInfo, FriendshipStatus, Profile, TokenResponse

logger = logging.getLogger(__name__)


def _check(r: httpx.Response, endpoint: str) -> None:
    """Non-200 -> ProviderError carrying the provider's status text, not the body."""
    if r.status_code != 200:
        reason = r.reason_phrase or f"HTTP {r.status_code}"
        logger.debug("%s returned %s %s", endpoint, r.status_code, reason)
        raise ProviderError(reason, status_code=r.status_code)


def _parse(r: httpx.Response, endpoint: str, model: Any) -> Any:
    """200 body -> model.from_json; a malformed body is a ProviderError like any other bad response."""
    _check(r, endpoint)
    try:
        return model.from_json(r.json())
    except (AttributeError, KeyError, TypeError, ValueError):
        logger.debug("%s returned a malformed body", endpoint)
        raise ProviderError(f"Invalid response from {endpoint}", status_code=r.status_code) from None


class LineApiClient:
    """Stateless wrapper around the provider endpoints for one channel."""

    def __init__(self, config: ClientConfig):
        self.config = config

    def _post(self, url: str, data: dict[str, str]) -> httpx.Response:
        try:
            return httpx.post(
                url,
                data=data,
                headers={"Accept": "application/json"},
                timeout=self.config.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("POST %s failed: %s", url, e.__class__.__name__)
            raise ProviderRequestError(f"Request to {url} failed: {e.__class__.__name__}") from e

    def _get(self, url: str, *, params: dict[str, str] | None = None, access_token: str | None = None) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            return httpx.get(url, params=params, headers=headers, timeout=self.config.timeout)
        except httpx.HTTPError as e:
            logger.warning("GET %s failed: %s", url, e.__class__.__name__)
            raise ProviderRequestError(f"Request to {url} failed: {e.__class__.__name__}") from e

    def exchange_code(self, code: str) -> TokenResponse:
        """
        authorization_code grant. The code is single-use at the provider,
        so callers must not retry after a definitive rejection.
        """
        r = self._post(
            TOKEN_URL,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.config.callback_url,
                "client_id": self.config.channel_id,
                "client_secret": self.config.channel_secret,
            },
        )
        return _parse(r, "token", TokenResponse)

    def refresh(self, refresh_token: str) -> TokenResponse:
        """refresh_token grant. Keeps the prior refresh token when the provider omits a new one."""
        r = self._post(
            TOKEN_URL,
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.config.channel_id,
                "client_secret": self.config.channel_secret,
            },
        )
        tokens = _parse(r, "token", TokenResponse)
        if not tokens.refresh_token:
            tokens.refresh_token = refresh_token
        return tokens

    def verify(self, access_token: str) -> AccessTokenInfo:
        r = self._get(VERIFY_URL, params={"access_token": access_token})
        return _parse(r, "verify", AccessTokenInfo)

    def revoke(self, access_token: str) -> None:
        """Success is status 200 alone; the body is ignored."""
        r = self._post(
            REVOKE_URL,
            {
                "access_token": access_token,
                "client_id": self.config.channel_id,
                "client_secret": self.config.channel_secret,
            },
        )
        _check(r, "revoke")
        return None

    def get_profile(self, access_token: str) -> Profile:
        r = self._get(PROFILE_URL, access_token=access_token)
        return _parse(r, "profile", Profile)

    def get_friendship_status(self, access_token: str) -> FriendshipStatus:
        r = self._get(FRIENDSHIP_STATUS_URL, access_token=access_token)
        return _parse(r, "friendship", FriendshipStatus)
