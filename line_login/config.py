"""
LINE Login client configuration.
Provider endpoints are fixed (API v2.1); channel credentials come from options or env.
"""
import os
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping

from line_login.errors import ConfigError

API_VERSION = "v2.1"

# Issuer of ID tokens (iss claim)
LINE_ISSUER = "https://access.line.me"

AUTHORIZE_URL = f"https://access.line.me/oauth2/{API_VERSION}/authorize"
TOKEN_URL = f"https://api.line.me/oauth2/{API_VERSION}/token"
VERIFY_URL = f"https://api.line.me/oauth2/{API_VERSION}/verify"
REVOKE_URL = f"https://api.line.me/oauth2/{API_VERSION}/revoke"
PROFILE_URL = "https://api.line.me/v2/profile"
FRIENDSHIP_STATUS_URL = "https://api.line.me/friendship/v1/status"

DEFAULT_SCOPE = "profile openid"

# Seconds per provider round trip
DEFAULT_TIMEOUT = 10.0

# Allowed clock skew (seconds) for ID token exp/iat checks
DEFAULT_ID_TOKEN_LEEWAY = 10

REQUIRED_OPTIONS = ("channel_id", "channel_secret", "callback_url")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _env_number(raw: str, message: str) -> float | None:
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(message) from None


class BotPrompt(str, Enum):
    """Whether the login screen offers to add the channel's bot as a friend."""

    NORMAL = "normal"
    AGGRESSIVE = "aggressive"


@dataclass(frozen=True)
class ClientConfig:
    channel_id: str
    channel_secret: str
    callback_url: str
    scope: str = DEFAULT_SCOPE
    prompt: str | None = None
    bot_prompt: BotPrompt = BotPrompt.NORMAL
    verify_id_token: bool = True
    timeout: float = DEFAULT_TIMEOUT
    id_token_leeway: float = DEFAULT_ID_TOKEN_LEEWAY

    def __post_init__(self):
        for name in REQUIRED_OPTIONS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"Required parameter {name} is missing.")
        if not self.scope or not self.scope.strip():
            raise ConfigError("scope must not be empty.")
        try:
            # frozen dataclass: normalize via object.__setattr__
            object.__setattr__(self, "bot_prompt", BotPrompt(self.bot_prompt))
        except ValueError:
            allowed = ", ".join(b.value for b in BotPrompt)
            raise ConfigError(f"bot_prompt must be one of: {allowed}.") from None
        if not _is_number(self.timeout) or self.timeout <= 0:
            raise ConfigError("timeout must be a positive number of seconds.")
        if not _is_number(self.id_token_leeway) or self.id_token_leeway < 0:
            raise ConfigError("id_token_leeway must be a non-negative number of seconds.")

    @property
    def scope_set(self) -> set[str]:
        return set(self.scope.split())

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ClientConfig":
        """
        Build config from a plain mapping of options.
        Unknown keys and missing required keys are rejected with a message naming the key.
        """
        known = {f.name for f in fields(cls)}
        for key in options:
            if key not in known:
                raise ConfigError(f"{key} is not a valid parameter.")
        for name in REQUIRED_OPTIONS:
            if not options.get(name):
                raise ConfigError(f"Required parameter {name} is missing.")
        # None means "use the default" for optional keys
        values = {k: v for k, v in options.items() if v is not None}
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ClientConfig":
        """Read LINE_LOGIN_* environment variables."""
        env = os.environ if environ is None else environ
        verify = env.get("LINE_LOGIN_VERIFY_ID_TOKEN", "true").strip().lower()
        timeout = env.get("LINE_LOGIN_TIMEOUT", "").strip()
        leeway = env.get("LINE_LOGIN_ID_TOKEN_LEEWAY", "").strip()
        return cls.from_options(
            {
                "channel_id": env.get("LINE_LOGIN_CHANNEL_ID", ""),
                "channel_secret": env.get("LINE_LOGIN_CHANNEL_SECRET", ""),
                "callback_url": env.get("LINE_LOGIN_CALLBACK_URL", ""),
                "scope": env.get("LINE_LOGIN_SCOPE") or None,
                "prompt": env.get("LINE_LOGIN_PROMPT") or None,
                "bot_prompt": env.get("LINE_LOGIN_BOT_PROMPT") or None,
                "verify_id_token": verify not in ("0", "false", "no", "off"),
                "timeout": _env_number(timeout, "timeout must be a positive number of seconds."),
                "id_token_leeway": _env_number(leeway, "id_token_leeway must be a non-negative number of seconds."),
            }
        )
