"""
Typed payloads returned by the LINE Login API and the callback flow.
"""
import time
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class IdentityClaims:
    """Decoded, verified ID token payload."""

    iss: str
    sub: str
    aud: str
    exp: int
    iat: int
    nonce: str | None = None
    name: str | None = None
    picture: str | None = None
    email: str | None = None
    amr: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "IdentityClaims":
        return cls(
            iss=payload["iss"],
            sub=payload["sub"],
            aud=payload["aud"],
            exp=payload["exp"],
            iat=payload["iat"],
            nonce=payload.get("nonce"),
            name=payload.get("name"),
            picture=payload.get("picture"),
            email=payload.get("email"),
            amr=list(payload.get("amr") or []),
            raw=dict(payload),
        )


@dataclass
class TokenResponse:
    """
    Result of an authorization_code or refresh_token grant.
    id_token is the raw compact JWT until the flow verifies it, then IdentityClaims.
    """

    access_token: str
    token_type: str
    expires_in: int
    scope: str = ""
    refresh_token: str | None = None
    id_token: str | IdentityClaims | None = None
    issued_at: float = field(default_factory=time.time)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "TokenResponse":
        return cls(
            access_token=data["access_token"],
            token_type=data.get("token_type", "Bearer"),
            expires_in=int(data.get("expires_in", 0)),
            scope=data.get("scope", ""),
            refresh_token=data.get("refresh_token") or None,
            id_token=data.get("id_token") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if isinstance(self.id_token, IdentityClaims):
            data["id_token"] = self.id_token.raw
        return data

    def access_token_expired_or_soon(self, buffer_seconds: int = 60) -> bool:
        """
        True if access token is expired or within buffer_seconds of expiry (for proactive refresh).
        When token lifetime is shorter than buffer_seconds, only return True when actually expired.
        """
        elapsed = time.time() - self.issued_at
        if elapsed >= self.expires_in:
            return True
        if self.expires_in > buffer_seconds and elapsed >= (self.expires_in - buffer_seconds):
            return True
        return False


@dataclass
class AccessTokenInfo:
    scope: str
    client_id: str
    expires_in: int

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "AccessTokenInfo":
        return cls(
            scope=data.get("scope", ""),
            client_id=data["client_id"],
            expires_in=int(data.get("expires_in", 0)),
        )


@dataclass
class Profile:
    user_id: str
    display_name: str
    picture_url: str | None = None
    status_message: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Profile":
        return cls(
            user_id=data["userId"],
            display_name=data.get("displayName", ""),
            picture_url=data.get("pictureUrl"),
            status_message=data.get("statusMessage"),
        )


@dataclass
class FriendshipStatus:
    friend_flag: bool

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "FriendshipStatus":
        return cls(friend_flag=bool(data.get("friendFlag", False)))
