"""
ID token verification (HS256 signed with the channel secret).
The algorithm is pinned; the token's own alg header is never trusted.
"""
import logging

import jwt

from line_login.config import LINE_ISSUER
from line_login.errors import IdTokenVerificationError
from line_login.models import IdentityClaims

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["iss", "sub", "aud", "exp", "iat"]


def verify_id_token(
    token: str,
    channel_secret: str,
    audience: str,
    issuer: str = LINE_ISSUER,
    leeway: int = 0,
) -> IdentityClaims:
    """
    Verify signature, algorithm, audience, issuer and expiry; return decoded claims.
    The nonce is not checked here; the expected value is session-scoped.
    """
    try:
        payload = jwt.decode(
            token,
            channel_secret,
            algorithms=[ALGORITHM],
            audience=audience,
            issuer=issuer,
            leeway=leeway,
            options={
                "require": REQUIRED_CLAIMS,
                "verify_signature": True,
                "verify_exp": True,
                "verify_aud": True,
                "verify_iss": True,
            },
        )
    except jwt.ExpiredSignatureError:
        raise IdTokenVerificationError("expired") from None
    except jwt.InvalidAudienceError:
        raise IdTokenVerificationError("invalid audience") from None
    except jwt.InvalidIssuerError:
        raise IdTokenVerificationError("invalid issuer") from None
    except jwt.InvalidAlgorithmError:
        raise IdTokenVerificationError("algorithm not allowed") from None
    except jwt.InvalidSignatureError:
        raise IdTokenVerificationError("invalid signature") from None
    except jwt.InvalidTokenError as e:
        logger.debug("ID token verification failed: %s", e)
        raise IdTokenVerificationError(e.__class__.__name__) from None
    return IdentityClaims.from_payload(payload)
