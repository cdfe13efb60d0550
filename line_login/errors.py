"""
Error taxonomy for the LINE Login client.
Config errors are fatal at construction; flow and provider errors are routed to the failure handler.
"""


class LineLoginError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(LineLoginError, ValueError):
    """Missing required parameter, unknown parameter, or invalid value."""


class FlowError(LineLoginError):
    """The callback could not be resolved to a successful login."""


class AuthorizationFailedError(FlowError):
    def __init__(self, message: str = "Authorization failed."):
        super().__init__(message)


class StateMismatchError(FlowError):
    def __init__(self, message: str = "Authorization failed. State does not match."):
        super().__init__(message)


class IdTokenVerificationError(FlowError):
    """ID token signature, algorithm, audience, issuer or expiry check failed."""

    def __init__(self, reason: str = "", message: str = "Verification of id token failed."):
        super().__init__(message)
        self.reason = reason


class NonceMismatchError(IdTokenVerificationError):
    """Signature and claims are valid but the nonce is not the one issued for this session."""

    def __init__(self):
        super().__init__(
            reason="nonce mismatch",
            message="Verification of id token failed. Nonce does not match.",
        )


class ProviderError(LineLoginError):
    """
    Non-200 response from a provider endpoint.
    The message is the provider's HTTP reason phrase (e.g. "Bad Request"), not the body.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderRequestError(ProviderError):
    """Transport failure or timeout; the user has to restart the flow."""
