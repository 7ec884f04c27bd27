"""cyon.ch DNS Authenticator errors."""
from certbot import errors


class CyonError(errors.PluginError):
    """Generic cyon.ch error."""


class ConfigurationError(CyonError):
    """Login credentials are missing or cannot be read."""


class AuthenticationError(CyonError):
    """Login or one-time-password verification was rejected."""


class DomainEnvironmentError(CyonError):
    """The domain environment could not be selected."""


class MissedOTPError(CyonError):
    """The portal asked for the second factor instead of handling the request."""

    def __init__(self, message: str = 'missed OTP authentication') -> None:
        super().__init__(message)


class RecordError(CyonError):
    """The TXT record was not created."""
