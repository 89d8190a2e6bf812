from __future__ import annotations


class AuthError(RuntimeError):
    status_code = 500

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__name__)


class ConfigurationError(AuthError):
    status_code = 500


class ProviderNotConfigured(ConfigurationError):
    pass


class ClientInputError(AuthError):
    status_code = 400


class MissingRedirectUri(ClientInputError):
    pass


class InvalidRedirectUri(ClientInputError):
    pass


class InvalidCallback(ClientInputError):
    pass


class InvalidAuthResponse(ClientInputError):
    pass


class UnknownProvider(ClientInputError):
    status_code = 404


class VerificationError(AuthError):
    """A signed value failed verification. Messages never echo the value."""

    status_code = 401


class MalformedEncoding(VerificationError):
    pass


class InvalidSignature(VerificationError):
    pass


class MalformedState(VerificationError):
    pass


class MalformedClaims(VerificationError):
    pass


class UnsupportedAlgorithm(VerificationError):
    pass


class Expired(VerificationError):
    pass


class EmptySubject(VerificationError):
    pass


class UpstreamError(AuthError):
    status_code = 500


class ExchangeFailed(UpstreamError):
    pass


class MissingIdToken(ExchangeFailed):
    pass


class IdTokenValidationFailed(ExchangeFailed):
    pass
