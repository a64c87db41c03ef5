"""Custom exceptions for authentication and the OIDC login flow."""

from fastapi import status


# Credential verification


class AuthenticationError(Exception):
    """Base class for request authentication failures."""

    pass


class MissingCredentialError(AuthenticationError):
    """Raised when the Authorization header is absent or not a Bearer credential."""

    pass


class InvalidCredentialError(AuthenticationError):
    """Raised when a bearer token is present but no verifier accepts it."""

    pass


class InvalidSignatureError(InvalidCredentialError):
    """Raised when a token uses a non-HMAC algorithm or its signature does not verify."""

    pass


class TokenExpiredError(InvalidCredentialError):
    """Raised when a token is past its expiry."""

    pass


class MalformedTokenError(InvalidCredentialError):
    """Raised when a token cannot be decoded or carries invalid claims."""

    pass


# Identity provider (broker) errors


class IdentityProviderError(Exception):
    """Base class for failures talking to the external identity provider."""

    pass


class DiscoveryError(IdentityProviderError):
    """Raised when provider metadata cannot be fetched or is incomplete."""

    pass


class ExchangeError(IdentityProviderError):
    """Raised when the authorization code cannot be exchanged for tokens."""

    pass


class IdentityVerificationError(IdentityProviderError):
    """Raised when an ID token fails signature, issuer, audience or expiry checks."""

    pass


class MalformedSubjectError(IdentityVerificationError):
    """Raised when the ID token subject is not a UUID."""

    pass


class ProfileError(IdentityProviderError):
    """Raised when the user-info endpoint cannot be read."""

    pass


# Login flow errors, each carrying the HTTP status of the callback response


class AuthFlowError(Exception):
    """Base class for callback failures. ``str(exc)`` is the plain-text response body."""

    status_code: int = status.HTTP_400_BAD_REQUEST


class ProviderReportedError(AuthFlowError):
    """Raised when the provider redirects back with an ``error`` parameter."""

    pass


class MissingAuthCodeError(AuthFlowError):
    """Raised when the callback carries no authorization code."""

    pass


class MissingStateError(AuthFlowError):
    """Raised when the callback carries no state parameter."""

    pass


class StateMismatchError(AuthFlowError):
    """Raised when the state cookie is absent or differs from the callback state."""

    pass


class MissingVerifierError(AuthFlowError):
    """Raised when PKCE is enabled but the verifier cookie is absent."""

    pass


class ExchangeFailureError(AuthFlowError):
    """Raised when the code exchange fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MissingIdentityTokenError(AuthFlowError):
    """Raised when the token response has no ``id_token``."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class VerificationFailureError(AuthFlowError):
    """Raised when the ID token from the exchange does not verify."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class SessionIssueError(AuthFlowError):
    """Raised when a session token cannot be issued for an authenticated user."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
