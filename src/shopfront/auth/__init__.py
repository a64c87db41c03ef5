"""Authentication: session tokens, OIDC login and bearer token verification."""

from shopfront.auth.authenticator import RequestAuthenticator
from shopfront.auth.jwks import JWKSCache
from shopfront.auth.models import AuthType, Principal
from shopfront.auth.oidc import OIDCProvider
from shopfront.auth.session import SessionBootstrapper
from shopfront.auth.session_tokens import SessionTokenIssuer

__all__ = [
    "AuthType",
    "JWKSCache",
    "OIDCProvider",
    "Principal",
    "RequestAuthenticator",
    "SessionBootstrapper",
    "SessionTokenIssuer",
]
