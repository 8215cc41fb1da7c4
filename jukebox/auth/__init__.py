"""
Spotify authentication module.

Handles the implicit-grant login redirect and bearer token persistence.
"""

from .exceptions import AuthenticationError, AuthMissingError
from .implicit import (
    build_authorize_url,
    parse_redirect_fragment,
    token_from_fragment,
)
from .tokens import BearerToken, TokenStore

__all__ = [
    "AuthenticationError",
    "AuthMissingError",
    "BearerToken",
    "TokenStore",
    "build_authorize_url",
    "parse_redirect_fragment",
    "token_from_fragment",
]
