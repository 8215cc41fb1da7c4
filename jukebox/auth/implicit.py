"""
Spotify implicit-grant login helpers.

The authorize redirect returns the token in the URL fragment
(``#access_token=...&token_type=Bearer&expires_in=3600``).
"""

from typing import Optional
from urllib.parse import unquote, urlencode

from .tokens import BearerToken

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"


def build_authorize_url(client_id: str, redirect_uri: str, scopes: list[str]) -> str:
    """Build the URL the user is sent to for login."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": " ".join(scopes),
        "response_type": "token",
        "show_dialog": "true",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def parse_redirect_fragment(fragment: str) -> dict[str, str]:
    """
    Decode a ``key=value&key=value`` fragment.

    A leading ``#`` is ignored. Parts without ``=`` map to an empty string.
    """
    fragment = fragment.lstrip("#")
    params: dict[str, str] = {}
    for part in fragment.split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        params[key] = unquote(value)
    return params


def token_from_fragment(fragment: str) -> Optional[BearerToken]:
    """Extract a bearer token from a redirect fragment, if present."""
    token = BearerToken.from_fragment(parse_redirect_fragment(fragment))
    return token if token.is_valid() else None
