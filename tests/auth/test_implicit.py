"""Tests for the implicit-grant login helpers."""

from urllib.parse import parse_qs, urlparse

from jukebox.auth import build_authorize_url, parse_redirect_fragment, token_from_fragment
from jukebox.auth.implicit import AUTHORIZE_URL
from jukebox.config import DEFAULT_SCOPES


class TestBuildAuthorizeUrl:
    """Tests for build_authorize_url."""

    def test_parameters(self) -> None:
        url = build_authorize_url("client-1", "http://localhost:8700/callback", DEFAULT_SCOPES)

        assert url.startswith(AUTHORIZE_URL + "?")
        query = parse_qs(urlparse(url).query)
        assert query["client_id"] == ["client-1"]
        assert query["redirect_uri"] == ["http://localhost:8700/callback"]
        assert query["response_type"] == ["token"]
        assert query["show_dialog"] == ["true"]
        assert query["scope"] == [" ".join(DEFAULT_SCOPES)]

    def test_scopes(self) -> None:
        """Test that the playback scopes are requested."""
        assert "user-modify-playback-state" in DEFAULT_SCOPES
        assert "user-read-playback-state" in DEFAULT_SCOPES
        assert "streaming" in DEFAULT_SCOPES


class TestParseRedirectFragment:
    """Tests for parse_redirect_fragment."""

    def test_decodes_pairs(self) -> None:
        params = parse_redirect_fragment("#access_token=abc&token_type=Bearer&expires_in=3600")

        assert params == {"access_token": "abc", "token_type": "Bearer", "expires_in": "3600"}

    def test_without_hash(self) -> None:
        assert parse_redirect_fragment("a=1") == {"a": "1"}

    def test_percent_decoding(self) -> None:
        assert parse_redirect_fragment("state=a%20b") == {"state": "a b"}

    def test_empty(self) -> None:
        assert parse_redirect_fragment("") == {}
        assert parse_redirect_fragment("#") == {}

    def test_key_without_value(self) -> None:
        assert parse_redirect_fragment("flag&a=1") == {"flag": "", "a": "1"}


class TestTokenFromFragment:
    """Tests for token_from_fragment."""

    def test_token(self) -> None:
        token = token_from_fragment("#access_token=abc&token_type=Bearer")

        assert token is not None
        assert token.access_token == "abc"

    def test_no_token(self) -> None:
        """Test that an error redirect yields no token."""
        assert token_from_fragment("#error=access_denied") is None
