"""Tests for bearer token handling and persistence."""

import time
from pathlib import Path

from jukebox.auth import BearerToken, TokenStore


class TestBearerToken:
    """Tests for BearerToken."""

    def test_empty_is_invalid(self) -> None:
        token = BearerToken()
        assert token.is_valid() is False
        assert token.is_expired() is True

    def test_no_expiry_never_expires(self) -> None:
        """Test that a token without known expiry is used until it fails."""
        token = BearerToken(access_token="abc")
        assert token.is_valid() is True
        assert token.is_expired() is False

    def test_expired(self) -> None:
        token = BearerToken(access_token="abc", expires_at=int(time.time()) - 10)
        assert token.is_expired() is True

    def test_expiry_buffer(self) -> None:
        """Test that a token about to expire counts as expired."""
        token = BearerToken(access_token="abc", expires_at=int(time.time()) + 30)
        assert token.is_expired(buffer_s=60) is True
        assert token.is_expired(buffer_s=0) is False

    def test_from_fragment(self) -> None:
        before = int(time.time())
        token = BearerToken.from_fragment(
            {"access_token": "abc", "token_type": "Bearer", "expires_in": "3600"}
        )

        assert token.access_token == "abc"
        assert token.token_type == "Bearer"
        assert before + 3600 <= token.expires_at <= int(time.time()) + 3600

    def test_from_fragment_without_expiry(self) -> None:
        token = BearerToken.from_fragment({"access_token": "abc"})
        assert token.expires_at == 0
        assert token.token_type == "Bearer"


class TestTokenStore:
    """Tests for TokenStore."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        store = TokenStore(tmp_path / "auth" / "token.json")
        token = BearerToken(access_token="abc", expires_at=1234)

        assert store.save(token) is True
        loaded = store.load()

        assert loaded == token

    def test_file_is_private(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        TokenStore(path).save(BearerToken(access_token="abc"))

        assert path.stat().st_mode & 0o777 == 0o600

    def test_load_missing(self, tmp_path: Path) -> None:
        assert TokenStore(tmp_path / "none.json").load() is None

    def test_load_corrupt(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        path.write_text("{not json")

        assert TokenStore(path).load() is None

    def test_load_without_token(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        path.write_text('{"token_type": "Bearer"}')

        assert TokenStore(path).load() is None

    def test_clear(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        store = TokenStore(path)
        store.save(BearerToken(access_token="abc"))

        store.clear()

        assert not path.exists()
        assert store.load() is None

    def test_clear_missing(self, tmp_path: Path) -> None:
        TokenStore(tmp_path / "none.json").clear()
