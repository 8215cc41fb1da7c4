"""
Bearer token handling and persistence.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class BearerToken:
    """Spotify access token captured from the implicit-grant redirect."""

    access_token: str = ""
    token_type: str = "Bearer"
    expires_at: int = 0  # Seconds (UTC), 0 when unknown

    def is_valid(self) -> bool:
        """Check if token has the required field."""
        return bool(self.access_token)

    def is_expired(self, buffer_s: int = 60) -> bool:
        """
        Check if token is known to be expired.

        Tokens without an expiry are never reported expired; a stale token
        shows up as collaborator failures instead.
        """
        if not self.access_token:
            return True
        if not self.expires_at:
            return False
        now_s = int(time.time())
        return now_s + buffer_s >= self.expires_at

    @classmethod
    def from_fragment(cls, params: dict[str, str]) -> "BearerToken":
        """Create from parsed redirect fragment parameters."""
        expires_at = 0
        expires_in = params.get("expires_in", "")
        if expires_in.isdigit():
            expires_at = int(time.time()) + int(expires_in)
        return cls(
            access_token=params.get("access_token", ""),
            token_type=params.get("token_type", "Bearer") or "Bearer",
            expires_at=expires_at,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_at": self.expires_at,
        }


class TokenStore:
    """Persists the bearer token in a small JSON file between runs."""

    def __init__(self, path: Path):
        self.path = path.expanduser()

    def load(self) -> Optional[BearerToken]:
        """Load the persisted token, or None if missing or unreadable."""
        try:
            if self.path.exists():
                with open(self.path) as f:
                    data = json.load(f)
                token = BearerToken(
                    access_token=data.get("access_token", ""),
                    token_type=data.get("token_type", "Bearer"),
                    expires_at=int(data.get("expires_at", 0)),
                )
                if token.is_valid():
                    logger.info(f"Loaded token from {self.path}")
                    return token
        except Exception as e:
            logger.warning(f"Failed to load stored token: {e}")
        return None

    def save(self, token: BearerToken) -> bool:
        """Save token to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(token.to_dict(), f, indent=2)
            self.path.chmod(0o600)
            logger.debug(f"Stored token in {self.path}")
            return True
        except Exception as e:
            logger.error(f"Failed to store token: {e}")
            return False

    def clear(self) -> None:
        """Forget the stored token."""
        try:
            self.path.unlink(missing_ok=True)
            logger.info("Stored token cleared")
        except OSError as e:
            logger.warning(f"Failed to remove stored token: {e}")
