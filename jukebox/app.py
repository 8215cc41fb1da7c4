"""
Jukebox Application.

Main orchestrator that wires together all components and manages lifecycle.
"""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Optional

from jukebox.auth import (
    AuthenticationError,
    AuthMissingError,
    BearerToken,
    TokenStore,
    build_authorize_url,
    token_from_fragment,
)
from jukebox.catalog import CatalogFetcher
from jukebox.config import Config
from jukebox.device import DeviceBinding, DeviceFactory, PlaybackDevice
from jukebox.playback import PlaybackSnapshot, SessionController
from jukebox.spotify import SpotifyAPIClient
from jukebox.web import JukeboxWebServer

logger = logging.getLogger(__name__)


class Jukebox:
    """
    Main jukebox application.

    Orchestrates all components:
    - Credential (TokenStore, implicit-grant redirect)
    - Catalog (SpotifyAPIClient, CatalogFetcher)
    - Playback (SessionController)
    - Device (PlaybackDevice via DeviceFactory, DeviceBinding)
    - UI boundary (JukeboxWebServer)

    One playback session exists per credential. Clearing the credential tears
    the session down and the jukebox returns to its initial state.

    Usage:
        config = load_config(...)
        app = Jukebox(config)
        await app.run()
    """

    def __init__(self, config: Config):
        """
        Initialize Jukebox.

        Args:
            config: Validated configuration
        """
        self._config = config
        self._is_running = False
        self._shutdown_event = asyncio.Event()
        self._token_store = TokenStore(Path(config.spotify.token_file))
        self._token: Optional[BearerToken] = None

        # Session components (created per credential)
        self._api_client: Optional[SpotifyAPIClient] = None
        self._device: Optional[PlaybackDevice] = None
        self._controller: Optional[SessionController] = None
        self._binding: Optional[DeviceBinding] = None

        # UI boundary (created in start())
        self._web_server: Optional[JukeboxWebServer] = None

    # =========================================================================
    # Credential
    # =========================================================================

    @property
    def has_token(self) -> bool:
        """Check if a credential is present."""
        return self._token is not None and self._token.is_valid()

    @property
    def controller(self) -> Optional[SessionController]:
        """The session controller of the active session, if any."""
        return self._controller

    def login_url(self) -> str:
        """
        Build the Spotify authorize URL for the login redirect.

        Raises:
            AuthenticationError: If no client ID is configured
        """
        if not self._config.spotify.client_id:
            raise AuthenticationError("Spotify client_id is not configured")
        return build_authorize_url(
            self._config.spotify.client_id,
            self._config.spotify.redirect_uri,
            self._config.spotify.scopes,
        )

    async def set_token_from_fragment(self, fragment: str) -> None:
        """
        Accept the credential from an authorize redirect fragment.

        Raises:
            AuthenticationError: If the fragment carries no access token
        """
        token = token_from_fragment(fragment)
        if token is None:
            raise AuthenticationError("No access token in redirect")
        await self.start_session(token)

    async def clear_token(self) -> None:
        """Forget the credential and return to the initial state."""
        await self._teardown_session()
        self._token = None
        self._token_store.clear()
        logger.info("Logged out")

    # =========================================================================
    # Session
    # =========================================================================

    async def start_session(self, token: BearerToken) -> None:
        """
        Start a playback session for a credential.

        Session order:
        1. Persist the credential
        2. API client
        3. Playback device and binding
        4. Queue fetch
        5. Play the first track once the device is ready
        """
        if self._controller is not None:
            await self._teardown_session()

        # 1. Persist credential
        self._token = token
        self._token_store.save(token)

        # 2. API client
        self._api_client = SpotifyAPIClient(token.access_token, market=self._config.spotify.market)
        await self._api_client.open()

        # 3. Device, controller and binding
        self._device = DeviceFactory.create_from_config(self._config, self._api_client)
        self._controller = SessionController(self._api_client, self._device)
        self._binding = DeviceBinding(self._device, self._controller)
        await self._binding.bind()
        logger.info(f"Waiting for device: {self._device.get_info()}")

        # 4. Queue
        fetcher = CatalogFetcher(
            self._api_client,
            search_query=self._config.spotify.search_query,
            fallback_playlist_id=self._config.spotify.fallback_playlist_id,
        )
        if await self._controller.load_queue(fetcher):
            logger.info(f"Queue ready: {len(self._controller.queue or ())} tracks")

        # 5. Device may already be ready
        await self._binding.start_playback_if_ready()

    async def _teardown_session(self) -> None:
        """Stop the device binding and drop all session components."""
        if self._binding:
            try:
                await self._binding.unbind()
            except Exception as e:
                logger.warning(f"Error unbinding device: {e}")

        if self._api_client:
            try:
                await self._api_client.close()
            except Exception as e:
                logger.warning(f"Error closing API client: {e}")

        if self._controller:
            self._controller.reset()

        self._binding = None
        self._controller = None
        self._device = None
        self._api_client = None

    def _require_controller(self) -> SessionController:
        if self._controller is None:
            raise AuthMissingError("Not logged in")
        return self._controller

    # =========================================================================
    # Commands
    # =========================================================================

    async def next(self) -> PlaybackSnapshot:
        """Skip to the next track."""
        await self._require_controller().advance()
        return self.snapshot()

    async def previous(self) -> PlaybackSnapshot:
        """Go back to the previous track."""
        await self._require_controller().retreat()
        return self.snapshot()

    async def toggle_play_pause(self) -> PlaybackSnapshot:
        """Pause or resume playback."""
        await self._require_controller().toggle_play_pause()
        return self.snapshot()

    def snapshot(self) -> PlaybackSnapshot:
        """Get the observable jukebox state."""
        if self._controller is None:
            return PlaybackSnapshot(
                current_track=None,
                is_playing=False,
                is_loading=False,
                error=None,
                has_token=self.has_token,
            )
        return self._controller.snapshot(has_token=self.has_token)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _initial_token(self) -> Optional[BearerToken]:
        """Configured token first, then the stored one."""
        if self._config.spotify.access_token:
            return BearerToken(access_token=self._config.spotify.access_token)

        token = self._token_store.load()
        if token and token.is_expired():
            logger.info("Stored token has expired, login required")
            self._token_store.clear()
            return None
        return token

    async def start(self) -> None:
        """
        Start the jukebox.

        Startup order:
        1. HTTP server (login redirect and controls)
        2. Playback session, if a credential is already available
        """
        logger.info("Starting jukebox...")

        # 1. HTTP server
        self._web_server = JukeboxWebServer(
            self,
            host=self._config.server.bind_address,
            port=self._config.server.http_port,
        )
        await self._web_server.start()
        self._is_running = True

        # 2. Session
        token = self._initial_token()
        if token:
            await self.start_session(token)
        else:
            logger.info(
                f"Not logged in - open http://{self._config.server.bind_address}:"
                f"{self._config.server.http_port}/login"
            )

    async def stop(self) -> None:
        """
        Stop the jukebox.

        Shutdown order (reverse of startup):
        1. Playback session
        2. HTTP server
        """
        if not self._is_running:
            return

        logger.info("Stopping jukebox...")
        self._is_running = False

        # 1. Session
        await self._teardown_session()

        # 2. HTTP server
        if self._web_server:
            try:
                await self._web_server.stop()
            except Exception as e:
                logger.warning(f"Error stopping HTTP server: {e}")

        logger.info("Jukebox stopped")

    async def run(self) -> None:
        """
        Run the jukebox until interrupted.

        Sets up signal handlers for graceful shutdown on SIGINT/SIGTERM.
        """
        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Shutdown signal received")
            self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handle_signal)

        try:
            await self.start()

            # Wait for shutdown signal
            await self._shutdown_event.wait()

        finally:
            await self.stop()

    @property
    def is_running(self) -> bool:
        """Check if the application is running."""
        return self._is_running
