"""
Jukebox HTTP server.

UI boundary: exposes the playback snapshot and the player commands as a
small JSON API, and handles the Spotify login redirect.
"""

import json
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from aiohttp import web

from jukebox.auth import AuthenticationError, AuthMissingError
from jukebox.playback import PlaybackSnapshot

if TYPE_CHECKING:
    from jukebox.app import Jukebox

logger = logging.getLogger(__name__)

# The token arrives in the URL fragment, which browsers never send to the
# server. This page hands it back to /api/token.
CALLBACK_PAGE = """<!DOCTYPE html>
<html>
<head><title>Indie Rock Jukebox</title></head>
<body>
<p id="status">Logging in...</p>
<script>
fetch("/api/token", {
  method: "POST",
  headers: {"Content-Type": "application/json"},
  body: JSON.stringify({fragment: window.location.hash})
}).then(function (resp) {
  document.getElementById("status").textContent =
    resp.ok ? "Logged in. You can close this page." : "Login failed.";
});
</script>
</body>
</html>
"""


class JukeboxWebServer:
    """
    Serves the jukebox JSON API.

    Routes:
        GET    /api/state     current snapshot
        POST   /api/next      skip forward
        POST   /api/previous  skip back
        POST   /api/toggle    pause / resume
        GET    /login         redirect to the Spotify authorize page
        GET    /callback      authorize redirect target
        POST   /api/token     accept a token (fragment or access_token)
        DELETE /api/token     log out
    """

    def __init__(self, jukebox: "Jukebox", host: str = "127.0.0.1", port: int = 8700):
        """
        Initialize server.

        Args:
            jukebox: Application whose state and commands are exposed
            host: Bind address
            port: HTTP port
        """
        self.jukebox = jukebox
        self.host = host
        self.port = port

        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    def create_app(self) -> web.Application:
        """Build the aiohttp application with all routes."""
        app = web.Application()
        app.router.add_get("/api/state", self._handle_state)
        app.router.add_post("/api/next", self._handle_next)
        app.router.add_post("/api/previous", self._handle_previous)
        app.router.add_post("/api/toggle", self._handle_toggle)
        app.router.add_get("/login", self._handle_login)
        app.router.add_get("/callback", self._handle_callback)
        app.router.add_post("/api/token", self._handle_set_token)
        app.router.add_delete("/api/token", self._handle_clear_token)
        return app

    async def start(self) -> None:
        """Start aiohttp server."""
        self._app = self.create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        logger.info(f"HTTP server listening on {self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop aiohttp server."""
        if self._site:
            await self._site.stop()
            self._site = None
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        logger.info("HTTP server stopped")

    # -------------------------------------------------------------------------
    # State and Commands
    # -------------------------------------------------------------------------

    async def _handle_state(self, request: web.Request) -> web.Response:
        """GET /api/state"""
        return web.json_response(self.jukebox.snapshot().to_dict())

    async def _handle_next(self, request: web.Request) -> web.Response:
        """POST /api/next"""
        return await self._run_command(self.jukebox.next)

    async def _handle_previous(self, request: web.Request) -> web.Response:
        """POST /api/previous"""
        return await self._run_command(self.jukebox.previous)

    async def _handle_toggle(self, request: web.Request) -> web.Response:
        """POST /api/toggle"""
        return await self._run_command(self.jukebox.toggle_play_pause)

    async def _run_command(
        self, command: Callable[[], Awaitable[PlaybackSnapshot]]
    ) -> web.Response:
        """Run a player command and answer with the resulting snapshot."""
        try:
            snapshot = await command()
        except AuthMissingError as e:
            return web.json_response({"error": str(e)}, status=401)
        return web.json_response(snapshot.to_dict())

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    async def _handle_login(self, request: web.Request) -> web.Response:
        """
        GET /login

        Redirects to the Spotify authorize page.
        """
        try:
            url = self.jukebox.login_url()
        except AuthenticationError as e:
            return web.json_response({"error": str(e)}, status=400)
        raise web.HTTPFound(url)

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """GET /callback"""
        if "error" in request.query:
            logger.warning(f"Login denied: {request.query['error']}")
            return web.Response(text=f"Login failed: {request.query['error']}", status=400)
        return web.Response(text=CALLBACK_PAGE, content_type="text/html")

    async def _handle_set_token(self, request: web.Request) -> web.Response:
        """
        POST /api/token

        Accepts ``{"fragment": "#access_token=..."}`` or
        ``{"access_token": "..."}``.
        """
        try:
            data = await request.json()
        except json.JSONDecodeError:
            return web.json_response({"error": "Invalid JSON"}, status=400)
        if not isinstance(data, dict):
            return web.json_response({"error": "Invalid JSON"}, status=400)

        fragment = data.get("fragment")
        if not fragment and data.get("access_token"):
            fragment = f"access_token={data['access_token']}"

        try:
            await self.jukebox.set_token_from_fragment(str(fragment or ""))
        except AuthenticationError as e:
            logger.error(f"Login failed: {e}")
            return web.json_response({"error": str(e)}, status=400)

        logger.info("Logged in")
        return web.json_response(self.jukebox.snapshot().to_dict())

    async def _handle_clear_token(self, request: web.Request) -> web.Response:
        """DELETE /api/token"""
        await self.jukebox.clear_token()
        return web.json_response(self.jukebox.snapshot().to_dict())
