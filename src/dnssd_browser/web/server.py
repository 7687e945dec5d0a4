"""
DNS-SD Browser Web Interface

This module provides the status web server using aiohttp.
"""

import weakref
from typing import Optional

from aiohttp import web
from aiohttp.web import Application

from ..config.schema import WebConfig
from ..dns_logging import get_logger, log_exception
from .api import setup_api_routes


class WebServer:
    """Status web interface for a running browser"""

    def __init__(self, config: WebConfig, browser_app):
        """Initialize web server.

        Args:
            config: Web configuration
            browser_app: Reference to the browser application
        """
        self.config = config
        # Weak reference to avoid a cycle with the application
        self.browser_app = weakref.proxy(browser_app)
        self.logger = get_logger("web_server")

        self.app: Optional[Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

    def setup_application(self) -> Application:
        """Setup aiohttp application with routes and middleware."""
        app = web.Application(middlewares=[self._create_error_middleware()])
        setup_api_routes(app, self.browser_app)
        return app

    def _create_error_middleware(self):
        """Turn unexpected handler errors into JSON responses."""

        @web.middleware
        async def error_middleware(request, handler):
            try:
                return await handler(request)
            except web.HTTPException:
                raise
            except Exception as e:
                log_exception(self.logger, "Unhandled web API error", e)
                return web.json_response(
                    {"error": f"Internal server error: {e}"}, status=500
                )

        return error_middleware

    async def start(self) -> None:
        """Start the web server."""
        if self.runner is not None:
            return

        self.app = self.setup_application()
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(
            self.runner, host=self.config.bind_address, port=self.config.port
        )
        await self.site.start()

        self.logger.info(
            "Web server started",
            bind_address=self.config.bind_address,
            port=self.config.port,
        )

    async def stop(self) -> None:
        """Stop the web server."""
        if self.runner is None:
            return

        await self.runner.cleanup()
        self.runner = None
        self.site = None
        self.app = None
        self.logger.info("Web server stopped")
