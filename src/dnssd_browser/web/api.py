"""
DNS-SD Browser Web API

Provides read-only REST API endpoints for:
- Health and status
- Currently known services
- Browser and transport statistics
- Recent discovery events
"""

from datetime import datetime, timezone

from aiohttp import web
from aiohttp.web import Request, Response


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def setup_api_routes(app: web.Application, browser_app) -> None:
    """Setup API routes."""
    api = APIHandler(browser_app)

    app.router.add_get("/api/health", api.health_check)
    app.router.add_get("/api/services", api.get_services)
    app.router.add_get("/api/stats", api.get_stats)
    app.router.add_get("/api/events", api.get_events)


class APIHandler:
    """Handles all API endpoints."""

    def __init__(self, browser_app):
        """Initialize API handler.

        Args:
            browser_app: Object exposing ``browser``, ``record_source`` and
                ``event_logger`` attributes
        """
        self.browser_app = browser_app

    def _browser(self):
        return getattr(self.browser_app, "browser", None)

    async def health_check(self, request: Request) -> Response:
        """Report whether the browser is listening."""
        browser = self._browser()
        listening = bool(browser and browser.is_listening)
        return web.json_response(
            {
                "status": "healthy" if listening else "not_running",
                "timestamp": _timestamp(),
            },
            status=200 if listening else 503,
        )

    async def get_services(self, request: Request) -> Response:
        """List services currently known to be online."""
        browser = self._browser()
        if browser is None:
            return web.json_response({"error": "Browser not available"}, status=503)

        service_type = request.query.get("type")
        services = [
            service.to_dict()
            for service in browser.services
            if service_type is None or service.type == service_type
        ]
        return web.json_response(
            {
                "query_name": browser.name,
                "count": len(services),
                "services": services,
                "timestamp": _timestamp(),
            }
        )

    async def get_stats(self, request: Request) -> Response:
        """Browser, transport and event statistics."""
        browser = self._browser()
        if browser is None:
            return web.json_response({"error": "Browser not available"}, status=503)

        record_source = getattr(self.browser_app, "record_source", None)
        event_logger = getattr(self.browser_app, "event_logger", None)
        return web.json_response(
            {
                "browser": browser.get_stats(),
                "transport": (
                    record_source.get_stats()
                    if hasattr(record_source, "get_stats")
                    else {}
                ),
                "events": event_logger.get_stats() if event_logger else {},
                "timestamp": _timestamp(),
            }
        )

    async def get_events(self, request: Request) -> Response:
        """Most recent discovery events, newest first."""
        event_logger = getattr(self.browser_app, "event_logger", None)
        if event_logger is None:
            return web.json_response({"events": [], "count": 0})

        try:
            limit = int(request.query.get("limit", "100"))
        except ValueError:
            return web.json_response({"error": "limit must be an integer"}, status=400)

        events = event_logger.get_recent_events(max(limit, 0))
        return web.json_response({"events": events, "count": len(events)})
