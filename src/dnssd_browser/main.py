"""
DNS-SD Browser Main Entry Point

This module wires the configuration, logging, multicast transport, browser
and status web interface together and provides the command line interface.
"""

import argparse
import asyncio
import platform
import signal
import sys
from typing import Any, Dict, List, Optional

from .config.loader import ConfigLoader
from .config.schema import AppConfig, BrowserConfig
from .core.browser import Browser
from .core.service import ServiceRecord
from .dns_logging import ServiceEventLogger, get_logger, log_exception, setup_logging
from .transport.multicast import MulticastRecordSource
from .web import WebServer


class BrowserApp:
    """DNS-SD Browser Application"""

    def __init__(
        self,
        config_path: Optional[str] = None,
        browser_overrides: Optional[Dict[str, Any]] = None,
    ):
        self.config_path = config_path
        self.browser_overrides = browser_overrides or {}
        self.config: Optional[AppConfig] = None
        self.record_source: Optional[MulticastRecordSource] = None
        self.browser: Optional[Browser] = None
        self.event_logger: Optional[ServiceEventLogger] = None
        self.web_server: Optional[WebServer] = None
        self.logger = get_logger("dnssd_browser_app")
        self._shutdown_event: Optional[asyncio.Event] = None
        self._tasks: List[asyncio.Task] = []

    def initialize(self) -> None:
        """Load configuration and build the components"""
        self.config = ConfigLoader(self.config_path).load_config()
        if self.browser_overrides:
            browser_dict = {
                "type": self.config.browser.type,
                "name": self.config.browser.name,
                "protocol": self.config.browser.protocol,
                "subtypes": self.config.browser.subtypes,
                "txt": self.config.browser.txt,
            }
            browser_dict.update(self.browser_overrides)
            self.config.browser = BrowserConfig.from_dict(browser_dict)

        setup_logging(self.config.logging)
        self.logger = get_logger("dnssd_browser_app")

        self.record_source = MulticastRecordSource(self.config.transport)
        self.browser = Browser(self.record_source, self.config.browser, autostart=False)

        log_config = self.config.logging
        self.event_logger = ServiceEventLogger(
            event_log_file=log_config.event_log_file,
            max_recent_events=log_config.max_recent_events,
            max_size_mb=log_config.max_size_mb,
            backup_count=log_config.backup_count,
        )
        self.event_logger.attach(self.browser)

        if self.config.web.enabled:
            self.web_server = WebServer(self.config.web, self)

        self.logger.info(
            "DNS-SD browser initialized",
            query_name=self.browser.name,
            wildcard=self.browser.wildcard,
            txt_query=self.browser.txt_query,
            web_enabled=self.web_server is not None,
        )

    async def run(self, timeout: Optional[float] = None) -> List[ServiceRecord]:
        """Browse until a shutdown signal or ``timeout`` seconds elapse.

        Returns the services known when browsing ended.
        """
        if self.browser is None:
            self.initialize()

        self._shutdown_event = asyncio.Event()

        try:
            await self.start()

            loop = asyncio.get_running_loop()
            if platform.system() != "Windows":
                for sig in [signal.SIGTERM, signal.SIGINT]:
                    loop.add_signal_handler(sig, self.request_shutdown)

            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout)
            except asyncio.TimeoutError:
                self.logger.debug("Browse timeout reached", timeout=timeout)

            return self.browser.services

        except Exception as e:
            log_exception(self.logger, "Error running DNS-SD browser", e)
            raise
        finally:
            await self.stop()

    async def start(self) -> None:
        """Open the transport, start browsing and the maintenance loops"""
        await self.record_source.start()
        self.browser.start()

        if self.web_server:
            await self.web_server.start()

        discovery = self.config.discovery
        self._tasks = [
            asyncio.create_task(
                self._periodic(self.browser.refresh_query, discovery.refresh_interval)
            ),
            asyncio.create_task(
                self._periodic(self.browser.expire, discovery.expire_interval)
            ),
        ]

        self.logger.info(
            "DNS-SD browser started",
            query_name=self.browser.name,
            refresh_interval=discovery.refresh_interval,
            expire_interval=discovery.expire_interval,
        )

    async def _periodic(self, action, interval: float) -> None:
        """Run a browser maintenance action every ``interval`` seconds"""
        while True:
            try:
                await asyncio.sleep(interval)
                action()
            except asyncio.CancelledError:
                break
            except Exception as e:
                log_exception(self.logger, "Error in maintenance loop", e)

    async def stop(self) -> None:
        """Stop browsing and release the transport"""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        if self.web_server:
            await self.web_server.stop()

        if self.browser:
            self.browser.stop()

        if self.record_source:
            await self.record_source.stop()

        if self.event_logger:
            self.event_logger.close()

        self.logger.info("DNS-SD browser stopped")

    def request_shutdown(self) -> None:
        """Handle shutdown signals"""
        self.logger.info("Received shutdown signal")
        if self._shutdown_event is not None:
            self._shutdown_event.set()


def parse_txt_arguments(items: Optional[List[str]]) -> Optional[Dict[str, Any]]:
    """Parse ``--txt`` arguments.

    ``key=value`` requires a value, ``key`` requires presence and ``!key``
    requires absence.
    """
    if not items:
        return None

    txt: Dict[str, Any] = {}
    for item in items:
        if item.startswith("!"):
            txt[item[1:]] = None
        elif "=" in item:
            key, value = item.split("=", 1)
            txt[key] = value
        else:
            txt[item] = True
    return txt


def format_services_table(services: List[ServiceRecord]) -> str:
    """Render services as a plain text table"""
    if not services:
        return "No services found"

    rows = [("NAME", "TYPE", "HOST", "PORT", "ADDRESSES")]
    for service in services:
        rows.append(
            (
                service.name or "",
                f"_{service.type}._{service.protocol}",
                service.host or "",
                str(service.port),
                ", ".join(service.addresses),
            )
        )

    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    return "\n".join(
        "  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip()
        for row in rows
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DNS-SD service browser")
    parser.add_argument("--config", "-c", default=None, help="Configuration file path")
    parser.add_argument(
        "--type", "-t", default=None, help="Service type, e.g. http (default: all)"
    )
    parser.add_argument(
        "--protocol", "-p", choices=["tcp", "udp"], default=None, help="Protocol"
    )
    parser.add_argument("--name", "-n", default=None, help="Instance name")
    parser.add_argument(
        "--txt",
        action="append",
        metavar="KEY[=VALUE]",
        help="TXT filter: key=value, key (present) or !key (absent)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Browse for this many seconds, print the services and exit",
    )
    return parser


def browser_overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.type is not None:
        overrides["type"] = args.type
    if args.protocol is not None:
        overrides["protocol"] = args.protocol
    if args.name is not None:
        overrides["name"] = args.name
    txt = parse_txt_arguments(args.txt)
    if txt is not None:
        overrides["txt"] = txt
    return overrides


def run_event_loop(coro):
    """Run a coroutine on uvloop where available for the platform"""
    if platform.system() != "Windows":
        import uvloop

        return uvloop.run(coro)
    return asyncio.run(coro)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = build_parser().parse_args(argv)

    try:
        app = BrowserApp(args.config, browser_overrides_from_args(args))
        app.initialize()
    except (FileNotFoundError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    try:
        services = run_event_loop(app.run(timeout=args.timeout))
    except KeyboardInterrupt:
        print("\nDNS-SD browser interrupted")
        return 0
    except Exception as e:
        print(f"DNS-SD browser failed: {e}", file=sys.stderr)
        return 1

    if args.timeout is not None:
        print(format_services_table(services))
    return 0


if __name__ == "__main__":
    sys.exit(main())
