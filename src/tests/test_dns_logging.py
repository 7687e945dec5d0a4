"""
Tests for Logging

This module tests the structured logging setup and the discovery event
logger: structured log configuration, JSON-lines event files and the
in-memory event history.
"""

import json
import logging
import logging.handlers

import structlog
from conftest import announcement, goodbye

from dnssd_browser.config.schema import LoggingConfig
from dnssd_browser.core.events import ServiceEvent, ServiceEventType
from dnssd_browser.core.service import ServiceRecord
from dnssd_browser.dns_logging import (
    EventFileLogger,
    ServiceEventLogger,
    StructuredLogger,
    format_event,
    get_logger,
    log_exception,
    setup_logging,
)


class TestStructuredLogger:
    """Test structured logging framework."""

    def test_structured_logger_creation(self):
        config = LoggingConfig(level="INFO", format="structured")

        logger = StructuredLogger(config)
        assert logger.config == config
        assert not logger._configured

    def test_configuration_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "browser.log"
        config = LoggingConfig(level="DEBUG", file=str(log_file), max_size_mb=1)

        logger = StructuredLogger(config)
        logger.configure()

        assert logger._configured
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(
            isinstance(handler, logging.handlers.RotatingFileHandler)
            for handler in root.handlers
        )
        assert log_file.parent.exists()

        logging.getLogger("dnssd_browser.test").info("written to file")
        for handler in root.handlers:
            handler.flush()

        line = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert line["level"] == "info"
        assert line["logger"] == "dnssd_browser.test"
        assert line["event"] == "written to file"
        assert "timestamp" in line

    def test_file_keeps_structured_fields(self, tmp_path):
        log_file = tmp_path / "browser.log"
        setup_logging(LoggingConfig(level="INFO", file=str(log_file)))

        get_logger("service_events").bind(fqdn="a._http._tcp.local").info(
            "service up", port=80
        )
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert line["event"] == "service up"
        assert line["fqdn"] == "a._http._tcp.local"
        assert line["port"] == 80
        assert line["logger"] == "service_events"
        assert line["level"] == "info"

    def test_file_renders_stdlib_exceptions(self, tmp_path):
        log_file = tmp_path / "browser.log"
        setup_logging(LoggingConfig(level="INFO", file=str(log_file)))

        try:
            raise RuntimeError("listener failed")
        except RuntimeError:
            logging.getLogger("dnssd_browser.core.events").exception("Listener error")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert line["event"] == "Listener error"
        assert "RuntimeError: listener failed" in line["exception"]

    def test_setup_logging_and_get_logger(self):
        setup_logging(LoggingConfig(level="WARNING", format="simple"))

        logger = get_logger("test_component")
        logger.warning("component warning", key="value")

        assert logging.getLogger().level == logging.WARNING

    def test_log_exception(self, capsys):
        setup_logging(LoggingConfig(level="INFO"))
        logger = get_logger("test_component")

        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            log_exception(logger, "Operation failed", e)

        output = capsys.readouterr().out
        assert "Operation failed" in output
        assert "RuntimeError" in output

    def test_log_exception_without_exception(self):
        setup_logging(LoggingConfig(level="INFO"))
        log_exception(get_logger("test_component"), "Nothing to report")

    def teardown_method(self):
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()


def make_service(**overrides) -> ServiceRecord:
    fields = dict(
        name="myprinter",
        fqdn="myprinter._http._tcp.local",
        type="http",
        protocol="tcp",
        host="printer.local",
        port=80,
        addresses=["192.168.1.5"],
        txt={"path": "/"},
        ttl=120,
    )
    fields.update(overrides)
    return ServiceRecord(**fields)


class TestFormatEvent:
    """Test event log entries."""

    def test_up_event(self):
        entry = format_event(ServiceEvent(ServiceEventType.UP, make_service()))

        assert entry["event"] == "up"
        assert entry["fqdn"] == "myprinter._http._tcp.local"
        assert entry["host"] == "printer.local"
        assert entry["port"] == 80
        assert entry["addresses"] == ["192.168.1.5"]
        assert entry["timestamp"].endswith("Z")
        assert "previous_port" not in entry

    def test_srv_update_event(self):
        event = ServiceEvent(
            ServiceEventType.SRV_UPDATE,
            make_service(port=8080, addresses=["192.168.1.6"]),
            make_service(),
        )
        entry = format_event(event)

        assert entry["event"] == "srv-update"
        assert entry["port"] == 8080
        assert entry["previous_port"] == 80
        assert entry["previous_host"] == "printer.local"
        assert entry["previous_addresses"] == ["192.168.1.5"]

    def test_txt_update_event_with_binary_values(self):
        event = ServiceEvent(
            ServiceEventType.TXT_UPDATE,
            make_service(txt={"key": b"\x01\x02"}),
            make_service(),
        )
        entry = format_event(event)

        assert entry["txt"] == {"key": "0102"}
        assert entry["previous_txt"] == {"path": "/"}
        json.dumps(entry)


class TestServiceEventLogger:
    """Test discovery event logging."""

    def test_events_recorded(self, make_browser, source):
        browser = make_browser({"type": "http"})
        event_logger = ServiceEventLogger(max_recent_events=10)
        event_logger.attach(browser)

        source.deliver(announcement())
        source.deliver(announcement(port=8080))
        source.deliver(goodbye())

        events = event_logger.get_recent_events()
        assert [e["event"] for e in events] == ["down", "srv-update", "up"]
        assert event_logger.get_recent_events(limit=1)[0]["event"] == "down"

        stats = event_logger.get_stats()
        assert stats["events"] == {
            "up": 1,
            "down": 1,
            "srv-update": 1,
            "txt-update": 0,
        }
        assert stats["recent_events"] == 3
        assert stats["event_log_file"] is None

    def test_recent_events_bounded(self, make_browser, source):
        browser = make_browser({"type": "http"})
        event_logger = ServiceEventLogger(max_recent_events=2)
        event_logger.attach(browser)

        for port in (80, 81, 82, 83):
            source.deliver(announcement(port=port))

        assert len(event_logger.get_recent_events()) == 2
        assert event_logger.counts["srv-update"] == 3

    def test_event_file(self, make_browser, source, tmp_path):
        log_file = tmp_path / "events" / "services.log"
        browser = make_browser({"type": "http"})
        event_logger = ServiceEventLogger(event_log_file=str(log_file))
        event_logger.attach(browser)

        source.deliver(announcement())
        source.deliver(announcement(txt=(b"path=/v2",)))
        event_logger.close()

        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert [line["event"] for line in lines] == ["up", "txt-update"]
        assert lines[1]["txt"] == {"path": "/v2"}
        assert lines[1]["previous_txt"] == {"path": "/"}

    def test_close_detaches(self, make_browser, source):
        browser = make_browser({"type": "http"})
        event_logger = ServiceEventLogger()
        event_logger.attach(browser)
        event_logger.close()

        source.deliver(announcement())
        assert event_logger.get_recent_events() == []


class TestEventFileLogger:
    """Test the JSON-lines writer."""

    def test_write(self, tmp_path):
        log_file = tmp_path / "events.log"
        file_logger = EventFileLogger(str(log_file), max_size_mb=1, backup_count=1)

        file_logger.write({"event": "up", "fqdn": "a._http._tcp.local"})
        file_logger.write({"event": "down", "fqdn": "a._http._tcp.local"})
        file_logger.close()

        lines = log_file.read_text().splitlines()
        assert lines == [
            '{"event":"up","fqdn":"a._http._tcp.local"}',
            '{"event":"down","fqdn":"a._http._tcp.local"}',
        ]
