from __future__ import annotations

import io
import logging

from contoso_university.core.logging import LoggingContextFilter, configure_logging, correlation_id_var


def _format(handler: logging.Handler, message: str) -> str:
    stream = io.StringIO()
    handler.setStream(stream)
    record = logging.LogRecord("contoso_university.test", logging.INFO, __file__, 1, message, None, None)
    handler.handle(record)
    return stream.getvalue()


def test_records_carry_the_correlation_id():
    handler = configure_logging(logging.INFO)
    token = correlation_id_var.set("req-7")
    try:
        line = _format(handler, "inside a request")
    finally:
        correlation_id_var.reset(token)
        logging.getLogger().removeHandler(handler)

    assert "| INFO | contoso_university.test | cid=req-7 | inside a request" in line


def test_records_outside_a_request_use_a_placeholder():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    assert LoggingContextFilter().filter(record) is True
    assert record.correlation_id == "-"


def test_reconfiguring_replaces_only_its_own_handler():
    root = logging.getLogger()
    previous_level = root.level
    other = logging.NullHandler()
    root.addHandler(other)
    try:
        first = configure_logging(logging.INFO)
        second = configure_logging(logging.DEBUG)
        assert first not in root.handlers
        assert second in root.handlers
        assert other in root.handlers
        assert root.level == logging.DEBUG
    finally:
        root.removeHandler(other)
        root.removeHandler(second)
        root.setLevel(previous_level)
