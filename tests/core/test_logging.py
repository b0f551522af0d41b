"""Tests for structlog configuration."""

import io
import json

import pytest
import structlog

from depot.core.logging import configure_logging, event_context, get_logger


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


def _configure(stream):
    structlog.reset_defaults()
    configure_logging(level="INFO", json_format=True, service="depot-test", stream=stream)


def test_json_lines_carry_service_and_fields():
    stream = io.StringIO()
    _configure(stream)

    get_logger("depot.test").info("index_created", index="entities:index")

    line = json.loads(stream.getvalue().splitlines()[-1])
    assert line["event"] == "index_created"
    assert line["index"] == "entities:index"
    assert line["service"] == "depot-test"
    assert line["level"] == "info"
    assert line["logger"] == "depot.test"


def test_level_filters_debug():
    stream = io.StringIO()
    _configure(stream)

    get_logger("depot.test").debug("document_written", key="k")

    assert stream.getvalue() == ""


def test_event_context_is_scoped():
    stream = io.StringIO()
    _configure(stream)
    logger = get_logger("depot.test")

    with event_context(event_id="e1"):
        logger.info("inside")
    logger.info("outside")

    inside, outside = (json.loads(line) for line in stream.getvalue().splitlines())
    assert inside["event_id"] == "e1"
    assert "event_id" not in outside
