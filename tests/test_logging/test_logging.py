"""Tests for ormgarden logging."""

import io
import json
import logging

from ormgarden.logging import (
    ContextFilter,
    JSONFormatter,
    LogFormat,
    TextFormatter,
    configure_logging,
    get_log_context,
    get_logger,
    with_log_context,
)


def _record(msg="written", **extra):
    record = logging.LogRecord("ormgarden.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    """Tests for context scoping."""

    def test_nested_context(self):
        assert get_log_context() == {}
        with with_log_context(schema="sales"):
            with with_log_context(table="orders"):
                assert get_log_context() == {"schema": "sales", "table": "orders"}
            assert get_log_context() == {"schema": "sales"}
        assert get_log_context() == {}

    def test_filter_injects_context(self):
        record = _record()
        with with_log_context(schema="sales", table="orders"):
            assert ContextFilter().filter(record)

        assert record.schema == "sales"
        assert record.table == "orders"

    def test_filter_keeps_explicit_fields(self):
        record = _record(table="customers")
        with with_log_context(table="orders"):
            ContextFilter().filter(record)

        assert record.table == "customers"


class TestFormatters:
    """Tests for log formatters."""

    def test_json_formatter(self):
        record = _record(schema="sales", path="shop/sales/order.py", rows=3)
        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "ormgarden.test"
        assert data["message"] == "written"
        assert data["schema"] == "sales"
        assert data["path"] == "shop/sales/order.py"
        assert data["extra"] == {"rows": 3}

    def test_json_without_extra(self):
        record = _record(rows=3)
        data = json.loads(JSONFormatter(include_extra=False).format(record))
        assert "extra" not in data

    def test_text_formatter(self):
        record = _record(schema="sales", table="orders")
        line = TextFormatter(use_colors=False).format(record)
        assert line == "INFO     ormgarden.test [schema=sales, table=orders]: written"


class TestConfigureLogging:
    """Tests for configure_logging and GardenLogger."""

    def test_json_output_with_context(self):
        output = io.StringIO()
        configure_logging(level="debug", format=LogFormat.JSON, output=output)
        logger = get_logger("ormgarden.garden")

        with with_log_context(garden_prefix="shop", table="orders"):
            logger.info("%s written", "shop.order", path="shop/order.py")

        data = json.loads(output.getvalue())
        assert data["message"] == "shop.order written"
        assert data["garden_prefix"] == "shop"
        assert data["table"] == "orders"
        assert data["path"] == "shop/order.py"

    def test_level_filtering(self):
        output = io.StringIO()
        configure_logging(level="warning", output=output, use_colors=False)
        logger = get_logger("ormgarden.garden")

        logger.info("hidden")
        logger.warning("shown")

        assert output.getvalue() == "WARNING  ormgarden.garden: shown\n"
        assert not logger.is_enabled_for(logging.INFO)
