"""Unit tests for searchbulk.logger helper functions."""

import json
import logging

import pytest

import searchbulk.logger as logger_mod


def test_safe_converters_default_on_invalid_input():
    log = logging.getLogger("test.logger")

    assert logger_mod.safe_int("", 42, logger=log, context="int_field") == 42
    assert logger_mod.safe_int("17", 0) == 17
    assert logger_mod.safe_int("abc", 5, logger=log, context="int_field") == 5

    assert logger_mod.safe_bool("yes", False) is True
    assert logger_mod.safe_bool("NO", True) is False
    assert logger_mod.safe_bool("maybe", True, logger=log, context="bool_field") is True


def test_context_logger_injects_extra_fields(caplog):
    base_logger = logger_mod.get_logger("searchbulk-test", json_format=False)
    contextual = logger_mod.ContextLogger(base_logger, document_type="qa", build="b1")

    with caplog.at_level(logging.INFO, logger="searchbulk-test"):
        contextual.bind(stage="classify").info("hello", operations=3)

    assert any("hello" in message for message in caplog.messages)
    record = caplog.records[-1]
    assert getattr(record, "extra_fields", {}).get("document_type") == "qa"
    assert getattr(record, "extra_fields", {}).get("build") == "b1"
    assert getattr(record, "extra_fields", {}).get("stage") == "classify"
    assert getattr(record, "extra_fields", {}).get("operations") == 3


def test_json_formatter_merges_extra_fields():
    record = logging.LogRecord("searchbulk", logging.DEBUG, __file__, 1, "ancestry_cache_miss", (), None)
    record.extra_fields = {"id": "7"}

    payload = json.loads(logger_mod.JSONFormatter().format(record))

    assert payload["message"] == "ancestry_cache_miss"
    assert payload["level"] == "DEBUG"
    assert payload["id"] == "7"


def test_log_and_reraise_keeps_original_exception(caplog):
    contextual = logger_mod.ContextLogger(logger_mod.get_logger("searchbulk-reraise"))
    err = KeyError("gone")

    with caplog.at_level(logging.ERROR, logger="searchbulk-reraise"):
        with pytest.raises(KeyError) as info:
            try:
                raise err
            except KeyError as e:
                logger_mod.log_and_reraise(contextual, "lookup failed", e, id="7")

    assert info.value is err
    assert "lookup failed" in caplog.messages


def test_routing_cycle_error_messages():
    assert "cyclic parent chain: 1 -> 2 -> 1" in str(logger_mod.RoutingCycleError(["1", "2", "1"]))
    err = logger_mod.RoutingCycleError(["4", "3", "2", "1"], limit=2)
    assert "max depth 2" in str(err)
    assert isinstance(err, logger_mod.BulkBuildError)


def test_log_and_reraise_attaches_flat_context(caplog):
    plain = logger_mod.get_logger("searchbulk-plain")
    contextual = logger_mod.ContextLogger(logger_mod.get_logger("searchbulk-bound"), build="b1")

    with caplog.at_level(logging.ERROR):
        for log in (plain, contextual):
            with pytest.raises(KeyError):
                try:
                    raise KeyError("gone")
                except KeyError as e:
                    logger_mod.log_and_reraise(log, "lookup failed", e, id="7")

    plain_record, bound_record = caplog.records[-2:]
    assert plain_record.extra_fields == {"id": "7"}
    assert bound_record.extra_fields == {"build": "b1", "id": "7"}
