"""Tests for per-session log correlation."""

import logging

from merchant_onboarding.logging_context import (
    LOG_FORMAT,
    NO_SESSION,
    SessionIdFilter,
    get_session_id,
    get_session_logger,
    install_session_filter,
    session_context,
)


def make_record(name: str = "test.logging_context") -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, "hello", None, None)


class TestSessionContext:
    def test_default_is_no_session(self):
        assert get_session_id() == NO_SESSION

    def test_nested_block_restores_outer_session(self):
        with session_context("SESS-outer"):
            with session_context("SESS-inner"):
                assert get_session_id() == "SESS-inner"
            assert get_session_id() == "SESS-outer"
        assert get_session_id() == NO_SESSION

    def test_session_reset_after_exception(self):
        try:
            with session_context("SESS-boom"):
                raise ValueError("boom")
        except ValueError:
            pass
        assert get_session_id() == NO_SESSION


class TestSessionIdFilter:
    def test_stamps_active_session(self):
        record = make_record()
        with session_context("SESS-abc"):
            assert SessionIdFilter().filter(record)
        assert record.session_id == "SESS-abc"

    def test_keeps_existing_session_id(self):
        record = make_record()
        record.session_id = "SESS-first"
        with session_context("SESS-second"):
            SessionIdFilter().filter(record)
        assert record.session_id == "SESS-first"

    def test_installed_handler_formats_foreign_records(self):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        install_session_filter([handler])
        record = make_record("thirdparty.lib")
        with session_context("SESS-xyz"):
            assert handler.filter(record)
        assert "[SESS-xyz]" in handler.format(record)

    def test_install_is_idempotent(self):
        handler = logging.StreamHandler()
        install_session_filter([handler])
        install_session_filter([handler])
        assert sum(isinstance(f, SessionIdFilter) for f in handler.filters) == 1


class TestGetSessionLogger:
    def test_filter_added_once(self):
        get_session_logger("test.logging_context.once")
        logger = get_session_logger("test.logging_context.once")
        assert sum(isinstance(f, SessionIdFilter) for f in logger.filters) == 1

    def test_records_outside_session_carry_placeholder(self, caplog):
        logger = get_session_logger("test.logging_context.outside")
        with caplog.at_level(logging.INFO, logger="test.logging_context.outside"):
            logger.info("no session here")
        assert caplog.records[-1].session_id == NO_SESSION
