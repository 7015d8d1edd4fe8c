import logging

from socketweave import log


def test_error_logs_at_error_level_with_error_text(caplog):
    caplog.set_level(logging.DEBUG, logger="socketweave")
    log.error("close reader:", ValueError("boom"))
    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.levelno == logging.ERROR
    assert record.getMessage().startswith("close reader:")
    assert "err=boom" in record.getMessage()


def test_error_accepts_plain_string(caplog):
    caplog.set_level(logging.DEBUG, logger="socketweave")
    log.error("write", "broken pipe")
    assert caplog.records[0].getMessage().endswith("err=broken pipe")


def test_info_renders_key_value_pairs(caplog):
    caplog.set_level(logging.DEBUG, logger="socketweave")
    log.info("connected", "sid", "abc", "count", 3)
    record = caplog.records[0]
    assert record.levelno == logging.INFO
    assert record.getMessage() == "connected sid=abc count=3"


def test_info_marks_dangling_key(caplog):
    caplog.set_level(logging.DEBUG, logger="socketweave")
    log.info("event", "lonely")
    assert "!BADKEY=lonely" in caplog.records[0].getMessage()


def test_info_without_args_is_message_only(caplog):
    caplog.set_level(logging.DEBUG, logger="socketweave")
    log.info("plain")
    assert caplog.records[0].getMessage() == "plain"