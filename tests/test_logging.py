import logging

from auwlac.data_structures import Span
from auwlac.exceptions import ErrorCode, make_diagnostic
from auwlac.logging import CONSOLE_FORMAT, _LocationFilter, log_diagnostic


def _render(record):
    _LocationFilter().filter(record)
    return logging.Formatter(CONSOLE_FORMAT).format(record)


def test_records_without_location_have_no_prefix():
    record = logging.LogRecord("auwlac", logging.WARNING, __file__, 1, "plain message", None, None)
    assert _render(record) == "[auwlac] WARNING plain message"


def test_filter_is_idempotent_across_handlers():
    record = logging.LogRecord("auwlac", logging.INFO, __file__, 1, "msg", None, None)
    record.location = "a.tsx:3:4"
    _LocationFilter().filter(record)
    assert _render(record) == "[auwlac] INFO a.tsx:3:4: msg"


def test_log_diagnostic_uses_the_diagnostic_location(caplog):
    diagnostic = make_diagnostic(
        ErrorCode.MARKUP_ORPHAN_CONDITIONAL,
        span=Span(s_line=7, s_col=5, e_line=7, e_col=20, file_path="Page.tsx"),
        helper="$else",
    )
    logger = logging.getLogger("diagnostics.test")
    with caplog.at_level(logging.DEBUG, logger="diagnostics.test"):
        log_diagnostic(logger, diagnostic)

    (record,) = caplog.records
    assert record.location == "Page.tsx:7:5"
    assert diagnostic.format().startswith(record.location + ": ")
