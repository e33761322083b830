"""Tests for job-aware structured logging."""

import json
import logging

from listing_scraper.logging_config import (
    CustomJsonFormatter,
    JobContextFilter,
    get_logger,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "listing_scraper.ingest.scan_engine", logging.INFO, "scan_engine.py", 42,
        "Page 1/3: 2 products", None, None,
    )
    for name, value in extra.items():
        setattr(record, name, value)
    return record


class TestJsonFormatter:
    def setup_method(self):
        self.formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

    def test_job_context_emitted(self):
        payload = json.loads(self.formatter.format(_record(job_id="0001-000001", platform="amazon")))

        assert payload["job_id"] == "0001-000001"
        assert payload["platform"] == "amazon"
        assert payload["level"] == "INFO"
        assert payload["source"] == "scan_engine.py:42"
        assert payload["message"] == "Page 1/3: 2 products"

    def test_missing_context_is_null(self):
        record = _record()
        JobContextFilter().filter(record)

        payload = json.loads(self.formatter.format(record))

        assert payload["job_id"] is None
        assert payload["platform"] is None


def test_filter_keeps_existing_context():
    record = _record(job_id="job-7")

    assert JobContextFilter().filter(record) is True
    assert record.job_id == "job-7"
    assert record.platform == "-"


def test_adapter_binds_context(caplog):
    log = get_logger("listing_scraper.test", job_id="job-9", platform="flipkart")

    with caplog.at_level(logging.INFO, logger="listing_scraper.test"):
        log.info("started")
        log.info("override", extra={"platform": "amazon"})

    first, second = caplog.records
    assert (first.job_id, first.platform) == ("job-9", "flipkart")
    assert (second.job_id, second.platform) == ("job-9", "amazon")
