import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.dashboard",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Built time series",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    message = formatter.format(
        _record(time_range="7d", reading_count=12, bucket_count=3, unrelated="x")
    )

    assert message == "Built time series | time_range=7d reading_count=12 bucket_count=3"


def test_formatter_skips_missing_and_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["sensor_id", "reason"])

    assert formatter.format(_record(sensor_id=None)) == "Built time series"
