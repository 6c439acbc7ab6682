import json
import logging

from pythonjsonlogger import jsonlogger

from core.logging import setup_logging


def test_json_log_timestamps_are_utc():
    setup_logging()
    formatter = next(
        handler.formatter for handler in logging.getLogger().handlers
        if isinstance(handler.formatter, jsonlogger.JsonFormatter)
    )

    record = logging.LogRecord("catalog", logging.INFO, __file__, 1, "Vehicle created", None, None)
    record.created = 1700000000.0
    line = json.loads(formatter.format(record))

    assert line["asctime"] == "2023-11-14T22:13:20Z"
    assert line["levelname"] == "INFO"
    assert line["message"] == "Vehicle created"
