import logging
import sys
import time
from pythonjsonlogger import jsonlogger


def setup_logging(level: int = logging.INFO):
    """
    Configures centralized JSON logging on stdout.
    Keeps application loggers at INFO and quiets the database/transport layers.
    """
    # 1. Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 2. Prevent duplicate logs by removing existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # 3. StreamHandler for stdout (container log collectors read it)
    log_handler = logging.StreamHandler(sys.stdout)

    # 4. JSON format, extra={} fields are emitted as top level keys
    formatter = jsonlogger.JsonFormatter(
        fmt='%(asctime)s %(levelname)s %(name)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%SZ'
    )
    # Timestamps carry a Z suffix, so render them in UTC
    formatter.converter = time.gmtime
    log_handler.setFormatter(formatter)
    root_logger.addHandler(log_handler)

    # 5. Noise reduction for infrastructure and transport layers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    root_logger.info("Logging infrastructure initialized successfully.")
