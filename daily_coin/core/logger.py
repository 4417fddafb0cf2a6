import json
import logging
import os
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

# Libraries that flood INFO with per-query / per-request noise
_QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "apscheduler": logging.WARNING,
    "uvicorn.access": logging.ERROR,
    "watchfiles": logging.ERROR,
    "google": logging.WARNING,
}


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # errors carry their origin and stack
        if record.levelno >= logging.ERROR:
            log_record["location"] = f"{record.pathname}:{record.lineno}"
            if record.exc_info:
                log_record["stack_trace"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None):
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # re-running setup must not stack handlers
    root_logger.handlers.clear()

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(JsonFormatter())
    root_logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        # one file per day, a week kept
        file_handler = TimedRotatingFileHandler(
            filename=os.path.join(log_dir, "server.log"),
            when="midnight", interval=1, backupCount=7, encoding="utf-8"
        )
        file_handler.setFormatter(JsonFormatter())
        root_logger.addHandler(file_handler)
