"""
MEI Token - Structured Logging Configuration

Every record leaves as one JSON object carrying the network it was emitted
on, the event tag the contract modules attach through ``extra`` and where in
the source it came from. Release and deployment tooling ship these lines to
the log aggregator unchanged.

Usage:
    from mei.core.config import Config
    from mei.core.logging_config import setup_token_logging

    setup_token_logging(Config)
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"
DEFAULT_MAX_BYTES = 20 * 1024 * 1024  # 20MB per file
DEFAULT_BACKUP_COUNT = 5


class TokenLogFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps each record with network and service context.

    Records logged without an ``event`` extra are tagged ``"log"`` so every
    line can be filtered by event.
    """

    def __init__(self, network: str = "dev", service: str = "mei"):
        super().__init__(fmt=LOG_FORMAT)
        self.network = network
        self.service = service

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname.lower()
        log_record["environment"] = self.network
        log_record["service"] = self.service
        log_record.setdefault("event", "log")
        log_record["source"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }


def _build_handlers(
    formatter: logging.Formatter,
    log_file: Optional[str],
    console: bool,
    max_bytes: int,
    backup_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=str(path), maxBytes=max_bytes, backupCount=backup_count
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    name: str = "mei",
    log_file: Optional[str] = None,
    level: str = "INFO",
    network: str = "dev",
    console: bool = True,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """
    Attach JSON handlers to logger ``name``, replacing any it already has.

    Args:
        name: Logger to configure; child loggers propagate into it
        log_file: Rotating JSON log file (optional)
        level: Logging level name
        network: Network tag written into every record
        console: Whether to also log to stdout
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files kept

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = TokenLogFormatter(network=network, service=name.split(".")[0])
    try:
        handlers = _build_handlers(formatter, log_file, console, max_bytes, backup_count)
    except OSError as e:
        handlers = _build_handlers(formatter, None, console, max_bytes, backup_count)
        logger.warning(
            "Could not open log file %s: %s",
            log_file,
            e,
            extra={"event": "logging.file_handler_failed"},
        )

    for handler in handlers:
        logger.addHandler(handler)
    return logger


def setup_token_logging(config: Any) -> logging.Logger:
    """Configure the ``mei`` logger from a network config class."""
    network = config.NETWORK_TYPE.value
    log_file = None
    if getattr(config, "STATE_DIR", None):
        log_file = str(Path(config.STATE_DIR) / "logs" / f"mei-{network}.json")
    return setup_logging(
        name="mei",
        log_file=log_file,
        level=config.LOG_LEVEL,
        network=network,
    )
