"""
Structured logging for the exporter, JSON by default for Grafana/Loki.
"""
import logging
import structlog
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

from .config import ExporterConfig


class ExporterLogger:
    """Structured logger bound to the monitored domain."""

    def __init__(self, config: ExporterConfig):
        self.config = config
        self._logger = None
        self._setup_logging()

    def _setup_logging(self):
        """Setup structured logging over the standard library."""
        if self.config.log_format == "console":
            renderer = structlog.dev.ConsoleRenderer()
        else:
            renderer = structlog.processors.JSONRenderer()

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=getattr(logging, self.config.log_level)
        )
        logging.getLogger().setLevel(getattr(logging, self.config.log_level))

        if self.config.log_file:
            file_handler = logging.FileHandler(self.config.log_file)
            file_handler.setFormatter(jsonlogger.JsonFormatter(
                '%(asctime)s %(name)s %(levelname)s %(message)s'
            ))
            logging.getLogger().addHandler(file_handler)

        self._logger = structlog.get_logger("mastodon_exporter")
        self._logger = self._logger.bind(**self.config.get_base_labels())

    def get_logger(self, name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
        """Get a bound logger with optional component context."""
        if name:
            return self._logger.bind(component=name)
        return self._logger

    def bind(self, **kwargs) -> structlog.stdlib.BoundLogger:
        """Bind additional context to the logger."""
        return self._logger.bind(**kwargs)


_default_logger = None


def configure_logging(config: ExporterConfig) -> ExporterLogger:
    """Install the process-wide logger for ``config``."""
    global _default_logger
    _default_logger = ExporterLogger(config)
    return _default_logger


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance. If no default logger is configured,
    create one with default configuration.
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = ExporterLogger(ExporterConfig())

    return _default_logger.get_logger(name)
