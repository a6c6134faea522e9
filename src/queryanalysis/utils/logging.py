"""Logging setup for the queryanalysis package.

Modules log through ``logging.getLogger(__name__)``. The pipeline configures
the process once from the ``logging`` config section:

    .. code-block:: yaml

        logging:
          name: queryanalysis
          level: ${LOG_LEVEL:-INFO}

Usage:
    >>> logger = setup_logger({"logging": {"level": "DEBUG"}})
    >>> logger.debug("Routing table: %s", targets)
"""

import logging


DEFAULT_LOGGER_NAME = "queryanalysis"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(level: int | str | None) -> int:
    """Turn a level name or number into a logging level, falling back to INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level or "INFO").upper())
    return resolved if isinstance(resolved, int) else logging.INFO


class LoggerFactory:
    """Hand out named loggers after configuring the root handler once.

    Attributes:
        logger_name: Name of the logger handed out by ``get_logger``.
        log_level: Level set on that logger.
        logger: The configured logger instance.
    """

    _root_configured: bool = False

    def __init__(
        self,
        logger_name: str,
        log_level: int | str = logging.INFO,
        log_format: str = DEFAULT_FORMAT,
    ) -> None:
        self.logger_name = logger_name
        self.log_level = resolve_level(log_level)
        if not LoggerFactory._root_configured:
            logging.basicConfig(level=self.log_level, format=log_format)
            LoggerFactory._root_configured = True
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(self.log_level)

    def get_logger(self) -> logging.Logger:
        return self.logger


def setup_logger(config: dict) -> logging.Logger:
    """Set up a logger from the ``logging`` section of a pipeline config.

    Args:
        config: Configuration dictionary, optionally containing
            ``logging: {name: ..., level: ..., format: ...}``.

    Returns:
        Configured logger instance.
    """
    logging_config = config.get("logging", {}) or {}
    return LoggerFactory(
        logging_config.get("name", DEFAULT_LOGGER_NAME),
        log_level=logging_config.get("level"),
        log_format=logging_config.get("format", DEFAULT_FORMAT),
    ).get_logger()
