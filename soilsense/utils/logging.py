"""
Logging configuration for the soil telemetry pipeline.

All output goes to stderr (and optionally a file) so that the CLI can print
result JSON on stdout.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

# HTTP client loggers echo full request URLs, query string (and API key) included
CHATTY_LIBRARIES = ("urllib3", "requests")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    include_timestamp: bool = True,
    library_level: str = "WARNING"
) -> None:
    """
    Set up root logging for a CLI run or an API process.

    Args:
        level: Logging level for soilsense loggers (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path that receives the same records
        include_timestamp: Whether to include timestamps in log messages
        library_level: Level applied to HTTP client loggers

    Raises:
        ValueError: If a level name is not recognized
    """
    root_level = logging.getLevelName(level.upper())
    if not isinstance(root_level, int):
        raise ValueError(f"Unknown log level: {level}")

    fmt = '%(name)s - %(levelname)s - %(message)s'
    if include_timestamp:
        fmt = '%(asctime)s - ' + fmt
    formatter = logging.Formatter(fmt, datefmt='%Y-%m-%d %H:%M:%S')

    root = logging.getLogger()
    root.setLevel(root_level)
    root.handlers.clear()

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level.upper())


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific component.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
