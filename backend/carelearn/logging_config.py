import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stdout handler to the package logger."""
    package_logger = logging.getLogger("carelearn")
    package_logger.setLevel(level.upper())
    if any(getattr(h, "_carelearn", False) for h in package_logger.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._carelearn = True
    package_logger.addHandler(handler)
