import logging

logger = logging.getLogger("mwaction")
logger.addHandler(logging.NullHandler())


def enable_debug() -> None:
    """Enable debug logging for mwaction."""
    logger.setLevel(logging.DEBUG)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[mwaction] %(levelname)s: %(message)s"))
    logger.addHandler(handler)


def log_warning(warning: Exception) -> None:
    """Default warn handler: log the warning through the package logger."""
    logger.warning(f"{type(warning).__name__}: {warning}")
