import logging

LOGGER_NAME = "kdindex"

logger = logging.getLogger(LOGGER_NAME)

# Library default: stay silent unless the application configures logging.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

_stream_handler = None


def set_debug(enabled):
    """Print kdindex debug messages on stderr, or stop doing so."""
    global _stream_handler
    if enabled and _stream_handler is None:
        _stream_handler = logging.StreamHandler()
        _stream_handler.setFormatter(
            logging.Formatter("[%(name)s] %(levelname)s: %(message)s"))
        logger.addHandler(_stream_handler)
    elif not enabled and _stream_handler is not None:
        logger.removeHandler(_stream_handler)
        _stream_handler = None
    logger.setLevel(logging.DEBUG if enabled else logging.NOTSET)
