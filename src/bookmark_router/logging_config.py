"""Configure logging for the application."""

import logging
import sys

# Third-party loggers that are chatty at INFO (trafilatura logs every
# page it fails to parse).
NOISY_LOGGERS = ("httpx", "httpcore", "trafilatura", "htmldate", "youtube_transcript_api")

_handler: logging.Handler | None = None


def setup_logging(debug: bool = False) -> None:
    global _handler

    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger("bookmark_router")
    root.setLevel(level)
    # Called once per CLI invocation; replace rather than stack
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(formatter)
    root.addHandler(_handler)

    noisy_level = logging.DEBUG if debug else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
