"""Process-wide logging setup."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    global _configured
    root = logging.getLogger()
    if not _configured:
        logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
        _configured = True
    root.setLevel(level.upper())
