"""
Logging setup shared by the web app and the sync job.

Modules log through ``logging.getLogger(__name__)``; this only installs the
handler and format once per process.
"""
import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name or number
        log_file: Optional file to log to in addition to stdout
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
    )

    # requests/urllib3 are chatty at INFO
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def mask_username(username: Optional[str]) -> str:
    """Mask a login for log output (first 3 chars + domain)."""
    if not username:
        return '<unset>'
    if '@' in username:
        local, domain = username.split('@', 1)
        if len(local) > 3:
            return f"{local[:3]}***@{domain}"
    return username[:3] + "***"
