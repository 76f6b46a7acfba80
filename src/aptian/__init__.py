"""aptian: Debian APT repository management tool."""

import logging

from rich.logging import RichHandler

from aptian.constants import LOG_LEVEL

__version__ = "0.1.0"

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            rich_tracebacks=True,
            show_path=False,
        )
    ],
)
logger = logging.getLogger(__name__)
