"""
Logging setup for the pod network benchmark harness.

Report lines are INFO records, so the default level shows exactly the
aggregated metrics plus progress messages.
"""

import logging
import sys
from typing import Optional


def setup_logging(
        log_level: str = "INFO",
        log_output: str = "console",
        log_file: Optional[str] = None
) -> None:
    """Setup logging facility.

    :param log_level: Logging level name; unrecognized values fall back to INFO.
    :param log_output: "console", "file" or "both".
    :param log_file: File to write to when log_output includes a file.
    """
    handlers = []

    console_formatter = logging.Formatter("%(message)s")
    file_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%H:%M:%S"
    )

    if log_output in ("console", "both"):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    if log_output in ("file", "both"):
        file_handler = logging.FileHandler(log_file or "netbench.log")
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=handlers,
        force=True
    )
    # kubectl output is only interesting when debugging
    logging.getLogger("invoke").setLevel(logging.WARNING)
    logging.getLogger("paramiko").setLevel(logging.WARNING)
