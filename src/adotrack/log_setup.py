# SPDX-License-Identifier: MIT

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str, log_file_path: Path) -> None:
    """
    Warnings and errors go to stderr through rich; everything at `level` and
    above goes to the log file.
    """
    root_logger = logging.getLogger("adotrack")
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.propagate = False

    console_handler = RichHandler(
        console=Console(stderr=True),
        level=logging.WARNING,
        show_time=False,
        show_path=False,
    )
    root_logger.addHandler(console_handler)

    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root_logger.addHandler(file_handler)
