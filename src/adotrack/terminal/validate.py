# SPDX-License-Identifier: MIT

import logging
from typing import Optional

import typer


def validate_log_level(log_level: Optional[str]) -> Optional[str]:
    if log_level is None:
        return None
    if log_level.upper() not in logging.getLevelNamesMapping():
        raise typer.BadParameter("Log level must be one of DEBUG, INFO, WARNING, ERROR")
    return log_level.upper()


def validate_positive(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if value < 1:
        raise typer.BadParameter("Value must be at least 1")
    return value


def validate_url(url: str) -> str:
    if not url.startswith(("https://", "http://")):
        raise typer.BadParameter("URL must start with https:// (e.g. https://dev.azure.com/myorg)")
    return url
