# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Optional, TypedDict

from yaml import load

try:
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Loader  # type: ignore[assignment]
import platformdirs

APP_NAME = "adotrack"

CONFIG_PATH = platformdirs.user_config_path(APP_NAME)
APP_CONFIG_PATH = CONFIG_PATH / "config.yaml"
LOG_PATH = platformdirs.user_log_path(APP_NAME)
LOG_FILE_PATH = LOG_PATH / "adotrack.log"

# These will be set dynamically by load_data_path_configuration()
DATA_PATH: Path = platformdirs.user_data_path(APP_NAME)
DATA_ORGANIZATIONS_PATH: Path = DATA_PATH / "organizations.yaml"
DATA_TIMER_SESSION_PATH: Path = DATA_PATH / "timer_session.yaml"
DATA_SYNC_LOG_PATH: Path = DATA_PATH / "sync_log.yaml"
DATA_ID_MAP_PATH: Path = DATA_PATH / "id_map.yaml"
DATA_TIME_ENTRIES_DIR: Path = DATA_PATH / "time_entries"
DATA_LOCKS_DIR: Path = DATA_PATH / "locks"

DEFAULT_PAT_ENV_VAR = "AZURE_DEVOPS_PAT"


class Configuration(TypedDict):
    data_path: Optional[str]
    request_timeout_seconds: float
    sync_log_limit: int
    time_rounding_minutes: int
    work_item_cache_seconds: int
    log_level: str


def default_configuration() -> Configuration:
    return {
        "data_path": None,
        "request_timeout_seconds": 30.0,
        "sync_log_limit": 100,
        "time_rounding_minutes": 1,
        "work_item_cache_seconds": 300,
        "log_level": "INFO",
    }


def set_data_path(data_path: Path) -> None:
    global \
        DATA_PATH, \
        DATA_ORGANIZATIONS_PATH, \
        DATA_TIMER_SESSION_PATH, \
        DATA_SYNC_LOG_PATH, \
        DATA_ID_MAP_PATH, \
        DATA_TIME_ENTRIES_DIR, \
        DATA_LOCKS_DIR

    DATA_PATH = data_path
    DATA_ORGANIZATIONS_PATH = DATA_PATH / "organizations.yaml"
    DATA_TIMER_SESSION_PATH = DATA_PATH / "timer_session.yaml"
    DATA_SYNC_LOG_PATH = DATA_PATH / "sync_log.yaml"
    DATA_ID_MAP_PATH = DATA_PATH / "id_map.yaml"
    DATA_TIME_ENTRIES_DIR = DATA_PATH / "time_entries"
    DATA_LOCKS_DIR = DATA_PATH / "locks"


def load_data_path_configuration() -> None:
    """
    Load the configuration and set the DATA_PATH variables dynamically.

    This must be called after the config file exists and before any
    repositories touch the disk.
    """
    if not APP_CONFIG_PATH.is_file():
        # Config doesn't exist yet, use defaults
        return

    config: Optional[Configuration] = load(APP_CONFIG_PATH.read_text(), Loader=Loader)
    if config is None:
        return

    data_path_setting = config.get("data_path")
    if data_path_setting is not None:
        set_data_path(Path(data_path_setting).expanduser())
