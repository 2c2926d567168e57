# SPDX-License-Identifier: MIT

from yaml import dump

try:
    from yaml import CDumper as Dumper
except ImportError:
    from yaml import Dumper  # type: ignore[assignment]

from adotrack import configuration
from adotrack.log_setup import configure_logging
from adotrack.repository.configuration import CONFIGURATION_REPO


def initialize() -> None:
    configuration.CONFIG_PATH.mkdir(parents=True, exist_ok=True)
    __ensure_config_files()

    configuration.load_data_path_configuration()
    configuration.DATA_PATH.mkdir(parents=True, exist_ok=True)
    __ensure_data_files()

    config = CONFIGURATION_REPO.get_config()
    configure_logging(config["log_level"], configuration.LOG_FILE_PATH)


def __ensure_config_files() -> None:
    if not configuration.APP_CONFIG_PATH.is_file():
        config = configuration.default_configuration()
        configuration.APP_CONFIG_PATH.write_text(dump(config, Dumper=Dumper))


def __ensure_data_files() -> None:
    # Directory-based entity store (one file per entry)
    if not configuration.DATA_TIME_ENTRIES_DIR.is_dir():
        configuration.DATA_TIME_ENTRIES_DIR.mkdir(parents=True, exist_ok=True)
        (configuration.DATA_TIME_ENTRIES_DIR / ".gitkeep").touch()
