# SPDX-License-Identifier: MIT

from copy import deepcopy
from pathlib import Path
from typing import Any, Optional, cast

from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from adotrack import configuration, time
from adotrack.model.entity_id import generate_entity_id
from adotrack.model.sync import SyncLog
from adotrack.repository.storage import write_text_atomically

DEFAULT_SYNC_LOG_LIMIT = 100


class SyncLogRepository:
    """
    Write-only audit trail of sync attempts, newest first. Only the most
    recent `limit` records are kept.
    """

    def __init__(
        self, path: Optional[Path] = None, limit: int = DEFAULT_SYNC_LOG_LIMIT
    ) -> None:
        if limit < 1:
            raise ValueError("sync log limit must be at least 1")
        self._path = path
        self.limit = limit
        self._sync_logs: Optional[list[SyncLog]] = None

    @property
    def path(self) -> Path:
        if self._path is not None:
            return self._path
        return configuration.DATA_SYNC_LOG_PATH

    @property
    def sync_logs(self) -> list[SyncLog]:
        if self._sync_logs is None:
            self.__load_data()
        if self._sync_logs is None:
            raise ValueError()
        return self._sync_logs

    def __load_data(self) -> None:
        self._sync_logs = []
        if not self.path.is_file():
            return
        raw_data = load(self.path.read_text(), Loader=Loader)
        if raw_data is None:
            return
        for raw_sync_log in raw_data.get("sync_logs") or []:
            self._sync_logs.append(
                self.__convert_sync_log_for_deserialization(raw_sync_log)
            )

    def __save_data(self) -> None:
        serializable_sync_logs = [
            self.__convert_sync_log_for_serialization(deepcopy(sync_log))
            for sync_log in self.sync_logs
        ]
        write_text_atomically(
            self.path, dump({"sync_logs": serializable_sync_logs}, Dumper=Dumper)
        )

    def __convert_sync_log_for_serialization(self, sync_log: SyncLog) -> dict[str, Any]:
        serializable_sync_log = cast(dict[str, Any], sync_log)
        serializable_sync_log["synced_at"] = time.datetime_to_iso_str(
            serializable_sync_log["synced_at"]
        )
        return serializable_sync_log

    def __convert_sync_log_for_deserialization(
        self, sync_log: dict[str, Any]
    ) -> SyncLog:
        sync_log["synced_at"] = time.datetime_from_str(sync_log["synced_at"])
        return cast(SyncLog, sync_log)

    def append(self, sync_log: SyncLog) -> None:
        if sync_log["id"] is None:
            sync_log["id"] = generate_entity_id()

        self.sync_logs.insert(0, deepcopy(sync_log))
        # Evict the oldest records beyond the cap
        del self.sync_logs[self.limit :]
        self.__save_data()

    def get_recent(self, limit: int = 50) -> list[SyncLog]:
        return deepcopy(self.sync_logs[:limit])
