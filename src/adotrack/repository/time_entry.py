# SPDX-License-Identifier: MIT

import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Iterable, Optional, cast

import pendulum
from yaml import dump, load

try:
    from yaml import CDumper as Dumper  # noqa: F401
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from adotrack import configuration, time
from adotrack.model.entity_id import EntityId, generate_entity_id
from adotrack.model.time_entry import TimeEntry
from adotrack.repository.storage import write_text_atomically

logger = logging.getLogger(__name__)


class TimeEntryRepository:
    """
    The time entry ledger. One YAML file per entry; every mutation is written
    through to disk before it returns, so a crash never loses a stopped
    session or a sync flag.
    """

    def __init__(self, directory: Optional[Path] = None) -> None:
        self._directory = directory
        self._time_entries: Optional[list[TimeEntry]] = None
        self._dirty_ids: set[str] = set()
        self._deleted_ids: set[str] = set()

    @property
    def directory(self) -> Path:
        if self._directory is not None:
            return self._directory
        return configuration.DATA_TIME_ENTRIES_DIR

    @property
    def time_entries(self) -> list[TimeEntry]:
        if self._time_entries is None:
            self.__load_data()
        if self._time_entries is None:
            raise ValueError()
        return self._time_entries

    def __load_data(self) -> None:
        self._time_entries = []
        if not self.directory.is_dir():
            return
        for file_path in self.directory.iterdir():
            if file_path.suffix != ".yaml" or file_path.name == ".gitkeep":
                continue
            raw_time_entry = load(file_path.read_text(), Loader=Loader)
            if raw_time_entry is not None:
                self._time_entries.append(
                    self.__convert_time_entry_for_deserialization(raw_time_entry)
                )

    def __save_data(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

        # Write dirty entities
        for time_entry in self.time_entries:
            if time_entry["id"] in self._dirty_ids:
                serializable_time_entry = self.__convert_time_entry_for_serialization(
                    deepcopy(time_entry)
                )
                write_text_atomically(
                    self.directory / f"{time_entry['id']}.yaml",
                    dump(serializable_time_entry, Dumper=Dumper),
                )
                self._dirty_ids.discard(cast(str, time_entry["id"]))

        # Remove hard-deleted entity files
        for entity_id in list(self._deleted_ids):
            file_path = self.directory / f"{entity_id}.yaml"
            file_path.unlink(missing_ok=True)
            self._deleted_ids.discard(entity_id)

    def flush(self) -> bool:
        if self._time_entries is not None and (self._dirty_ids or self._deleted_ids):
            self.__save_data()
            return True
        return False

    def __convert_time_entry_for_serialization(
        self, time_entry: TimeEntry
    ) -> dict[str, Any]:
        serializable_time_entry = cast(dict[str, Any], time_entry)
        serializable_time_entry["start"] = time.datetime_to_iso_str(
            serializable_time_entry["start"]
        )
        serializable_time_entry["end"] = time.datetime_to_iso_str(
            serializable_time_entry["end"]
        )
        serializable_time_entry["synced_at"] = time.datetime_to_iso_str_optional(
            serializable_time_entry["synced_at"]
        )
        serializable_time_entry["created"] = time.datetime_to_iso_str(
            serializable_time_entry["created"]
        )
        serializable_time_entry["updated"] = time.datetime_to_iso_str(
            serializable_time_entry["updated"]
        )
        return serializable_time_entry

    def __convert_time_entry_for_deserialization(
        self, time_entry: dict[str, Any]
    ) -> TimeEntry:
        deserializable_time_entry = time_entry
        deserializable_time_entry["start"] = time.datetime_from_str(
            deserializable_time_entry["start"]
        )
        deserializable_time_entry["end"] = time.datetime_from_str(
            deserializable_time_entry["end"]
        )
        deserializable_time_entry["synced_at"] = time.datetime_from_str_optional(
            deserializable_time_entry.get("synced_at")
        )
        deserializable_time_entry["created"] = time.datetime_from_str(
            deserializable_time_entry["created"]
        )
        deserializable_time_entry["updated"] = time.datetime_from_str(
            deserializable_time_entry["updated"]
        )
        return cast(TimeEntry, deserializable_time_entry)

    def __find(self, id: EntityId) -> Optional[TimeEntry]:
        for time_entry in self.time_entries:
            if time_entry["id"] == id:
                return time_entry
        return None

    def append(self, time_entry: TimeEntry) -> EntityId:
        """
        Add an entry to the ledger. Appending an id that is already present
        leaves the ledger untouched.
        """
        if time_entry["id"] is None:
            time_entry["id"] = generate_entity_id()
        elif self.__find(time_entry["id"]) is not None:
            return time_entry["id"]

        stored_time_entry = deepcopy(time_entry)
        self.time_entries.append(stored_time_entry)
        self._dirty_ids.add(time_entry["id"])
        try:
            self.flush()
        except Exception:
            # Keep memory in step with disk: an entry that never landed is not in the ledger
            self.time_entries.remove(stored_time_entry)
            self._dirty_ids.discard(time_entry["id"])
            raise

        logger.debug(
            "appended time entry %s (%s min on #%s)",
            time_entry["id"],
            time_entry["duration_minutes"],
            time_entry["work_item_id"],
        )
        return time_entry["id"]

    def remove(self, id: EntityId) -> bool:
        time_entry = self.__find(id)
        if time_entry is None:
            return False

        self._deleted_ids.add(id)
        try:
            self.flush()
        except Exception:
            # The file is still there, so the entry stays in the ledger
            self._deleted_ids.discard(id)
            raise
        self.time_entries.remove(time_entry)
        self._dirty_ids.discard(id)

        logger.debug("removed time entry %s", id)
        return True

    def mark_synced(
        self, ids: Iterable[EntityId], synced_at: pendulum.DateTime
    ) -> list[EntityId]:
        """
        Flag exactly the given entries as synced. Unknown ids and entries that
        are already synced are ignored, so an entry's first synced_at is kept.
        """
        wanted = set(ids)
        marked: list[EntityId] = []
        previous: list[tuple[TimeEntry, pendulum.DateTime]] = []
        for time_entry in self.time_entries:
            if time_entry["id"] in wanted and not time_entry["synced_to_ado"]:
                previous.append((time_entry, time_entry["updated"]))
                time_entry["synced_to_ado"] = True
                time_entry["synced_at"] = synced_at
                time_entry["updated"] = synced_at
                self._dirty_ids.add(cast(str, time_entry["id"]))
                marked.append(cast(str, time_entry["id"]))

        try:
            self.flush()
        except Exception:
            written = [id for id in marked if id not in self._dirty_ids]
            for time_entry, updated in previous:
                time_entry["synced_to_ado"] = False
                time_entry["synced_at"] = None
                time_entry["updated"] = updated
            self._dirty_ids.difference_update(marked)
            self.__restore_files(written)
            raise
        return marked

    def __restore_files(self, ids: list[EntityId]) -> None:
        """Write the in-memory state of entries back over files already changed on disk."""
        if len(ids) == 0:
            return
        self._dirty_ids.update(ids)
        try:
            self.__save_data()
        except OSError:
            logger.error(
                "time entries %s stay flagged synced on disk only; they are "
                "reloaded as synced on the next run",
                sorted(ids),
            )
        finally:
            self._dirty_ids.difference_update(ids)

    def reload(self, ids: Iterable[EntityId]) -> None:
        """
        Re-read the given entries from disk so changes made by another process
        are seen. Entries whose file is gone drop out of the ledger.
        """
        for id in set(ids):
            time_entry = self.__find(id)
            if time_entry is not None:
                self.time_entries.remove(time_entry)

            file_path = self.directory / f"{id}.yaml"
            if not file_path.is_file():
                continue
            raw_time_entry = load(file_path.read_text(), Loader=Loader)
            if raw_time_entry is not None:
                self.time_entries.append(
                    self.__convert_time_entry_for_deserialization(raw_time_entry)
                )

    def list_unsynced(self) -> list[TimeEntry]:
        unsynced = [
            time_entry
            for time_entry in self.time_entries
            if not time_entry["synced_to_ado"]
        ]
        unsynced.sort(key=lambda time_entry: (time_entry["start"], time_entry["id"]))
        return deepcopy(unsynced)

    def get_all_time_entries(self) -> list[TimeEntry]:
        time_entries = sorted(
            self.time_entries,
            key=lambda time_entry: (time_entry["created"], time_entry["id"]),
            reverse=True,
        )
        return deepcopy(time_entries)

    def get_time_entry(self, id: EntityId) -> Optional[TimeEntry]:
        return deepcopy(self.__find(id))

    def get_time_entries(self, ids: Iterable[EntityId]) -> list[TimeEntry]:
        wanted = set(ids)
        return deepcopy(
            [time_entry for time_entry in self.time_entries if time_entry["id"] in wanted]
        )
