# SPDX-License-Identifier: MIT

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Protocol, TypeAlias

import pendulum
from filelock import FileLock, Timeout

from adotrack.client.azure_devops import ApiError
from adotrack.model.entity_id import EntityId
from adotrack.model.organization import Organization
from adotrack.model.sync import SyncGroup, SyncLog, SyncResult
from adotrack.model.time_entry import TimeEntry
from adotrack.repository.sync_log import SyncLogRepository
from adotrack.repository.time_entry import TimeEntryRepository
from adotrack.time import now_utc

logger = logging.getLogger(__name__)

GroupKey: TypeAlias = tuple[EntityId, int]


class CompletedWorkReader(Protocol):
    def get_current_completed_work(
        self, organization: Organization, id: int
    ) -> Optional[float]: ...


class CompletedWorkWriter(Protocol):
    def update_completed_work(
        self, organization: Organization, work_item_id: int, completed_work: float
    ) -> None: ...


class GroupLocks:
    """
    One lock per (organization, work item) so a group's read-then-write never
    interleaves. Threads of this process queue on a thread lock, other adotrack
    processes on a lock file in `directory`.
    """

    def __init__(self, directory: Path, timeout: float = 120.0) -> None:
        self.directory = directory
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[GroupKey, threading.Lock] = {}

    def lock_path(self, key: GroupKey) -> Path:
        organization_id, work_item_id = key
        return self.directory / f"{organization_id}-{work_item_id}.lock"

    @contextmanager
    def hold(self, key: GroupKey) -> Iterator[None]:
        """Raises filelock.Timeout when another process holds the group too long."""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            with FileLock(self.lock_path(key), timeout=self.timeout):
                yield


def group_entries(time_entries: Iterable[TimeEntry]) -> list[SyncGroup]:
    """
    Aggregate entries per (organization, work item). Groups come back in the
    order their first entry appears.
    """
    groups: dict[GroupKey, SyncGroup] = {}
    for time_entry in time_entries:
        key = (time_entry["organization_id"], time_entry["work_item_id"])
        group = groups.get(key)
        if group is None:
            group = {
                "organization_id": time_entry["organization_id"],
                "work_item_id": time_entry["work_item_id"],
                "work_item_title": time_entry["work_item_title"],
                "total_minutes": 0,
                "entry_ids": set(),
            }
            groups[key] = group
        group["total_minutes"] += time_entry["duration_minutes"]
        if time_entry["id"] is not None:
            group["entry_ids"].add(time_entry["id"])
    return list(groups.values())


class SyncReconciler:
    """
    Pushes unsynced ledger minutes into the remote CompletedWork field.

    Entries are grouped per work item so each item gets exactly one
    read-modify-write per pass. Entries are flagged synced only after their
    group's update succeeded, so re-running after a failure never adds the same
    minutes twice.
    """

    def __init__(
        self,
        ledger: TimeEntryRepository,
        sync_log_repository: SyncLogRepository,
        reader: CompletedWorkReader,
        writer: CompletedWorkWriter,
        find_organization: Callable[[EntityId], Optional[Organization]],
        clock: Callable[[], pendulum.DateTime] = now_utc,
        locks: Optional[GroupLocks] = None,
    ) -> None:
        self._ledger = ledger
        self._sync_log_repository = sync_log_repository
        self._reader = reader
        self._writer = writer
        self._find_organization = find_organization
        self._clock = clock
        self._locks = (
            locks if locks is not None else GroupLocks(ledger.directory.parent / "locks")
        )
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop starting new groups. A group already in flight still completes."""
        self._cancelled.set()

    def reset_cancellation(self) -> None:
        """Clear an earlier cancel(); call before handing sync() to a worker."""
        self._cancelled.clear()

    def sync(self, entry_ids: Optional[Iterable[EntityId]] = None) -> SyncResult:
        """
        Sync the given entries, or every unsynced entry when entry_ids is None.
        Once cancel() was called every group is skipped until reset_cancellation().
        """
        if entry_ids is None:
            selected = self._ledger.list_unsynced()
        else:
            selected = [
                time_entry
                for time_entry in self._ledger.get_time_entries(entry_ids)
                if not time_entry["synced_to_ado"]
            ]
            selected.sort(key=lambda time_entry: (time_entry["start"], time_entry["id"]))

        result: SyncResult = {"success": 0, "failed": 0, "skipped": 0}
        groups = group_entries(selected)
        logger.info("syncing %s entries in %s groups", len(selected), len(groups))

        for group in groups:
            if self._cancelled.is_set():
                result["skipped"] += 1
                continue
            outcome = self.sync_group(group)
            if outcome is None:
                result["skipped"] += 1
            elif outcome:
                result["success"] += 1
            else:
                result["failed"] += 1

        logger.info(
            "sync finished: %s succeeded, %s failed, %s skipped",
            result["success"],
            result["failed"],
            result["skipped"],
        )
        return result

    def sync_group(self, group: SyncGroup) -> Optional[bool]:
        """
        Apply one group. Returns True on success, False on failure and None
        when every entry in it was synced by someone else in the meantime.
        """
        key = (group["organization_id"], group["work_item_id"])
        try:
            with self._locks.hold(key):
                return self.__sync_group_locked(group)
        except Timeout:
            self.__record(
                group,
                group["total_minutes"] / 60,
                "another sync of this work item is still running",
            )
            return False

    def __sync_group_locked(self, group: SyncGroup) -> Optional[bool]:
        # Another pass, maybe in another process, may have synced some of these
        # while we waited
        self._ledger.reload(group["entry_ids"])
        pending = [
            time_entry
            for time_entry in self._ledger.get_time_entries(group["entry_ids"])
            if not time_entry["synced_to_ado"]
        ]
        if len(pending) == 0:
            logger.info(
                "skipping #%s: entries already synced", group["work_item_id"]
            )
            return None

        entry_ids = {
            time_entry["id"] for time_entry in pending if time_entry["id"]
        }
        total_minutes = sum(time_entry["duration_minutes"] for time_entry in pending)
        hours = total_minutes / 60

        organization = self._find_organization(group["organization_id"])
        if organization is None:
            self.__record(group, hours, "organization not found")
            return False

        try:
            current = self._reader.get_current_completed_work(
                organization, group["work_item_id"]
            )
            if current is None:
                self.__record(group, hours, "work item not found")
                return False

            new_total = current + hours
            self._writer.update_completed_work(
                organization, group["work_item_id"], new_total
            )
        except ApiError as e:
            self.__record(group, hours, str(e))
            return False

        synced_at = self._clock()
        try:
            self._ledger.mark_synced(entry_ids, synced_at)
        except Exception:
            logger.error(
                "CompletedWork of #%s was updated but entries %s could not be "
                "flagged synced; fix them before syncing again",
                group["work_item_id"],
                sorted(entry_ids),
            )
            raise

        logger.info(
            "#%s: %.2fh -> %.2fh (%s entries)",
            group["work_item_id"],
            current,
            new_total,
            len(entry_ids),
        )
        self.__record(group, hours, None)
        return True

    def __record(
        self, group: SyncGroup, hours: float, error_message: Optional[str]
    ) -> None:
        if error_message is not None:
            logger.warning(
                "sync of #%s failed: %s", group["work_item_id"], error_message
            )
        sync_log: SyncLog = {
            "id": None,
            "work_item_id": group["work_item_id"],
            "work_item_title": group["work_item_title"],
            "organization_id": group["organization_id"],
            "hours_synced": hours,
            "synced_at": self._clock(),
            "status": "failed" if error_message is not None else "success",
            "error_message": error_message,
        }
        self._sync_log_repository.append(sync_log)
