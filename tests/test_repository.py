# SPDX-License-Identifier: MIT

import pathlib

import pendulum
import pytest
from conftest import make_organization, make_time_entry, make_work_item

from adotrack.repository import time_entry as time_entry_module
from adotrack.repository.id_map import IdMapRepository
from adotrack.repository.organization import (
    OrganizationNotFoundError,
    OrganizationRepository,
)
from adotrack.repository.sync_log import SyncLogRepository
from adotrack.repository.time_entry import TimeEntryRepository
from adotrack.repository.timer_session import TimerSessionRepository


def make_sync_log(work_item_id: int, status: str = "success"):
    return {
        "id": None,
        "work_item_id": work_item_id,
        "work_item_title": f"Item {work_item_id}",
        "organization_id": "org-1",
        "hours_synced": 0.5,
        "synced_at": pendulum.datetime(2025, 3, 10, 9, tz="UTC"),
        "status": status,
        "error_message": None if status == "success" else "boom",
    }


class TestTimeEntryRepository:
    def test_append_writes_through(self, tmp_path):
        directory = tmp_path / "time_entries"
        ledger = TimeEntryRepository(directory)

        id = ledger.append(make_time_entry(minutes=25))

        assert (directory / f"{id}.yaml").is_file()
        reloaded = TimeEntryRepository(directory).get_time_entry(id)
        assert reloaded is not None
        assert reloaded["duration_minutes"] == 25
        assert reloaded["start"] == pendulum.datetime(2025, 3, 10, 9, tz="UTC")
        assert reloaded["synced_at"] is None

    def test_append_same_id_twice_is_ignored(self, ledger):
        time_entry = make_time_entry(id="fixed")
        ledger.append(time_entry)
        ledger.append(make_time_entry(minutes=99, id="fixed"))

        [stored] = ledger.get_all_time_entries()
        assert stored["duration_minutes"] == 15

    def test_list_unsynced_is_ordered_by_start(self, ledger):
        start = pendulum.datetime(2025, 3, 10, 9, tz="UTC")
        late = ledger.append(make_time_entry(start=start.add(hours=2)))
        early = ledger.append(make_time_entry(start=start))
        middle = ledger.append(make_time_entry(start=start.add(hours=1)))

        assert [e["id"] for e in ledger.list_unsynced()] == [early, middle, late]

    def test_mark_synced_only_touches_given_ids(self, ledger, tmp_path):
        first = ledger.append(make_time_entry())
        second = ledger.append(make_time_entry())
        synced_at = pendulum.datetime(2025, 3, 11, 8, tz="UTC")

        assert ledger.mark_synced([first, "unknown"], synced_at) == [first]

        reloaded = TimeEntryRepository(tmp_path / "time_entries")
        assert reloaded.get_time_entry(first)["synced_to_ado"] is True
        assert reloaded.get_time_entry(first)["synced_at"] == synced_at
        assert reloaded.get_time_entry(second)["synced_to_ado"] is False

    def test_mark_synced_keeps_first_synced_at(self, ledger):
        id = ledger.append(make_time_entry())
        first = pendulum.datetime(2025, 3, 11, 8, tz="UTC")
        ledger.mark_synced([id], first)

        assert ledger.mark_synced([id], first.add(days=1)) == []
        assert ledger.get_time_entry(id)["synced_at"] == first

    def test_remove(self, ledger, tmp_path):
        id = ledger.append(make_time_entry())

        assert ledger.remove(id) is True
        assert ledger.remove(id) is False
        assert not (tmp_path / "time_entries" / f"{id}.yaml").exists()
        assert TimeEntryRepository(tmp_path / "time_entries").get_all_time_entries() == []

    def test_returned_entries_are_copies(self, ledger):
        id = ledger.append(make_time_entry())

        ledger.get_time_entry(id)["synced_to_ado"] = True

        assert ledger.get_time_entry(id)["synced_to_ado"] is False

    def test_failed_mark_synced_leaves_entries_unsynced(
        self, ledger, tmp_path, monkeypatch
    ):
        start = pendulum.datetime(2025, 3, 10, 9, tz="UTC")
        first_id = ledger.append(make_time_entry(start=start))
        second_id = ledger.append(make_time_entry(start=start.add(hours=1)))
        calls = []

        def write_second_fails(path, text):
            calls.append(path)
            if len(calls) == 2:
                raise OSError("disk full")
            original_write(path, text)

        original_write = time_entry_module.write_text_atomically
        monkeypatch.setattr(
            time_entry_module, "write_text_atomically", write_second_fails
        )

        with pytest.raises(OSError, match="disk full"):
            ledger.mark_synced([first_id, second_id], pendulum.now("UTC"))

        assert [e["id"] for e in ledger.list_unsynced()] == [first_id, second_id]
        assert ledger.flush() is False
        on_disk = TimeEntryRepository(tmp_path / "time_entries")
        assert len(on_disk.list_unsynced()) == 2

    def test_failed_remove_keeps_entry(self, ledger, tmp_path, monkeypatch):
        id = ledger.append(make_time_entry())

        def unlink_fails(self, missing_ok=False):
            raise PermissionError("read-only")

        monkeypatch.setattr(pathlib.Path, "unlink", unlink_fails)
        with pytest.raises(PermissionError):
            ledger.remove(id)
        monkeypatch.undo()

        assert ledger.get_time_entry(id) is not None
        # What the exit hook runs must not delete it later
        assert ledger.flush() is False
        assert (tmp_path / "time_entries" / f"{id}.yaml").is_file()

    def test_reload_picks_up_changes_from_another_ledger(self, tmp_path):
        directory = tmp_path / "time_entries"
        first = TimeEntryRepository(directory)
        synced_id = first.append(make_time_entry(minutes=10))
        removed_id = first.append(make_time_entry(minutes=20))
        second = TimeEntryRepository(directory)
        assert len(second.list_unsynced()) == 2

        first.mark_synced([synced_id], pendulum.now("UTC"))
        first.remove(removed_id)
        second.reload([synced_id, removed_id])

        assert second.get_time_entry(synced_id)["synced_to_ado"] is True
        assert second.get_time_entry(removed_id) is None
        assert second.list_unsynced() == []


class TestTimerSessionRepository:
    def test_round_trip_and_clear(self, session_repository):
        start = pendulum.datetime(2025, 3, 10, 9, tz="UTC")
        session_repository.save(
            {
                "is_running": True,
                "is_paused": True,
                "start": start,
                "accumulated_paused_ms": 1500,
                "pause_started_at": start.add(minutes=5),
                "work_item": make_work_item(),
            }
        )

        saved = session_repository.load()
        assert saved["start"] == start
        assert saved["pause_started_at"] == start.add(minutes=5)
        assert saved["accumulated_paused_ms"] == 1500
        assert saved["work_item"]["title"] == "Fix login"

        session_repository.save(None)
        assert session_repository.load() is None

    def test_missing_file(self, tmp_path):
        assert TimerSessionRepository(tmp_path / "nope.yaml").load() is None


class TestSyncLogRepository:
    def test_newest_first_and_capped(self, tmp_path):
        sync_logs = SyncLogRepository(tmp_path / "sync_log.yaml", limit=3)
        for work_item_id in range(1, 6):
            sync_logs.append(make_sync_log(work_item_id))

        recent = SyncLogRepository(tmp_path / "sync_log.yaml", limit=3).get_recent()
        assert [s["work_item_id"] for s in recent] == [5, 4, 3]

    def test_get_recent_limit(self, sync_logs):
        for work_item_id in range(1, 4):
            sync_logs.append(make_sync_log(work_item_id, status="failed"))

        assert [s["work_item_id"] for s in sync_logs.get_recent(2)] == [3, 2]

    def test_limit_must_be_positive(self, tmp_path):
        with pytest.raises(ValueError):
            SyncLogRepository(tmp_path / "sync_log.yaml", limit=0)


class TestOrganizationRepository:
    def test_first_organization_becomes_default(self, tmp_path):
        organizations = OrganizationRepository(tmp_path / "organizations.yaml")
        organization = make_organization(id="ignored")
        organization["is_default"] = False
        organization["url"] = "https://dev.azure.com/contoso/"

        id = organizations.save_new_organization(organization)

        saved = organizations.get_organization(id)
        assert saved["is_default"] is True
        assert saved["url"] == "https://dev.azure.com/contoso"

    def test_removing_default_promotes_next(self, tmp_path):
        organizations = OrganizationRepository(tmp_path / "organizations.yaml")
        first = organizations.save_new_organization(make_organization(name="a"))
        second = organizations.save_new_organization(make_organization(name="b"))
        assert organizations.get_default_organization()["id"] == second

        organizations.remove_organization(second)

        assert organizations.get_default_organization()["id"] == first

    def test_set_default_and_persist(self, tmp_path):
        path = tmp_path / "organizations.yaml"
        organizations = OrganizationRepository(path)
        first = organizations.save_new_organization(make_organization(name="a"))
        organizations.save_new_organization(make_organization(name="b"))

        organizations.set_default_organization(first)
        assert organizations.flush() is True

        reloaded = OrganizationRepository(path)
        assert reloaded.get_default_organization()["name"] == "a"
        assert len(reloaded.get_all_organizations()) == 2

    def test_unknown_organization(self, tmp_path):
        organizations = OrganizationRepository(tmp_path / "organizations.yaml")

        assert organizations.find_organization("missing") is None
        with pytest.raises(OrganizationNotFoundError):
            organizations.get_organization("missing")
        with pytest.raises(OrganizationNotFoundError):
            organizations.set_default_organization("missing")


class TestIdMapRepository:
    def test_synthetic_ids_are_stable(self, tmp_path):
        path = tmp_path / "id_map.yaml"
        id_map = IdMapRepository(path)

        assert id_map.associate_id("time_entries", "uuid-a") == 1
        assert id_map.associate_id("time_entries", "uuid-b") == 2
        assert id_map.associate_id("time_entries", "uuid-a") == 1
        assert id_map.associate_id("organizations", "org-x") == 1
        id_map.flush()

        reloaded = IdMapRepository(path)
        assert reloaded.get_real_id("time_entries", 2) == "uuid-b"
        assert reloaded.get_real_id("organizations", 1) == "org-x"

    def test_unknown_entity_type(self, tmp_path):
        with pytest.raises(TypeError):
            IdMapRepository(tmp_path / "id_map.yaml").associate_id("tasks", "x")

    def test_clear_ids(self, tmp_path):
        id_map = IdMapRepository(tmp_path / "id_map.yaml")
        id_map.associate_id("time_entries", "uuid-a")

        id_map.clear_ids()

        with pytest.raises(KeyError):
            id_map.get_real_id("time_entries", 1)
