# SPDX-License-Identifier: MIT

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

import pendulum
import pytest
import requests

from adotrack.client.azure_devops import COMPLETED_WORK_FIELD, ApiError
from adotrack.model.organization import Organization
from adotrack.model.time_entry import TimeEntry
from adotrack.model.work_item import WorkItem
from adotrack.repository.sync_log import SyncLogRepository
from adotrack.repository.time_entry import TimeEntryRepository
from adotrack.repository.timer_session import TimerSessionRepository
from adotrack.template.organization import get_organization_template
from adotrack.template.time_entry import get_time_entry_template

ORG_ID = "org-1"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: Optional[pendulum.DateTime] = None) -> None:
        self.now = start or pendulum.datetime(2025, 3, 10, 9, 0, 0, tz="UTC")

    def __call__(self) -> pendulum.DateTime:
        return self.now

    def advance(self, **kwargs: int) -> None:
        self.now = self.now.add(**kwargs)

    def set(self, hour: int, minute: int, second: int = 0) -> None:
        self.now = self.now.set(hour=hour, minute=minute, second=second)


class FakeAzureDevOps:
    """In-memory stand-in for AzureDevOpsClient."""

    def __init__(self) -> None:
        self.work_items: dict[int, WorkItem] = {}
        self.failing_updates: set[int] = set()
        self.failing_reads: set[int] = set()
        self.patches: list[tuple[int, float]] = []
        self.queries: list[tuple[str, int]] = []
        self.query_result: list[int] = []
        self.get_calls = 0

    def add(self, work_item: WorkItem) -> WorkItem:
        self.work_items[work_item["id"]] = work_item
        return work_item

    def query_work_item_ids(
        self, organization: Organization, wiql: str, limit: int
    ) -> list[int]:
        self.queries.append((wiql, limit))
        return self.query_result[:limit]

    def get_work_items(self, organization: Organization, ids: list[int]) -> list[WorkItem]:
        self.get_calls += 1
        work_items: list[WorkItem] = []
        for id in ids:
            if id in self.work_items:
                work_item = deepcopy(self.work_items[id])
                work_item["organization_id"] = organization["id"] or ""
                work_items.append(work_item)
        return work_items

    def get_work_item(self, organization: Organization, id: int) -> Optional[WorkItem]:
        if id in self.failing_reads:
            raise ApiError("Azure DevOps: Server error.", 500)
        work_items = self.get_work_items(organization, [id])
        return work_items[0] if work_items else None

    def update_completed_work(
        self, organization: Organization, work_item_id: int, completed_work: float
    ) -> None:
        if work_item_id in self.failing_updates:
            raise ApiError("Azure DevOps: Access denied. Check the PAT token scopes!", 403)
        self.patches.append((work_item_id, completed_work))
        self.work_items[work_item_id]["completed_work"] = completed_work


def make_response(
    status_code: int, body: Optional[Any] = None, reason: str = ""
) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    if body is not None:
        response.headers["Content-Type"] = "application/json; charset=utf-8"
        response._content = json.dumps(body).encode()
    else:
        response._content = b""
    return response


def make_html_response(status_code: int = 203) -> requests.Response:
    """What Azure DevOps sends back for a bad or expired PAT."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = "Non-Authoritative Information"
    response.headers["Content-Type"] = "text/html; charset=utf-8"
    response._content = b"<html>Sign in</html>"
    return response


class RecordingSession:
    """Replays queued responses and records every request."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def raw_work_item(id: int, completed_work: Optional[float] = None) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "System.Title": f"Item {id}",
        "System.WorkItemType": "Task",
        "System.State": "Active",
        "System.AssignedTo": {"displayName": "Sam Doe", "uniqueName": "sam@contoso.com"},
    }
    if completed_work is not None:
        fields[COMPLETED_WORK_FIELD] = completed_work
    return {
        "id": id,
        "fields": fields,
        "_links": {"html": {"href": f"https://dev.azure.com/contoso/Web/_workitems/edit/{id}"}},
    }


def make_work_item(
    id: int = 123,
    title: str = "Fix login",
    type: str = "Task",
    state: str = "Active",
    completed_work: Optional[float] = None,
    organization_id: str = ORG_ID,
) -> WorkItem:
    return {
        "id": id,
        "title": title,
        "type": type,
        "state": state,
        "organization_id": organization_id,
        "project_name": "Web",
        "assigned_to": "Sam Doe",
        "completed_work": completed_work,
        "remaining_work": None,
        "original_estimate": None,
        "area_path": "Web",
        "iteration_path": "Web\\Sprint 1",
        "url": f"https://dev.azure.com/contoso/Web/_workitems/edit/{id}",
    }


def make_organization(id: str = ORG_ID, name: str = "contoso") -> Organization:
    organization = get_organization_template()
    organization["id"] = id
    organization["name"] = name
    organization["url"] = "https://dev.azure.com/contoso"
    organization["project"] = "Web"
    organization["is_default"] = True
    return organization


def make_time_entry(
    work_item_id: int = 123,
    minutes: int = 15,
    start: Optional[pendulum.DateTime] = None,
    organization_id: str = ORG_ID,
    id: Optional[str] = None,
) -> TimeEntry:
    time_entry = get_time_entry_template(
        make_work_item(id=work_item_id, organization_id=organization_id)
    )
    start = start or pendulum.datetime(2025, 3, 10, 9, 0, 0, tz="UTC")
    time_entry["id"] = id
    time_entry["organization_name"] = "contoso"
    time_entry["start"] = start
    time_entry["end"] = start.add(minutes=minutes)
    time_entry["duration_minutes"] = minutes
    time_entry["created"] = start.add(minutes=minutes)
    time_entry["updated"] = start.add(minutes=minutes)
    return time_entry


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_azure() -> FakeAzureDevOps:
    return FakeAzureDevOps()


@pytest.fixture
def organization() -> Organization:
    return make_organization()


@pytest.fixture
def ledger(tmp_path: Path) -> TimeEntryRepository:
    return TimeEntryRepository(tmp_path / "time_entries")


@pytest.fixture
def session_repository(tmp_path: Path) -> TimerSessionRepository:
    return TimerSessionRepository(tmp_path / "timer_session.yaml")


@pytest.fixture
def sync_logs(tmp_path: Path) -> SyncLogRepository:
    return SyncLogRepository(tmp_path / "sync_log.yaml")
