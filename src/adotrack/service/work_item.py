# SPDX-License-Identifier: MIT

import logging
import re
import threading
from copy import deepcopy
from typing import Callable, Optional, Protocol

import pendulum

from adotrack.model.organization import Organization
from adotrack.model.work_item import (
    TERMINAL_STATES,
    TRACKABLE_TYPES,
    WorkItem,
    is_trackable,
)
from adotrack.time import now_utc

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 50
ASSIGNED_LIMIT = 200

_ID_QUERY = re.compile(r"^#?\s*(\d+)$")


class WorkItemClient(Protocol):
    def query_work_item_ids(
        self, organization: Organization, wiql: str, limit: int
    ) -> list[int]: ...

    def get_work_items(
        self, organization: Organization, ids: list[int]
    ) -> list[WorkItem]: ...

    def get_work_item(
        self, organization: Organization, id: int
    ) -> Optional[WorkItem]: ...


def _quoted_list(values: tuple[str, ...]) -> str:
    return ", ".join(f"'{value}'" for value in values)


def _trackable_clause() -> str:
    return (
        f"[System.State] NOT IN ({_quoted_list(TERMINAL_STATES)})\n"
        f"  AND [System.WorkItemType] IN ({_quoted_list(TRACKABLE_TYPES)})"
    )


def build_assigned_query() -> str:
    return (
        "SELECT [System.Id], [System.Title], [System.WorkItemType], [System.State]\n"
        "FROM WorkItems\n"
        "WHERE [System.AssignedTo] = @Me\n"
        f"  AND {_trackable_clause()}\n"
        "ORDER BY [System.ChangedDate] DESC"
    )


def build_title_query(text: str) -> str:
    escaped = text.replace("'", "''")
    return (
        "SELECT [System.Id], [System.Title], [System.WorkItemType], [System.State]\n"
        "FROM WorkItems\n"
        f"WHERE [System.Title] CONTAINS '{escaped}'\n"
        f"  AND {_trackable_clause()}\n"
        "ORDER BY [System.ChangedDate] DESC"
    )


def parse_work_item_id(text: str) -> Optional[int]:
    """Return the id for text like '123' or '#123', otherwise None."""
    match = _ID_QUERY.match(text.strip())
    if match is None:
        return None
    id = int(match.group(1))
    return id if id > 0 else None


class WorkItemDirectory:
    """
    Read-through cache over the remote work item queries.

    Cached snapshots are only used for display and for picking what to track;
    get_current_completed_work always goes to the server.
    """

    def __init__(
        self,
        client: WorkItemClient,
        cache_seconds: int = 300,
        clock: Callable[[], pendulum.DateTime] = now_utc,
    ) -> None:
        self._client = client
        self._cache_seconds = cache_seconds
        self._clock = clock
        self._cache: dict[tuple[str, int], tuple[pendulum.DateTime, WorkItem]] = {}
        self._lock = threading.Lock()

    def _cache_key(self, organization: Organization, id: int) -> tuple[str, int]:
        return (organization["id"] or "", id)

    def _remember(self, organization: Organization, work_items: list[WorkItem]) -> None:
        fetched_at = self._clock()
        with self._lock:
            for work_item in work_items:
                self._cache[self._cache_key(organization, work_item["id"])] = (
                    fetched_at,
                    deepcopy(work_item),
                )

    def _cached(self, organization: Organization, id: int) -> Optional[WorkItem]:
        with self._lock:
            cached = self._cache.get(self._cache_key(organization, id))
        if cached is None:
            return None
        fetched_at, work_item = cached
        if (self._clock() - fetched_at).total_seconds() > self._cache_seconds:
            return None
        return deepcopy(work_item)

    def invalidate(self, organization: Organization, id: int) -> None:
        with self._lock:
            self._cache.pop(self._cache_key(organization, id), None)

    def get_by_id(self, organization: Organization, id: int) -> Optional[WorkItem]:
        work_item = self._cached(organization, id)
        if work_item is None:
            work_item = self._client.get_work_item(organization, id)
            if work_item is None:
                return None
            self._remember(organization, [work_item])
        if not is_trackable(work_item):
            logger.debug(
                "work item #%s is %s %s, not trackable",
                id,
                work_item["state"],
                work_item["type"],
            )
            return None
        return work_item

    def search(self, organization: Organization, text: str) -> list[WorkItem]:
        id = parse_work_item_id(text)
        if id is not None:
            work_item = self.get_by_id(organization, id)
            return [work_item] if work_item is not None else []

        ids = self._client.query_work_item_ids(
            organization, build_title_query(text), SEARCH_LIMIT
        )
        return self._fetch_trackable(organization, ids)

    def list_assigned_to_current_user(
        self, organization: Organization
    ) -> list[WorkItem]:
        ids = self._client.query_work_item_ids(
            organization, build_assigned_query(), ASSIGNED_LIMIT
        )
        return self._fetch_trackable(organization, ids)

    def _fetch_trackable(
        self, organization: Organization, ids: list[int]
    ) -> list[WorkItem]:
        work_items = self._client.get_work_items(organization, ids)
        self._remember(organization, work_items)
        return [work_item for work_item in work_items if is_trackable(work_item)]

    def get_current_completed_work(
        self, organization: Organization, id: int
    ) -> Optional[float]:
        """
        Fetch the live CompletedWork (hours) of a work item, bypassing the cache
        and the trackable filter. Returns None when the item does not exist;
        an item with no CompletedWork yet counts as 0.
        """
        work_item = self._client.get_work_item(organization, id)
        if work_item is None:
            return None
        self._remember(organization, [work_item])
        return float(work_item["completed_work"] or 0.0)
