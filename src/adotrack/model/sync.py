# SPDX-License-Identifier: MIT

from typing import Literal, Optional, TypedDict

import pendulum

from adotrack.model.entity_id import EntityId

SyncStatus = Literal["success", "failed"]


class SyncGroup(TypedDict):
    organization_id: EntityId
    work_item_id: int
    work_item_title: str
    total_minutes: int
    entry_ids: set[EntityId]


class SyncLog(TypedDict):
    id: Optional[EntityId]
    work_item_id: int
    work_item_title: str
    organization_id: EntityId
    hours_synced: float
    synced_at: pendulum.DateTime
    status: SyncStatus
    error_message: Optional[str]


class SyncResult(TypedDict):
    success: int
    failed: int
    skipped: int
