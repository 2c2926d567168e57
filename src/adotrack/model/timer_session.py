# SPDX-License-Identifier: MIT

from enum import StrEnum
from typing import Optional, TypedDict

import pendulum

from adotrack.model.work_item import WorkItem


class TimerStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class TimerSession(TypedDict):
    """
    Snapshot of the in-flight tracking session, persisted on every transition
    so the timer can be rehydrated after a restart.

    Invariants: is_paused implies is_running, and pause_started_at is set
    exactly when is_paused is.
    """

    is_running: bool
    is_paused: bool
    start: Optional[pendulum.DateTime]
    accumulated_paused_ms: int
    pause_started_at: Optional[pendulum.DateTime]
    work_item: Optional[WorkItem]


class TimerState(TypedDict):
    status: TimerStatus
    is_running: bool
    is_paused: bool
    start: Optional[pendulum.DateTime]
    elapsed_seconds: int
    work_item: Optional[WorkItem]
