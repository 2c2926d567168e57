# SPDX-License-Identifier: MIT

"""Composition root: builds the timer, ledger and sync services once per process."""

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from adotrack import configuration
from adotrack.client.azure_devops import AzureDevOpsClient
from adotrack.model.entity_id import EntityId
from adotrack.repository.configuration import CONFIGURATION_REPO
from adotrack.repository.organization import ORGANIZATION_REPO, OrganizationRepository
from adotrack.repository.sync_log import SyncLogRepository
from adotrack.repository.time_entry import TimeEntryRepository
from adotrack.repository.timer_session import TimerSessionRepository
from adotrack.service.sync import GroupLocks, SyncReconciler
from adotrack.service.timer import TimerStateMachine
from adotrack.service.work_item import WorkItemDirectory

_runtime: ContextVar[Optional["Runtime"]] = ContextVar("runtime", default=None)


@dataclass
class Runtime:
    config: configuration.Configuration
    organizations: OrganizationRepository
    ledger: TimeEntryRepository
    sync_logs: SyncLogRepository
    client: AzureDevOpsClient
    directory: WorkItemDirectory
    timer: TimerStateMachine
    reconciler: SyncReconciler

    def close(self) -> None:
        self.timer.close()


def build_runtime(
    config: configuration.Configuration,
    organizations: OrganizationRepository,
    tick_interval: Optional[float] = None,
) -> Runtime:
    ledger = TimeEntryRepository()
    sync_logs = SyncLogRepository(limit=config["sync_log_limit"])
    client = AzureDevOpsClient(timeout=config["request_timeout_seconds"])
    directory = WorkItemDirectory(client, cache_seconds=config["work_item_cache_seconds"])

    def organization_name(id: EntityId) -> Optional[str]:
        organization = organizations.find_organization(id)
        return organization["name"] if organization is not None else None

    timer = TimerStateMachine(
        ledger,
        TimerSessionRepository(),
        organization_name=organization_name,
        rounding_minutes=config["time_rounding_minutes"],
        tick_interval=tick_interval,
    )
    reconciler = SyncReconciler(
        ledger,
        sync_logs,
        reader=directory,
        writer=client,
        find_organization=organizations.find_organization,
        locks=GroupLocks(configuration.DATA_LOCKS_DIR),
    )
    timer.restore()

    return Runtime(
        config=config,
        organizations=organizations,
        ledger=ledger,
        sync_logs=sync_logs,
        client=client,
        directory=directory,
        timer=timer,
        reconciler=reconciler,
    )


def get_runtime(tick_interval: Optional[float] = None) -> Runtime:
    """
    Return the runtime for this process, building it on first use. One-shot
    commands leave tick_interval unset; long-running views ask for ticking.
    """
    runtime = _runtime.get()
    if runtime is None:
        runtime = build_runtime(
            CONFIGURATION_REPO.get_config(), ORGANIZATION_REPO, tick_interval
        )
        _runtime.set(runtime)
    return runtime


def close_runtime() -> None:
    runtime = _runtime.get()
    if runtime is not None:
        runtime.close()
        _runtime.set(None)
