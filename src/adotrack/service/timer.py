# SPDX-License-Identifier: MIT

import logging
import math
import threading
from copy import deepcopy
from typing import Callable, Optional, TypeAlias

import pendulum

from adotrack.model.entity_id import EntityId, generate_entity_id
from adotrack.model.time_entry import TimeEntry
from adotrack.model.timer_session import TimerSession, TimerState, TimerStatus
from adotrack.model.work_item import WorkItem
from adotrack.repository.time_entry import TimeEntryRepository
from adotrack.repository.timer_session import TimerSessionRepository
from adotrack.template.time_entry import get_time_entry_template
from adotrack.time import milliseconds_between, now_utc

logger = logging.getLogger(__name__)

MILLISECONDS_PER_MINUTE = 60_000

TickListener: TypeAlias = Callable[[int], None]
StateListener: TypeAlias = Callable[[TimerState], None]


def round_duration_minutes(duration_ms: int, rounding_minutes: int = 1) -> int:
    """
    Round a tracked duration to whole minutes, half up. Anything that rounds
    below one minute comes back as 0. With a rounding step above one minute the
    result snaps to the nearest multiple of the step, never below one step.
    """
    if duration_ms <= 0:
        return 0
    minutes = math.floor(duration_ms / MILLISECONDS_PER_MINUTE + 0.5)
    if minutes < 1 or rounding_minutes <= 1:
        return minutes
    return max(
        rounding_minutes,
        math.floor(minutes / rounding_minutes + 0.5) * rounding_minutes,
    )


class TimerStateMachine:
    """
    Owns the single in-flight tracking session.

    idle -> running -> {paused <-> running} -> idle (via stop). Every transition
    persists a snapshot so restore() can pick the session up after a restart,
    and notifies state listeners in transition order. While running, a
    background thread publishes the elapsed seconds once per tick_interval.
    """

    def __init__(
        self,
        ledger: TimeEntryRepository,
        session_repository: TimerSessionRepository,
        organization_name: Callable[[EntityId], Optional[str]] = lambda _: None,
        clock: Callable[[], pendulum.DateTime] = now_utc,
        rounding_minutes: int = 1,
        tick_interval: Optional[float] = 1.0,
    ) -> None:
        self._ledger = ledger
        self._session_repository = session_repository
        self._organization_name = organization_name
        self._clock = clock
        self._rounding_minutes = rounding_minutes
        self._tick_interval = tick_interval

        self._lock = threading.RLock()
        self._is_running = False
        self._is_paused = False
        self._start: Optional[pendulum.DateTime] = None
        self._accumulated_paused_ms = 0
        self._pause_started_at: Optional[pendulum.DateTime] = None
        self._work_item: Optional[WorkItem] = None

        self._tick_listeners: list[TickListener] = []
        self._state_listeners: list[StateListener] = []
        self._tick_stop: Optional[threading.Event] = None
        self._tick_thread: Optional[threading.Thread] = None

    # ── queries ──────────────────────────────────────────────

    @property
    def status(self) -> TimerStatus:
        with self._lock:
            if not self._is_running:
                return TimerStatus.IDLE
            if self._is_paused:
                return TimerStatus.PAUSED
            return TimerStatus.RUNNING

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def is_ticking(self) -> bool:
        return self._tick_thread is not None

    @property
    def current_work_item(self) -> Optional[WorkItem]:
        with self._lock:
            return deepcopy(self._work_item)

    def elapsed_ms(self) -> int:
        with self._lock:
            return self.__elapsed_ms_at(self._clock())

    def elapsed(self) -> pendulum.Duration:
        return pendulum.duration(milliseconds=self.elapsed_ms())

    @property
    def elapsed_seconds(self) -> int:
        return self.elapsed_ms() // 1000

    def get_state(self) -> TimerState:
        with self._lock:
            return {
                "status": self.status,
                "is_running": self._is_running,
                "is_paused": self._is_paused,
                "start": self._start,
                "elapsed_seconds": self.__elapsed_ms_at(self._clock()) // 1000,
                "work_item": deepcopy(self._work_item),
            }

    def __elapsed_ms_at(self, now: pendulum.DateTime) -> int:
        if self._start is None:
            return 0
        elapsed = milliseconds_between(self._start, now) - self._accumulated_paused_ms
        if self._is_paused and self._pause_started_at is not None:
            elapsed -= milliseconds_between(self._pause_started_at, now)
        return max(elapsed, 0)

    # ── listeners ────────────────────────────────────────────

    def subscribe_tick(self, listener: TickListener) -> Callable[[], None]:
        with self._lock:
            self._tick_listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._tick_listeners:
                    self._tick_listeners.remove(listener)

        return unsubscribe

    def subscribe_state_changed(self, listener: StateListener) -> Callable[[], None]:
        with self._lock:
            self._state_listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._state_listeners:
                    self._state_listeners.remove(listener)

        return unsubscribe

    # ── transitions ──────────────────────────────────────────

    def start(self, work_item: WorkItem) -> bool:
        with self._lock:
            if self._is_running:
                logger.warning(
                    "ignoring start on #%s: timer already tracking #%s",
                    work_item["id"],
                    self._work_item["id"] if self._work_item else "?",
                )
                return False

            self._is_running = True
            self._is_paused = False
            self._start = self._clock()
            self._accumulated_paused_ms = 0
            self._pause_started_at = None
            self._work_item = deepcopy(work_item)

            logger.info("started timer on #%s", work_item["id"])
            self.__start_ticking()
            self.__commit()
        return True

    def pause(self) -> bool:
        with self._lock:
            if not self._is_running or self._is_paused:
                logger.warning("ignoring pause: timer is %s", self.status)
                return False

            self._is_paused = True
            self._pause_started_at = self._clock()

            self.__stop_ticking()
            self.__commit()
        return True

    def resume(self) -> bool:
        with self._lock:
            if not self._is_running or not self._is_paused:
                logger.warning("ignoring resume: timer is %s", self.status)
                return False

            now = self._clock()
            if self._pause_started_at is not None:
                self._accumulated_paused_ms += max(
                    milliseconds_between(self._pause_started_at, now), 0
                )
            self._is_paused = False
            self._pause_started_at = None

            self.__start_ticking()
            self.__commit()
        return True

    def stop(self) -> Optional[TimeEntry]:
        """
        End the session. Returns the ledger entry, or None when there was no
        session or it rounded to less than a minute and was discarded.
        """
        with self._lock:
            if not self._is_running or self._start is None or self._work_item is None:
                logger.warning("ignoring stop: timer is %s", self.status)
                return None

            end = self._clock()
            accumulated_paused_ms = self._accumulated_paused_ms
            if self._is_paused and self._pause_started_at is not None:
                accumulated_paused_ms += max(
                    milliseconds_between(self._pause_started_at, end), 0
                )

            duration_ms = milliseconds_between(self._start, end) - accumulated_paused_ms
            duration_minutes = round_duration_minutes(
                duration_ms, self._rounding_minutes
            )

            if duration_minutes < 1:
                logger.info(
                    "discarded %ss session on #%s: under a minute",
                    max(duration_ms, 0) // 1000,
                    self._work_item["id"],
                )
                self.__reset()
                return None

            time_entry = get_time_entry_template(self._work_item)
            time_entry["id"] = generate_entity_id()
            time_entry["organization_name"] = (
                self._organization_name(self._work_item["organization_id"])
                or "Unknown"
            )
            time_entry["start"] = self._start
            time_entry["end"] = end
            time_entry["duration_minutes"] = duration_minutes
            time_entry["created"] = end
            time_entry["updated"] = end

            # If the ledger write fails the session stays open so no time is lost
            self._ledger.append(time_entry)

            logger.info(
                "stopped timer on #%s: %s min", self._work_item["id"], duration_minutes
            )
            self.__reset()
            return time_entry

    def restore(self) -> bool:
        """
        Rehydrate a session persisted by an earlier process. A paused snapshot
        without a recorded pause start is treated as paused from now on.
        """
        with self._lock:
            if self._is_running:
                return False

            saved = self.__load_saved()
            if saved is None:
                return False

            self.__adopt(saved)
            logger.info("restored %s timer on #%s", self.status, saved["work_item"]["id"])
            self.__emit_state_changed()
        return True

    def refresh(self) -> bool:
        """
        Adopt the persisted snapshot when another process paused, resumed,
        stopped or started the session. Returns True when the state changed.
        Nothing is written back.
        """
        with self._lock:
            saved = self.__load_saved()
            current = self.__snapshot()
            if (
                saved is not None
                and current is not None
                and saved["is_paused"]
                and saved["pause_started_at"] is None
            ):
                # Keep the pause start already assumed for an older snapshot
                saved["pause_started_at"] = current["pause_started_at"]
            if saved == current:
                return False

            if saved is None:
                self._is_running = False
                self._is_paused = False
                self._start = None
                self._accumulated_paused_ms = 0
                self._pause_started_at = None
                self._work_item = None
                self.__stop_ticking()
            else:
                self.__adopt(saved)

            logger.info("timer changed elsewhere, now %s", self.status)
            self.__emit_state_changed()
        return True

    def tick(self) -> Optional[int]:
        """Publish the current elapsed seconds to tick listeners while running."""
        with self._lock:
            if self.status is not TimerStatus.RUNNING:
                return None
            elapsed_seconds = self.__elapsed_ms_at(self._clock()) // 1000
            listeners = list(self._tick_listeners)

        for listener in listeners:
            try:
                listener(elapsed_seconds)
            except Exception:
                logger.exception("tick listener failed")
        return elapsed_seconds

    def close(self) -> None:
        with self._lock:
            self.__stop_ticking()

    # ── internals ────────────────────────────────────────────

    def __reset(self) -> None:
        self._is_running = False
        self._is_paused = False
        self._start = None
        self._accumulated_paused_ms = 0
        self._pause_started_at = None
        self._work_item = None
        self.__stop_ticking()
        self.__commit()

    def __load_saved(self) -> Optional[TimerSession]:
        saved = self._session_repository.load()
        if (
            saved is None
            or not saved["is_running"]
            or saved["start"] is None
            or saved["work_item"] is None
        ):
            return None
        return saved

    def __adopt(self, saved: TimerSession) -> None:
        assert saved["work_item"] is not None
        self._is_running = True
        self._is_paused = saved["is_paused"]
        self._start = saved["start"]
        self._accumulated_paused_ms = max(saved["accumulated_paused_ms"], 0)
        self._work_item = saved["work_item"]

        if self._is_paused:
            self._pause_started_at = saved["pause_started_at"]
            if self._pause_started_at is None:
                logger.warning(
                    "paused session on #%s has no pause start; counting the pause from now",
                    saved["work_item"]["id"],
                )
                self._pause_started_at = self._clock()
            self.__stop_ticking()
        else:
            self._pause_started_at = None
            self.__start_ticking()

    def __snapshot(self) -> Optional[TimerSession]:
        if not self._is_running:
            return None
        return {
            "is_running": self._is_running,
            "is_paused": self._is_paused,
            "start": self._start,
            "accumulated_paused_ms": self._accumulated_paused_ms,
            "pause_started_at": self._pause_started_at,
            "work_item": deepcopy(self._work_item),
        }

    def __commit(self) -> None:
        # The transition already happened in memory; a failed write is
        # reported to the caller but listeners still hear about it
        try:
            self._session_repository.save(self.__snapshot())
        finally:
            self.__emit_state_changed()

    def __emit_state_changed(self) -> None:
        state = self.get_state()
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("state listener failed")

    def __start_ticking(self) -> None:
        if self._tick_interval is None or self._tick_thread is not None:
            return
        stop_event = threading.Event()
        self._tick_stop = stop_event
        self._tick_thread = threading.Thread(
            target=self.__tick_loop,
            args=(stop_event, self._tick_interval),
            name="adotrack-timer-tick",
            daemon=True,
        )
        self._tick_thread.start()

    def __stop_ticking(self) -> None:
        if self._tick_stop is not None:
            self._tick_stop.set()
        self._tick_stop = None
        self._tick_thread = None

    def __tick_loop(self, stop_event: threading.Event, interval: float) -> None:
        while not stop_event.wait(interval):
            self.tick()
