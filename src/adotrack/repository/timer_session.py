# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Any, Optional, cast

from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from adotrack import configuration, time
from adotrack.model.timer_session import TimerSession
from adotrack.repository.storage import write_text_atomically


class TimerSessionRepository:
    """Durable slot for the single timer session snapshot."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        if self._path is not None:
            return self._path
        return configuration.DATA_TIMER_SESSION_PATH

    def load(self) -> Optional[TimerSession]:
        if not self.path.is_file():
            return None
        raw_session = load(self.path.read_text(), Loader=Loader)
        if raw_session is None:
            return None
        return self.__convert_session_for_deserialization(raw_session)

    def save(self, session: Optional[TimerSession]) -> None:
        if session is None:
            self.path.unlink(missing_ok=True)
            return
        serializable_session = self.__convert_session_for_serialization(session)
        write_text_atomically(self.path, dump(serializable_session, Dumper=Dumper))

    def __convert_session_for_serialization(
        self, session: TimerSession
    ) -> dict[str, Any]:
        serializable_session = dict(cast(dict[str, Any], session))
        serializable_session["start"] = time.datetime_to_iso_str_optional(
            session["start"]
        )
        serializable_session["pause_started_at"] = time.datetime_to_iso_str_optional(
            session["pause_started_at"]
        )
        if session["work_item"] is not None:
            serializable_session["work_item"] = dict(session["work_item"])
        return serializable_session

    def __convert_session_for_deserialization(
        self, session: dict[str, Any]
    ) -> TimerSession:
        return {
            "is_running": bool(session.get("is_running", False)),
            "is_paused": bool(session.get("is_paused", False)),
            "start": time.datetime_from_str_optional(session.get("start")),
            "accumulated_paused_ms": int(session.get("accumulated_paused_ms") or 0),
            # Older snapshots did not record when the pause began
            "pause_started_at": time.datetime_from_str_optional(
                session.get("pause_started_at")
            ),
            "work_item": session.get("work_item"),
        }
