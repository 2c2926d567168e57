# SPDX-License-Identifier: MIT

import pendulum
from conftest import make_time_entry

from adotrack.service.report import get_daily_summaries


def local_datetime(day: int, hour: int) -> pendulum.DateTime:
    return pendulum.datetime(2025, 3, day, hour, tz="local").in_tz("UTC")


def test_summaries_per_local_day():
    time_entries = [
        make_time_entry(work_item_id=1, minutes=30, start=local_datetime(10, 9)),
        make_time_entry(work_item_id=2, minutes=15, start=local_datetime(10, 14)),
        make_time_entry(work_item_id=1, minutes=45, start=local_datetime(10, 16)),
        make_time_entry(work_item_id=1, minutes=60, start=local_datetime(12, 10)),
    ]

    summaries = get_daily_summaries(
        time_entries, pendulum.date(2025, 3, 10), pendulum.date(2025, 3, 12)
    )

    assert [s["date"] for s in summaries] == [
        pendulum.date(2025, 3, 10),
        pendulum.date(2025, 3, 11),
        pendulum.date(2025, 3, 12),
    ]
    monday, tuesday, wednesday = summaries
    assert monday["total_minutes"] == 90
    assert monday["by_work_item"][1] == {"title": "Fix login", "minutes": 75}
    assert monday["by_work_item"][2]["minutes"] == 15
    assert monday["by_project"] == {"Web": 90}
    assert [e["start"] for e in monday["entries"]] == sorted(
        e["start"] for e in monday["entries"]
    )
    assert tuesday["total_minutes"] == 0
    assert tuesday["entries"] == []
    assert wednesday["total_minutes"] == 60


def test_entries_outside_the_range_are_ignored():
    time_entries = [make_time_entry(minutes=30, start=local_datetime(9, 12))]

    [summary] = get_daily_summaries(
        time_entries, pendulum.date(2025, 3, 10), pendulum.date(2025, 3, 10)
    )

    assert summary["total_minutes"] == 0
