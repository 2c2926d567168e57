# SPDX-License-Identifier: MIT

import pendulum
import pytest
import typer

from adotrack.terminal.parse import parse_date, parse_datetime, parse_id_list


class TestParseIdList:
    def test_single_list_and_ranges(self):
        assert parse_id_list("3") == [3]
        assert parse_id_list("3,1,2") == [1, 2, 3]
        assert parse_id_list("1,3-5,8, 4") == [1, 3, 4, 5, 8]

    @pytest.mark.parametrize("value", ["", "a", "5-3", "1-2-3", "1-x"])
    def test_invalid(self, value):
        with pytest.raises(typer.BadParameter):
            parse_id_list(value)


class TestParseDatetime:
    def test_none(self):
        assert parse_datetime(None) is None

    def test_date_and_time_is_local(self):
        parsed = parse_datetime("2025-03-10 09:30")

        assert parsed == pendulum.datetime(2025, 3, 10, 9, 30, tz="local")
        assert parsed.timezone_name == "UTC"

    def test_time_only_is_today(self):
        parsed = parse_datetime("7:05")

        local = parsed.in_tz("local")
        assert (local.hour, local.minute) == (7, 5)
        assert local.date() == pendulum.today("local").date()

    @pytest.mark.parametrize("value", ["24:00", "9:75", "soon"])
    def test_invalid(self, value):
        with pytest.raises(typer.BadParameter):
            parse_datetime(value)


class TestParseDate:
    def test_forms(self):
        today = pendulum.today("local").date()

        assert parse_date("2025-03-10") == pendulum.date(2025, 3, 10)
        assert parse_date("today") == today
        assert parse_date("y") == today.subtract(days=1)
        assert parse_date("-7") == today.subtract(days=7)

    def test_invalid(self):
        with pytest.raises(typer.BadParameter):
            parse_date("last week")
