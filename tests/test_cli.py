# SPDX-License-Identifier: MIT

"""Command line tests against a temporary data directory and a fake Azure DevOps."""

import pytest
from conftest import FakeAzureDevOps, make_organization, make_work_item
from typer.testing import CliRunner
from yaml import dump

from adotrack import configuration
from adotrack import runtime as runtime_module
from adotrack.repository.configuration import CONFIGURATION_REPO
from adotrack.repository.id_map import ID_MAP_REPO
from adotrack.repository.organization import ORGANIZATION_REPO
from adotrack.runtime import close_runtime, get_runtime
from adotrack.terminal.app import app

runner = CliRunner()


@pytest.fixture
def fake_azure(monkeypatch) -> FakeAzureDevOps:
    fake = FakeAzureDevOps()
    fake.add(make_work_item(id=123, title="Fix login", completed_work=1.0))
    fake.add(make_work_item(id=200, title="Old bug", type="Bug", state="Closed"))
    monkeypatch.setattr(runtime_module, "AzureDevOpsClient", lambda timeout: fake)
    return fake


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    app_config_path = tmp_path / "config" / "config.yaml"
    app_config_path.parent.mkdir()
    app_config_path.write_text(dump(configuration.default_configuration()))

    monkeypatch.setattr(configuration, "APP_CONFIG_PATH", app_config_path)
    monkeypatch.setattr(configuration, "DATA_PATH", tmp_path)
    monkeypatch.setattr(configuration, "DATA_ORGANIZATIONS_PATH", tmp_path / "organizations.yaml")
    monkeypatch.setattr(configuration, "DATA_TIMER_SESSION_PATH", tmp_path / "timer_session.yaml")
    monkeypatch.setattr(configuration, "DATA_SYNC_LOG_PATH", tmp_path / "sync_log.yaml")
    monkeypatch.setattr(configuration, "DATA_ID_MAP_PATH", tmp_path / "id_map.yaml")
    monkeypatch.setattr(configuration, "DATA_TIME_ENTRIES_DIR", tmp_path / "time_entries")
    monkeypatch.setattr(configuration, "DATA_LOCKS_DIR", tmp_path / "locks")

    # The singletons load lazily; drop anything cached by an earlier test
    monkeypatch.setattr(CONFIGURATION_REPO, "_config", None)
    monkeypatch.setattr(ORGANIZATION_REPO, "_organizations", None)
    monkeypatch.setattr(ID_MAP_REPO, "_id_map", None)

    close_runtime()
    yield tmp_path
    close_runtime()


@pytest.fixture
def organization_id():
    organization = make_organization()
    return ORGANIZATION_REPO.save_new_organization(organization)


class TestWithoutOrganization:
    def test_start_needs_an_organization(self, fake_azure):
        result = runner.invoke(app, ["timer", "start", "123"])

        assert result.exit_code == 1
        assert "adotrack org add" in result.output

    def test_org_add_and_list(self):
        result = runner.invoke(
            app,
            [
                "org",
                "add",
                "contoso",
                "--url",
                "https://dev.azure.com/contoso/",
                "--project",
                "Web",
            ],
        )

        assert result.exit_code == 0, result.output
        [organization] = ORGANIZATION_REPO.get_all_organizations()
        assert organization["url"] == "https://dev.azure.com/contoso"
        assert organization["is_default"] is True
        assert organization["pat_env_var"] == "AZURE_DEVOPS_PAT"

        result = runner.invoke(app, ["o", "ls"])
        assert "contoso" in result.output

    def test_org_add_rejects_bad_url(self):
        result = runner.invoke(
            app, ["org", "add", "x", "--url", "dev.azure.com/x", "--project", "P"]
        )

        assert result.exit_code != 0
        assert ORGANIZATION_REPO.get_all_organizations() == []


@pytest.mark.usefixtures("organization_id")
class TestTimerCommands:
    def test_start_status_stop(self, fake_azure, data_dir):
        result = runner.invoke(app, ["timer", "start", "123"])
        assert result.exit_code == 0, result.output
        assert "Fix login" in result.output
        assert (data_dir / "timer_session.yaml").is_file()

        result = runner.invoke(app, ["ti", "st"])
        assert "running" in result.output

        result = runner.invoke(app, ["timer", "start", "123"])
        assert result.exit_code == 1
        assert "already tracking" in result.output

        result = runner.invoke(app, ["timer", "stop"])
        assert result.exit_code == 0, result.output
        assert "discarded" in result.output
        assert not (data_dir / "timer_session.yaml").exists()

    def test_start_untrackable_item(self, fake_azure):
        result = runner.invoke(app, ["timer", "start", "200"])

        assert result.exit_code == 1
        assert "cannot be tracked" in result.output

    def test_pause_and_resume(self, fake_azure):
        runner.invoke(app, ["timer", "start", "123"])

        result = runner.invoke(app, ["timer", "pause"])
        assert result.exit_code == 0, result.output
        assert "paused" in result.output

        result = runner.invoke(app, ["timer", "pause"])
        assert result.exit_code == 1

        result = runner.invoke(app, ["timer", "resume"])
        assert result.exit_code == 0, result.output

    def test_stop_when_idle(self, fake_azure):
        result = runner.invoke(app, ["timer", "stop"])

        assert result.exit_code == 1
        assert "No timer is running" in result.output


@pytest.mark.usefixtures("organization_id")
class TestEntryCommands:
    def add_entry(self, minutes: str = "30") -> None:
        result = runner.invoke(
            app,
            ["entry", "add", "123", "--start", "2025-03-10 09:00", "--minutes", minutes],
        )
        assert result.exit_code == 0, result.output

    def test_add_list_sync(self, fake_azure):
        self.add_entry("30")

        result = runner.invoke(app, ["entry", "list", "--unsynced"])
        assert "Fix login" in result.output
        assert "30m" in result.output

        result = runner.invoke(app, ["entry", "sync"])
        assert result.exit_code == 0, result.output
        assert "1 synced" in result.output
        assert fake_azure.patches == [(123, 1.5)]

        assert get_runtime().ledger.list_unsynced() == []
        result = runner.invoke(app, ["entry", "log"])
        assert "success" in result.output

    def test_add_rejects_both_end_and_minutes(self, fake_azure):
        result = runner.invoke(
            app,
            [
                "entry",
                "add",
                "123",
                "--start",
                "2025-03-10 09:00",
                "--end",
                "2025-03-10 10:00",
                "--minutes",
                "30",
            ],
        )

        assert result.exit_code == 1
        assert "either an end time or a duration" in result.output

    def test_sync_failure_exits_non_zero(self, fake_azure):
        self.add_entry()
        fake_azure.failing_updates.add(123)

        result = runner.invoke(app, ["entry", "sync"])

        assert result.exit_code == 1
        assert "1 failed" in result.output
        assert len(get_runtime().ledger.list_unsynced()) == 1

    def test_sync_clears_an_earlier_cancel(self, fake_azure):
        self.add_entry()
        get_runtime().reconciler.cancel()

        result = runner.invoke(app, ["entry", "sync"])

        assert result.exit_code == 0, result.output
        assert "1 synced" in result.output
        assert fake_azure.patches == [(123, 1.5)]

    def test_delete_synced_entry_needs_force(self, fake_azure):
        self.add_entry()
        runner.invoke(app, ["entry", "list"])
        runner.invoke(app, ["entry", "sync"])

        result = runner.invoke(app, ["entry", "delete", "1"])
        assert result.exit_code == 1
        assert "--force" in result.output

        result = runner.invoke(app, ["entry", "delete", "1", "--force"])
        assert result.exit_code == 0, result.output
        assert get_runtime().ledger.get_all_time_entries() == []

    def test_delete_unknown_synthetic_id(self, fake_azure):
        result = runner.invoke(app, ["entry", "delete", "9"])

        assert result.exit_code == 1
        assert "Unknown time entry id 9" in result.output


@pytest.mark.usefixtures("organization_id")
class TestOtherCommands:
    def test_work_item_search(self, fake_azure):
        fake_azure.query_result = [123, 200]

        result = runner.invoke(app, ["work-item", "search", "login"])

        assert result.exit_code == 0, result.output
        assert "Fix login" in result.output
        assert "Old bug" not in result.output

    def test_work_item_show_includes_closed(self, fake_azure):
        result = runner.invoke(app, ["w", "show", "200"])

        assert result.exit_code == 0, result.output
        assert "Old bug" in result.output

    def test_report_daily(self, fake_azure):
        runner.invoke(
            app,
            ["entry", "add", "123", "--start", "2025-03-10 09:00", "--minutes", "90"],
        )

        result = runner.invoke(
            app, ["report", "daily", "--start", "2025-03-10", "--end", "2025-03-11"]
        )

        assert result.exit_code == 0, result.output
        assert "1h 30m" in result.output

    def test_config_set_and_view(self):
        result = runner.invoke(app, ["config", "set", "--time-rounding", "15"])
        assert result.exit_code == 0, result.output
        assert CONFIGURATION_REPO.get_config()["time_rounding_minutes"] == 15

        result = runner.invoke(app, ["c", "v"])
        assert "time_rounding_minutes" in result.output

    def test_config_rejects_bad_log_level(self):
        result = runner.invoke(app, ["config", "set", "--log-level", "LOUD"])

        assert result.exit_code != 0
