"""Tests for the command-line interface."""

import csv
import json

import pytest
from click.testing import CliRunner

from debt_calc.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path, raw_config):
    raw_config["payments"] = [{"paidAt": "2026-02-15", "amount": 3149.17}]
    path = tmp_path / "debt.json"
    path.write_text(json.dumps(raw_config), encoding="utf-8")
    return path


class TestSnapshotCommand:

    def test_prints_summary_and_schedule(self, runner, config_file):
        result = runner.invoke(cli, ["snapshot", str(config_file), "--as-of", "2026-05-31"])
        assert result.exit_code == 0, result.output
        assert "Snapshot: 28 Harewood Drive" in result.output
        assert "Arrears            : 6298.34 (since 2026-04-30)" in result.output
        assert "DueDate" in result.output
        assert "2026-06-30" in result.output

    def test_json_export(self, runner, config_file, tmp_path):
        out = tmp_path / "snapshot.json"
        result = runner.invoke(cli, ["snapshot", str(config_file), "--as-of", "2026-05-31", "--output", str(out)])
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["agreement"]["firstPaymentDueDate"] == "2026-03-31"
        assert data["status"]["arrears"] == 6298.34
        assert data["status"]["firstOverdueDueDate"] == "2026-04-30"
        assert len(data["upcomingSchedule"]) == 12
        assert data["projection"]["converged"] is True

    def test_unsupported_output(self, runner, config_file, tmp_path):
        result = runner.invoke(cli, ["snapshot", str(config_file), "--output", str(tmp_path / "x.xlsx")])
        assert result.exit_code == 2

    def test_as_of_before_registration(self, runner, config_file):
        result = runner.invoke(cli, ["snapshot", str(config_file), "--as-of", "2025-01-01"])
        assert result.exit_code == 1
        assert "cannot be before registration date" in result.output

    def test_invalid_config(self, runner, tmp_path, raw_config):
        raw_config["schemaVersion"] = 2
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(raw_config), encoding="utf-8")
        result = runner.invoke(cli, ["snapshot", str(path)])
        assert result.exit_code == 1
        assert "Invalid debt config: schemaVersion" in result.output

    def test_not_json(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(cli, ["snapshot", str(path)])
        assert result.exit_code == 1
        assert "is not valid JSON" in result.output


class TestScheduleCommand:

    def test_csv_export(self, runner, config_file, tmp_path):
        out = tmp_path / "schedule.csv"
        result = runner.invoke(
            cli, ["schedule", str(config_file), "--as-of", "2026-04-30", "--months", "3", "--output", str(out)]
        )
        assert result.exit_code == 0, result.output
        with out.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "Due_Date"
        assert [r[0] for r in rows[1:]] == ["2026-05-31", "2026-06-30", "2026-07-31"]

    def test_what_if_payment(self, runner, config_file):
        result = runner.invoke(
            cli, ["schedule", str(config_file), "--as-of", "2026-04-30", "--months", "1", "--payment", "5k"]
        )
        assert result.exit_code == 0, result.output
        assert "\t5000.00\t" in result.output

    def test_bad_payment(self, runner, config_file):
        result = runner.invoke(cli, ["schedule", str(config_file), "--payment", "lots"])
        assert result.exit_code == 2


class TestCompareCommand:

    def test_prints_comparison(self, runner, config_file):
        result = runner.invoke(cli, ["compare", str(config_file), "--as-of", "2026-04-30", "--payment", "5000"])
        assert result.exit_code == 0, result.output
        assert "Comparison" in result.output
        assert "total_interest" in result.output

    def test_json_export(self, runner, config_file, tmp_path):
        out = tmp_path / "compare.json"
        result = runner.invoke(
            cli, ["compare", str(config_file), "--as-of", "2026-04-30", "--payment", "5000", "--output", str(out)]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))["comparison"]
        assert data["payment"] == 5000.0
        assert data["interestSaved"] > 0
        assert data["paymentsSaved"] > 0
