"""
Tests for the command line interface, run against the bundled mock data.
"""

import pytest
from typer.testing import CliRunner

from clinicslots import __version__
from clinicslots.cli.app import app

from stubs import DOC_A, DOC_B

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Keep a developer's ./config.yaml out of the tests."""
    monkeypatch.chdir(tmp_path)


class TestSlotsCommand:
    """Tests for `clinicslots slots`."""

    def test_lists_slots(self):
        result = runner.invoke(app, ["slots", DOC_A, "2026-11-02", "--mock"])

        assert result.exit_code == 0
        assert "08:00" in result.output
        assert "11:00" in result.output
        assert "7 horario(s)" in result.output

    def test_json_output(self):
        result = runner.invoke(app, ["slots", DOC_A, "2026-11-02", "--mock", "--json"])

        assert result.exit_code == 0
        assert '"slots"' in result.output
        assert '"16:00"' in result.output

    def test_no_slots_message(self):
        result = runner.invoke(app, ["slots", DOC_B, "2026-11-03", "--mock"])

        assert result.exit_code == 0
        assert "No hay horarios disponibles" in result.output

    def test_invalid_date_exit_code(self):
        result = runner.invoke(app, ["slots", DOC_A, "2026-02-30", "--mock"])

        assert result.exit_code == 2
        assert "date" in result.output


class TestDaysCommand:
    """Tests for `clinicslots days`."""

    def test_month_table(self):
        result = runner.invoke(app, ["days", DOC_A, "2026-11", "--mock"])

        assert result.exit_code == 0
        assert "2026-11-02" in result.output
        assert "Lunes" in result.output

    def test_month_json(self):
        result = runner.invoke(app, ["days", DOC_A, "2026-11", "--mock", "--json", "-d", "90"])

        assert result.exit_code == 0
        assert '"durationMinutes": 90' in result.output
        assert '"canFitRequestedDuration"' in result.output

    def test_invalid_clinician(self):
        result = runner.invoke(app, ["days", "not-a-uuid", "2026-11", "--mock"])

        assert result.exit_code == 2
        assert "clinicianId" in result.output

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["days", DOC_A, "2026-11", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1

    def test_supabase_not_configured(self):
        result = runner.invoke(app, ["days", DOC_A, "2026-11"])

        assert result.exit_code == 1
        assert "supabase" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
