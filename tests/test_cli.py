"""CLI -- scan command over a fake scanner."""

from conftest import FakeScanner
from typer.testing import CliRunner

from allycheck import cli

runner = CliRunner()


class TestScanCommand:
    def test_invalid_url_exits_2(self):
        result = runner.invoke(cli.app, ["scan", "not a url"])
        assert result.exit_code == 2
        assert "Invalid URL format" in result.output

    def test_prints_score_and_issues(self, monkeypatch, sample_violations):
        monkeypatch.setattr(cli, "AxeScanner", lambda settings: FakeScanner(sample_violations))
        result = runner.invoke(cli.app, ["scan", "example.com"])
        assert result.exit_code == 0, result.output
        assert "https://example.com" in result.output
        assert "76" in result.output
        assert "Prioritized Issues" in result.output

    def test_json_output(self, monkeypatch, sample_violations):
        monkeypatch.setattr(cli, "AxeScanner", lambda settings: FakeScanner(sample_violations))
        result = runner.invoke(cli.app, ["scan", "example.com", "--json"])
        assert result.exit_code == 0, result.output
        assert '"accessibilityScore": 76' in result.output

    def test_scan_failure_exits_1(self, monkeypatch):
        scanner = FakeScanner(error=RuntimeError("net::ERR_CONNECTION_REFUSED"))
        monkeypatch.setattr(cli, "AxeScanner", lambda settings: scanner)
        result = runner.invoke(cli.app, ["scan", "example.com"])
        assert result.exit_code == 1
        assert "Connection refused" in result.output
