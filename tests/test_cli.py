"""Tests for the projectmap command line."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from projectmap import __version__
from projectmap.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROJECTMAP_MAX_CONCURRENCY", raising=False)
    monkeypatch.delenv("PROJECTMAP_REQUIRE_RESOLUTION", raising=False)


class TestBuildCommand:
    """Tests for `projectmap build`."""

    def test_full_export(self, runner: CliRunner, sample_site: Path, root_key: str) -> None:
        result = runner.invoke(cli, ["build", str(sample_site)])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert {n["file"] for n in data["nodes"]} == {
            "index.html",
            "style.css",
            "base.css",
            "app.js",
            "util.js",
        }
        assert {"from": "style:" + root_key + "style.css", "to": "style:" + root_key + "base.css",
                "type": "imports"} in data["edges"]
        assert data["metadata"]["complete"] is True

    def test_summary(self, runner: CliRunner, sample_site: Path) -> None:
        result = runner.invoke(cli, ["build", str(sample_site), "--summary"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["markup_count"] == 1
        assert data["style_count"] == 2
        assert data["script_count"] == 2
        assert data["edge_count"] == 4
        assert data["version"] == __version__

    def test_require_resolution_option(self, runner: CliRunner, make_site) -> None:
        root = make_site({
            "index.html": '<script src="js/a.js"></script>',
            "js/a.js": "require('b.js');",
            "js/b.js": "",
        })

        result = runner.invoke(
            cli, ["build", str(root), "--summary", "--require-resolution", "containing"]
        )

        assert json.loads(result.stdout)["failure_count"] == 0

    def test_rejects_zero_concurrency(self, runner: CliRunner, sample_site: Path) -> None:
        result = runner.invoke(cli, ["build", str(sample_site), "--max-concurrency", "0"])

        assert result.exit_code != 0

    def test_invalid_environment_config(
        self, runner: CliRunner, sample_site: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PROJECTMAP_MAX_CONCURRENCY", "zero")

        result = runner.invoke(cli, ["build", str(sample_site)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.stderr

    def test_missing_root(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["build", str(tmp_path / "missing")])

        assert result.exit_code == 2


class TestImpactCommand:
    """Tests for `projectmap impact`."""

    def test_reports_dependents(self, runner: CliRunner, sample_site: Path) -> None:
        result = runner.invoke(cli, ["impact", str(sample_site), "base.css"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert [t["file"] for t in report["upstream"]] == ["style.css", "index.html"]
        assert report["risk_assessment"]["markup_affected"] == 1

    def test_no_match(self, runner: CliRunner, sample_site: Path) -> None:
        result = runner.invoke(cli, ["impact", str(sample_site), "nope.css"])

        assert result.exit_code == 1
        assert "No files found matching 'nope.css'" in result.stderr


class TestPathCommand:
    """Tests for `projectmap path`."""

    def test_chain(self, runner: CliRunner, sample_site: Path) -> None:
        result = runner.invoke(cli, ["path", str(sample_site), "index.html", "util.js"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == ["index.html", "app.js", "util.js"]

    def test_no_chain(self, runner: CliRunner, sample_site: Path) -> None:
        result = runner.invoke(cli, ["path", str(sample_site), "base.css", "util.js"])

        assert result.exit_code == 1
        assert "does not reference" in result.stderr


class TestStaleAndCycles:
    """Tests for `projectmap stale` and `projectmap cycles`."""

    def test_stale(self, runner: CliRunner, make_site) -> None:
        root = make_site({
            "index.html": '<link rel="stylesheet" href="gone.css">',
        })

        result = runner.invoke(cli, ["stale", str(root)])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {
                "source": "index.html",
                "target": "gone.css",
                "type": "stylesheet",
                "reason": "file not found",
            }
        ]
        assert "1 stale references" in result.stderr

    def test_cycles(self, runner: CliRunner, make_site) -> None:
        root = make_site({
            "index.html": '<link rel="stylesheet" href="a.css">',
            "a.css": '@import "b.css";',
            "b.css": '@import "a.css";',
        })

        result = runner.invoke(cli, ["cycles", str(root)])

        cycles = json.loads(result.stdout)
        assert len(cycles) == 1
        assert cycles[0]["length"] == 2
        assert sorted(cycles[0]["cycle"]) == ["a.css", "b.css"]

    def test_cycles_without_self_loops(self, runner: CliRunner, make_site) -> None:
        root = make_site({
            "index.html": '<script src="a.js"></script>',
            "a.js": "require('a.js');",
        })

        result = runner.invoke(cli, ["cycles", str(root), "--no-self-loops"])

        assert json.loads(result.stdout) == []


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])

    assert __version__ in result.output
