"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from polyglot_scanner import __version__
from polyglot_scanner.cli import app

runner = CliRunner()


@pytest.fixture
def small_repo(repo):
    repo.write("src/main.rs", "fn main() {\n    run();\n}\n")
    repo.write("src/run.rs", "pub fn run() {}\n")
    repo.commit()
    repo.write("src/main.rs", "fn main() {\n    run();\n    run();\n}\n")
    repo.write("src/run.rs", "pub fn run() { }\n")
    repo.commit()
    repo.write("README.md", "# demo\n")
    repo.commit()
    return repo


class TestScanCommand:
    def test_writes_output_file(self, small_repo, tmp_path):
        out = tmp_path / "tree.json"

        result = runner.invoke(app, ["scan", str(small_repo.root), "-o", str(out), "--quiet"])

        assert result.exit_code == 0, result.output
        document = json.loads(out.read_text())
        assert document["name"] == "repo"
        assert document["data"]["scan"]["commits"] == 3
        src = next(c for c in document["children"] if c["name"] == "src")
        main = next(c for c in src["children"] if c["name"] == "main.rs")
        assert main["data"]["git"]["changes"] == 2
        assert main["data"]["coupling"][0]["path"] == "src/run.rs"

    def test_options_reach_config(self, small_repo, tmp_path):
        out = tmp_path / "tree.json"

        result = runner.invoke(
            app,
            [
                "scan",
                str(small_repo.root),
                "-o",
                str(out),
                "--quiet",
                "--top-coupled",
                "0",
                "--exclude",
                "README.md",
            ],
        )

        assert result.exit_code == 0, result.output
        document = json.loads(out.read_text())
        assert [c["name"] for c in document["children"]] == ["src"]
        src = document["children"][0]
        assert all(f["data"]["coupling"] == [] for f in src["children"])

    def test_invalid_option_value(self, small_repo):
        result = runner.invoke(app, ["scan", str(small_repo.root), "--rename-threshold", "150"])

        assert result.exit_code != 0

    def test_bad_since_is_configuration_error(self, small_repo):
        result = runner.invoke(app, ["scan", str(small_repo.root), "--since", "yesterday-ish"])

        assert result.exit_code == 1

    def test_log_file(self, small_repo, tmp_path):
        log_file = tmp_path / "scan.log"

        result = runner.invoke(
            app,
            ["scan", str(small_repo.root), "-o", str(tmp_path / "t.json"), "-q", "--log-file", str(log_file)],
        )

        assert result.exit_code == 0, result.output
        assert "Scan complete" in log_file.read_text()

    def test_fatal_error_exit_code(self, repo, tmp_path):
        # Repository without commits
        repo.write("a.txt")

        result = runner.invoke(app, ["scan", str(repo.root), "-o", str(tmp_path / "t.json")])

        assert result.exit_code == 1
        assert not (tmp_path / "t.json").exists()


class TestHistoryCommand:
    def test_json_listing(self, small_repo):
        result = runner.invoke(app, ["history", str(small_repo.root), "--json"])

        assert result.exit_code == 0, result.output
        document = json.loads(result.stdout)
        assert document["commits"] == 3
        assert [f["path"] for f in document["files"]][:2] == ["src/main.rs", "src/run.rs"]
        assert document["files"][0]["changes"] == 2

    def test_table_listing(self, small_repo):
        result = runner.invoke(app, ["history", str(small_repo.root), "--sort", "churn"])

        assert result.exit_code == 0, result.output
        assert "main.rs" in result.stdout

    def test_include_merges_flag(self, repo):
        repo.write("base.txt")
        repo.commit()
        repo.git("checkout", "-q", "-b", "feature")
        repo.write("feature.txt")
        repo.commit()
        repo.git("checkout", "-q", "main")
        repo.write("main.txt")
        repo.commit()
        repo.merge("feature")

        counts = {}
        for flags in ([], ["--include-merges"]):
            result = runner.invoke(app, ["history", str(repo.root), "--json", *flags])
            assert result.exit_code == 0, result.output
            files = json.loads(result.stdout)["files"]
            counts[bool(flags)] = next(f["changes"] for f in files if f["path"] == "feature.txt")

        assert counts == {False: 1, True: 2}


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
