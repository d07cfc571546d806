"""Tests for the file metrics builder and the parallel file scanner."""

import pytest

from polyglot_scanner.exceptions import UnreadableFile
from polyglot_scanner.progress import CancellationToken
from polyglot_scanner.scanning.builder import FileMetricsBuilder
from polyglot_scanner.scanning.scanner import FileScanner

SOURCE = "fn main() {\n    let x = 1;\n    // note\n}\n"


class TestFileMetricsBuilder:
    def test_text_file(self, tmp_path):
        (tmp_path / "main.rs").write_text(SOURCE)

        metrics = FileMetricsBuilder().build(tmp_path, "main.rs")

        assert metrics.path == "main.rs"
        assert metrics.language == "rust"
        assert metrics.bytes == len(SOURCE)
        assert not metrics.is_binary
        assert (metrics.digest.code, metrics.digest.comment) == (3, 1)
        assert metrics.digest.max_depth == 4

    def test_same_bytes_same_metrics(self):
        builder = FileMetricsBuilder()

        first = builder.build_from_bytes(SOURCE.encode(), "a/main.rs")
        second = builder.build_from_bytes(SOURCE.encode(), "a/main.rs")

        assert first == second

    def test_binary_file_has_zero_lines(self):
        metrics = FileMetricsBuilder().build_from_bytes(b"\x00\x01\x02", "img.bin")

        assert metrics.is_binary
        assert metrics.bytes == 3
        assert metrics.digest.lines == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(UnreadableFile):
            FileMetricsBuilder().build(tmp_path, "nope.txt")

    def test_size_limit(self, tmp_path):
        (tmp_path / "big.txt").write_text("x" * 100)

        with pytest.raises(UnreadableFile):
            FileMetricsBuilder(max_file_size_bytes=10).build(tmp_path, "big.txt")

    def test_failed_metrics_are_empty(self):
        from polyglot_scanner.scanning.builder import FileMetrics

        metrics = FileMetrics.failed("bad.py", "Encoding error")

        assert metrics.language == "python"
        assert metrics.error == "Encoding error"
        assert metrics.digest.lines == 0


class TestFileScanner:
    def _tree(self, tmp_path, n=20):
        paths = []
        for i in range(n):
            path = f"pkg/m{i:02}.py"
            (tmp_path / "pkg").mkdir(exist_ok=True)
            (tmp_path / path).write_text("def f():\n    return %d\n" % i)
            paths.append(path)
        return paths

    def test_scans_all_files(self, tmp_path):
        paths = self._tree(tmp_path)
        ticks = []

        result = FileScanner(FileMetricsBuilder(), workers=3).scan(
            tmp_path, paths, on_file=lambda: ticks.append(1)
        )

        assert result.complete
        assert sorted(result.files) == paths
        assert len(ticks) == len(paths)

    def test_unreadable_file_is_recorded_not_raised(self, tmp_path):
        paths = self._tree(tmp_path, n=2)
        (tmp_path / "latin1.py").write_bytes(b"x = '\xe9'\n")

        result = FileScanner(FileMetricsBuilder(), workers=2).scan(
            tmp_path, paths + ["latin1.py"]
        )

        assert result.complete
        failed = result.files["latin1.py"]
        assert failed.error is not None
        assert [m.path for m in result.failed] == ["latin1.py"]

    def test_cancel_before_start_scans_nothing(self, tmp_path):
        paths = self._tree(tmp_path)
        token = CancellationToken()
        token.cancel()

        result = FileScanner(FileMetricsBuilder(), workers=2).scan(tmp_path, paths, cancel=token)

        assert not result.complete
        assert result.files == {}
        assert result.total == len(paths)
