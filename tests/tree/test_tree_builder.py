"""Tests for record joining, coupling projection and the tree fold."""

import dataclasses
import random

import pytest

from polyglot_scanner.config import ScanConfig
from polyglot_scanner.scanning.builder import FileMetrics, FileMetricsBuilder
from polyglot_scanner.temporal.models import (
    ChangeKind,
    CouplingEntry,
    FileChange,
    FileHistory,
    FileHistoryStats,
    HistoryResult,
)
from polyglot_scanner.tree.aggregate import REDUCTIONS, DirectoryMetrics
from polyglot_scanner.tree.builder import (
    DirectoryNode,
    FileNode,
    build_file_records,
    build_tree,
    project_coupling,
)
from polyglot_scanner.tree.records import FileRecord

builder = FileMetricsBuilder()


def make_stats(path, changes=1, first=100, last=200, authors=("alice@example.com",)):
    return FileHistoryStats(
        path=path,
        first_seen=first,
        last_changed=last,
        total_change_count=changes,
        author_change_counts={a: 1 for a in authors},
        lines_added=changes * 3,
        lines_deleted=changes,
    )


def random_records(seed: int, n: int = 60) -> dict[str, FileRecord]:
    rng = random.Random(seed)
    dirs = ["", "src", "src/core", "src/core/deep", "docs", "tests", "tests/unit"]
    records = {}
    while len(records) < n:
        directory = rng.choice(dirs)
        name = f"f{rng.randint(0, 999)}.{rng.choice(['py', 'rs', 'bin'])}"
        path = f"{directory}/{name}" if directory else name
        if name.endswith(".bin"):
            metrics = builder.build_from_bytes(b"\x00" * rng.randint(1, 50), path)
        else:
            body = "".join(" " * rng.randint(0, 12) + "x\n" for _ in range(rng.randint(0, 30)))
            metrics = builder.build_from_bytes(body.encode(), path)
        history = None
        if rng.random() < 0.8:
            first = rng.randint(1, 1000)
            history = make_stats(
                path,
                changes=rng.randint(1, 20),
                first=first,
                last=first + rng.randint(0, 1000),
                authors=tuple(rng.sample(["a", "b", "c", "d"], rng.randint(1, 3))),
            )
        records[path] = FileRecord(
            path=path,
            language=metrics.language,
            bytes=metrics.bytes,
            is_binary=metrics.is_binary,
            read_error="boom" if rng.random() < 0.05 else None,
            digest=metrics.digest,
            history=history,
        )
    return records


def all_directories(node: DirectoryNode):
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(c for c in current.children if isinstance(c, DirectoryNode))


class TestBuildTree:
    def test_structure_and_order(self):
        records = {
            p: FileRecord(path=p, language="text")
            for p in ["b.txt", "src/z.rs", "src/a.rs", "a.txt", "src/lib/m.rs"]
        }

        tree = build_tree(records, root_name="repo")

        assert tree.name == "repo"
        assert [c.name for c in tree.children] == ["a.txt", "b.txt", "src"]
        src = tree.get_in("src")
        assert isinstance(src, DirectoryNode)
        assert [c.name for c in src.children] == ["a.rs", "lib", "z.rs"]
        assert tree.metrics.file_count == 5
        assert src.metrics.file_count == 3

    def test_get_in(self):
        records = {"src/lib/m.rs": FileRecord(path="src/lib/m.rs", language="rust")}
        tree = build_tree(records)

        node = tree.get_in("src/lib/m.rs")
        assert isinstance(node, FileNode)
        assert node.record.path == "src/lib/m.rs"
        assert tree.get_in("") is tree
        assert tree.get_in("src/missing") is None
        assert tree.get_in("src/lib/m.rs/deeper") is None

    def test_empty_tree(self):
        tree = build_tree({}, root_name="repo")

        assert tree.children == ()
        assert tree.metrics.file_count == 0
        assert tree.metrics.first_seen is None

    def test_no_empty_directories(self):
        tree = build_tree(random_records(1))

        for directory in all_directories(tree):
            assert directory.metrics.file_count > 0

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_directory_metrics_match_descendant_leaves(self, seed):
        tree = build_tree(random_records(seed))
        rng = random.Random(seed)
        directories = list(all_directories(tree))

        for directory in rng.sample(directories, min(5, len(directories))):
            leaves = [DirectoryMetrics.of_file(r) for r in directory.iter_files()]
            for name, reduce in REDUCTIONS.items():
                expected = reduce([getattr(leaf, name) for leaf in leaves])
                assert getattr(directory.metrics, name) == expected, name

    def test_reductions_cover_every_field(self):
        from dataclasses import fields

        assert set(REDUCTIONS) == {f.name for f in fields(DirectoryMetrics)}

    def test_binary_and_error_files_counted(self):
        records = random_records(5)
        tree = build_tree(records)

        assert tree.metrics.binary_file_count == sum(r.is_binary for r in records.values())
        assert tree.metrics.error_file_count == sum(
            r.read_error is not None for r in records.values()
        )
        assert tree.metrics.code == sum(r.digest.code for r in records.values())


class TestProjectCoupling:
    def test_top_n_by_count_then_path(self):
        entries = [
            CouplingEntry("a", "b", 3),
            CouplingEntry("a", "c", 5),
            CouplingEntry("a", "d", 3),
            CouplingEntry("0", "a", 1),
        ]

        coupled = project_coupling("a", entries, total_change_count=10, top_n=3)

        assert [(c.path, c.co_change_count) for c in coupled] == [("c", 5), ("b", 3), ("d", 3)]
        assert coupled[0].ratio == 0.5

    def test_unknown_partners_dropped(self):
        entries = [CouplingEntry("a", "gone", 4), CouplingEntry("a", "b", 1)]

        coupled = project_coupling("a", entries, 4, top_n=5, known_paths={"a": 1, "b": 1})

        assert [c.path for c in coupled] == ["b"]

    def test_zero_top_n(self):
        assert project_coupling("a", [CouplingEntry("a", "b", 1)], 1, top_n=0) == ()


class TestBuildFileRecords:
    def test_join_by_path(self):
        scanned = {
            "a.txt": FileMetrics(path="a.txt", language="text", bytes=3),
            "b.txt": FileMetrics(path="b.txt", language="text", bytes=4),
            "new.txt": FileMetrics(path="new.txt", language="text"),
        }
        history = HistoryResult(
            stats={
                "a.txt": make_stats("a.txt", changes=3),
                "b.txt": make_stats("b.txt", changes=2),
                "deleted.txt": make_stats("deleted.txt"),
            },
            coupling=[CouplingEntry("a.txt", "b.txt", 2)],
            commit_count=3,
        )

        records = build_file_records(scanned, history, ScanConfig())

        assert list(records) == ["a.txt", "b.txt", "new.txt"]
        assert records["a.txt"].total_changes == 3
        assert records["a.txt"].coupled[0].path == "b.txt"
        assert records["a.txt"].coupled[0].ratio == round(2 / 3, 4)
        assert records["b.txt"].coupled[0].ratio == 1.0
        assert records["new.txt"].history is None

    def test_read_error_carried(self):
        scanned = {"bad.py": FileMetrics.failed("bad.py", "Encoding error")}

        records = build_file_records(scanned, None)

        assert records["bad.py"].read_error == "Encoding error"
        assert records["bad.py"].digest.lines == 0

    def test_history_is_frozen_copy(self):
        scanned = {"a.txt": FileMetrics(path="a.txt", language="text", bytes=3)}
        stats = make_stats("a.txt", changes=2)
        history = HistoryResult(stats={"a.txt": stats}, coupling=[], commit_count=2)

        records = build_file_records(scanned, history)
        stats.record(999, ("mallory@example.com",), FileChange(ChangeKind.MODIFY, "a.txt"))

        frozen = records["a.txt"].history
        assert isinstance(frozen, FileHistory)
        assert frozen.total_change_count == 2
        assert frozen.authors == frozenset({"alice@example.com"})
        with pytest.raises(dataclasses.FrozenInstanceError):
            frozen.total_change_count = 5


class TestFileRecord:
    def test_accumulator_stats_frozen_on_construction(self):
        stats = make_stats("a.txt", changes=4, authors=("b@x", "a@x"))

        record = FileRecord(path="a.txt", language="text", history=stats)
        stats.author_change_counts["c@x"] = 1

        assert isinstance(record.history, FileHistory)
        assert record.history.author_changes == (("a@x", 1), ("b@x", 1))
        assert record.authors == frozenset({"a@x", "b@x"})
        assert record.total_changes == 4
