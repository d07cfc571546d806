"""Tests for the coupling accumulator."""

import random
from itertools import count

from polyglot_scanner.temporal.arena import PathArena
from polyglot_scanner.temporal.coupling import CouplingAccumulator
from polyglot_scanner.temporal.models import ChangeEvent, ChangeKind, FileChange, User

_shas = count()


def make_event(
    arena: PathArena,
    paths: list[str],
    timestamp: int = 1_000_000,
    author: str = "alice@example.com",
    co_authors: tuple = (),
) -> ChangeEvent:
    """Create an event modifying ``paths``."""
    changes = tuple(
        FileChange(kind=ChangeKind.MODIFY, new_path=p, file_id=arena.intern(p), lines_added=1)
        for p in paths
    )
    return ChangeEvent(
        commit_id=f"{next(_shas):040x}",
        author=User(name="", email=author),
        timestamp=timestamp,
        changes=changes,
        co_authors=co_authors,
    )


def accumulate(events_paths: list[list[str]], ceiling: int = 100):
    arena = PathArena()
    accumulator = CouplingAccumulator(coupling_ceiling=ceiling)
    for ix, paths in enumerate(events_paths):
        accumulator.add(make_event(arena, paths, timestamp=1_000_000 + ix))
    return accumulator.finish(arena)


class TestCouplingAccumulator:
    def test_three_commit_scenario(self):
        result = accumulate([["a.txt", "b.txt"], ["a.txt", "b.txt"], ["a.txt"]])

        assert result.stats["a.txt"].total_change_count == 3
        assert result.stats["b.txt"].total_change_count == 2
        assert len(result.coupling) == 1
        entry = result.coupling[0]
        assert (entry.path_a, entry.path_b, entry.co_change_count) == ("a.txt", "b.txt", 2)
        assert result.commit_count == 3

    def test_wide_commit_above_ceiling_adds_no_pairs(self):
        wide = [f"f{i:03}.txt" for i in range(500)]

        result = accumulate([wide], ceiling=100)

        assert result.coupling == []
        assert result.skipped_wide_commits == 1
        assert len(result.stats) == 500
        assert all(s.total_change_count == 1 for s in result.stats.values())

    def test_commit_at_ceiling_still_couples(self):
        result = accumulate([["a", "b", "c"]], ceiling=3)

        assert len(result.coupling) == 3

    def test_single_file_commit_has_no_pairs(self):
        result = accumulate([["a.txt"], ["a.txt"]])

        assert result.coupling == []
        assert result.stats["a.txt"].total_change_count == 2

    def test_increments_equal_changed_paths(self):
        rng = random.Random(7)
        universe = [f"src/m{i}.py" for i in range(30)]
        commits = [rng.sample(universe, rng.randint(1, 12)) for _ in range(200)]
        arena = PathArena()
        accumulator = CouplingAccumulator(coupling_ceiling=8)

        previous = 0
        for ix, paths in enumerate(commits):
            accumulator.add(make_event(arena, paths, timestamp=ix))
            total = sum(s.total_change_count for s in accumulator._stats.values())
            assert total - previous == len(paths)
            previous = total

        result = accumulator.finish(arena)
        for entry in result.coupling:
            assert entry.path_a < entry.path_b
            assert entry.co_change_count <= min(
                result.stats[entry.path_a].total_change_count,
                result.stats[entry.path_b].total_change_count,
            )

    def test_first_seen_and_last_changed_tolerate_disorder(self):
        arena = PathArena()
        accumulator = CouplingAccumulator()
        accumulator.add(make_event(arena, ["a"], timestamp=500))
        accumulator.add(make_event(arena, ["a"], timestamp=300))
        accumulator.add(make_event(arena, ["a"], timestamp=400))

        stats = accumulator.finish(arena).stats["a"]

        assert stats.first_seen == 300
        assert stats.last_changed == 500

    def test_authors_include_co_authors(self):
        arena = PathArena()
        accumulator = CouplingAccumulator()
        accumulator.add(make_event(arena, ["a"], author="alice@example.com"))
        accumulator.add(
            make_event(
                arena,
                ["a"],
                author="bob@example.com",
                co_authors=(User("Alice", "ALICE@example.com"),),
            )
        )

        stats = accumulator.finish(arena).stats["a"]

        assert stats.author_change_counts == {"alice@example.com": 2, "bob@example.com": 1}
        assert stats.author_count == 2
        assert stats.lines_added == 2

    def test_history_follows_rename(self):
        arena = PathArena()
        accumulator = CouplingAccumulator()
        accumulator.add(make_event(arena, ["old.rs", "lib.rs"]))
        file_id = arena.rename("old.rs", "new.rs")
        accumulator.add(
            ChangeEvent(
                commit_id="f" * 40,
                author=User("", "alice@example.com"),
                timestamp=2_000_000,
                changes=(
                    FileChange(
                        kind=ChangeKind.RENAME, new_path="new.rs", old_path="old.rs", file_id=file_id
                    ),
                ),
            )
        )

        result = accumulator.finish(arena)

        assert "old.rs" not in result.stats
        assert result.stats["new.rs"].total_change_count == 2
        assert [(e.path_a, e.path_b) for e in result.coupling] == [("lib.rs", "new.rs")]

    def test_deleted_files_are_dropped(self):
        arena = PathArena()
        accumulator = CouplingAccumulator()
        accumulator.add(make_event(arena, ["a", "b"]))
        arena.delete("b")

        result = accumulator.finish(arena)

        assert set(result.stats) == {"a"}
        assert result.coupling == []
