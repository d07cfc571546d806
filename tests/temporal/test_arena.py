"""Tests for the path arena used for rename tracking."""

from polyglot_scanner.temporal.arena import PathArena


class TestPathArena:
    def test_intern_is_stable(self):
        arena = PathArena()
        a = arena.intern("a.txt")
        b = arena.intern("b.txt")

        assert arena.intern("a.txt") == a
        assert a != b
        assert len(arena) == 2

    def test_rename_moves_id(self):
        arena = PathArena()
        file_id = arena.intern("old.rs")

        assert arena.rename("old.rs", "new.rs") == file_id
        assert arena.lookup("old.rs") is None
        assert arena.lookup("new.rs") == file_id
        assert arena.name(file_id) == "new.rs"

    def test_rename_of_unknown_path_creates_id(self):
        arena = PathArena()
        file_id = arena.rename("ghost.txt", "real.txt")

        assert arena.live_paths() == {file_id: "real.txt"}

    def test_swap_keeps_both_histories(self):
        arena = PathArena()
        a = arena.intern("a")
        b = arena.intern("b")

        arena.rename_all([("a", "b"), ("b", "a")])

        assert arena.lookup("b") == a
        assert arena.lookup("a") == b
        assert arena.is_live(a) and arena.is_live(b)

    def test_rename_onto_bound_path_detaches_it(self):
        arena = PathArena()
        moved = arena.intern("src.txt")
        replaced = arena.intern("dst.txt")

        arena.rename("src.txt", "dst.txt")

        assert arena.lookup("dst.txt") == moved
        assert not arena.is_live(replaced)

    def test_delete_then_intern_gives_new_id(self):
        arena = PathArena()
        first = arena.intern("a.txt")

        assert arena.delete("a.txt") == first
        assert not arena.is_live(first)
        assert arena.name(first) == "a.txt"
        second = arena.intern("a.txt")
        assert second != first
        assert arena.live_paths() == {second: "a.txt"}
