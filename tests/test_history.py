"""Tests for the lyrics editor undo/redo history."""

from __future__ import annotations

from karaoke_timer.timing.history import MAX_UNDO, EditHistory


class TestEditHistory:
    def test_edit_records_previous_text(self):
        h = EditHistory("a")
        assert h.edit("b")
        assert h.current == "b"
        assert h.undo_snapshots == ["a"]
        assert h.can_undo and not h.can_redo

    def test_unchanged_edit_ignored(self):
        h = EditHistory("a")
        assert not h.edit("a")
        assert not h.can_undo

    def test_undo_redo_transfer(self):
        h = EditHistory("a")
        h.edit("b")
        h.edit("c")
        assert h.undo() == "b"
        assert h.redo_snapshots == ["c"]
        assert h.undo() == "a"
        assert h.redo() == "b"
        assert h.undo_snapshots == ["a"]
        assert h.redo_snapshots == ["c"]

    def test_edit_clears_redo(self):
        h = EditHistory("a")
        h.edit("b")
        h.undo()
        h.edit("x")
        assert not h.can_redo
        assert h.redo() is None

    def test_empty_stacks(self):
        h = EditHistory("a")
        assert h.undo() is None
        assert h.redo() is None
        assert h.current == "a"

    def test_depth_bounded_keeps_newest(self):
        h = EditHistory("v0")
        for i in range(1, 36):
            h.edit(f"v{i}")
        assert len(h.undo_snapshots) == MAX_UNDO
        assert h.undo_snapshots == [f"v{i}" for i in range(5, 35)]

    def test_custom_depth(self):
        h = EditHistory("0", depth=2)
        for i in range(1, 5):
            h.edit(str(i))
        assert h.undo_snapshots == ["2", "3"]
        h.undo()
        h.undo()
        assert h.undo() is None
        assert h.current == "2"
