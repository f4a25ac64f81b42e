"""Unit tests for box/paths.py — path splitting, resolution and folder creation."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from boxwalk.box.models import File, Folder, FolderCreation, WebLink
from boxwalk.box.paths import (
    ensure_folder_path,
    resolve_file,
    resolve_folder,
    resolve_item,
    split_path,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _root(fake_box: Any) -> Folder:
    return Folder(fake_box, {"type": "folder", "id": "0", "name": "All Files"})


def _tree(fake_box: Any) -> dict[str, str]:
    """Build a/b/{c.txt, notes.txt, link} and return the ids by name."""
    a = fake_box.add("0", "folder", "a")
    b = fake_box.add(a, "folder", "b")
    return {
        "a": a,
        "b": b,
        "c.txt": fake_box.add(b, "file", "c.txt"),
        "link": fake_box.add(b, "web_link", "link"),
    }


# ---------------------------------------------------------------------------
# split_path tests
# ---------------------------------------------------------------------------


class TestSplitPath:
    def test_splits_on_slash(self) -> None:
        assert split_path("a/b/c") == ["a", "b", "c"]

    @pytest.mark.parametrize("path", ["a/b", "a/b/c.txt", "x", "a//b", "reports/2024/q1"])
    def test_surrounding_slashes_have_no_effect(self, path: str) -> None:
        assert split_path("/" + path + "/") == split_path(path)

    def test_root_paths_have_no_segments(self) -> None:
        assert split_path("") == []
        assert split_path("/") == []

    def test_interior_empty_segments_are_kept(self) -> None:
        assert split_path("a//b") == ["a", "", "b"]

    def test_only_one_leading_slash_is_stripped(self) -> None:
        assert split_path("//a") == ["", "a"]

    def test_does_not_mutate_caller_value(self) -> None:
        path = "/a/b/"
        split_path(path)
        assert path == "/a/b/"


# ---------------------------------------------------------------------------
# resolve_folder tests
# ---------------------------------------------------------------------------


class TestResolveFolder:
    @pytest.mark.parametrize("path", ["", "/", ".", None])
    def test_root_paths_return_root_without_lookups(self, fake_box: Any, path: Any) -> None:
        root = _root(fake_box)
        assert resolve_folder(root, path) is root
        assert fake_box.calls == []

    def test_walks_one_lookup_per_segment_in_order(self, fake_box: Any) -> None:
        ids = _tree(fake_box)

        folder = resolve_folder(_root(fake_box), "/a/b/")

        assert folder is not None
        assert folder.id == ids["b"]
        assert [p.split("?")[0] for p in fake_box.listed()] == [
            "/folders/0/items",
            f"/folders/{ids['a']}/items",
        ]

    def test_leading_dot_slash_is_ignored(self, fake_box: Any) -> None:
        ids = _tree(fake_box)
        folder = resolve_folder(_root(fake_box), "./a")
        assert folder is not None
        assert folder.id == ids["a"]

    def test_missing_intermediate_segment_returns_none(self, fake_box: Any) -> None:
        _tree(fake_box)

        assert resolve_folder(_root(fake_box), "a/missing/b") is None
        # Resolution stops at the first missing segment.
        assert len(fake_box.listed()) == 2

    def test_file_segment_is_not_a_folder(self, fake_box: Any) -> None:
        _tree(fake_box)
        assert resolve_folder(_root(fake_box), "a/b/c.txt") is None

    def test_first_match_wins(self) -> None:
        first = MagicMock(spec=Folder)
        second = MagicMock(spec=Folder)
        root = MagicMock(spec=Folder)
        root.folders.return_value = [first, second]

        assert resolve_folder(root, "dup") is first
        root.folders.assert_called_once_with("dup")


# ---------------------------------------------------------------------------
# resolve_item / resolve_file tests
# ---------------------------------------------------------------------------


class TestResolveItem:
    def test_matches_final_segment_among_all_children(self, fake_box: Any) -> None:
        ids = _tree(fake_box)

        item = resolve_item(_root(fake_box), "a/b/c.txt")

        assert isinstance(item, File)
        assert item.id == ids["c.txt"]
        assert [p.split("?")[0] for p in fake_box.listed()] == [
            "/folders/0/items",
            f"/folders/{ids['a']}/items",
            f"/folders/{ids['b']}/items",
        ]

    def test_returns_web_links(self, fake_box: Any) -> None:
        _tree(fake_box)
        assert isinstance(resolve_item(_root(fake_box), "a/b/link"), WebLink)

    def test_returns_folders(self, fake_box: Any) -> None:
        ids = _tree(fake_box)
        item = resolve_item(_root(fake_box), "a/b")
        assert isinstance(item, Folder)
        assert item.id == ids["b"]

    def test_name_must_match_exactly(self, fake_box: Any) -> None:
        _tree(fake_box)
        assert resolve_item(_root(fake_box), "a/b/C.TXT") is None

    def test_missing_parent_returns_none(self, fake_box: Any) -> None:
        _tree(fake_box)
        assert resolve_item(_root(fake_box), "nope/c.txt") is None


class TestResolveFile:
    def test_returns_file(self, fake_box: Any) -> None:
        ids = _tree(fake_box)
        file = resolve_file(_root(fake_box), "./a/b/c.txt")
        assert file is not None
        assert file.id == ids["c.txt"]

    def test_ignores_non_file_children(self, fake_box: Any) -> None:
        _tree(fake_box)
        assert resolve_file(_root(fake_box), "a/b/link") is None

    def test_empty_path_returns_none(self, fake_box: Any) -> None:
        assert resolve_file(_root(fake_box), "/") is None


# ---------------------------------------------------------------------------
# ensure_folder_path tests
# ---------------------------------------------------------------------------


class TestEnsureFolderPath:
    def test_creates_missing_segments(self, fake_box: Any) -> None:
        folder = ensure_folder_path(_root(fake_box), "x/y/z")

        assert folder is not None
        assert folder.name == "z"
        x = fake_box.named("0", "x")[0]
        y = fake_box.named(x, "y")[0]
        assert fake_box.named(y, "z") == [folder.id]

    def test_reuses_existing_segments(self, fake_box: Any) -> None:
        ids = _tree(fake_box)

        folder = ensure_folder_path(_root(fake_box), "a/b/new")

        assert folder is not None
        posts = [call for call in fake_box.calls if call[0] == "POST"]
        assert len(posts) == 1
        assert fake_box.named(ids["b"], "new") == [folder.id]

    def test_is_idempotent(self, fake_box: Any) -> None:
        first = ensure_folder_path(_root(fake_box), "x/y")
        second = ensure_folder_path(_root(fake_box), "x/y")

        assert first is not None and second is not None
        assert first.id == second.id
        assert len(fake_box.named("0", "x")) == 1

    def test_lost_creation_race_uses_winners_folder(self, fake_box: Any) -> None:
        winner: dict[str, str] = {}

        def competing_create(parent_id: str, name: str) -> None:
            winner["id"] = fake_box.add(parent_id, "folder", name)

        fake_box.before_create = competing_create

        folder = ensure_folder_path(_root(fake_box), "shared")

        assert folder is not None
        assert folder.id == winner["id"]
        assert fake_box.named("0", "shared") == [winner["id"]]

    def test_concurrent_callers_end_on_same_folder(self, fake_box: Any) -> None:
        other: dict[str, Folder | None] = {}

        def other_caller_runs_first(parent_id: str, name: str) -> None:
            other["folder"] = ensure_folder_path(_root(fake_box), "p/q")

        fake_box.before_create = other_caller_runs_first

        folder = ensure_folder_path(_root(fake_box), "p/q")

        assert folder is not None and other["folder"] is not None
        assert folder.id == other["folder"].id
        p = fake_box.named("0", "p")
        assert len(p) == 1
        assert len(fake_box.named(p[0], "q")) == 1

    def test_returns_none_when_conflicting_folder_vanishes(self) -> None:
        root = MagicMock(spec=Folder)
        root.id = "0"
        root.folders.return_value = []
        root.create_subfolder.return_value = FolderCreation.already_exists()

        assert ensure_folder_path(root, "gone/child") is None
        assert root.folders.call_count == 2
        root.create_subfolder.assert_called_once_with("gone")

    def test_empty_path_returns_root(self, fake_box: Any) -> None:
        root = _root(fake_box)
        assert ensure_folder_path(root, "") is root
