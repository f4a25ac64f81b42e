"""Shared fixtures — an in-memory stand-in for the Box folder API."""

from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qsl, urlsplit

import pytest

from boxwalk.box.session import BoxApiError, BoxItemNameInUse


class FakeBoxSession:
    """Serves folder metadata, paged folder listings and folder creation from memory."""

    def __init__(self) -> None:
        self.items: dict[str, dict[str, Any]] = {
            "0": {"type": "folder", "id": "0", "name": "All Files"},
        }
        self.children: dict[str, list[str]] = {"0": []}
        self.calls: list[tuple[str, str]] = []
        self.before_create: Callable[[str, str], None] | None = None
        self._next_id = 100

    def add(self, parent_id: str, item_type: str, name: str) -> str:
        item_id = str(self._next_id)
        self._next_id += 1
        self.items[item_id] = {"type": item_type, "id": item_id, "name": name}
        self.children[parent_id].append(item_id)
        if item_type == "folder":
            self.children[item_id] = []
        return item_id

    def remove(self, parent_id: str, item_id: str) -> None:
        self.children[parent_id].remove(item_id)
        del self.items[item_id]

    def named(self, parent_id: str, name: str) -> list[str]:
        return [c for c in self.children[parent_id] if self.items[c]["name"] == name]

    def get(self, path: str) -> dict[str, Any]:
        self.calls.append(("GET", path))
        parts = urlsplit(path)
        params = dict(parse_qsl(parts.query))
        segments = parts.path.strip("/").split("/")
        if len(segments) == 3 and segments[0] == "folders" and segments[2] == "items":
            children = self.children[segments[1]]
            offset = int(params.get("offset", 0))
            limit = int(params.get("limit", 100))
            return {
                "entries": [dict(self.items[c]) for c in children[offset : offset + limit]],
                "offset": offset,
                "limit": limit,
                "total_count": len(children),
            }
        if len(segments) == 2 and segments[0] in ("folders", "files"):
            if segments[1] not in self.items:
                raise BoxApiError(404, "Not Found", "not_found")
            return dict(self.items[segments[1]])
        raise AssertionError(f"unexpected GET {path}")

    def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("POST", path))
        assert path == "/folders"
        parent_id = body["parent"]["id"]
        name = body["name"]
        if self.before_create is not None:
            hook, self.before_create = self.before_create, None
            hook(parent_id, name)
        existing = self.named(parent_id, name)
        if existing:
            raise BoxItemNameInUse(
                409,
                "Item with the same name already exists",
                "item_name_in_use",
                {"conflicts": [dict(self.items[existing[0]])]},
            )
        return dict(self.items[self.add(parent_id, "folder", name)])

    def listed(self) -> list[str]:
        """Return the paths of every folder listing request, in order."""
        return [path for method, path in self.calls if method == "GET" and "/items" in path]


@pytest.fixture
def fake_box() -> FakeBoxSession:
    return FakeBoxSession()
