"""In-memory pixeldrain filesystem API for testing.

Requests are served through ``httpx.MockTransport``, so no socket is opened.
Paths arrive escaped as a single segment (``%2Fme%2Fa.txt``); routing uses
the decoded ``url.path``. The tree lives in a dict keyed by absolute API path;
``/me`` is the account root. Every handled request is recorded in
``requests`` for inspection.
"""

from __future__ import annotations

import base64
import dataclasses
import hashlib
import mimetypes
from urllib.parse import parse_qs

import httpx

API_URL = "https://pixeldrain.test/api"
API_KEY = "test-api-key"
NOW = "2024-05-01T12:00:00.123456789Z"
ROOT = "/me"

_FS_ROUTE = "/api/filesystem"
_USER_ROUTE = "/api/user"


@dataclasses.dataclass
class FakeNode:
    type: str
    path: str
    created: str = NOW
    modified: str = NOW
    content: bytes = b""

    def to_json(self) -> dict[str, object]:
        data: dict[str, object] = {
            "type": self.type,
            "path": self.path,
            "name": self.path.rsplit("/", 1)[-1],
            "created": self.created,
            "modified": self.modified,
            "mode_string": "drwxr-xr-x" if self.type == "dir" else "-rw-r--r--",
            "mode_octal": "755" if self.type == "dir" else "644",
        }
        if self.type == "file":
            data["file_size"] = len(self.content)
            data["file_type"] = mimetypes.guess_type(self.path)[0] or "application/octet-stream"
            data["sha256_sum"] = hashlib.sha256(self.content).hexdigest()
        if self.path == ROOT:
            data["id"] = "me"
        return data


def _error(status: int, code: str, message: str = "") -> httpx.Response:
    return httpx.Response(status, json={"value": code, "message": message or code.replace("_", " ")})


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] or "/"


class FakePixeldrain:
    """Stateful fake of the filesystem and user endpoints.

    :param api_key: Expected API key; ``None`` disables authentication.
    :param read_only: API paths under which every write is denied.
    """

    def __init__(self, *, api_key: str | None = API_KEY, read_only: tuple[str, ...] = ()) -> None:
        self.api_key = api_key
        self.read_only = read_only
        self.nodes: dict[str, FakeNode] = {ROOT: FakeNode("dir", ROOT)}
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # region: tree helpers

    def add_dir(self, path: str) -> None:
        parts = path.strip("/").split("/")
        for i in range(1, len(parts) + 1):
            current = "/" + "/".join(parts[:i])
            self.nodes.setdefault(current, FakeNode("dir", current))

    def add_file(self, path: str, content: bytes = b"") -> None:
        self.add_dir(_parent(path))
        self.nodes[path] = FakeNode("file", path, content=content)

    def children(self, path: str) -> list[str]:
        prefix = path.rstrip("/") + "/"
        return sorted(p for p in self.nodes if p.startswith(prefix) and "/" not in p[len(prefix) :])

    def subtree(self, path: str) -> list[str]:
        return [p for p in self.nodes if p == path or p.startswith(path + "/")]

    def snapshot(self) -> dict[str, tuple[str, bytes]]:
        return {p: (n.type, n.content) for p, n in self.nodes.items()}

    def _ancestors(self, path: str) -> list[str]:
        parts = path.strip("/").split("/")
        return ["/" + "/".join(parts[:i]) for i in range(1, len(parts) + 1)]

    def _denied(self, path: str) -> bool:
        return any(path == ro or path.startswith(ro + "/") for ro in self.read_only)

    # endregion

    # region: dispatch

    def _authorized(self, request: httpx.Request) -> bool:
        if self.api_key is None:
            return True
        token = base64.b64encode(f":{self.api_key}".encode()).decode()
        return request.headers.get("authorization") == f"Basic {token}"

    def handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if not self._authorized(request):
            return _error(401, "authentication_failed", "invalid API key")
        route = request.url.path
        if route == _USER_ROUTE and request.method == "GET":
            return self._user()
        if not route.startswith(_FS_ROUTE + "/"):
            return _error(404, "not_found", "no such endpoint")
        path = route[len(_FS_ROUTE) :].rstrip("/") or "/"
        if request.method == "GET":
            if "stat" in request.url.params:
                return self._stat(path)
            return self._get(path, request)
        if request.method == "PUT":
            return self._put(path, request)
        if request.method == "POST":
            return self._post(path, request)
        if request.method == "DELETE":
            return self._delete(path, request)
        return _error(405, "method_not_allowed")

    # endregion

    # region: handlers

    def _user(self) -> httpx.Response:
        used = sum(len(n.content) for n in self.nodes.values())
        return httpx.Response(
            200,
            json={
                "username": "tester",
                "email": "tester@example.com",
                "subscription": {
                    "id": "prepaid",
                    "name": "Prepaid",
                    "type": "prepaid",
                    "file_size_limit": 10**11,
                    "file_expiry_days": -1,
                    "storage_space": 10**12,
                    "price_per_tb_storage": 4000000,
                    "price_per_tb_bandwidth": 1000000,
                    "monthly_transfer_cap": 0,
                    "file_viewer_branding": True,
                },
                "storage_space_used": used,
                "is_admin": False,
                "balance_micro_eur": 1500000,
                "hotlinking_enabled": True,
                "monthly_transfer_cap": 0,
                "monthly_transfer_used": 2048,
                "file_viewer_branding": {"theme": "dark"},
                "file_embed_domains": "example.com",
                "skip_file_viewer": False,
            },
        )

    def _stat(self, path: str) -> httpx.Response:
        node = self.nodes.get(path)
        if node is None:
            return _error(404, "path_not_found", f"{path} does not exist")
        ancestors = self._ancestors(path)
        children = self.children(path) if node.type == "dir" else []
        return httpx.Response(
            200,
            json={
                "path": [self.nodes[p].to_json() for p in ancestors],
                "base_index": len(ancestors) - 1,
                "children": [self.nodes[p].to_json() for p in children],
                "permissions": {
                    "create": not self._denied(path),
                    "read": True,
                    "update": not self._denied(path),
                    "delete": not self._denied(path),
                },
            },
        )

    def _get(self, path: str, request: httpx.Request) -> httpx.Response:
        node = self.nodes.get(path)
        if node is None:
            return _error(404, "path_not_found", f"{path} does not exist")
        if node.type != "file":
            return _error(422, "path_is_directory", "cannot download a directory")
        header = request.headers.get("range")
        if header is None:
            return httpx.Response(200, content=node.content)
        start_text, _, end_text = header.removeprefix("bytes=").partition("-")
        start = int(start_text)
        end = int(end_text) + 1 if end_text else len(node.content)
        return httpx.Response(206, content=node.content[start:end])

    def _put(self, path: str, request: httpx.Request) -> httpx.Response:
        if self._denied(path):
            return _error(403, "permission_denied", "read-only directory")
        existing = self.nodes.get(path)
        if existing is not None and existing.type == "dir":
            return _error(422, "node_already_exists", "a directory exists at this path")
        parent = self.nodes.get(_parent(path))
        if parent is None:
            if request.url.params.get("make_parents") != "true":
                return _error(404, "path_not_found", "parent does not exist")
            self.add_dir(_parent(path))
        elif parent.type != "dir":
            return _error(422, "node_already_exists", "parent is a file")
        self.nodes[path] = FakeNode("file", path, content=request.content)
        return httpx.Response(201, json=self.nodes[path].to_json())

    def _post(self, path: str, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode(), keep_blank_values=True).items()}
        if self._denied(path):
            return _error(403, "permission_denied", "read-only directory")
        action = form.get("action")
        if action == "mkdirall":
            for ancestor in self._ancestors(path):
                node = self.nodes.get(ancestor)
                if node is not None and node.type != "dir":
                    return _error(422, "node_already_exists", f"{ancestor} is a file")
            self.add_dir(path)
            return httpx.Response(200)
        node = self.nodes.get(path)
        if node is None:
            return _error(404, "path_not_found", f"{path} does not exist")
        if action == "update":
            node.created = form.get("created", node.created)
            node.modified = form.get("modified", node.modified)
            return httpx.Response(200, json=node.to_json())
        if action == "rename":
            return self._rename(path, form.get("target", ""))
        return _error(400, "invalid_action", f"unknown action {action!r}")

    def _rename(self, path: str, target: str) -> httpx.Response:
        if not target or self._denied(target):
            return _error(403, "permission_denied", "cannot move here")
        if target in self.nodes:
            return _error(422, "node_already_exists", f"{target} exists")
        if _parent(target) not in self.nodes:
            return _error(404, "path_not_found", "target parent does not exist")
        for old in sorted(self.subtree(path)):
            node = self.nodes.pop(old)
            node.path = target + old[len(path) :]
            self.nodes[node.path] = node
        return httpx.Response(200)

    def _delete(self, path: str, request: httpx.Request) -> httpx.Response:
        node = self.nodes.get(path)
        if node is None:
            return _error(404, "path_not_found", f"{path} does not exist")
        if path == ROOT or self._denied(path):
            return _error(403, "permission_denied", "cannot delete this node")
        recursive = request.url.params.get("recursive") == "true"
        if node.type == "dir" and self.children(path) and not recursive:
            return _error(422, "directory_not_empty", "directory has children")
        for p in self.subtree(path):
            del self.nodes[p]
        return httpx.Response(200)

    # endregion
