"""Pixeldrain filesystem backend over the JSON HTTP API."""

from __future__ import annotations

import io
import logging
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, BinaryIO, Optional, TypeVar

import httpx

from pixelfs._api import DEFAULT_API_URL, USER_ENDPOINT, FilesystemAPI
from pixelfs._backend import Backend
from pixelfs._capabilities import Capability, CapabilitySet
from pixelfs._errors import (
    AlreadyExists,
    BackendUnavailable,
    CapabilityNotSupported,
    InvalidPath,
    NotFound,
    PixelFSError,
)
from pixelfs._models import DirEntry, Usage, strip_node_prefix
from pixelfs._object import Object
from pixelfs._path import RemotePath, build_prefix, strip_prefix

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

    from pixelfs._backend import Entry
    from pixelfs._models import FilesystemNode, FilesystemPath, UserInfo
    from pixelfs._types import WritableContent

T = TypeVar("T")

log = logging.getLogger(__name__)

_API_KEY_ENV = "PIXELDRAIN_API_KEY"

_ALL_CAPABILITIES = CapabilitySet(set(Capability))

# Without an API key only public directories can be read.
_ANONYMOUS_CAPABILITIES = _ALL_CAPABILITIES.without(
    Capability.WRITE,
    Capability.DELETE,
    Capability.RECURSIVE_DELETE,
    Capability.MKDIR,
    Capability.MOVE,
    Capability.SET_MODIFIED,
    Capability.ABOUT,
)


class PixeldrainBackend(Backend):
    """Backend exposing one subtree of a pixeldrain filesystem.

    The scope is the API path prefix ``/<root_folder_id>[/<root>]``. Paths
    sent to the API get the prefix prepended and paths in responses get it
    stripped, so several backends over one account act as independent roots.

    :param api_key: API key. Falls back to ``config["api_key"]``, then to the
        ``PIXELDRAIN_API_KEY`` environment variable.
    :param api_url: Base URL of the API.
    :param root_folder_id: Top-level folder: ``me`` for the account's own
        filesystem, or the ID of a shared directory.
    :param root: Subdirectory of ``root_folder_id`` to use as the root.
    :param user_endpoint: Account endpoint, relative to ``api_url``.
    :param timeout: Request timeout in seconds.
    :param config: Optional config dict (may contain ``api_key``).
    :param transport: Custom httpx transport, mainly for tests.
    :param client_options: Extra keyword arguments for ``httpx.Client``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        api_url: str = DEFAULT_API_URL,
        root_folder_id: str = "me",
        root: str = "",
        user_endpoint: str = USER_ENDPOINT,
        timeout: float = 30.0,
        config: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        client_options: Optional[dict[str, Any]] = None,
    ) -> None:
        if not api_url or not api_url.strip():
            raise ValueError("api_url must be a non-empty string")
        self._api_key = self._resolve_api_key(api_key, config)
        self._path_prefix = build_prefix(root_folder_id, root)
        self._api = FilesystemAPI(
            api_url,
            api_key=self._api_key,
            path_prefix=self._path_prefix,
            user_endpoint=user_endpoint,
            timeout=timeout,
            transport=transport,
            client_options=client_options,
            backend=self.name,
        )
        log.debug("Pixeldrain backend scoped to %s", self._path_prefix)

    def __repr__(self) -> str:
        return f"PixeldrainBackend(api_url={self._api.api_url!r}, path_prefix={self._path_prefix!r})"

    @property
    def name(self) -> str:
        return "pixeldrain"

    @property
    def capabilities(self) -> CapabilitySet:
        return _ALL_CAPABILITIES if self._api_key else _ANONYMOUS_CAPABILITIES

    @property
    def path_prefix(self) -> str:
        """API path prefix of this backend's scope."""
        return self._path_prefix

    @property
    def api(self) -> FilesystemAPI:
        return self._api

    @staticmethod
    def _resolve_api_key(direct: Optional[str], config: Optional[dict[str, Any]]) -> Optional[str]:
        """Resolve the API key: code > config > env."""
        if direct:
            return direct
        if config and (val := config.get("api_key")):
            return str(val)
        return os.environ.get(_API_KEY_ENV) or None

    # region: path helpers

    def _api_path(self, path: str) -> str:
        """Convert a store-relative key to a full API path."""
        key = path.strip("/")
        if key:
            return f"{self._path_prefix}/{key}"
        return self._path_prefix

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, path: str = "") -> Iterator[None]:
        """Map httpx exceptions to pixelfs errors, naming the store key.

        API errors are raised with the full API path; it is replaced with
        ``path`` so the scope prefix never reaches the caller.
        """
        try:
            yield
        except PixelFSError as exc:
            if exc.path is not None:
                exc.path = path
            raise
        except httpx.RequestError as exc:
            raise BackendUnavailable(str(exc) or type(exc).__name__, path=path, backend=self.name) from exc

    # endregion

    # region: conversions

    def path_to_object(self, fsp: FilesystemPath) -> Object:
        """Build a handle from a path response.

        The prefix is stripped from every ancestor and child. ``fsp`` is
        consumed: use the returned handle instead of reusing it.
        """
        ancestors = tuple(strip_node_prefix(node, self._path_prefix) for node in fsp.path)
        children = tuple(strip_node_prefix(node, self._path_prefix) for node in fsp.children)
        return Object(
            backend=self,
            base=ancestors[fsp.base_index],
            path=ancestors,
            children=children,
            permissions=fsp.permissions,
        )

    def node_to_object(self, node: FilesystemNode) -> Object:
        """Build a handle from a single listing entry, without ancestors."""
        return Object(backend=self, base=strip_node_prefix(node, self._path_prefix))

    def node_to_dir_entry(self, node: FilesystemNode) -> DirEntry:
        return DirEntry(path=strip_prefix(node.path, self._path_prefix), modified_at=node.modified)

    # endregion

    # region: existence checks

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
        except NotFound:
            return False
        return True

    def is_file(self, path: str) -> bool:
        try:
            return not self.stat(path).is_dir
        except NotFound:
            return False

    def is_folder(self, path: str) -> bool:
        try:
            return self.stat(path).is_dir
        except NotFound:
            return False

    # endregion

    # region: metadata and listing

    def stat(self, path: str) -> Object:
        with self._errors(path):
            return self.path_to_object(self._api.stat(self._api_path(path)))

    def list(self, path: str) -> Iterator[Entry]:
        with self._errors(path):
            fsp = self._api.stat(self._api_path(path))
        if not fsp.base.is_dir:
            raise NotFound(f"Not a directory: {path}", path=path, backend=self.name)
        entries: list[Entry] = [
            self.node_to_dir_entry(node) if node.is_dir else self.node_to_object(node) for node in fsp.children
        ]
        return iter(entries)

    def set_modified(self, path: str, modified: datetime) -> Object:
        with self._errors(path):
            return self.node_to_object(self._api.update(self._api_path(path), modified=modified))

    def about(self) -> Usage:
        return Usage.from_user(self.user_info())

    def user_info(self) -> UserInfo:
        with self._errors():
            return self._api.user_info()

    # endregion

    # region: read operations

    def read(self, path: str, *, offset: int = 0, length: Optional[int] = None) -> BinaryIO:
        if length is not None and length <= 0:
            return io.BytesIO(b"")
        headers = None
        if offset or length is not None:
            end = "" if length is None else str(offset + length - 1)
            headers = {"Range": f"bytes={offset}-{end}"}
        with self._errors(path):
            return self._api.read(self._api_path(path), headers=headers, stream_path=path)

    def read_bytes(self, path: str) -> bytes:
        stream = self.read(path)
        with self._errors(path), stream:
            return stream.read()

    # endregion

    # region: write operations

    def write(self, path: str, content: WritableContent, *, overwrite: bool = False) -> Object:
        if not overwrite and self.exists(path):
            raise AlreadyExists(f"File already exists: {path}", path=path, backend=self.name)
        with self._errors(path):
            return self.node_to_object(self._api.put(self._api_path(path), content))

    def mkdir(self, path: str) -> None:
        with self._errors(path):
            self._api.mkdir(self._api_path(path))

    # endregion

    # region: delete operations

    def delete(self, path: str, *, missing_ok: bool = False) -> None:
        try:
            with self._errors(path):
                self._api.delete(self._api_path(path))
        except NotFound:
            if not missing_ok:
                raise

    def delete_folder(self, path: str, *, recursive: bool = False, missing_ok: bool = False) -> None:
        try:
            with self._errors(path):
                self._api.delete(self._api_path(path), recursive=recursive)
        except NotFound:
            if not missing_ok:
                raise

    # endregion

    # region: move

    def move(self, src: str, dst: str, *, overwrite: bool = False) -> None:
        src_parts = RemotePath(src).parts
        dst_parts = RemotePath(dst).parts
        if src_parts[: len(dst_parts)] == dst_parts:
            raise InvalidPath(f"Cannot move {src} onto itself or its ancestor {dst}", path=dst, backend=self.name)
        if dst_parts[: len(src_parts)] == src_parts:
            raise InvalidPath(f"Cannot move {src} into itself", path=dst, backend=self.name)
        # Raises NotFound before the destination is touched.
        self.stat(src)
        if self.exists(dst):
            if not overwrite:
                raise AlreadyExists(f"Destination already exists: {dst}", path=dst, backend=self.name)
            self.delete_folder(dst, recursive=True, missing_ok=True)
        with self._errors(src):
            self._api.rename(self._api_path(src), f"/{dst.strip('/')}")

    # endregion

    # region: lifecycle

    def close(self) -> None:
        self._api.close()

    def unwrap(self, type_hint: type[T]) -> T:
        if type_hint is httpx.Client:
            return self._api.client  # type: ignore[return-value]
        if type_hint is FilesystemAPI:
            return self._api  # type: ignore[return-value]
        raise CapabilityNotSupported(
            f"Backend 'pixeldrain' does not expose native handle of type {type_hint.__name__}. "
            f"Override unwrap() in your backend to provide native access.",
            capability="unwrap",
            backend=self.name,
        )

    # endregion
