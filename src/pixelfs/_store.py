"""Store: the host-facing facade over one backend scope."""

from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO, Optional

from pixelfs._capabilities import Capability
from pixelfs._errors import InvalidPath
from pixelfs._path import RemotePath

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from types import TracebackType

    from pixelfs._backend import Backend, Entry
    from pixelfs._models import Usage
    from pixelfs._object import Object
    from pixelfs._types import WritableContent


class Store:
    """A logical filesystem root backed by one backend scope.

    All path arguments are validated as relative keys before being delegated
    to the backend; every operation checks the backend's capabilities first.

    :param backend: The backend to delegate I/O to.
    """

    def __init__(self, backend: Backend) -> None:
        self._backend = backend

    def __repr__(self) -> str:
        return f"Store(backend={self._backend!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Store):
            return self._backend is other._backend
        return NotImplemented

    def __hash__(self) -> int:
        return hash(id(self._backend))

    @property
    def backend(self) -> Backend:
        return self._backend

    def close(self) -> None:
        """Close the underlying backend, releasing any held resources."""
        self._backend.close()

    def __enter__(self) -> Store:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _key(self, path: str) -> str:
        """Validate a path that may be empty (the store root)."""
        return str(RemotePath(path)) if path else ""

    def _require_key(self, path: str) -> str:
        """Validate a path that must not be the store root."""
        if not path:
            raise InvalidPath("Path must not be empty for this operation", path=path)
        return str(RemotePath(path))

    def _require(self, cap: Capability) -> None:
        self._backend.capabilities.require(cap, backend=self._backend.name)

    def supports(self, capability: Capability) -> bool:
        """Check whether the backend supports a capability."""
        return self._backend.capabilities.supports(capability)

    def exists(self, path: str) -> bool:
        """Check if a file or directory exists."""
        return self._backend.exists(self._key(path))

    def is_file(self, path: str) -> bool:
        return self._backend.is_file(self._key(path))

    def is_folder(self, path: str) -> bool:
        return self._backend.is_folder(self._key(path))

    def stat(self, path: str) -> Object:
        """Get the handle of a file or directory.

        :raises NotFound: If nothing exists at ``path``.
        """
        self._require(Capability.METADATA)
        return self._backend.stat(self._key(path))

    def list(self, path: str = "") -> Iterator[Entry]:
        """List a directory: files as ``Object``, subdirectories as ``DirEntry``."""
        self._require(Capability.LIST)
        return self._backend.list(self._key(path))

    def read(self, path: str, *, offset: int = 0, length: Optional[int] = None) -> BinaryIO:
        """Open a file for reading. The caller closes the stream.

        :raises NotFound: If the file does not exist.
        """
        self._require(Capability.READ)
        if offset or length is not None:
            self._require(Capability.RANGE_READ)
        return self._backend.read(self._require_key(path), offset=offset, length=length)

    def read_bytes(self, path: str) -> bytes:
        """Read full file content as bytes.

        :raises NotFound: If the file does not exist.
        :raises InvalidPath: If ``path`` is empty.
        """
        self._require(Capability.READ)
        return self._backend.read_bytes(self._require_key(path))

    def write(self, path: str, content: WritableContent, *, overwrite: bool = False) -> Object:
        """Write content to a file and return its handle.

        :raises AlreadyExists: If the file exists and ``overwrite`` is ``False``.
        :raises InvalidPath: If ``path`` is empty.
        """
        self._require(Capability.WRITE)
        return self._backend.write(self._require_key(path), content, overwrite=overwrite)

    def mkdir(self, path: str) -> None:
        """Create a directory and its missing ancestors."""
        self._require(Capability.MKDIR)
        self._backend.mkdir(self._require_key(path))

    def delete(self, path: str, *, missing_ok: bool = False) -> None:
        """Delete a file.

        :raises NotFound: If the file is missing and ``missing_ok`` is ``False``.
        :raises InvalidPath: If ``path`` is empty.
        """
        self._require(Capability.DELETE)
        self._backend.delete(self._require_key(path), missing_ok=missing_ok)

    def delete_folder(self, path: str, *, recursive: bool = False, missing_ok: bool = False) -> None:
        """Delete a directory.

        :raises DirectoryNotEmpty: If it has children and ``recursive`` is ``False``.
        :raises InvalidPath: If ``path`` is empty (cannot delete the store root).
        """
        if not path:
            raise InvalidPath("Cannot delete the store root", path=path)
        self._require(Capability.DELETE)
        if recursive:
            self._require(Capability.RECURSIVE_DELETE)
        self._backend.delete_folder(self._require_key(path), recursive=recursive, missing_ok=missing_ok)

    def move(self, src: str, dst: str, *, overwrite: bool = False) -> None:
        """Move or rename a file or directory.

        :raises NotFound: If ``src`` does not exist.
        :raises AlreadyExists: If ``dst`` exists and ``overwrite`` is ``False``.
        """
        self._require(Capability.MOVE)
        self._backend.move(self._require_key(src), self._require_key(dst), overwrite=overwrite)

    def set_modified(self, path: str, modified: datetime) -> Object:
        """Set the modification time of a file or directory."""
        self._require(Capability.SET_MODIFIED)
        return self._backend.set_modified(self._require_key(path), modified)

    def about(self) -> Usage:
        """Storage usage of the account behind this store."""
        self._require(Capability.ABOUT)
        return self._backend.about()
