"""Object: the handle returned for a file or directory in a scope."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, BinaryIO, Optional

if TYPE_CHECKING:
    from datetime import datetime

    from pixelfs._models import FilesystemNode, Permissions
    from pixelfs._types import WritableContent
    from pixelfs.backends._pixeldrain import PixeldrainBackend


@dataclasses.dataclass(frozen=True, eq=False)
class Object:
    """Immutable handle on one node of a backend's scope.

    Handles are built by the backend from a single API response and are never
    updated in place: operations that change the remote node return a new
    handle.

    :param backend: The backend whose scope the node belongs to.
    :param base: The node this handle describes, with its path prefix stripped.
    :param path: Ancestors from the API root down to ``base``, inclusive.
        Empty when the handle was built from a listing entry.
    :param children: Directory listing, or ``None`` outside a listing context.
    :param permissions: What the credential may do to ``base``, when known.
    """

    backend: PixeldrainBackend
    base: FilesystemNode
    path: tuple[FilesystemNode, ...] = ()
    children: Optional[tuple[FilesystemNode, ...]] = None
    permissions: Optional[Permissions] = None

    def __repr__(self) -> str:
        return f"Object(backend={self.backend.name!r}, path={self.base.path!r}, type={self.base.type!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Object):
            return self.backend is other.backend and self.base.path == other.base.path
        return NotImplemented

    def __hash__(self) -> int:
        return hash((id(self.backend), self.base.path))

    # region: node attributes

    @property
    def key(self) -> str:
        """Store-relative key (no leading slash; empty for the scope root)."""
        return self.base.path.lstrip("/")

    @property
    def name(self) -> str:
        return self.base.name

    @property
    def is_dir(self) -> bool:
        return self.base.is_dir

    @property
    def size(self) -> int:
        """Size in bytes; ``0`` for directories."""
        return getattr(self.base, "size", 0)

    @property
    def created_at(self) -> datetime:
        return self.base.created

    @property
    def modified_at(self) -> datetime:
        return self.base.modified

    @property
    def checksum(self) -> Optional[str]:
        """SHA-256 of the content, if the node is a file."""
        return getattr(self.base, "sha256_sum", "") or None

    @property
    def content_type(self) -> Optional[str]:
        return getattr(self.base, "file_type", "") or None

    @property
    def id(self) -> Optional[str]:
        """Identifier from the node's metadata block, if it has one."""
        if self.base.meta is None:
            return None
        return self.base.meta.id or None

    # endregion

    # region: operations

    def open(self, *, offset: int = 0, length: Optional[int] = None) -> BinaryIO:
        return self.backend.read(self.key, offset=offset, length=length)

    def read_bytes(self) -> bytes:
        return self.backend.read_bytes(self.key)

    def update(self, content: WritableContent) -> Object:
        """Replace the content and return the handle of the new version."""
        return self.backend.write(self.key, content, overwrite=True)

    def set_modified(self, modified: datetime) -> Object:
        return self.backend.set_modified(self.key, modified)

    def remove(self) -> None:
        if self.is_dir:
            self.backend.delete_folder(self.key)
        else:
            self.backend.delete(self.key)

    # endregion
