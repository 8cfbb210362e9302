"""Backend abstract base class: the filesystem contract adapters implement."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, BinaryIO, Optional, TypeVar, Union

from pixelfs._errors import CapabilityNotSupported

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from types import TracebackType

    from pixelfs._capabilities import CapabilitySet
    from pixelfs._models import DirEntry, Usage
    from pixelfs._object import Object
    from pixelfs._types import WritableContent

T = TypeVar("T")
B = TypeVar("B", bound="Backend")

Entry = Union["Object", "DirEntry"]


class Backend(abc.ABC):
    """Abstract base class for filesystem backends.

    Paths are store-relative keys without a leading slash; the empty string is
    the backend's root. Backend-native exceptions must never leak; they are
    mapped to ``pixelfs`` errors.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Unique identifier for this backend type (e.g. ``'pixeldrain'``)."""

    @property
    @abc.abstractmethod
    def capabilities(self) -> CapabilitySet:
        """Declared capabilities of this backend."""

    @abc.abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a file or directory exists. Never raises ``NotFound``."""

    @abc.abstractmethod
    def is_file(self, path: str) -> bool:
        """Return ``True`` if ``path`` is an existing file."""

    @abc.abstractmethod
    def is_folder(self, path: str) -> bool:
        """Return ``True`` if ``path`` is an existing directory."""

    @abc.abstractmethod
    def stat(self, path: str) -> Object:
        """Get the handle of a file or directory.

        :raises NotFound: If nothing exists at ``path``.
        """

    @abc.abstractmethod
    def list(self, path: str) -> Iterator[Entry]:
        """List a directory: files as ``Object``, subdirectories as ``DirEntry``.

        :raises NotFound: If ``path`` is missing or is not a directory.
        """

    @abc.abstractmethod
    def read(self, path: str, *, offset: int = 0, length: Optional[int] = None) -> BinaryIO:
        """Open a file for reading. The caller closes the stream.

        :param offset: First byte to read.
        :param length: Number of bytes to read, or ``None`` for the rest.
        :raises NotFound: If the file does not exist.
        """

    @abc.abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Read the full content of a file.

        :raises NotFound: If the file does not exist.
        """

    @abc.abstractmethod
    def write(self, path: str, content: WritableContent, *, overwrite: bool = False) -> Object:
        """Create or replace a file, creating missing parent directories.

        :raises AlreadyExists: If the file exists and ``overwrite`` is ``False``.
        """

    @abc.abstractmethod
    def mkdir(self, path: str) -> None:
        """Create a directory and its missing ancestors. Idempotent."""

    @abc.abstractmethod
    def delete(self, path: str, *, missing_ok: bool = False) -> None:
        """Delete a file.

        :raises NotFound: If the file is missing and ``missing_ok`` is ``False``.
        """

    @abc.abstractmethod
    def delete_folder(self, path: str, *, recursive: bool = False, missing_ok: bool = False) -> None:
        """Delete a directory.

        :raises DirectoryNotEmpty: If it has children and ``recursive`` is ``False``.
        :raises NotFound: If it is missing and ``missing_ok`` is ``False``.
        """

    @abc.abstractmethod
    def move(self, src: str, dst: str, *, overwrite: bool = False) -> None:
        """Move or rename a file or directory.

        :raises NotFound: If ``src`` does not exist.
        :raises AlreadyExists: If ``dst`` exists and ``overwrite`` is ``False``.
        """

    @abc.abstractmethod
    def set_modified(self, path: str, modified: datetime) -> Object:
        """Set the modification time of a node and return its new handle."""

    @abc.abstractmethod
    def about(self) -> Usage:
        """Return the storage usage of the account."""

    def close(self) -> None:  # noqa: B027
        """Release resources. Default is a no-op."""

    def __enter__(self: B) -> B:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def unwrap(self, type_hint: type[T]) -> T:
        """Return the native backend handle if it matches the requested type.

        :param type_hint: The expected type (e.g., ``httpx.Client``).
        :raises CapabilityNotSupported: If backend cannot provide the requested type.
        """
        raise CapabilityNotSupported(
            f"Backend '{self.name}' does not expose native handle of type {type_hint.__name__}. "
            f"Override unwrap() in your backend to provide native access.",
            capability="unwrap",
            backend=self.name,
        )
