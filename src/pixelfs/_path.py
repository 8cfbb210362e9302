"""RemotePath and the pure path helpers used at the API boundary."""

from __future__ import annotations

from typing import Final
from urllib.parse import quote

from pixelfs._errors import InvalidPath

# Characters left unescaped besides the unreserved set, as in a URL path
# segment. "/" is not among them: the path travels as one segment.
_PATH_SAFE = "$&+:=@"


class RemotePath:
    """An immutable, normalized store-relative path.

    :param raw: The raw path string to normalize and validate.
    :raises InvalidPath: If the path is malformed or unsafe.
    """

    __slots__ = ("_path",)
    _path: Final[str]  # type: ignore[misc]

    def __init__(self, raw: str) -> None:
        normalized = self._normalize(raw)
        object.__setattr__(self, "_path", normalized)

    @staticmethod
    def _normalize(raw: str) -> str:
        if "\0" in raw:
            raise InvalidPath("Path contains null byte", path=raw)
        # Backslash → forward slash
        p = raw.replace("\\", "/")
        parts: list[str] = []
        for segment in p.split("/"):
            if segment == "" or segment == ".":
                continue
            if segment == "..":
                raise InvalidPath("Path contains '..' segment", path=raw)
            parts.append(segment)
        if not parts:
            raise InvalidPath("Path is empty after normalization", path=raw)
        return "/".join(parts)

    @property
    def parts(self) -> tuple[str, ...]:
        """Tuple of path components."""
        return tuple(self._path.split("/"))

    @property
    def absolute(self) -> str:
        """The path with a leading slash, as the remote API spells it."""
        return f"/{self._path}"

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"RemotePath({self._path!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RemotePath):
            return self._path == other._path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._path)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"RemotePath is immutable: cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"RemotePath is immutable: cannot delete '{name}'")


def strip_prefix(path: str, prefix: str) -> str:
    """Remove ``prefix`` from the start of ``path``.

    Only whole components match: with prefix ``/me`` the path ``/me/a`` becomes
    ``/a`` and ``/me`` becomes ``""``, while ``/meta`` is returned unchanged.
    A plain string prefix trim would turn ``/meta`` into ``ta``; that never
    happens here, so a node outside the scope keeps its full path.
    """
    prefix = prefix.rstrip("/")
    if not prefix:
        return path
    if path == prefix or path.startswith(prefix + "/"):
        return path[len(prefix) :]
    return path


def escape_path(path: str) -> str:
    """Percent-encode an API path as a single URL path segment.

    Every reserved character, ``/`` included, is escaped, so ``/me/a b`` becomes
    ``%2Fme%2Fa%20b``.
    """
    return quote(path, safe=_PATH_SAFE)


def build_prefix(root_folder_id: str, root: str = "") -> str:
    """Build the API path prefix for a scope: ``/<root_folder_id>[/<root>]``.

    :raises InvalidPath: If ``root_folder_id`` is empty or ``root`` is unsafe.
    """
    folder = root_folder_id.strip("/")
    if not folder:
        raise InvalidPath("root_folder_id must not be empty", path=root_folder_id)
    if not root or not root.strip("/"):
        return f"/{folder}"
    return f"/{folder}{RemotePath(root).absolute}"
