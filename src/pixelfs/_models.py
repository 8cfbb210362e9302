"""Immutable models for the remote filesystem tree and account data.

Every model is decoded from the JSON payloads of the filesystem API. Decoding
never trusts the payload shape: missing or mistyped fields raise
:class:`~pixelfs._errors.DecodeError`.
"""

from __future__ import annotations

import dataclasses
import re
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pixelfs._errors import DecodeError
from pixelfs._path import strip_prefix

_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})?$"
)

_DIRECTORY_TYPES = frozenset({"dir", "directory"})


# region: timestamps


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp with up to nanosecond precision.

    Fractions beyond microseconds are truncated. Timestamps without an offset
    are taken as UTC.

    :raises ValueError: If ``value`` is not an RFC 3339 timestamp.
    """
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}")
    text = match["base"].replace(" ", "T").replace("t", "T")
    if match["frac"]:
        text += "." + match["frac"][:6].ljust(6, "0")
    tz = match["tz"]
    text += "+00:00" if tz is None or tz in ("Z", "z") else tz
    return datetime.fromisoformat(text)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as RFC 3339 with nanoseconds, trailing zeros trimmed.

    Naive datetimes are treated as UTC; a zero offset is written as ``Z``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    frac = f"{value.microsecond:06d}000".rstrip("0")
    if frac:
        text += f".{frac}"
    offset = value.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


# endregion

# region: payload helpers


def _field(data: dict[str, Any], key: str, kind: type, default: Any = None) -> Any:
    value = data.get(key, default)
    if value is None:
        return default
    if kind is int and isinstance(value, bool):
        raise DecodeError(f"Field {key!r} must be an integer, got bool")
    if not isinstance(value, kind):
        raise DecodeError(f"Field {key!r} must be {kind.__name__}, got {type(value).__name__}")
    return value


def _time_field(data: dict[str, Any], key: str) -> datetime:
    raw = _field(data, key, str, "0001-01-01T00:00:00Z")
    try:
        return parse_timestamp(raw)
    except ValueError as exc:
        raise DecodeError(f"Field {key!r}: {exc}") from exc


def _require_object(data: object, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object for {what}, got {type(data).__name__}")
    return data


def _string_map(data: dict[str, Any], key: str) -> dict[str, str]:
    raw = _field(data, key, dict, {})
    return {str(k): str(v) for k, v in raw.items()}


# endregion

# region: nodes


@dataclasses.dataclass(frozen=True)
class NodeMeta:
    """Optional metadata attached to some nodes.

    :param id: Identifier of the node, used for sharing.
    :param read_password: Password required to read the node, if set.
    :param write_password: Password required to write the node, if set.
    :param properties: Free-form properties, keyed by server configuration.
    """

    id: str = ""
    read_password: Optional[str] = None
    write_password: Optional[str] = None
    properties: dict[str, str] = dataclasses.field(default_factory=dict)

    _KEYS = ("id", "read_password", "write_password", "properties")

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Optional[NodeMeta]:
        """Return the metadata block, or ``None`` if the node carries none."""
        if not any(data.get(key) for key in cls._KEYS):
            return None
        return cls(
            id=_field(data, "id", str, ""),
            read_password=_field(data, "read_password", str) or None,
            write_password=_field(data, "write_password", str) or None,
            properties=_string_map(data, "properties"),
        )


@dataclasses.dataclass(frozen=True)
class DirectoryNode:
    """A directory in the remote tree."""

    path: str
    name: str
    created: datetime
    modified: datetime
    mode_string: str = ""
    mode_octal: str = ""
    meta: Optional[NodeMeta] = None

    type = "dir"

    @property
    def is_dir(self) -> bool:
        return True


@dataclasses.dataclass(frozen=True)
class FileNode:
    """A file in the remote tree."""

    path: str
    name: str
    created: datetime
    modified: datetime
    mode_string: str = ""
    mode_octal: str = ""
    meta: Optional[NodeMeta] = None
    size: int = 0
    file_type: str = ""
    sha256_sum: str = ""

    type = "file"

    @property
    def is_dir(self) -> bool:
        return False


FilesystemNode = Union[FileNode, DirectoryNode]


def node_from_json(data: object) -> FilesystemNode:
    """Decode a node payload into a :class:`FileNode` or :class:`DirectoryNode`.

    :raises DecodeError: If the payload is malformed or of unknown type.
    """
    obj = _require_object(data, "node")
    kind = _field(obj, "type", str, "")
    common: dict[str, Any] = {
        "path": _field(obj, "path", str, ""),
        "name": _field(obj, "name", str, ""),
        "created": _time_field(obj, "created"),
        "modified": _time_field(obj, "modified"),
        "mode_string": _field(obj, "mode_string", str, ""),
        "mode_octal": _field(obj, "mode_octal", str, ""),
        "meta": NodeMeta.from_json(obj),
    }
    if kind == "file":
        return FileNode(
            **common,
            size=_field(obj, "file_size", int, 0),
            file_type=_field(obj, "file_type", str, ""),
            sha256_sum=_field(obj, "sha256_sum", str, ""),
        )
    if kind in _DIRECTORY_TYPES:
        return DirectoryNode(**common)
    raise DecodeError(f"Unknown node type {kind!r}", path=common["path"] or None)


def strip_node_prefix(node: FilesystemNode, prefix: str) -> FilesystemNode:
    """Return ``node`` with ``prefix`` removed from its path."""
    stripped = strip_prefix(node.path, prefix)
    if stripped == node.path:
        return node
    return dataclasses.replace(node, path=stripped)


# endregion

# region: path response


@dataclasses.dataclass(frozen=True)
class Permissions:
    """Actions the current credential may perform on a node."""

    create: bool = False
    read: bool = False
    update: bool = False
    delete: bool = False

    @classmethod
    def from_json(cls, data: object) -> Permissions:
        obj = _require_object(data, "permissions")
        return cls(
            create=bool(obj.get("create", False)),
            read=bool(obj.get("read", False)),
            update=bool(obj.get("update", False)),
            delete=bool(obj.get("delete", False)),
        )


@dataclasses.dataclass(frozen=True)
class FilesystemPath:
    """Response to a metadata query.

    :param path: Every node from the API root down to the queried node.
    :param base_index: Index of the queried node in ``path``.
    :param children: Directory listing; empty for files.
    :param permissions: What the credential may do to the queried node.
    """

    path: tuple[FilesystemNode, ...]
    base_index: int
    children: tuple[FilesystemNode, ...] = ()
    permissions: Permissions = dataclasses.field(default_factory=Permissions)

    def __post_init__(self) -> None:
        if not 0 <= self.base_index < len(self.path):
            raise DecodeError(f"base_index {self.base_index} out of range for a path of {len(self.path)} nodes")

    @property
    def base(self) -> FilesystemNode:
        """The queried node itself."""
        return self.path[self.base_index]

    @classmethod
    def from_json(cls, data: object) -> FilesystemPath:
        obj = _require_object(data, "path response")
        raw_path = _field(obj, "path", list, [])
        raw_children = _field(obj, "children", list, [])
        return cls(
            path=tuple(node_from_json(n) for n in raw_path),
            base_index=_field(obj, "base_index", int, 0),
            children=tuple(node_from_json(n) for n in raw_children),
            permissions=Permissions.from_json(obj.get("permissions") or {}),
        )


# endregion

# region: listing entries and account data


@dataclasses.dataclass(frozen=True)
class DirEntry:
    """A directory as it appears in a listing."""

    path: str
    modified_at: datetime

    @property
    def key(self) -> str:
        """Store-relative key of the directory."""
        return self.path.lstrip("/")

    @property
    def name(self) -> str:
        return self.key.rsplit("/", 1)[-1]


@dataclasses.dataclass(frozen=True)
class SubscriptionType:
    """Properties of a subscription plan, not the active subscription itself."""

    id: str = ""
    name: str = ""
    type: str = ""
    file_size_limit: int = 0
    file_expiry_days: int = 0
    storage_space: int = 0
    price_per_tb_storage: int = 0
    price_per_tb_bandwidth: int = 0
    monthly_transfer_cap: int = 0
    file_viewer_branding: bool = False

    @classmethod
    def from_json(cls, data: object) -> SubscriptionType:
        obj = _require_object(data, "subscription")
        return cls(
            id=_field(obj, "id", str, ""),
            name=_field(obj, "name", str, ""),
            type=_field(obj, "type", str, ""),
            file_size_limit=_field(obj, "file_size_limit", int, 0),
            file_expiry_days=_field(obj, "file_expiry_days", int, 0),
            storage_space=_field(obj, "storage_space", int, 0),
            price_per_tb_storage=_field(obj, "price_per_tb_storage", int, 0),
            price_per_tb_bandwidth=_field(obj, "price_per_tb_bandwidth", int, 0),
            monthly_transfer_cap=_field(obj, "monthly_transfer_cap", int, 0),
            file_viewer_branding=bool(obj.get("file_viewer_branding", False)),
        )


@dataclasses.dataclass(frozen=True)
class UserInfo:
    """Snapshot of the authenticated account."""

    username: str = ""
    email: str = ""
    subscription: SubscriptionType = dataclasses.field(default_factory=SubscriptionType)
    storage_space_used: int = 0
    is_admin: bool = False
    balance_micro_eur: int = 0
    hotlinking_enabled: bool = False
    monthly_transfer_cap: int = 0
    monthly_transfer_used: int = 0
    file_viewer_branding: dict[str, str] = dataclasses.field(default_factory=dict)
    file_embed_domains: str = ""
    skip_file_viewer: bool = False

    @classmethod
    def from_json(cls, data: object) -> UserInfo:
        obj = _require_object(data, "user info")
        return cls(
            username=_field(obj, "username", str, ""),
            email=_field(obj, "email", str, ""),
            subscription=SubscriptionType.from_json(obj.get("subscription") or {}),
            storage_space_used=_field(obj, "storage_space_used", int, 0),
            is_admin=bool(obj.get("is_admin", False)),
            balance_micro_eur=_field(obj, "balance_micro_eur", int, 0),
            hotlinking_enabled=bool(obj.get("hotlinking_enabled", False)),
            monthly_transfer_cap=_field(obj, "monthly_transfer_cap", int, 0),
            monthly_transfer_used=_field(obj, "monthly_transfer_used", int, 0),
            file_viewer_branding=_string_map(obj, "file_viewer_branding"),
            file_embed_domains=_field(obj, "file_embed_domains", str, ""),
            skip_file_viewer=bool(obj.get("skip_file_viewer", False)),
        )


@dataclasses.dataclass(frozen=True)
class Usage:
    """Storage usage of the account.

    ``total`` and ``free`` are ``None`` when the subscription has no limit.
    """

    used: int
    total: Optional[int] = None
    free: Optional[int] = None

    @classmethod
    def from_user(cls, user: UserInfo) -> Usage:
        total = user.subscription.storage_space
        if total <= 0:
            return cls(used=user.storage_space_used)
        return cls(used=user.storage_space_used, total=total, free=max(total - user.storage_space_used, 0))


# endregion
