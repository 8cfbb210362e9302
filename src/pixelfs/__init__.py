"""Pixeldrain filesystem client with a backend-agnostic store abstraction."""

from pixelfs._api import FilesystemAPI, map_api_error
from pixelfs._backend import Backend
from pixelfs._capabilities import Capability, CapabilitySet
from pixelfs._config import BackendConfig, RegistryConfig, StoreProfile
from pixelfs._errors import (
    AlreadyExists,
    ApiError,
    AuthenticationFailed,
    BackendUnavailable,
    CapabilityNotSupported,
    DecodeError,
    DirectoryNotEmpty,
    InvalidPath,
    NotFound,
    PermissionDenied,
    PixelFSError,
)
from pixelfs._models import (
    DirectoryNode,
    DirEntry,
    FileNode,
    FilesystemNode,
    FilesystemPath,
    NodeMeta,
    Permissions,
    SubscriptionType,
    Usage,
    UserInfo,
)
from pixelfs._object import Object
from pixelfs._path import RemotePath
from pixelfs._registry import Registry, register_backend
from pixelfs._store import Store
from pixelfs.backends import PixeldrainBackend

__version__ = "0.1.0"

__all__ = [
    # Core
    "Store",
    "Registry",
    "Backend",
    "PixeldrainBackend",
    "FilesystemAPI",
    "register_backend",
    # Path & Models
    "RemotePath",
    "Object",
    "FileNode",
    "DirectoryNode",
    "FilesystemNode",
    "FilesystemPath",
    "NodeMeta",
    "Permissions",
    "DirEntry",
    "UserInfo",
    "SubscriptionType",
    "Usage",
    # Capabilities
    "Capability",
    "CapabilitySet",
    # Config
    "BackendConfig",
    "StoreProfile",
    "RegistryConfig",
    # Errors
    "PixelFSError",
    "NotFound",
    "AlreadyExists",
    "PermissionDenied",
    "DirectoryNotEmpty",
    "AuthenticationFailed",
    "ApiError",
    "DecodeError",
    "InvalidPath",
    "CapabilityNotSupported",
    "BackendUnavailable",
    "map_api_error",
    # Version
    "__version__",
]
