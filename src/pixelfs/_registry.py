"""Registry: named stores, each over its own backend scope."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pixelfs._config import RegistryConfig
from pixelfs._store import Store

if TYPE_CHECKING:
    from types import TracebackType

    from pixelfs._backend import Backend

log = logging.getLogger(__name__)

# Global backend factory registry: maps type strings to backend classes.
_BACKEND_FACTORIES: dict[str, type[Backend]] = {}


def register_backend(type_name: str, cls: type[Backend]) -> None:
    """Register a backend class for a given type string.

    :param type_name: The type identifier (e.g. ``"pixeldrain"``).
    :param cls: The backend class to instantiate. It must accept a ``root``
        keyword argument.
    """
    _BACKEND_FACTORIES[type_name] = cls


def _register_builtin_backends() -> None:
    """Register the built-in backends."""
    from pixelfs.backends._pixeldrain import PixeldrainBackend

    if "pixeldrain" not in _BACKEND_FACTORIES:
        register_backend("pixeldrain", PixeldrainBackend)


class Registry:
    """Manages backend lifecycle and provides access to named stores.

    Every store gets its own backend instance scoped to the store's
    ``root_path``, so stores over the same account never see each other's
    paths.

    :param config: Optional configuration. Validates immediately.
    :raises ValueError: If config is invalid.
    """

    def __init__(self, config: RegistryConfig | None = None) -> None:
        _register_builtin_backends()
        self._config = config or RegistryConfig()
        self._config.validate()
        self._backends: dict[str, Backend] = {}

    def __repr__(self) -> str:
        stores = sorted(self._config.stores.keys())
        return f"Registry(stores={stores!r})"

    def get_store(self, name: str) -> Store:
        """Get a store by its profile name.

        :param name: The store profile name.
        :raises KeyError: If no store profile with this name exists.
        """
        if name not in self._config.stores:
            available = sorted(self._config.stores.keys())
            raise KeyError(f"Unknown store '{name}'. Available stores: {available}")
        return Store(backend=self._get_backend(name))

    def _get_backend(self, store_name: str) -> Backend:
        """Lazily instantiate and cache the backend of a store."""
        if store_name not in self._backends:
            profile = self._config.stores[store_name]
            cfg = self._config.backends[profile.backend]
            if cfg.type not in _BACKEND_FACTORIES:
                raise ValueError(
                    f"Unknown backend type '{cfg.type}'. Registered types: {sorted(_BACKEND_FACTORIES.keys())}"
                )
            factory = _BACKEND_FACTORIES[cfg.type]
            try:
                self._backends[store_name] = factory(**cfg.options, root=profile.root_path)  # type: ignore[arg-type]
            except TypeError as exc:
                raise ValueError(
                    f"Invalid options for backend '{profile.backend}' (type={cfg.type!r}): {exc}. "
                    f"Provided options: {sorted(cfg.options.keys())}"
                ) from exc
            log.debug("Created %s backend for store '%s'", cfg.type, store_name)
        return self._backends[store_name]

    def close(self) -> None:
        """Close all instantiated backends."""
        for backend in self._backends.values():
            backend.close()
        self._backends.clear()

    def __enter__(self) -> Registry:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
