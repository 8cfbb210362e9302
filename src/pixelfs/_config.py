"""Configuration dataclasses for backend accounts and store profiles."""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True)
class BackendConfig:
    """Describes a backend account.

    :param type: Backend type identifier (e.g. ``"pixeldrain"``).
    :param options: Backend constructor options (``api_key``, ``api_url``,
        ``root_folder_id``, ...). ``root`` comes from the store profile.
    """

    type: str
    options: dict[str, object] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class StoreProfile:
    """Describes a named store.

    :param backend: Name of the backend config to use.
    :param root_path: Directory of the backend used as this store's root.
    """

    backend: str
    root_path: str = ""


@dataclasses.dataclass(frozen=True)
class RegistryConfig:
    """Top-level configuration container.

    :param backends: Mapping of backend names to their configs.
    :param stores: Mapping of store names to their profiles.
    """

    backends: dict[str, BackendConfig] = dataclasses.field(default_factory=dict)
    stores: dict[str, StoreProfile] = dataclasses.field(default_factory=dict)

    def validate(self) -> None:
        """Validate that all store profiles reference existing backends.

        :raises ValueError: If a store references a non-existent backend, or a
            backend sets ``root`` (it belongs in the store profile).
        """
        for store_name, profile in self.stores.items():
            if profile.backend not in self.backends:
                raise ValueError(
                    f"Store '{store_name}' references unknown backend '{profile.backend}'. "
                    f"Available backends: {sorted(self.backends.keys())}"
                )
        for backend_name, cfg in self.backends.items():
            if "root" in cfg.options:
                raise ValueError(
                    f"Backend '{backend_name}' sets 'root'; use the root_path of a store profile instead"
                )

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> RegistryConfig:
        """Construct from a plain dict (e.g. parsed TOML/JSON).

        :param data: Dict with ``backends`` and ``stores`` keys.
        """
        raw_backends = data.get("backends", {})
        raw_stores = data.get("stores", {})
        if not isinstance(raw_backends, dict) or not isinstance(raw_stores, dict):
            msg = "Expected 'backends' and 'stores' to be dicts"
            raise TypeError(msg)

        backends: dict[str, BackendConfig] = {}
        for name, cfg in raw_backends.items():
            if not isinstance(cfg, dict):
                msg = f"Backend config for '{name}' must be a dict"
                raise TypeError(msg)
            backends[str(name)] = BackendConfig(
                type=str(cfg.get("type", "pixeldrain")),
                options=dict(cfg.get("options", {})),
            )

        stores: dict[str, StoreProfile] = {}
        for name, prof in raw_stores.items():
            if not isinstance(prof, dict):
                msg = f"Store profile for '{name}' must be a dict"
                raise TypeError(msg)
            stores[str(name)] = StoreProfile(
                backend=str(prof["backend"]),
                root_path=str(prof.get("root_path", "")),
            )

        return cls(backends=backends, stores=stores)
