"""The configuration store: the only code that reads or writes ``config.json``.

Every public operation is self-contained. It loads the document from disk
(migrating it if needed), applies at most one change, and saves. Nothing is
cached between calls, so each CLI invocation sees what is on disk at the
time. There is no lock: two processes mutating the same file race and the
last write wins. Callers that need several changes applied together must
express them as a single operation (for example one ``update_config``
with a full patch instead of several).

Failure semantics:

* **Read faults** -- a missing, unreadable or structurally invalid file
  falls back to :func:`~auo.migration.get_default_v2_config`. Load never
  writes that default itself. An unreadable file is copied to
  ``<name>.corrupt`` first and a warning names the copy.
* **Write faults** -- :meth:`ConfigStore.save` raises
  :class:`~auo.exceptions.ConfigError`.
* **Validation rejections** -- duplicate names, empty required fields,
  out-of-range indices, removing the last profile and rename collisions
  are reported with :func:`~auo.output.error` and the operation returns
  ``False`` (or ``None`` for :meth:`ConfigStore.switch_to_index`).
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from auo.config import DEFAULT_CONFIG_FILENAME, atomic_write, get_config_dir
from auo.environment import project_environment
from auo.exceptions import ConfigError
from auo.migration import (
    get_default_v2_config,
    is_valid_index,
    migrate,
    needs_migration,
    validate_v2_config,
)
from auo.models import (
    AddConfigParams,
    AddConfigParamsV2,
    AnyAddConfigParams,
    ConfigFileV2,
    MigrationResult,
    ProviderEnv,
    ProviderPatch,
    ProviderV2,
    is_add_config_params_v2,
)
from auo.output import debug, error, info, success, warning

CORRUPT_SUFFIX = ".corrupt"


class ConfigStore:
    """Owns one configuration file and every operation on its profiles.

    Args:
        config_dir: Directory holding the file. Defaults to
            :func:`~auo.config.get_config_dir`. Created (with parents) if
            it does not exist.
        config_file_name: File name inside *config_dir*. Defaults to
            ``config.json``.

    Example::

        store = ConfigStore()
        store.add_config({"name": "work", "env": {"ANTHROPIC_AUTH_TOKEN": "sk-..."}})
        store.switch_to_index(1)
        overlay = store.get_config_environment()
    """

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        config_file_name: Optional[str] = None,
    ) -> None:
        if config_dir is None:
            self._config_dir = get_config_dir()
        else:
            self._config_dir = Path(config_dir).expanduser().absolute()
        self._config_file = self._config_dir / (config_file_name or DEFAULT_CONFIG_FILENAME)
        self._config_dir.mkdir(parents=True, exist_ok=True)

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def get_config_path(self) -> Path:
        """Absolute path of the configuration file."""
        return self._config_file

    # ------------------------------------------------------------------ #
    # Load / save
    # ------------------------------------------------------------------ #

    def load(self) -> ConfigFileV2:
        """Read the document, migrating and persisting a legacy file once.

        A ``currentIndex`` that is missing, not an integer, or out of range
        is reset to ``0``. Any read fault returns the default document.
        """
        path = self._config_file
        if not path.is_file():
            debug(f"No configuration file at {path}, using defaults")
            return get_default_v2_config()

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            return self._fall_back(f"Failed to read configuration file {path}: {exc}")

        if isinstance(raw, dict):
            _clamp_current_index(raw)

        if needs_migration(raw):
            return self._migrate_on_load(raw)

        if not validate_v2_config(raw):
            return self._fall_back(f"Invalid configuration format in {path}")
        try:
            return ConfigFileV2.model_validate(raw)
        except ValidationError as exc:
            return self._fall_back(
                f"Invalid configuration format in {path}: {exc.error_count()} field error(s)"
            )

    def save(self, config: ConfigFileV2) -> None:
        """Overwrite the file with *config*.

        Raises:
            ConfigError: If the file cannot be written.
        """
        data = json.dumps(config.to_json_dict(), indent=2, ensure_ascii=False) + "\n"
        try:
            atomic_write(self._config_file, data)
        except OSError as exc:
            raise ConfigError(
                f"Failed to save configuration file {self._config_file}: {exc}"
            ) from exc
        debug(f"Saved configuration to {self._config_file}")

    def _migrate_on_load(self, raw: Any) -> ConfigFileV2:
        try:
            document, result = migrate(raw)
        except ValueError:
            return self._fall_back(
                f"Configuration file {self._config_file} is neither a v1 nor a v2 document"
            )

        if not validate_v2_config(document):
            return self._fall_back(
                f"Configuration file {self._config_file} could not be migrated to v2"
            )

        try:
            config = ConfigFileV2.model_validate(document)
        except ValidationError:
            return self._fall_back(
                f"Configuration file {self._config_file} could not be migrated to v2"
            )
        info("Migrating configuration to latest format...")
        try:
            self.save(config)
        except ConfigError as exc:
            # Still usable for this invocation; the next load migrates again.
            warning(f"{exc}. Migration will be retried on next run.")
            return config

        success(f"Configuration migrated from {result.from_version} to {result.to_version}")
        return config

    def _fall_back(self, reason: str) -> ConfigFileV2:
        backup = self._preserve_unreadable_file()
        if backup is not None:
            warning(f"{reason}. Using default configuration; original kept at {backup}")
        else:
            warning(f"{reason}. Using default configuration")
        return get_default_v2_config()

    def _preserve_unreadable_file(self) -> Optional[Path]:
        backup = self._config_file.with_name(self._config_file.name + CORRUPT_SUFFIX)
        try:
            shutil.copy2(self._config_file, backup)
        except OSError as exc:
            debug(f"Could not preserve {self._config_file}: {exc}")
            return None
        return backup

    # ------------------------------------------------------------------ #
    # Current pointer
    # ------------------------------------------------------------------ #

    def get_current_config(self) -> ProviderV2:
        """Return the current profile. Never returns ``None``."""
        config = self.load()
        if is_valid_index(config.current_index, len(config.providers)):
            return config.providers[config.current_index]
        if config.providers:
            return config.providers[0]
        return get_default_v2_config().providers[0]

    def switch_to_index(self, index: int) -> Optional[ProviderV2]:
        """Make the profile at *index* current and persist.

        Returns:
            The new current profile, or ``None`` (with no change) when
            *index* is out of range. The rejection is reported like the
            other validation errors.

        Raises:
            ConfigError: If the change cannot be saved.
        """
        config = self.load()
        count = len(config.providers)
        if not is_valid_index(index, count):
            error(f"Invalid index {index}. Must be between 0 and {count - 1}")
            return None

        config.current_index = index
        self.save(config)
        return config.providers[index]

    def switch_to_next(self) -> ProviderV2:
        """Advance the current pointer cyclically and persist.

        Raises:
            ConfigError: If the change cannot be saved.
        """
        config = self.load()
        config.current_index = (config.current_index + 1) % len(config.providers)
        self.save(config)
        return config.providers[config.current_index]

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def add_config(self, params: Union[AnyAddConfigParams, Mapping[str, Any]]) -> bool:
        """Append a new profile.

        Accepts the flat form (``name``, ``baseUrl``, ``authToken``,
        ``description``) or the environment-map form (``name``,
        ``description``, ``env``); the presence of ``env`` decides. All
        strings are trimmed; an optional value that trims to empty is stored
        as not set.

        Returns:
            ``True`` if the profile was added and saved. ``False`` if the
            name is empty or taken, the auth token is empty, or the file
            could not be written.
        """
        try:
            request = _coerce_add_params(params)
        except ValueError as exc:
            error(f"Invalid configuration parameters: {exc}")
            return False

        name = request.name.strip()
        if not name:
            error("Configuration name cannot be empty")
            return False

        config = self.load()
        if _find_index(config, name) is not None:
            error(f'Configuration name "{name}" already exists')
            return False

        if isinstance(request, AddConfigParamsV2):
            base_url = request.env.base_url
            auth_token = request.env.auth_token
            model = request.env.model
        else:
            base_url = request.base_url
            auth_token = request.auth_token
            model = None

        if not auth_token or not auth_token.strip():
            error("Auth token cannot be empty")
            return False

        provider = ProviderV2(
            name=name,
            description=(request.description or "").strip(),
            env=ProviderEnv(
                base_url=_strip_or_none(base_url),
                auth_token=auth_token.strip(),
                model=_strip_or_none(model),
            ),
        )
        config.providers.append(provider)
        if not self._save_or_report(config, "add configuration"):
            return False

        success(f'Configuration "{name}" added')
        return True

    def update_config(self, name: str, updates: Union[ProviderPatch, Mapping[str, Any]]) -> bool:
        """Apply a partial update to the profile called *name*.

        ``name`` and ``description`` change only when given. ``env`` is
        merged key by key: a key absent from the patch is kept, a key
        passed as ``None`` is cleared, a key passed with a value is set.

        Returns:
            ``True`` on success. ``False`` if *name* does not exist, the new
            name belongs to another profile, or the file could not be written.
        """
        try:
            patch = updates if isinstance(updates, ProviderPatch) else ProviderPatch.model_validate(updates)
        except ValueError as exc:
            error(f"Invalid configuration update: {exc}")
            return False

        config = self.load()
        index = _find_index(config, name)
        if index is None:
            error(f'Configuration "{name}" not found')
            return False

        if patch.name and patch.name != name and _find_index(config, patch.name) is not None:
            error(f'Configuration name "{patch.name}" already exists')
            return False

        existing = config.providers[index]
        env_changes = patch.env.changes() if patch.env is not None else {}
        config.providers[index] = existing.model_copy(
            update={
                "name": patch.name or existing.name,
                "description": (
                    patch.description if patch.description is not None else existing.description
                ),
                "env": existing.env.model_copy(update=env_changes),
            }
        )
        if not self._save_or_report(config, "update configuration"):
            return False

        success(f'Configuration "{name}" updated')
        return True

    def remove_config_by_index(self, index: int) -> bool:
        """Remove the profile at *index*.

        Returns:
            ``True`` on success. ``False`` if *index* is out of range, it is
            the last remaining profile, or the file could not be written.
        """
        config = self.load()
        count = len(config.providers)
        if not is_valid_index(index, count):
            error(f"Invalid index {index}. Must be between 0 and {count - 1}")
            return False

        removed = self._remove_at(config, index)
        if removed is None:
            return False

        success(f'Configuration "{removed.name}" (index {index}) deleted')
        return True

    def delete_config(self, name: str) -> bool:
        """Remove the profile called *name*. Same rules as :meth:`remove_config_by_index`."""
        config = self.load()
        index = _find_index(config, name)
        if index is None:
            error(f'Configuration "{name}" not found')
            return False

        if self._remove_at(config, index) is None:
            return False

        success(f'Configuration "{name}" deleted')
        return True

    def _remove_at(self, config: ConfigFileV2, index: int) -> Optional[ProviderV2]:
        if len(config.providers) <= 1:
            error("Cannot delete the last configuration")
            return None

        removed = config.providers.pop(index)

        # Keep pointing at the same profile; removing the current one selects
        # whatever shifted into its slot.
        if config.current_index >= len(config.providers):
            config.current_index = len(config.providers) - 1
        elif config.current_index > index:
            config.current_index -= 1

        if not self._save_or_report(config, "delete configuration"):
            return None
        return removed

    def reset_config(self) -> None:
        """Overwrite the file with the default document.

        Raises:
            ConfigError: If the file cannot be written.
        """
        self.save(get_default_v2_config())
        success("Configuration reset to default values")

    def _save_or_report(self, config: ConfigFileV2, action: str) -> bool:
        try:
            self.save(config)
        except ConfigError as exc:
            error(f"Failed to {action}: {exc}")
            return False
        return True

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_all_configs(self) -> list[ProviderV2]:
        """Return a copy of the profile list."""
        return list(self.load().providers)

    def get_config(self, name: str) -> Optional[ProviderV2]:
        config = self.load()
        index = _find_index(config, name)
        return config.providers[index] if index is not None else None

    def has_config(self, name: str) -> bool:
        return _find_index(self.load(), name) is not None

    def get_config_environment(self, provider: Optional[ProviderV2] = None) -> dict[str, str]:
        """Environment overlay for *provider*, or for the current profile."""
        target = provider if provider is not None else self.get_current_config()
        return project_environment(target)

    # ------------------------------------------------------------------ #
    # Explicit migration
    # ------------------------------------------------------------------ #

    def force_migration(self) -> MigrationResult:
        """Re-read the raw file, migrate it if needed, and persist.

        When no file exists yet the default document is written and the
        result reports a migration from ``"none"``.

        Raises:
            ConfigError: If the file cannot be read, is not a v1 or v2
                document, or cannot be written.
        """
        path = self._config_file
        if not path.is_file():
            self.save(get_default_v2_config())
            return MigrationResult(migrated=True, from_version="none", to_version="v2")

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Failed to read configuration file {path}: {exc}") from exc

        try:
            document, result = migrate(raw)
        except ValueError as exc:
            raise ConfigError(f"Cannot migrate configuration file {path}: {exc}") from exc

        if not result.migrated:
            info("Configuration is already up to date")
            return result

        _clamp_current_index(document)
        if not validate_v2_config(document):
            raise ConfigError(f"Migrated configuration from {path} failed validation")

        try:
            config = ConfigFileV2.model_validate(document)
        except ValidationError as exc:
            raise ConfigError(f"Migrated configuration from {path} failed validation") from exc
        self.save(config)
        success(f"Configuration migrated from {result.from_version} to {result.to_version}")
        return result


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _find_index(config: ConfigFileV2, name: str) -> Optional[int]:
    """Index of the profile named exactly *name* (case-sensitive)."""
    for index, provider in enumerate(config.providers):
        if provider.name == name:
            return index
    return None


def _clamp_current_index(document: dict[str, Any]) -> None:
    providers = document.get("providers")
    count = len(providers) if isinstance(providers, list) else 0
    if not is_valid_index(document.get("currentIndex"), count):
        document["currentIndex"] = 0


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _coerce_add_params(params: Union[AnyAddConfigParams, Mapping[str, Any]]) -> AnyAddConfigParams:
    if isinstance(params, (AddConfigParams, AddConfigParamsV2)):
        return params
    if is_add_config_params_v2(params):
        return AddConfigParamsV2.model_validate(params)
    return AddConfigParams.model_validate(params)
