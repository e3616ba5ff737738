"""Schema version detection, V1 to V2 migration, and structural validation.

These functions work on the raw mapping produced by ``json.loads`` because
that is the only place where a document's version is ambiguous. Once a
document has passed :func:`validate_v2_config` the store switches to the
typed :class:`~auo.models.ConfigFileV2` model.

Migration is one-way: only V1 to V2 is defined. Version detection
(:func:`needs_migration`) and structural validation
(:func:`validate_v2_config`) are kept apart so that a corrupt V2-tagged
document can be told apart from one that merely needs upgrading.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from auo.models import (
    CONFIG_VERSION,
    ENV_KEYS,
    LEGACY_VERSION,
    ConfigFileV1,
    ConfigFileV2,
    MigrationResult,
    ProviderEnv,
    ProviderV2,
    is_config_file_v2,
)

DEFAULT_PROFILE_NAME = "default"


def needs_migration(document: Any) -> bool:
    """Return True unless *document* is tagged ``version == "v2"``.

    Legacy V1 documents and any other untagged document count as needing
    migration, even when they are not valid V1.
    """
    return not is_config_file_v2(document)


def migrate_v1_to_v2(legacy: Union[ConfigFileV1, Mapping[str, Any]]) -> ConfigFileV2:
    """Convert a V1 document into a new V2 document.

    ``name`` and ``description`` are copied verbatim. A non-empty ``baseUrl``
    or ``authToken`` becomes the matching ``env`` key; an empty one is left
    out. V1 never had a model, so ``ANTHROPIC_MODEL`` is always absent.
    Profile order and ``currentIndex`` are preserved.

    Raises:
        pydantic.ValidationError: If *legacy* is a mapping that is not a
            readable V1 document.
    """
    if not isinstance(legacy, ConfigFileV1):
        legacy = ConfigFileV1.model_validate(legacy)

    providers = [
        ProviderV2(
            name=provider.name,
            description=provider.description,
            env=ProviderEnv(
                base_url=provider.base_url or None,
                auth_token=provider.auth_token or None,
            ),
        )
        for provider in legacy.providers
    ]
    return ConfigFileV2(providers=providers, current_index=legacy.current_index)


def migrate(document: Any) -> tuple[Any, MigrationResult]:
    """Bring *document* up to V2.

    A V2-tagged document is returned as-is (the same object, not a copy)
    with ``migrated=False``. Anything else goes through
    :func:`migrate_v1_to_v2` and comes back as a new JSON-shaped dict.

    Raises:
        pydantic.ValidationError: If an untagged document is not readable as V1.
    """
    if not needs_migration(document):
        return document, MigrationResult(migrated=False, to_version=CONFIG_VERSION)

    migrated = migrate_v1_to_v2(document)
    result = MigrationResult(
        migrated=True,
        from_version=LEGACY_VERSION,
        to_version=CONFIG_VERSION,
    )
    return migrated.to_json_dict(), result


def is_valid_index(value: Any, count: int) -> bool:
    """True if *value* is an int (not a bool) within ``[0, count)``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value < count


def validate_v2_config(document: Any) -> bool:
    """Check the structure of a V2 document. Never raises.

    Requires the ``"v2"`` tag, a non-empty ``providers`` list, an in-range
    integer ``currentIndex``, and for every provider a non-empty string
    ``name``, a string ``description`` and an ``env`` object whose
    recognised keys, where present, hold strings.
    """
    try:
        if isinstance(document, ConfigFileV2):
            document = document.to_json_dict()
        if not isinstance(document, Mapping):
            return False
        if document.get("version") != CONFIG_VERSION:
            return False

        providers = document.get("providers")
        if not isinstance(providers, list) or not providers:
            return False

        if not is_valid_index(document.get("currentIndex"), len(providers)):
            return False

        return all(_is_valid_provider(provider) for provider in providers)
    except Exception:
        return False


def _is_valid_provider(provider: Any) -> bool:
    if not isinstance(provider, Mapping):
        return False

    name = provider.get("name")
    if not isinstance(name, str) or not name:
        return False

    if not isinstance(provider.get("description"), str):
        return False

    env = provider.get("env")
    if not isinstance(env, Mapping):
        return False

    # Optional, but strings when present.
    for key in ENV_KEYS:
        if key in env and not isinstance(env[key], str):
            return False
    return True


def get_default_v2_config() -> ConfigFileV2:
    """Return a fresh single-profile document.

    The profile is named ``"default"`` with an empty description and an
    empty auth token; base URL and model are absent.
    """
    return ConfigFileV2(
        providers=[
            ProviderV2(
                name=DEFAULT_PROFILE_NAME,
                description="",
                env=ProviderEnv(auth_token=""),
            )
        ],
        current_index=0,
    )
