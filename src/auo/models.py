"""Pydantic models for the persisted configuration document.

Two schema versions exist on disk:

**V1 ("flat")** -- ``{"providers": [...], "currentIndex": n}``. Each provider
carries ``name``, ``baseUrl``, ``authToken`` and ``description`` as plain
strings, and an empty string means "unset". There is no version tag.

**V2 ("environment map")** -- ``{"version": "v2", "providers": [...],
"currentIndex": n}``. Each provider groups its settings under an ``env``
mapping keyed by the variable names in :data:`ENV_KEYS`. A key missing
from the mapping is *not set*, which is different from a key set to ``""``.

In memory a missing env key is ``None``. :meth:`ConfigFileV2.to_json_dict`
drops ``None`` values so the distinction survives the trip through the file;
JSON ``null`` is never written.

The models also cover the two inputs of the store's mutating operations:
:class:`AddConfigParams` / :class:`AddConfigParamsV2` for ``add_config`` and
:class:`ProviderPatch` / :class:`EnvPatch` for ``update_config``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

CONFIG_VERSION = "v2"
LEGACY_VERSION = "v1"

ENV_BASE_URL = "ANTHROPIC_BASE_URL"
ENV_AUTH_TOKEN = "ANTHROPIC_AUTH_TOKEN"
ENV_MODEL = "ANTHROPIC_MODEL"

ENV_KEYS: tuple[str, ...] = (ENV_BASE_URL, ENV_AUTH_TOKEN, ENV_MODEL)
"""Environment variables a profile may set, in display order."""


# --- V1 (legacy, read-only) ---


class ProviderV1(BaseModel):
    """A legacy flat profile entry. Only ever read, then migrated."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    base_url: str = Field(default="", alias="baseUrl")
    auth_token: str = Field(default="", alias="authToken")
    description: str = ""


class ConfigFileV1(BaseModel):
    """The legacy untagged document."""

    model_config = ConfigDict(populate_by_name=True)

    providers: list[ProviderV1]
    current_index: int = Field(default=0, alias="currentIndex")


# --- V2 (current) ---


class ProviderEnv(BaseModel):
    """Settings injected into the ``claude`` process environment.

    Fields are addressed by attribute (``env.base_url``) in Python and by
    variable name (``ANTHROPIC_BASE_URL``) in JSON. Unrecognised keys found
    in the file are kept so that saving never drops them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    base_url: Optional[str] = Field(default=None, alias=ENV_BASE_URL)
    auth_token: Optional[str] = Field(default=None, alias=ENV_AUTH_TOKEN)
    model: Optional[str] = Field(default=None, alias=ENV_MODEL)


class ProviderV2(BaseModel):
    """One named profile.

    Example::

        ProviderV2(
            name="work",
            description="Company gateway",
            env=ProviderEnv(base_url="https://llm.example.com", auth_token="sk-..."),
        )
    """

    model_config = ConfigDict(extra="allow")

    name: str
    description: str = ""
    env: ProviderEnv = Field(default_factory=ProviderEnv)


class ConfigFileV2(BaseModel):
    """The tagged configuration document owned by :class:`~auo.store.ConfigStore`."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: Literal["v2"] = CONFIG_VERSION
    providers: list[ProviderV2]
    current_index: int = Field(default=0, alias="currentIndex")

    def to_json_dict(self) -> dict[str, Any]:
        """Serialise to the on-disk shape (aliases, absent keys omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MigrationResult(BaseModel):
    """Outcome of one load/migrate cycle. Never persisted."""

    migrated: bool
    from_version: Optional[str] = None
    to_version: str = CONFIG_VERSION


# --- add_config parameters ---


class AddConfigParams(BaseModel):
    """Flat (V1-shaped) parameters for :meth:`~auo.store.ConfigStore.add_config`."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    base_url: Optional[str] = Field(default=None, alias="baseUrl")
    auth_token: Optional[str] = Field(default=None, alias="authToken")
    description: Optional[str] = None


class AddConfigParamsV2(BaseModel):
    """Environment-map (V2-shaped) parameters for ``add_config``."""

    name: str
    description: Optional[str] = None
    env: ProviderEnv


AnyAddConfigParams = Union[AddConfigParams, AddConfigParamsV2]


# --- update_config patch ---


class EnvPatch(BaseModel):
    """Key-by-key patch for a profile's ``env`` mapping.

    Three states per key, told apart through ``model_fields_set``:

    * key never passed -- keep the stored value
    * key passed as ``None`` -- clear the stored value
    * key passed with a string -- set it

    Example::

        EnvPatch(ANTHROPIC_BASE_URL=None)   # clears only the base URL
        EnvPatch()                          # changes nothing
    """

    model_config = ConfigDict(populate_by_name=True)

    base_url: Optional[str] = Field(default=None, alias=ENV_BASE_URL)
    auth_token: Optional[str] = Field(default=None, alias=ENV_AUTH_TOKEN)
    model: Optional[str] = Field(default=None, alias=ENV_MODEL)

    def changes(self) -> dict[str, Optional[str]]:
        """Return ``{field_name: value}`` for the keys that were explicitly passed."""
        return {field: getattr(self, field) for field in self.model_fields_set}


class ProviderPatch(BaseModel):
    """Partial update for :meth:`~auo.store.ConfigStore.update_config`.

    ``name`` and ``description`` overwrite only when given. ``env`` is merged
    key by key following :class:`EnvPatch` semantics.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    env: Optional[EnvPatch] = None


def is_config_file_v2(document: Any) -> bool:
    """Tag guard: True iff *document* carries the literal ``version == "v2"``."""
    if isinstance(document, ConfigFileV2):
        return True
    return isinstance(document, Mapping) and document.get("version") == CONFIG_VERSION


def is_add_config_params_v2(params: Any) -> bool:
    """True when *params* uses the environment-map form (has an ``env`` field)."""
    if isinstance(params, BaseModel):
        return isinstance(params, AddConfigParamsV2)
    return isinstance(params, Mapping) and "env" in params
