"""Projection of a profile into a process-environment overlay."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel

from auo.models import ENV_KEYS, ProviderV2


def project_environment(provider: ProviderV2) -> dict[str, str]:
    """Return the recognised env keys of *provider* that hold a value.

    A key that is not set does not appear in the result. A key set to the
    empty string is a value and is projected as ``""``. A provider whose
    ``env`` container is missing yields an empty overlay.
    """
    env: Any = getattr(provider, "env", None)
    if env is None:
        return {}

    if isinstance(env, BaseModel):
        values = env.model_dump(by_alias=True)
    elif isinstance(env, Mapping):
        values = env
    else:
        return {}

    return {
        key: values[key]
        for key in ENV_KEYS
        if isinstance(values.get(key), str)
    }


def merge_environment(
    overlay: Mapping[str, str],
    base: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Lay *overlay* over *base* (``os.environ`` by default) and return a new dict."""
    merged = dict(os.environ if base is None else base)
    merged.update(overlay)
    return merged
