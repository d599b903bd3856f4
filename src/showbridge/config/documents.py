"""Parsing of configuration layers into DataSourceConfig patches.

Every layer of the cascade (environment, remote document, local override) is
turned into a *patch*: a dict keyed by DataSourceConfig field names holding
only the keys that layer sets. Invalid choice values fall back to the current
value, and merge policies are patched per attribute.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx

from showbridge.config.settings import Settings
from showbridge.core.models import DataSourceConfig, FieldMergeMode, MergePolicy, SourceChoice

logger = logging.getLogger(__name__)

# DataSourceConfig field -> accepted document keys, in lookup order
CHOICE_KEYS: dict[str, tuple[str, ...]] = {
    "list_source_choice": ("listSourceChoice", "list_source_choice", "showsList"),
    "detail_source_choice": ("detailSourceChoice", "detail_source_choice", "showDetail"),
}
POLICY_KEYS: tuple[str, ...] = ("mergePolicy", "merge_policy")

FIELD_KEYS: dict[str, str] = {
    "list_source_choice": "list_source_choice",
    "listSourceChoice": "list_source_choice",
    "detail_source_choice": "detail_source_choice",
    "detailSourceChoice": "detail_source_choice",
    "merge_policy": "merge_policy",
    "mergePolicy": "merge_policy",
}


def parse_choice(raw: Any, fallback: SourceChoice) -> SourceChoice:
    """Parse a source choice case-insensitively, falling back on bad input."""
    if not raw:
        return fallback
    try:
        return SourceChoice(raw)
    except ValueError:
        logger.warning("Ignoring invalid source choice %r, keeping %s", raw, fallback.value)
        return fallback


def parse_field_modes(
    raw: Any, fallback: dict[str, FieldMergeMode]
) -> dict[str, FieldMergeMode]:
    """Parse a per-field mode map. An empty map clears the overrides; None keeps them."""
    if raw is None:
        return dict(fallback)
    if not isinstance(raw, Mapping):
        logger.warning("Ignoring non-object field policy %r", raw)
        return dict(fallback)
    modes: dict[str, FieldMergeMode] = {}
    for field_name, mode in raw.items():
        try:
            modes[str(field_name)] = FieldMergeMode(mode)
        except ValueError:
            logger.warning("Dropping invalid merge mode %r for field %s", mode, field_name)
    return modes


def patch_merge_policy(raw: Any, current: MergePolicy) -> MergePolicy:
    """Overlay a merge policy object onto the current policy.

    ``defaultMode``, ``listFields`` and ``detailFields`` are replaced
    individually. A missing (or null) one keeps its current value; an empty
    field map clears that scope's overrides.

    Raises:
        ValueError: If ``raw`` is not a JSON object.
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"merge policy must be an object, got {type(raw).__name__}")

    default_raw = raw.get("defaultMode", raw.get("default_mode"))
    default_mode = current.default_mode
    if default_raw:
        try:
            default_mode = FieldMergeMode(default_raw)
        except ValueError:
            logger.warning("Ignoring invalid default merge mode %r", default_raw)

    return MergePolicy(
        default_mode=default_mode,
        list_fields=parse_field_modes(
            raw.get("listFields", raw.get("list_fields")), current.list_fields
        ),
        detail_fields=parse_field_modes(
            raw.get("detailFields", raw.get("detail_fields")), current.detail_fields
        ),
    )


def _first(document: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if document.get(key) is not None:
            return document[key]
    return None


def patch_from_sections(
    choices: Mapping[str, Any], policy_raw: Any, current: DataSourceConfig
) -> dict[str, Any]:
    """Build a patch from a mapping of choice keys and an optional policy object."""
    patch: dict[str, Any] = {}
    for field_name, keys in CHOICE_KEYS.items():
        raw = _first(choices, keys)
        if raw:
            patch[field_name] = parse_choice(raw, getattr(current, field_name))
    if policy_raw:
        patch["merge_policy"] = patch_merge_policy(policy_raw, current.merge_policy)
    return patch


def patch_from_remote_document(document: Any, current: DataSourceConfig) -> dict[str, Any]:
    """Patch for the remote config document (``dataSources`` + ``mergePolicy``).

    Raises:
        ValueError: If the document is not a JSON object.
    """
    if not isinstance(document, Mapping):
        raise ValueError("remote config document must be a JSON object")
    sources = document.get("dataSources") or {}
    if not isinstance(sources, Mapping):
        raise ValueError("dataSources must be a JSON object")
    return patch_from_sections(sources, _first(document, POLICY_KEYS), current)


def patch_from_override_document(document: Any, current: DataSourceConfig) -> dict[str, Any]:
    """Patch for the persisted override (top-level DataSourceConfig shape).

    Raises:
        ValueError: If the document is not a JSON object.
    """
    if not isinstance(document, Mapping):
        raise ValueError("override document must be a JSON object")
    return patch_from_sections(document, _first(document, POLICY_KEYS), current)


def patch_to_document(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Serialize a patch with camelCase keys and JSON-compatible values."""
    document: dict[str, Any] = {}
    for key, value in patch.items():
        field_name = FIELD_KEYS[key]
        alias = DataSourceConfig.model_fields[field_name].alias or field_name
        if isinstance(value, MergePolicy):
            value = value.model_dump(mode="json", by_alias=True)
        elif isinstance(value, SourceChoice):
            value = value.value
        document[alias] = value
    return document


def config_from_settings(settings: Settings) -> DataSourceConfig:
    """Resolve the compiled defaults overlaid with the environment layer."""
    config = DataSourceConfig()
    policy = config.merge_policy
    if settings.data_source_merge_policy:
        try:
            policy = patch_merge_policy(json.loads(settings.data_source_merge_policy), policy)
        except ValueError as e:
            logger.warning("Ignoring invalid DATA_SOURCE_MERGE_POLICY: %s", e)
    return DataSourceConfig(
        list_source_choice=parse_choice(settings.data_source_shows_list, config.list_source_choice),
        detail_source_choice=parse_choice(
            settings.data_source_show_detail, config.detail_source_choice
        ),
        merge_policy=policy,
    )


async def fetch_document(location: str, timeout: float = 10.0) -> str:
    """Fetch the raw text of a remote config document.

    ``http://`` and ``https://`` locations are fetched with caching disabled;
    anything else is read as a local file path.

    Raises:
        httpx.HTTPError: On transport failures or non-2xx responses.
        OSError: If a local file cannot be read.
    """
    if location.startswith(("http://", "https://")):
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(location, headers={"Cache-Control": "no-cache"})
        response.raise_for_status()
        return response.text
    return Path(location).read_text(encoding="utf-8")
