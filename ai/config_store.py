"""
AI provider configuration document.

The document lives at ``settings.CONFIG_KEY`` and has gone through two shapes:

* version 1, flat and untagged::

    {"api_provider": "openai", "api_url": ..., "model_name": ..., "api_key": ...}

* version 2, one entry per provider::

    {"schema_version": 2, "active_provider": "openai",
     "providers": {"openai": {...}, "gemini": {...}}}

Reads migrate in memory only. The first update after an old document is
found rewrites it in the current shape. API keys never leave the server:
everything handed to a client goes through ``redact``.
"""
import copy
import logging

from django.conf import settings

from blobstore.store import mutate_json

from .providers import canonical_provider_name

logger = logging.getLogger(__name__)

CURRENT_VERSION = 2

LEGACY_FIELDS = ("api_provider", "api_url", "model_name", "api_key")

DEFAULT_CONFIG = {
    "schema_version": CURRENT_VERSION,
    "active_provider": "openai",
    "providers": {
        "openai": {
            "api_url": "https://api.openai.com/v1/chat/completions",
            "model_name": "gpt-4o-mini",
            "api_key": "",
        },
        "gemini": {
            "model_name": "gemini-1.5-flash",
            "api_key": "",
        },
    },
}


def default_config() -> dict:
    return copy.deepcopy(DEFAULT_CONFIG)


def detect_version(doc) -> int:
    if not isinstance(doc, dict):
        return 0
    version = doc.get("schema_version")
    if isinstance(version, int) and not isinstance(version, bool):
        return version
    if isinstance(doc.get("providers"), dict):
        return 2
    return 1


def _migrate_v1_to_v2(doc: dict) -> dict:
    migrated = default_config()
    provider = canonical_provider_name(doc.get("api_provider")) or "openai"
    legacy = {f: doc[f] for f in ("api_url", "model_name", "api_key") if f in doc}
    if legacy:
        entry = migrated["providers"].setdefault(provider, {})
        entry.update(legacy)
    migrated["active_provider"] = provider
    # keep anything that is not part of the flat provider shape
    for key, value in doc.items():
        if key not in LEGACY_FIELDS and key not in migrated:
            migrated[key] = value
    return migrated


MIGRATIONS = {
    1: _migrate_v1_to_v2,
}


def migrate(doc) -> dict:
    """Bring any stored document up to ``CURRENT_VERSION``. Pure."""
    if not isinstance(doc, dict) or not doc:
        return default_config()
    doc = copy.deepcopy(doc)
    version = detect_version(doc)
    while version < CURRENT_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            logger.warning("No migration from config version %s, using defaults", version)
            return default_config()
        doc = step(doc)
        version = detect_version(doc)
    doc["schema_version"] = version
    return doc


def merge_defaults(doc: dict) -> dict:
    """Fill fields introduced by newer defaults without touching stored values."""
    merged = copy.deepcopy(doc)
    providers = merged.get("providers")
    if not isinstance(providers, dict):
        providers = {}
    for name, defaults in DEFAULT_CONFIG["providers"].items():
        current = providers.get(name)
        if not isinstance(current, dict):
            current = {}
        providers[name] = {**defaults, **current}
    merged["providers"] = providers
    merged.setdefault("active_provider", DEFAULT_CONFIG["active_provider"])
    return merged


def redact(doc) -> dict:
    if not isinstance(doc, dict):
        return {}
    safe = copy.deepcopy(doc)
    safe.pop("api_key", None)
    providers = safe.get("providers")
    if isinstance(providers, dict):
        for entry in providers.values():
            if isinstance(entry, dict):
                entry.pop("api_key", None)
    return safe


def read_config(store) -> dict:
    """Unredacted, current-shape configuration. Never writes."""
    raw = store.get_json(settings.CONFIG_KEY, None)
    return merge_defaults(migrate(raw))


def read_public_config(store) -> dict:
    return redact(read_config(store))


def active_provider_config(config: dict) -> dict:
    name = canonical_provider_name(config.get("active_provider"))
    entry = config.get("providers", {}).get(name)
    return dict(entry) if isinstance(entry, dict) else {}


def apply_provider_fields(config: dict, active_provider: str, fields: dict) -> dict:
    updated = copy.deepcopy(config)
    name = canonical_provider_name(active_provider)
    updated["active_provider"] = name
    entry = updated["providers"].setdefault(name, {})

    # an empty api_url clears it, empty model_name/api_key mean "keep"
    if "api_url" in fields and fields["api_url"] is not None:
        entry["api_url"] = fields["api_url"]
    for field in ("model_name", "api_key"):
        if fields.get(field):
            entry[field] = fields[field]
    return updated


def update_config(store, active_provider: str, fields: dict) -> dict:
    def mutate(raw):
        if raw and detect_version(raw) < CURRENT_VERSION:
            logger.info("Migrating AI config document to version %s", CURRENT_VERSION)
        config = merge_defaults(migrate(raw))
        return apply_provider_fields(config, active_provider, fields)

    saved = mutate_json(store, settings.CONFIG_KEY, None, mutate)
    logger.info("AI config updated, active provider %s", saved["active_provider"])
    return redact(saved)
