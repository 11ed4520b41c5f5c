"""
Processing rule presets.

Loads per-translation rule presets from config/processing_rules.yml. Presets
only seed a translation's rules when it is added; after that the stored
rules are authoritative.
"""

import os
from functools import lru_cache
from typing import Any, Dict, List

import yaml

from .verse_formatter import ProcessingRule


CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    'config',
    'processing_rules.yml'
)


@lru_cache(maxsize=1)
def load_presets() -> Dict[str, Any]:
    """Load rule presets from YAML config."""
    if not os.path.exists(CONFIG_PATH):
        return get_default_presets()

    with open(CONFIG_PATH, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or get_default_presets()


def get_default_presets() -> Dict[str, Any]:
    """Return minimal presets if config file missing."""
    return {
        'version': '1.0',
        'defaults': [],
        'translations': {},
    }


def reload_presets():
    """Clear cache and reload presets."""
    load_presets.cache_clear()
    return load_presets()


def get_preset_rules(abbreviation: str) -> List[ProcessingRule]:
    """Get preset rules for a translation, falling back to the defaults."""
    presets = load_presets()
    translations = presets.get('translations') or {}
    raw = translations.get(abbreviation)
    if raw is None:
        raw = presets.get('defaults') or []
    return [ProcessingRule.from_dict(r) for r in raw]


def list_preset_translations() -> List[str]:
    """Get abbreviations that have presets."""
    return sorted((load_presets().get('translations') or {}).keys())
