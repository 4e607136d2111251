"""
Theme descriptor loading and validation.

A theme lives in ``<input>/themes/<name>/`` and ships a ``config.json`` (or
``config.yml``) next to its Jinja2 templates. The descriptor declares the
renderer flags, the theme options (including the page size of every listing
kind), the defaults for per-post view settings, and the template variants a
post, tag or author may opt into.
"""

import os
import re
import json
import logging
import yaml
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping

from .errors import ConfigError

DEFAULT = 'DEFAULT'
DEFAULT_PAGE_SIZE = 5

VARIANT_KINDS = ('post', 'tag', 'author')
PAGE_SIZE_OPTIONS = {
    'home': 'posts_per_page',
    'tag': 'tags_posts_per_page',
    'author': 'authors_posts_per_page',
}
THEME_CONFIG_FILES = ['config.json', 'config.yml', 'config.yaml']

VARIANT_SLUG = re.compile(r'^[a-z0-9][a-z0-9_-]*$')

logger = logging.getLogger('Rendition.Theme')


@dataclass(frozen=True)
class TemplateVariantSet:
    """Variant slugs declared by the theme, per listing kind."""
    variants: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def declared(self, kind: str) -> FrozenSet[str]:
        return self.variants.get(kind, frozenset())

    def is_declared(self, kind: str, slug: str) -> bool:
        return bool(slug) and slug in self.declared(kind)


@dataclass(frozen=True)
class ThemeDescriptor:
    name: str
    directory: str
    assets_path: str = 'assets'
    create_404_page: bool = False
    create_search_page: bool = False
    config: Dict[str, Any] = field(default_factory=dict)
    custom_config: Dict[str, Any] = field(default_factory=dict)
    post_config: Dict[str, Any] = field(default_factory=dict)
    variants: TemplateVariantSet = field(default_factory=TemplateVariantSet)

    def page_size(self, kind: str) -> int:
        """Return the configured page size for a listing kind (5 when unset or invalid)."""
        value = self.config.get(PAGE_SIZE_OPTIONS.get(kind, ''))
        if isinstance(value, bool):
            return DEFAULT_PAGE_SIZE
        try:
            return int(value)
        except (TypeError, ValueError):
            return DEFAULT_PAGE_SIZE

    def post_view_settings(self, overrides: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Merge per-post view overrides over the theme defaults.

        Only options declared in ``post_config`` are accepted. Unknown keys are
        ignored, missing or empty values fall back to the default, and values
        are coerced to the type of their default.
        """
        settings = dict(self.post_config)
        if not isinstance(overrides, Mapping):
            return settings

        for key, default in self.post_config.items():
            value = overrides.get(key)
            if value is None or value == '':
                continue
            settings[key] = _coerce(value, default)

        return settings


def _coerce(value, default):
    if isinstance(default, bool):
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ('1', 'true', 'yes', 'on'):
                return True
            if lowered in ('0', 'false', 'no', 'off'):
                return False
            return default
        if isinstance(value, (bool, int)):
            return bool(value)
        return default
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            return default
    if isinstance(default, str):
        return value if isinstance(value, str) else str(value)
    return value


def find_theme_config(theme_dir: str):
    for filename in THEME_CONFIG_FILES:
        path = os.path.join(theme_dir, filename)
        if os.path.exists(path):
            return path
    return None


def load_theme(theme_dir: str) -> ThemeDescriptor:
    """
    Load and validate the descriptor of the theme stored in ``theme_dir``.

    Raises:
        ConfigError: if the descriptor is missing, unreadable or malformed
    """
    if not os.path.isdir(theme_dir):
        raise ConfigError(f"Theme directory '{theme_dir}' does not exist")

    config_path = find_theme_config(theme_dir)
    if config_path is None:
        raise ConfigError(f"Theme directory '{theme_dir}' has no config.json file")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.endswith('.json'):
                raw = json.load(f)
            else:
                raw = yaml.safe_load(f)
    except (IOError, OSError) as e:
        raise ConfigError(f"Cannot read theme config {config_path}: {e}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Theme config {config_path} is corrupted: {e}")

    descriptor = parse_theme(raw, theme_dir)
    logger.debug(f"Loaded theme '{descriptor.name}' from {config_path}")
    return descriptor


def parse_theme(raw: Any, theme_dir: str) -> ThemeDescriptor:
    """Validate a raw descriptor mapping and build a ThemeDescriptor."""
    if not isinstance(raw, dict):
        raise ConfigError("Theme config must be a mapping")

    name = raw.get('name')
    if not isinstance(name, str) or not name.strip():
        raise ConfigError("Theme config is missing a 'name'")

    files = _section(raw, 'files')
    assets_path = files.get('assets_path', 'assets')
    if not isinstance(assets_path, str) or not assets_path:
        raise ConfigError("Theme config 'files.assets_path' must be a non-empty string")

    renderer = _section(raw, 'renderer')
    for flag in ('create_404_page', 'create_search_page'):
        if not isinstance(renderer.get(flag, False), bool):
            raise ConfigError(f"Theme config 'renderer.{flag}' must be a boolean")

    config = _section(raw, 'config')
    for option in PAGE_SIZE_OPTIONS.values():
        value = config.get(option)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < -1:
            raise ConfigError(f"Theme option '{option}' must be an integer >= -1")

    variants = {}
    for kind in VARIANT_KINDS:
        declared = _section(raw, f'{kind}_templates')
        for slug in declared:
            if not isinstance(slug, str) or slug == DEFAULT or not VARIANT_SLUG.match(slug):
                raise ConfigError(f"Invalid {kind} template variant '{slug}'")
        variants[kind] = frozenset(declared)

    return ThemeDescriptor(
        name=name,
        directory=theme_dir,
        assets_path=assets_path,
        create_404_page=renderer.get('create_404_page', False),
        create_search_page=renderer.get('create_search_page', False),
        config=dict(config),
        custom_config=dict(_section(raw, 'custom_config')),
        post_config=dict(_section(raw, 'post_config')),
        variants=TemplateVariantSet(variants),
    )


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Theme config '{key}' must be a mapping")
    return value
