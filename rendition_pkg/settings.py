#!/usr/bin/env python3
"""
Settings loader for the Rendition site renderer.
Supports configuration from rendition.yml, rendition.yaml, or rendition.json files.
"""

import os
import json
import yaml
from dataclasses import dataclass
from typing import Dict, Any, Optional

from .errors import ConfigError


@dataclass(frozen=True)
class UrlConfig:
    """URL layout of the generated site."""
    domain: str = ''
    clean_urls: bool = True
    add_index: bool = False
    tags_prefix: str = ''
    authors_prefix: str = 'authors'
    page_name: str = 'page'
    error_page: str = '404.html'
    search_page: str = 'search.html'
    amp_enabled: bool = False


@dataclass(frozen=True)
class SiteConfig:
    """Immutable site configuration shared by every pass of a run."""
    input_dir: str
    output_dir: str
    database: str
    theme: str
    language: str
    urls: UrlConfig
    display_empty_tags: bool = False
    display_empty_authors: bool = False
    feed_items: int = 10
    sitemap_enabled: bool = True
    css_compression: bool = False

    @property
    def theme_dir(self) -> str:
        return os.path.join(self.input_dir, 'themes', self.theme)

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> 'SiteConfig':
        """
        Validate a merged settings dictionary and build the configuration.

        Raises:
            ConfigError: if a value has the wrong type or is out of range
        """
        for key in ('input', 'output', 'theme', 'page_name', 'error_page', 'search_page'):
            value = settings.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"Setting '{key}' must be a non-empty string")

        for key in ('domain', 'language', 'tags_prefix', 'authors_prefix'):
            if not isinstance(settings.get(key) or '', str):
                raise ConfigError(f"Setting '{key}' must be a string")

        for key in ('tags_prefix', 'authors_prefix', 'page_name'):
            if '/' in (settings.get(key) or '').strip('/'):
                raise ConfigError(f"Setting '{key}' must be a single path segment")

        feed_items = settings.get('feed_items')
        if isinstance(feed_items, bool) or not isinstance(feed_items, int) or feed_items < 0:
            raise ConfigError("Setting 'feed_items' must be a non-negative integer")

        database = settings.get('database') or os.path.join(settings['input'], 'db.sqlite')

        urls = UrlConfig(
            domain=(settings.get('domain') or '').rstrip('/'),
            clean_urls=bool(settings.get('clean_urls')),
            add_index=bool(settings.get('add_index')),
            tags_prefix=(settings.get('tags_prefix') or '').strip('/'),
            authors_prefix=(settings.get('authors_prefix') or '').strip('/'),
            page_name=settings['page_name'].strip('/'),
            error_page=settings['error_page'],
            search_page=settings['search_page'],
            amp_enabled=bool(settings.get('amp_enabled')),
        )

        return cls(
            input_dir=settings['input'],
            output_dir=settings['output'],
            database=database,
            theme=settings['theme'],
            language=settings.get('language') or 'en',
            urls=urls,
            display_empty_tags=bool(settings.get('display_empty_tags')),
            display_empty_authors=bool(settings.get('display_empty_authors')),
            feed_items=feed_items,
            sitemap_enabled=bool(settings.get('sitemap_enabled')),
            css_compression=bool(settings.get('css_compression')),
        )


class RenditionSettings:
    """Load and manage Rendition configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'input': 'input',
        'output': 'output',
        'database': None,
        'theme': 'default',
        'domain': '',
        'language': 'en',
        'clean_urls': True,
        'add_index': False,
        'tags_prefix': '',
        'authors_prefix': 'authors',
        'page_name': 'page',
        'error_page': '404.html',
        'search_page': 'search.html',
        'amp_enabled': False,
        'display_empty_tags': False,
        'display_empty_authors': False,
        'feed_items': 10,
        'sitemap_enabled': True,
        'css_compression': False
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['rendition.yml', 'rendition.yaml', 'rendition.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings

        Raises:
            ConfigError: if the configuration file exists but cannot be read
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
            except (ValueError, IOError, OSError) as e:
                raise ConfigError(str(e))
            if loaded_settings:
                if not isinstance(loaded_settings, dict):
                    raise ConfigError(f"Configuration file {config_file} must contain a mapping")
                # Merge with defaults, giving preference to loaded settings
                self.settings.update(loaded_settings)
                print(f"Loaded configuration from: {os.path.relpath(config_file)}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        try:
            file_ext = os.path.splitext(config_path)[1].lower()

            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        filename = f'rendition.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Rendition Configuration File\n\n")
                    f.write("# Site information\n")
                    f.write("domain: https://example.com\n")
                    f.write("language: en\n\n")
                    f.write("# Build settings\n")
                    f.write("input: input\n")
                    f.write("output: output\n")
                    f.write("theme: default\n\n")
                    f.write("# URL settings\n")
                    f.write("clean_urls: true\n")
                    f.write("add_index: false\n")
                    f.write("tags_prefix: ''\n")
                    f.write("authors_prefix: authors\n")
                    f.write("page_name: page\n")
                    f.write("error_page: 404.html\n")
                    f.write("search_page: search.html\n\n")
                    f.write("# Content settings\n")
                    f.write("display_empty_tags: false\n")
                    f.write("display_empty_authors: false\n")
                    f.write("feed_items: 10\n\n")
                    f.write("# Output settings\n")
                    f.write("amp_enabled: false\n")
                    f.write("sitemap_enabled: true\n")
                    f.write("css_compression: false\n")
                elif file_format == 'json':
                    sample_config = {k: v for k, v in self.DEFAULT_SETTINGS.items() if v is not None}
                    sample_config['domain'] = 'https://example.com'
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None and key in self.DEFAULT_SETTINGS:
                merged[key] = value

        return merged
