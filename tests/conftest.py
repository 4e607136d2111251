"""Test configuration and fixtures for Rendition tests."""

import json
import os
import shutil
import sqlite3
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rendition_pkg.settings import RenditionSettings, SiteConfig
from rendition_pkg.store import initialize_schema

POSTS = [
    # id, title, slug, authors, created_at, status, template
    (1, 'First Post', 'first-post', '1', '2024-01-01 10:00:00', 'published', 'wide'),
    (2, 'Second Post', 'second-post', '1', '2024-01-02 10:00:00', 'published,featured', ''),
    (3, 'Third Post', 'third-post', '2', '2024-01-03 10:00:00', 'published', ''),
    (4, 'Draft Post', 'draft-post', '1', '2024-01-04 10:00:00', 'draft', ''),
    (5, 'Trashed Post', 'trashed-post', '1', '2024-01-05 10:00:00', 'published,trashed', ''),
    (6, 'Hidden Post', 'hidden-post', '1', '2024-01-06 10:00:00', 'published,hidden', ''),
]

TAGS = [
    (1, 'Python', 'python', '{}'),
    (2, 'Web', 'web', '{}'),
    (3, 'Empty', 'empty', '{}'),
]

POSTS_TAGS = [(1, 1), (1, 2), (1, 3), (2, 2), (2, 4), (3, 5)]

AUTHORS = [
    (1, 'Jane Doe', 'jane', '{}'),
    (2, 'John Smith', 'john', '{}'),
    (3, 'Nobody', 'nobody', '{}'),
]

THEME_CONFIG = {
    'name': 'Test',
    'files': {'assets_path': 'assets'},
    'renderer': {'create_404_page': True, 'create_search_page': True},
    'config': {
        'site_title': 'Test Site',
        'posts_per_page': 2,
        'tags_posts_per_page': 2,
        'authors_posts_per_page': 2,
    },
    'custom_config': {'accent': 'red'},
    'post_config': {'display_date': True, 'columns': 1},
    'post_templates': {'wide': 'Wide layout'},
    'tag_templates': {},
    'author_templates': {},
}

LISTING = '{% for p in posts %}{{ p.slug }};{% endfor %}'

TEMPLATES = {
    'index.html': 'HOME {{ data.website.page_url }}|' + LISTING
                  + '|{{ data.pagination.current_page if data.pagination else "" }}',
    'post.html': 'POST {{ post.slug }} {{ data.website.canonical_url }} {{ settings.columns }}',
    'post-wide.html': 'WIDE {{ post.slug }}',
    'tag.html': 'TAG {{ tag.slug }}|' + LISTING,
    'author.html': 'AUTHOR {{ author.slug }}|' + LISTING,
    '404.html': 'NOT FOUND',
    'search.html': 'SEARCH',
    'amp-index.html': 'AMP HOME {{ data.website.page_url }}|' + LISTING,
    'amp-post.html': 'AMP POST {{ post.slug }} {{ data.website.canonical_url }}',
    'amp-tag.html': 'AMP TAG {{ tag.slug }}|' + LISTING,
    'amp-author.html': 'AMP AUTHOR {{ author.slug }}|' + LISTING,
    'visual-override.css': '.accent{color:{{ options.accent }}}',
}


def populate_database(db_path):
    """Create the schema and insert the sample site content."""
    initialize_schema(db_path)
    connection = sqlite3.connect(db_path)
    with connection:
        for post_id, title, slug, authors, created_at, status, template in POSTS:
            connection.execute(
                "INSERT INTO posts (id, title, slug, text, excerpt, authors, created_at, "
                "modified_at, status, template) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (post_id, title, slug, f'<p>{title} text</p>', f'{title} excerpt', authors,
                 created_at, created_at, status, template)
            )
        connection.executemany(
            "INSERT INTO tags (id, name, slug, additional_data) VALUES (?, ?, ?, ?)", TAGS)
        connection.executemany(
            "INSERT INTO posts_tags (tag_id, post_id) VALUES (?, ?)", POSTS_TAGS)
        connection.executemany(
            "INSERT INTO authors (id, name, username, config) VALUES (?, ?, ?, ?)", AUTHORS)
        connection.execute(
            "INSERT INTO posts_images (id, post_id, url, alt) VALUES (1, 2, 'cover.jpg', 'Cover')")
        connection.execute("UPDATE posts SET featured_image_id = 1 WHERE id = 2")
        connection.execute(
            "INSERT INTO posts_additional_data (post_id, key, value) VALUES (3, 'postViewSettings', ?)",
            (json.dumps({'columns': '3', 'unknown': 'x'}),)
        )
        connection.execute(
            "INSERT INTO menus (id, name, position, items) VALUES (1, 'Main', 'main', ?)",
            (json.dumps([{'label': 'Home', 'link': '/'}]),)
        )
    connection.close()


def write_theme(theme_dir, config=None, templates=None):
    """Write a theme descriptor, its templates and main.css."""
    theme_dir = Path(theme_dir)
    (theme_dir / 'assets' / 'css').mkdir(parents=True, exist_ok=True)
    (theme_dir / 'config.json').write_text(json.dumps(config or THEME_CONFIG))
    for name, content in (templates or TEMPLATES).items():
        (theme_dir / name).write_text(content)
    (theme_dir / 'assets' / 'css' / 'main.css').write_text('body { color: black; }\n')


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def site_dir(temp_dir):
    """Input directory with a populated database, media and a test theme."""
    input_dir = Path(temp_dir) / 'input'
    (input_dir / 'media' / 'posts' / '2').mkdir(parents=True)
    (input_dir / 'media' / 'posts' / '2' / 'cover.jpg').write_bytes(b'jpeg')
    (input_dir / 'root-files').mkdir()
    (input_dir / 'root-files' / 'robots.txt').write_text('User-agent: *\n')
    (input_dir / 'config').mkdir()
    (input_dir / 'config' / 'custom-css.css').write_text('.custom { margin: 0; }\n')
    populate_database(str(input_dir / 'db.sqlite'))
    write_theme(input_dir / 'themes' / 'test')
    return input_dir


@pytest.fixture
def theme_dir(site_dir):
    return site_dir / 'themes' / 'test'


@pytest.fixture
def output_dir(temp_dir):
    return Path(temp_dir) / 'output'


@pytest.fixture
def make_config(site_dir, output_dir):
    """Factory building a SiteConfig for the sample site, with overrides."""
    def _make_config(**overrides):
        settings = RenditionSettings.DEFAULT_SETTINGS.copy()
        settings.update({
            'input': str(site_dir),
            'output': str(output_dir),
            'theme': 'test',
            'domain': 'https://example.com',
        })
        settings.update(overrides)
        return SiteConfig.from_settings(settings)
    return _make_config


@pytest.fixture
def site_config(make_config):
    return make_config()
