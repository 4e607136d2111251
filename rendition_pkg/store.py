"""Read-only access to the site's SQLite content database."""

import logging
import os
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .errors import ConfigError

PUBLISHED = "status LIKE '%published%' AND status NOT LIKE '%trashed%'"
POST_VIEW_SETTINGS_KEY = 'postViewSettings'

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS posts (
        id INTEGER PRIMARY KEY,
        title TEXT NOT NULL DEFAULT '',
        slug TEXT NOT NULL UNIQUE,
        text TEXT NOT NULL DEFAULT '',
        excerpt TEXT NOT NULL DEFAULT '',
        authors TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL DEFAULT '',
        modified_at TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL DEFAULT '',
        template TEXT NOT NULL DEFAULT '',
        featured_image_id INTEGER
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tags (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        slug TEXT NOT NULL UNIQUE,
        description TEXT NOT NULL DEFAULT '',
        additional_data TEXT NOT NULL DEFAULT '{}'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts_tags (
        tag_id INTEGER NOT NULL,
        post_id INTEGER NOT NULL,
        PRIMARY KEY (tag_id, post_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS authors (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        username TEXT NOT NULL UNIQUE,
        config TEXT NOT NULL DEFAULT '{}'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts_images (
        id INTEGER PRIMARY KEY,
        post_id INTEGER NOT NULL,
        url TEXT NOT NULL,
        title TEXT NOT NULL DEFAULT '',
        caption TEXT NOT NULL DEFAULT '',
        alt TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts_additional_data (
        id INTEGER PRIMARY KEY,
        post_id INTEGER NOT NULL,
        key TEXT NOT NULL,
        value TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS menus (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        position TEXT NOT NULL DEFAULT '',
        items TEXT NOT NULL DEFAULT '[]'
    )
    """,
]

REQUIRED_TABLES = ('posts', 'tags', 'posts_tags', 'authors', 'posts_images',
                   'posts_additional_data', 'menus')


@dataclass(frozen=True)
class ContentSnapshot:
    """Rows read from the store in one go. Never mutated after creation."""
    posts: List[Dict[str, Any]] = field(default_factory=list)
    tags: List[Dict[str, Any]] = field(default_factory=list)
    authors: List[Dict[str, Any]] = field(default_factory=list)
    posts_tags: List[Dict[str, Any]] = field(default_factory=list)
    featured_images: List[Dict[str, Any]] = field(default_factory=list)
    post_view_settings: List[Dict[str, Any]] = field(default_factory=list)
    menus: List[Dict[str, Any]] = field(default_factory=list)


def initialize_schema(db_path: str) -> None:
    """Create an empty content database (used by ``rendition --init`` and tests)."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(db_path)
    try:
        with connection:
            for statement in SCHEMA:
                connection.execute(statement)
    finally:
        connection.close()


class ContentStore:
    """Query surface over the published, non-trashed content of a site."""

    def __init__(self, db_path: str):
        if not os.path.isfile(db_path):
            raise ConfigError(f"Database file '{db_path}' does not exist")
        self._db_path = db_path
        self.logger = logging.getLogger('Rendition.ContentStore')
        self._check_schema()

    def _check_schema(self) -> None:
        """
        Make sure the file is a SQLite database holding every content table.

        Raises:
            ConfigError: if the file cannot be read or tables are missing
        """
        try:
            connection = self._connect()
            try:
                rows = connection.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
            finally:
                connection.close()
        except sqlite3.DatabaseError as e:
            raise ConfigError(f"Database file '{self._db_path}' cannot be read: {e}") from e

        missing = [name for name in REQUIRED_TABLES if name not in {row['name'] for row in rows}]
        if missing:
            raise ConfigError(
                f"Database file '{self._db_path}' is missing tables: {', '.join(missing)}")

    def _connect(self) -> sqlite3.Connection:
        uri = Path(self._db_path).resolve().as_uri() + '?mode=ro'
        connection = sqlite3.connect(uri, uri=True)
        connection.row_factory = sqlite3.Row
        return connection

    def snapshot(self) -> ContentSnapshot:
        """Read every row a render pass needs using a single connection."""
        connection = self._connect()
        try:
            snapshot = ContentSnapshot(
                posts=self._posts(connection),
                tags=self._tags(connection),
                authors=self._authors(connection),
                posts_tags=self._posts_tags(connection),
                featured_images=self._featured_images(connection),
                post_view_settings=self._additional_data(connection, POST_VIEW_SETTINGS_KEY),
                menus=self._menus(connection),
            )
        finally:
            connection.close()

        self.logger.debug(
            f"Snapshot: {len(snapshot.posts)} posts, {len(snapshot.tags)} tags, "
            f"{len(snapshot.authors)} authors"
        )
        return snapshot

    def additional_data(self, key: str) -> List[Dict[str, Any]]:
        """Return ``{post_id, value}`` rows of one additional data key for published posts."""
        connection = self._connect()
        try:
            return self._additional_data(connection, key)
        finally:
            connection.close()

    @staticmethod
    def _fetch(connection: sqlite3.Connection, query: str, params=()) -> List[Dict[str, Any]]:
        return [dict(row) for row in connection.execute(query, params).fetchall()]

    def _posts(self, connection):
        return self._fetch(connection, f"""
            SELECT id, title, slug, text, excerpt, authors, created_at, modified_at,
                   status, template, featured_image_id
            FROM posts
            WHERE {PUBLISHED}
            ORDER BY id ASC
        """)

    def _tags(self, connection):
        return self._fetch(connection, f"""
            SELECT t.id, t.name, t.slug, t.description, t.additional_data,
                   COUNT(p.id) AS post_count
            FROM tags AS t
            LEFT JOIN posts_tags AS pt ON pt.tag_id = t.id
            LEFT JOIN (SELECT id FROM posts WHERE {PUBLISHED}) AS p ON p.id = pt.post_id
            GROUP BY t.id
            ORDER BY t.name ASC
        """)

    def _authors(self, connection):
        return self._fetch(connection, f"""
            SELECT a.id, a.name, a.username, a.config,
                   COUNT(p.id) AS post_count
            FROM authors AS a
            LEFT JOIN (SELECT id, authors FROM posts WHERE {PUBLISHED}) AS p
                ON CAST(p.authors AS INTEGER) = a.id
            GROUP BY a.id
            ORDER BY a.username ASC
        """)

    def _posts_tags(self, connection):
        return self._fetch(connection, f"""
            SELECT pt.post_id, pt.tag_id
            FROM posts_tags AS pt
            JOIN (SELECT id FROM posts WHERE {PUBLISHED}) AS p ON p.id = pt.post_id
            ORDER BY pt.post_id ASC, pt.tag_id ASC
        """)

    def _featured_images(self, connection):
        return self._fetch(connection, f"""
            SELECT p.id AS post_id, i.url, i.title, i.caption, i.alt
            FROM posts AS p
            JOIN posts_images AS i ON i.id = p.featured_image_id
            WHERE {PUBLISHED.replace('status', 'p.status')}
            ORDER BY p.id ASC
        """)

    def _additional_data(self, connection, key):
        return self._fetch(connection, f"""
            SELECT d.post_id, d.value
            FROM posts_additional_data AS d
            JOIN (SELECT id FROM posts WHERE {PUBLISHED}) AS p ON p.id = d.post_id
            WHERE d.key = ?
            ORDER BY d.post_id ASC
        """, (key,))

    def _menus(self, connection):
        return self._fetch(connection, """
            SELECT id, name, position, items
            FROM menus
            ORDER BY id ASC
        """)
