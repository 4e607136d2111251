"""Tests for the SQLite content store."""

import os
import sqlite3
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rendition_pkg.errors import ConfigError
from rendition_pkg.store import ContentStore, initialize_schema


@pytest.fixture
def store(site_dir):
    return ContentStore(str(site_dir / 'db.sqlite'))


class TestContentStore:
    def test_missing_database(self, temp_dir):
        with pytest.raises(ConfigError, match='does not exist'):
            ContentStore(os.path.join(temp_dir, 'missing.sqlite'))

    def test_file_that_is_not_a_database(self, temp_dir):
        db_path = os.path.join(temp_dir, 'bad.sqlite')
        with open(db_path, 'w') as f:
            f.write('not a database')

        with pytest.raises(ConfigError, match='cannot be read'):
            ContentStore(db_path)

    def test_database_without_content_tables(self, temp_dir):
        db_path = os.path.join(temp_dir, 'other.sqlite')
        connection = sqlite3.connect(db_path)
        with connection:
            connection.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY)")
        connection.close()

        with pytest.raises(ConfigError, match='missing tables: posts, tags'):
            ContentStore(db_path)

    def test_database_missing_one_table(self, temp_dir):
        db_path = os.path.join(temp_dir, 'partial.sqlite')
        initialize_schema(db_path)
        connection = sqlite3.connect(db_path)
        with connection:
            connection.execute("DROP TABLE menus")
        connection.close()

        with pytest.raises(ConfigError, match='missing tables: menus$'):
            ContentStore(db_path)

    def test_only_published_posts(self, store):
        snapshot = store.snapshot()
        assert [row['slug'] for row in snapshot.posts] == [
            'first-post', 'second-post', 'third-post', 'hidden-post']

    def test_tag_counts_ignore_unpublished(self, store):
        counts = {row['slug']: row['post_count'] for row in store.snapshot().tags}
        assert counts == {'python': 3, 'web': 1, 'empty': 0}

    def test_tags_ordered_by_name(self, store):
        assert [row['name'] for row in store.snapshot().tags] == ['Empty', 'Python', 'Web']

    def test_author_counts(self, store):
        counts = {row['username']: row['post_count'] for row in store.snapshot().authors}
        assert counts == {'jane': 3, 'john': 1, 'nobody': 0}

    def test_posts_tags_skip_unpublished(self, store):
        pairs = {(row['tag_id'], row['post_id']) for row in store.snapshot().posts_tags}
        assert (2, 4) not in pairs
        assert (3, 5) not in pairs
        assert (1, 3) in pairs

    def test_featured_images(self, store):
        images = store.snapshot().featured_images
        assert len(images) == 1
        assert images[0]['post_id'] == 2
        assert images[0]['url'] == 'cover.jpg'

    def test_additional_data(self, store):
        rows = store.additional_data('postViewSettings')
        assert [row['post_id'] for row in rows] == [3]

    def test_store_is_read_only(self, store):
        connection = store._connect()
        try:
            with pytest.raises(sqlite3.OperationalError):
                connection.execute("DELETE FROM posts")
        finally:
            connection.close()


def test_initialize_schema_creates_tables(temp_dir):
    db_path = os.path.join(temp_dir, 'nested', 'db.sqlite')
    initialize_schema(db_path)

    snapshot = ContentStore(db_path).snapshot()
    assert snapshot.posts == []
    assert snapshot.menus == []
