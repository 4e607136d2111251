"""
In-memory content structure for one render pass.

The cache is built from a single store snapshot at the start of every pass.
Entity URLs differ between the standard and the AMP pass, so each pass builds
its own cache instead of reusing the previous one.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import DataError
from .settings import SiteConfig
from .theme import ThemeDescriptor
from .urls import AUTHOR, POST, TAG, media_url, page_url, slugify

logger = logging.getLogger('Rendition.ContentCache')


@dataclass(frozen=True)
class Post:
    id: int
    title: str
    slug: str
    text: str
    excerpt: str
    author_id: Optional[int]
    created_at: str
    modified_at: str
    status: str
    template: str
    url: str

    @property
    def is_featured(self) -> bool:
        return 'featured' in self.status.split(',')

    @property
    def is_hidden(self) -> bool:
        return 'hidden' in self.status.split(',')


@dataclass(frozen=True)
class Tag:
    id: int
    name: str
    slug: str
    description: str
    template: str
    post_count: int
    url: str


@dataclass(frozen=True)
class Author:
    id: int
    name: str
    username: str
    slug: str
    template: str
    post_count: int
    url: str
    config: Dict[str, Any] = field(default_factory=dict)


def _newest_first(posts):
    return sorted(posts, key=lambda post: (post.created_at, post.id), reverse=True)


def _load_json(raw, label: str, default, warnings: List[DataError]):
    """Parse a JSON column, falling back to ``default`` when it is malformed."""
    if raw is None or raw == '':
        return default
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        value = None
        problem = str(e)
    else:
        problem = f"expected {type(default).__name__}, got {type(value).__name__}"
    if isinstance(value, type(default)):
        return value

    message = f"Wrong {label} - invalid JSON value ({problem})"
    logger.warning(message)
    warnings.append(DataError(message))
    return default


def _claim_slug(label: str, slug: str, taken: set, warnings: List[DataError]) -> bool:
    """Reserve ``slug`` for one entity of a kind; empty or repeated slugs are refused."""
    if slug and slug not in taken:
        taken.add(slug)
        return True

    problem = 'has an empty slug' if not slug else f"repeats the slug '{slug}'"
    message = f"Skipped {label} - it {problem}"
    logger.warning(message)
    warnings.append(DataError(message))
    return False


def _author_id(raw) -> Optional[int]:
    try:
        return int(str(raw).split(',')[0])
    except (TypeError, ValueError):
        return None


@dataclass
class ContentCache:
    posts: Dict[int, Post] = field(default_factory=dict)
    tags: Dict[int, Tag] = field(default_factory=dict)
    authors: Dict[int, Author] = field(default_factory=dict)
    post_tags: Dict[int, List[int]] = field(default_factory=dict)
    tag_posts: Dict[int, List[int]] = field(default_factory=dict)
    featured_images: Dict[int, Dict[str, str]] = field(default_factory=dict)
    post_view_settings: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    menus: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def build(cls, store, config: SiteConfig, theme: ThemeDescriptor, amp: bool = False,
              warnings: Optional[List[DataError]] = None) -> 'ContentCache':
        """
        Build the cache from exactly one ``store.snapshot()`` call.

        Tags and authors without posts are kept; hiding them is decided when
        pages are rendered. Malformed JSON values are replaced by empty values
        and reported through ``warnings``.
        """
        if warnings is None:
            warnings = []
        snapshot = store.snapshot()
        urls = config.urls
        cache = cls()

        def url_of(kind, slug):
            pair = page_url(kind, slug, 1, urls)
            return pair.amp if amp else pair.canonical

        taken = set()
        for row in snapshot.posts:
            if not _claim_slug(f"post #{row['id']}", (row['slug'] or '').strip(), taken, warnings):
                continue
            cache.posts[row['id']] = Post(
                id=row['id'],
                title=row['title'] or '',
                slug=row['slug'],
                text=row['text'] or '',
                excerpt=row['excerpt'] or '',
                author_id=_author_id(row['authors']),
                created_at=row['created_at'] or '',
                modified_at=row['modified_at'] or row['created_at'] or '',
                status=row['status'] or '',
                template=row['template'] or '',
                url=url_of(POST, row['slug']),
            )

        taken = set()
        for row in snapshot.tags:
            slug = slugify(row['slug'])
            if not _claim_slug(f"tag #{row['id']}", slug, taken, warnings):
                continue
            additional = _load_json(row['additional_data'], f"tag #{row['id']} additional data", {}, warnings)
            cache.tags[row['id']] = Tag(
                id=row['id'],
                name=row['name'],
                slug=slug,
                description=row['description'] or '',
                template=str(additional.get('template') or ''),
                post_count=row['post_count'],
                url=url_of(TAG, slug),
            )

        taken = set()
        for row in snapshot.authors:
            slug = slugify(row['username'])
            if not _claim_slug(f"author #{row['id']}", slug, taken, warnings):
                continue
            author_config = _load_json(row['config'], f"author #{row['id']} config", {}, warnings)
            cache.authors[row['id']] = Author(
                id=row['id'],
                name=row['name'],
                username=row['username'],
                slug=slug,
                template=str(author_config.get('template') or ''),
                post_count=row['post_count'],
                url=url_of(AUTHOR, slug),
                config=author_config,
            )

        for row in snapshot.posts_tags:
            if row['tag_id'] not in cache.tags or row['post_id'] not in cache.posts:
                continue
            cache.post_tags.setdefault(row['post_id'], []).append(row['tag_id'])
            cache.tag_posts.setdefault(row['tag_id'], []).append(row['post_id'])

        for row in snapshot.featured_images:
            cache.featured_images[row['post_id']] = {
                'url': media_url(urls.domain, row['post_id'], row['url']),
                'title': row['title'] or '',
                'caption': row['caption'] or '',
                'alt': row['alt'] or '',
            }

        overrides = {}
        for row in snapshot.post_view_settings:
            overrides[row['post_id']] = _load_json(
                row['value'], f"post #{row['post_id']} view settings", {}, warnings)
        for post_id in cache.posts:
            cache.post_view_settings[post_id] = theme.post_view_settings(overrides.get(post_id, {}))

        for row in snapshot.menus:
            cache.menus.append({
                'name': row['name'],
                'position': row['position'] or '',
                'items': _load_json(row['items'], f"menu #{row['id']} items", [], warnings),
            })

        logger.debug(f"Content cache built ({'amp' if amp else 'standard'} pass)")
        return cache

    def tags_of(self, post_id: int) -> List[Tag]:
        return [self.tags[tag_id] for tag_id in self.post_tags.get(post_id, [])]

    def author_of(self, post: Post) -> Optional[Author]:
        return self.authors.get(post.author_id)

    def listed_posts(self) -> List[Post]:
        """Posts shown on the home listing, newest first."""
        return _newest_first(post for post in self.posts.values() if not post.is_hidden)

    def featured_posts(self) -> List[Post]:
        return [post for post in self.listed_posts() if post.is_featured]

    def posts_by_tag(self, tag_id: int) -> List[Post]:
        return _newest_first(self.posts[post_id] for post_id in self.tag_posts.get(tag_id, []))

    def posts_by_author(self, author_id: int) -> List[Post]:
        return _newest_first(post for post in self.posts.values() if post.author_id == author_id)
