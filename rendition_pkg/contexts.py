"""
Template contexts.

Every template receives a page-local context as its variables and the global
context of its listing kind as ``data``. The global context is created once
per kind and pass, then updated in place for every page.
"""

from typing import Any, Dict, List, Optional

from .cache import Author, ContentCache, Post, Tag


class ContextBuilder:
    def __init__(self, cache: ContentCache, pass_context):
        self.cache = cache
        self.pass_context = pass_context
        self.config = pass_context.config
        self.theme = pass_context.theme

    def visible_tags(self) -> List[Tag]:
        if self.config.display_empty_tags:
            return list(self.cache.tags.values())
        return [tag for tag in self.cache.tags.values() if tag.post_count > 0]

    def visible_authors(self) -> List[Author]:
        if self.config.display_empty_authors:
            return list(self.cache.authors.values())
        return [author for author in self.cache.authors.values() if author.post_count > 0]

    def global_context(self, kind: str) -> Dict[str, Any]:
        urls = self.config.urls
        return {
            'context': [kind],
            'menu_context': [],
            'config': {
                'basic': dict(self.theme.config),
                'custom': dict(self.theme.custom_config),
                'post': {},
            },
            'website': {
                'url': self.pass_context.site_url,
                'base_url': urls.domain,
                'language': self.config.language,
                'page_url': '',
                'amp_url': '',
                'canonical_url': '',
                'amp_enabled': urls.amp_enabled,
            },
            'renderer': {
                'is_first_page': True,
                'is_last_page': True,
                'amp_mode': self.pass_context.amp,
            },
            'pagination': None,
            'tags': self.visible_tags(),
            'authors': self.visible_authors(),
            'menus': self.cache.menus,
            'featured_posts': [self.post_item(post) for post in self.cache.featured_posts()],
        }

    def post_item(self, post: Post, full: bool = False) -> Dict[str, Any]:
        item = {
            'id': post.id,
            'title': post.title,
            'slug': post.slug,
            'url': post.url,
            'excerpt': post.excerpt,
            'created_at': post.created_at,
            'modified_at': post.modified_at,
            'is_featured': post.is_featured,
            'author': self.cache.author_of(post),
            'tags': self.cache.tags_of(post.id),
            'featured_image': self.cache.featured_images.get(post.id),
        }
        if full:
            item['text'] = post.text
        return item

    def _slice(self, posts: List[Post], offset: int, limit: int) -> List[Dict[str, Any]]:
        return [self.post_item(post) for post in posts[offset:offset + limit]]

    def home(self, offset: int, limit: int) -> Dict[str, Any]:
        posts = self.cache.listed_posts()
        return {
            'posts': self._slice(posts, offset, limit),
            'featured_posts': [self.post_item(post) for post in self.cache.featured_posts()],
        }

    def post(self, post_id: int) -> Dict[str, Any]:
        post = self.cache.posts[post_id]
        return {
            'post': self.post_item(post, full=True),
            'settings': self.cache.post_view_settings.get(post_id, {}),
        }

    def tag(self, tag_id: int, offset: int, limit: int) -> Dict[str, Any]:
        return {
            'tag': self.cache.tags[tag_id],
            'posts': self._slice(self.cache.posts_by_tag(tag_id), offset, limit),
        }

    def author(self, author_id: int, offset: int, limit: int) -> Dict[str, Any]:
        return {
            'author': self.cache.authors[author_id],
            'posts': self._slice(self.cache.posts_by_author(author_id), offset, limit),
        }

    def error_page(self) -> Dict[str, Any]:
        return {'posts': self._slice(self.cache.listed_posts(), 0, 5)}

    def search(self) -> Dict[str, Any]:
        return {'query': ''}

    def feed(self, count: int, updated: Optional[str] = None) -> Dict[str, Any]:
        posts = self.cache.listed_posts()[:count]
        items = [self.post_item(post, full=True) for post in posts]
        return {
            'posts': items,
            'updated': updated or (max(post.modified_at for post in posts) if posts else ''),
            'website': {
                'url': self.pass_context.site_url,
                'language': self.config.language,
                'title': self.theme.config.get('site_title') or self.config.urls.domain,
            },
        }
