"""
URL and output path generation.

Every page of the site is addressed by (kind, slug, page number). The same
triple yields the canonical URL, the AMP twin URL and the file the page is
written to, so the standard and AMP trees always share one layout.
"""

import re
import unicodedata
from typing import List, NamedTuple, Optional

from .settings import UrlConfig

HOME = 'home'
POST = 'post'
TAG = 'tag'
AUTHOR = 'author'
LISTING_KINDS = (HOME, TAG, AUTHOR)

AMP_SEGMENT = 'amp'
INDEX_FILE = 'index.html'


class UrlPair(NamedTuple):
    canonical: str
    amp: str


def slugify(text: str) -> str:
    """Convert text to a lowercase, ASCII-only URL segment."""
    if not text:
        return ''
    normalized = unicodedata.normalize('NFKD', str(text)).encode('ascii', 'ignore').decode('ascii')
    slug = re.sub(r'[^a-zA-Z0-9_\s-]', '', normalized).strip().lower()
    return re.sub(r'[-\s]+', '-', slug).strip('-')


def _segments(kind: str, slug: str, page_number: Optional[int], urls: UrlConfig) -> List[str]:
    if kind == POST:
        return [slug]

    segments = []
    if kind == TAG:
        if urls.tags_prefix:
            segments.append(urls.tags_prefix)
        segments.append(slug)
    elif kind == AUTHOR:
        if urls.authors_prefix:
            segments.append(urls.authors_prefix)
        segments.append(slug)
    elif kind != HOME:
        raise ValueError(f"Unknown page kind: {kind}")

    if page_number and page_number > 1:
        segments.extend([urls.page_name, str(page_number)])

    return segments


def site_path(kind: str, slug: str, page_number: Optional[int], urls: UrlConfig) -> str:
    """Path of a page relative to the site root, starting with '/'."""
    segments = _segments(kind, slug, page_number, urls)

    if kind == POST:
        if not urls.clean_urls:
            return f'/{slug}.html'
        path = f'/{slug}/'
    else:
        path = '/' + '/'.join(segments) + '/' if segments else '/'
        if not urls.clean_urls:
            return path + INDEX_FILE

    if urls.add_index:
        path += INDEX_FILE
    return path


def page_url(kind: str, slug: str, page_number: Optional[int], urls: UrlConfig) -> UrlPair:
    """
    Return the canonical URL of a page and its AMP twin.

    The twin is the canonical URL with ``/amp`` inserted right after the
    domain, or an empty string when AMP output is disabled.
    """
    path = site_path(kind, slug, page_number, urls)
    canonical = urls.domain + path
    amp = f'{urls.domain}/{AMP_SEGMENT}{path}' if urls.amp_enabled else ''
    return UrlPair(canonical, amp)


def pagination_url(kind: str, slug: str, page_number: Optional[int], urls: UrlConfig,
                   amp: bool = False) -> Optional[str]:
    """URL of a neighbouring listing page, or None when there is no such page."""
    if page_number is None:
        return None
    pair = page_url(kind, slug, page_number, urls)
    return pair.amp if amp else pair.canonical


def output_path(kind: str, slug: str, page_number: Optional[int], urls: UrlConfig) -> str:
    """File a page is written to, relative to the output root ('/'-separated)."""
    if kind == POST:
        if urls.clean_urls:
            return f'{slug}/{INDEX_FILE}'
        return f'{slug}.html'
    return '/'.join(_segments(kind, slug, page_number, urls) + [INDEX_FILE])


def media_url(domain: str, post_id: int, filename: str) -> str:
    if not filename:
        return ''
    if filename.startswith(('http://', 'https://', '//')):
        return filename
    return f'{domain}/media/posts/{post_id}/{filename.lstrip("/")}'
