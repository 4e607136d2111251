"""Tests for URL and output path generation."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rendition_pkg.settings import UrlConfig
from rendition_pkg.urls import (AUTHOR, HOME, POST, TAG, media_url, output_path, page_url,
                                pagination_url, site_path, slugify)


@pytest.fixture
def urls():
    return UrlConfig(domain='https://example.com', amp_enabled=True)


class TestPageUrl:
    """Test cases for canonical and AMP URLs."""

    def test_home(self, urls):
        pair = page_url(HOME, '', 1, urls)
        assert pair.canonical == 'https://example.com/'
        assert pair.amp == 'https://example.com/amp/'

    def test_home_page_two(self, urls):
        assert page_url(HOME, '', 2, urls).canonical == 'https://example.com/page/2/'

    def test_post_clean(self, urls):
        pair = page_url(POST, 'hello', None, urls)
        assert pair.canonical == 'https://example.com/hello/'
        assert pair.amp == 'https://example.com/amp/hello/'

    def test_post_not_clean(self):
        urls = UrlConfig(domain='https://example.com', clean_urls=False)
        assert page_url(POST, 'hello', None, urls).canonical == 'https://example.com/hello.html'

    def test_tag_without_prefix(self, urls):
        assert page_url(TAG, 'python', 3, urls).canonical == 'https://example.com/python/page/3/'

    def test_tag_with_prefix(self):
        urls = UrlConfig(domain='https://example.com', tags_prefix='tags')
        assert page_url(TAG, 'python', 1, urls).canonical == 'https://example.com/tags/python/'

    def test_author(self, urls):
        assert page_url(AUTHOR, 'jane', 1, urls).canonical == 'https://example.com/authors/jane/'

    def test_listing_not_clean(self):
        urls = UrlConfig(domain='https://example.com', clean_urls=False)
        assert page_url(TAG, 'python', 2, urls).canonical == 'https://example.com/python/page/2/index.html'

    def test_add_index(self):
        urls = UrlConfig(domain='https://example.com', add_index=True)
        assert page_url(POST, 'hello', None, urls).canonical == 'https://example.com/hello/index.html'
        assert page_url(HOME, '', 1, urls).canonical == 'https://example.com/index.html'

    def test_amp_disabled_gives_empty_twin(self):
        urls = UrlConfig(domain='https://example.com')
        assert page_url(POST, 'hello', None, urls).amp == ''

    def test_unknown_kind(self, urls):
        with pytest.raises(ValueError):
            site_path('category', 'x', 1, urls)


class TestTwinIsomorphism:
    """AMP URLs mirror canonical URLs and both map to the same output file."""

    @pytest.mark.parametrize('kind,slug,page', [
        (HOME, '', 1), (HOME, '', 4), (POST, 'a-post', None),
        (TAG, 'python', 1), (TAG, 'python', 2), (AUTHOR, 'jane', 3),
    ])
    def test_amp_is_canonical_with_amp_segment(self, urls, kind, slug, page):
        pair = page_url(kind, slug, page, urls)
        path = pair.canonical[len(urls.domain):]
        assert pair.amp == f'{urls.domain}/amp{path}'

    @pytest.mark.parametrize('kind,slug,page', [
        (HOME, '', 1), (POST, 'a-post', None), (TAG, 'python', 2), (AUTHOR, 'jane', 1),
    ])
    def test_output_path_matches_url_path(self, urls, kind, slug, page):
        path = site_path(kind, slug, page, urls)
        expected = path.lstrip('/') + 'index.html' if path.endswith('/') else path.lstrip('/')
        assert output_path(kind, slug, page, urls) == expected


class TestOutputPath:
    def test_clean_post(self, urls):
        assert output_path(POST, 'hello', None, urls) == 'hello/index.html'

    def test_plain_post(self):
        assert output_path(POST, 'hello', None, UrlConfig(clean_urls=False)) == 'hello.html'

    def test_home_pages(self, urls):
        assert output_path(HOME, '', 1, urls) == 'index.html'
        assert output_path(HOME, '', 2, urls) == 'page/2/index.html'

    def test_author_page(self, urls):
        assert output_path(AUTHOR, 'jane', 2, urls) == 'authors/jane/page/2/index.html'


class TestHelpers:
    def test_pagination_url_none(self, urls):
        assert pagination_url(TAG, 'python', None, urls) is None

    def test_pagination_url_amp(self, urls):
        assert pagination_url(TAG, 'python', 2, urls, amp=True) == 'https://example.com/amp/python/page/2/'

    def test_media_url(self):
        assert media_url('https://example.com', 2, 'cover.jpg') == 'https://example.com/media/posts/2/cover.jpg'
        assert media_url('https://example.com', 2, 'https://cdn.test/x.jpg') == 'https://cdn.test/x.jpg'
        assert media_url('https://example.com', 2, '') == ''

    def test_slugify(self):
        assert slugify('Héllo Wörld!') == 'hello-world'
        assert slugify('  multiple   spaces ') == 'multiple-spaces'
        assert slugify('') == ''
