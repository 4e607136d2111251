"""
The generation pipeline.

A run loads the configuration, renders the standard site from a fresh content
cache and, when AMP output is enabled, renders the AMP twin from a second
cache under ``<output>/amp``. Template problems are collected in the error
log instead of stopping the run: a broken variant costs its listing kind, a
failing page costs that page.
"""

import logging
import math
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from . import paginator
from .cache import ContentCache
from .contexts import ContextBuilder
from .emitter import PageEmitter
from .errors import CompileError, ConfigError, DataError, ErrorLog
from .publish import copy_files, generate_css, generate_xml_sitemap
from .settings import SiteConfig
from .store import ContentStore
from .templates import TemplateResolver, create_environment
from .theme import DEFAULT, ThemeDescriptor, load_theme
from .urls import (AMP_SEGMENT, AUTHOR, HOME, POST, TAG, UrlPair, output_path, page_url,
                   pagination_url)

STANDARD = 'standard'
ACCELERATED = 'amp'

# Name used for the listing kind in template context paths
CONTEXT_NAMES = {HOME: 'index', POST: 'post', TAG: 'tag', AUTHOR: 'author'}


class PipelineState(Enum):
    IDLE = 'idle'
    CONFIG_LOADED = 'config-loaded'
    CACHE_BUILT = 'cache-built'
    STANDARD_COMPLETE = 'standard-complete'
    CACHE_REBUILT = 'cache-rebuilt'
    DONE = 'done'


@dataclass(frozen=True)
class PassContext:
    """Everything that differs between the standard and the AMP pass."""
    mode: str
    output_dir: str
    site_url: str
    config: SiteConfig
    theme: ThemeDescriptor

    @property
    def amp(self) -> bool:
        return self.mode == ACCELERATED

    @classmethod
    def standard(cls, config: SiteConfig, theme: ThemeDescriptor) -> 'PassContext':
        return cls(STANDARD, config.output_dir, config.urls.domain, config, theme)

    @classmethod
    def accelerated(cls, config: SiteConfig, theme: ThemeDescriptor) -> 'PassContext':
        return cls(
            ACCELERATED,
            os.path.join(config.output_dir, AMP_SEGMENT),
            f'{config.urls.domain}/{AMP_SEGMENT}',
            config,
            theme,
        )


ProgressCallback = Callable[[int, str], None]


def _contains(parent: str, child: str) -> bool:
    """True when ``child`` is ``parent`` or lies below it (absolute paths)."""
    try:
        return os.path.commonpath([parent, child]) == parent
    except ValueError:
        # Different drives
        return False


class GenerationPipeline:
    def __init__(self, config: SiteConfig, theme: Optional[ThemeDescriptor] = None,
                 store=None, progress: Optional[ProgressCallback] = None):
        self.config = config
        self.theme = theme
        self.store = store
        self.progress = progress
        self.logger = logging.getLogger('Rendition')
        self.error_log = ErrorLog()
        self.warnings: List[DataError] = []
        self.sitemap_entries = []
        self.pages_generated = 0
        self.state = PipelineState.IDLE

    def _enter(self, state: PipelineState) -> None:
        self.logger.debug(f"Pipeline state: {self.state.value} -> {state.value}")
        self.state = state

    def send_progress(self, progress: int, message: str = '') -> None:
        """Report progress. Notifications are not acknowledged."""
        self.logger.debug(f"Progress {progress}%: {message}")
        if self.progress is not None:
            self.progress(progress, message)

    def load(self) -> None:
        """
        Load the theme descriptor and open the content store.

        Raises:
            ConfigError: if the theme or the database cannot be used
        """
        output_dir = os.path.abspath(self.config.output_dir)
        for label, path in (('input directory', self.config.input_dir),
                            ('theme directory', self.config.theme_dir),
                            ('database', self.config.database)):
            if _contains(output_dir, os.path.abspath(path)):
                raise ConfigError(
                    f"Output directory '{self.config.output_dir}' must not contain the {label} '{path}'")
        if self.theme is None:
            self.theme = load_theme(self.config.theme_dir)
        if self.store is None:
            self.store = ContentStore(self.config.database)
        self._enter(PipelineState.CONFIG_LOADED)

    def run(self) -> ErrorLog:
        """
        Render the whole site.

        Always runs to completion once the configuration is loaded; the
        returned error log is empty when every page rendered.
        """
        self.load()
        self.send_progress(1, 'Loading website config')
        self.prepare_output_dir()

        standard = PassContext.standard(self.config, self.theme)
        self.send_progress(2, 'Loading website assets')
        cache = self.build_cache(standard)
        self._enter(PipelineState.CACHE_BUILT)
        self.send_progress(5, 'Loading content structure')
        self.send_progress(10, 'Preloading common data')
        self.generate_www(standard, cache)
        self._enter(PipelineState.STANDARD_COMPLETE)

        if self.config.urls.amp_enabled:
            self.generate_amp()

        self._enter(PipelineState.DONE)
        self.send_progress(100, 'Website files are ready to upload')
        self.logger.info(f"Total pages generated: {self.pages_generated}")
        return self.error_log

    def prepare_output_dir(self) -> None:
        """Make sure the output directory exists and is empty."""
        output_dir = self.config.output_dir
        if os.path.isdir(output_dir):
            for item in os.listdir(output_dir):
                path = os.path.join(output_dir, item)
                if os.path.isdir(path) and not os.path.islink(path):
                    shutil.rmtree(path)
                else:
                    os.remove(path)
        else:
            os.makedirs(output_dir)

    def build_cache(self, pass_context: PassContext) -> ContentCache:
        return ContentCache.build(self.store, self.config, self.theme,
                                  amp=pass_context.amp, warnings=self.warnings)

    def generate_www(self, pass_context: PassContext, cache: ContentCache) -> None:
        env = create_environment(self.theme.directory)
        emitter = PageEmitter(pass_context.output_dir, self.error_log)
        builder = ContextBuilder(cache, pass_context)

        self.send_progress(11, 'Generating frontpage')
        self.generate_frontpage(pass_context, env, emitter, builder)
        self.send_progress(20, 'Generating posts')
        self.generate_posts(pass_context, env, emitter, builder)
        self.send_progress(60, 'Generating tag pages')
        self.generate_tags(pass_context, env, emitter, builder)
        self.send_progress(70, 'Generating author pages')
        self.generate_authors(pass_context, env, emitter, builder)
        self.send_progress(75, 'Generating other pages')
        self.generate_404(pass_context, env, emitter, builder)
        self.generate_search(pass_context, env, emitter, builder)
        self.generate_feeds(env, emitter, builder)
        self.send_progress(80, 'Copying files')
        copy_files(self.config.input_dir, self.theme.directory, self.theme.assets_path,
                   pass_context.output_dir)
        generate_css(env, self.theme, self.config.input_dir, pass_context.output_dir,
                     self.config.css_compression, self.error_log)
        if self.config.sitemap_enabled:
            generate_xml_sitemap(self.sitemap_entries, pass_context.output_dir, self.error_log)
        self.pages_generated += emitter.files_written
        self.send_progress(90, 'Finishing the render process')

    def generate_amp(self) -> None:
        amp = PassContext.accelerated(self.config, self.theme)
        os.makedirs(amp.output_dir, exist_ok=True)
        cache = self.build_cache(amp)
        self._enter(PipelineState.CACHE_REBUILT)

        env = create_environment(self.theme.directory)
        emitter = PageEmitter(amp.output_dir, self.error_log)
        builder = ContextBuilder(cache, amp)

        self.logger.info("Generating AMP pages")
        self.generate_frontpage(amp, env, emitter, builder)
        self.generate_posts(amp, env, emitter, builder)
        self.generate_tags(amp, env, emitter, builder)
        self.generate_authors(amp, env, emitter, builder)
        self.pages_generated += emitter.files_written

    def _prepare(self, resolver: TemplateResolver, slugs=()) -> bool:
        try:
            resolver.prepare(slugs)
        except CompileError as e:
            self.logger.error(f"{e.message} {e.detail}".strip())
            self.error_log.add(e.message, e.detail)
            return False
        return True

    @staticmethod
    def _set_page_urls(global_context: Dict[str, Any], pass_context: PassContext,
                       page_urls: UrlPair) -> None:
        website = global_context['website']
        website['canonical_url'] = page_urls.canonical
        website['amp_url'] = page_urls.amp
        website['page_url'] = page_urls.amp if pass_context.amp else page_urls.canonical

    def _listing(self, pass_context: PassContext, emitter: PageEmitter,
                 resolver: TemplateResolver, global_context: Dict[str, Any], kind: str,
                 slug: str, template_slug: str, total: int, page_size: int,
                 get_context: Callable[[int, int], Dict[str, Any]]) -> None:
        """Render every page of one listing (home, or one tag or author)."""
        urls = self.config.urls
        name = CONTEXT_NAMES[kind]
        page_plan = paginator.plan(total, page_size)
        url_context = '/'.join(output_path(kind, slug, 1, urls).split('/')[:-1])

        for slot in page_plan:
            global_context['context'] = [name]
            global_context['menu_context'] = ['frontpage'] if kind == HOME else [name, slug]
            page_context = get_context(slot.offset, page_plan.page_size)
            page_urls = page_url(kind, slug, slot.number, urls)
            self._set_page_urls(global_context, pass_context, page_urls)
            global_context['renderer']['is_first_page'] = slot.is_first
            global_context['renderer']['is_last_page'] = slot.is_last

            if page_plan.paginated:
                global_context['pagination'] = {
                    'context': url_context,
                    'pages': list(range(1, page_plan.total_pages + 1)),
                    'links': paginator.pagination_links(slot.number, page_plan.total_pages),
                    'total_posts': total,
                    'total_pages': page_plan.total_pages,
                    'current_page': slot.number,
                    'posts_per_page': page_plan.page_size,
                    'next_page': slot.next_page,
                    'previous_page': slot.previous_page,
                    'next_page_url': pagination_url(kind, slug, slot.next_page, urls, pass_context.amp),
                    'previous_page_url': pagination_url(kind, slug, slot.previous_page, urls, pass_context.amp),
                }
                if slot.number > 1:
                    global_context['context'].extend(['pagination', f'{name}-pagination'])
            else:
                global_context['pagination'] = None

            template_name, template = resolver.template_for(template_slug)
            written = emitter.emit(template, template_name, page_context, global_context,
                                   output_path(kind, slug, slot.number, urls))
            if written and not pass_context.amp:
                modified = [post['modified_at'] for post in page_context.get('posts', [])]
                self.sitemap_entries.append((page_urls.canonical, max(modified) if modified else ''))

    def generate_frontpage(self, pass_context: PassContext, env, emitter: PageEmitter,
                           builder: ContextBuilder) -> bool:
        resolver = TemplateResolver('index', env, amp=pass_context.amp)
        if not self._prepare(resolver):
            return False

        global_context = builder.global_context(CONTEXT_NAMES[HOME])
        total = len(builder.cache.listed_posts())
        self._listing(pass_context, emitter, resolver, global_context, HOME, '', DEFAULT,
                      total, self.theme.page_size(HOME), builder.home)
        self.logger.info("Building index page")
        return True

    def generate_posts(self, pass_context: PassContext, env, emitter: PageEmitter,
                       builder: ContextBuilder) -> bool:
        posts = list(builder.cache.posts.values())
        declared = self.theme.variants.declared(POST)
        slugs = [TemplateResolver.resolve_slug(post.template, declared) for post in posts]

        resolver = TemplateResolver('post', env, amp=pass_context.amp)
        if not self._prepare(resolver, dict.fromkeys(slugs)):
            return False

        global_context = builder.global_context(CONTEXT_NAMES[POST])
        urls = self.config.urls
        start, span = (90, 7) if pass_context.amp else (20, 40)

        for i, post in enumerate(posts):
            global_context['context'] = ['post']
            global_context['menu_context'] = ['post', post.slug]
            global_context['config']['post'] = builder.cache.post_view_settings.get(post.id, {})
            page_urls = page_url(POST, post.slug, None, urls)
            self._set_page_urls(global_context, pass_context, page_urls)

            template_name, template = resolver.template_for(slugs[i])
            written = emitter.emit(template, template_name, builder.post(post.id), global_context,
                                   output_path(POST, post.slug, None, urls))
            if written and not pass_context.amp:
                self.sitemap_entries.append((page_urls.canonical, post.modified_at))

            self.send_progress(math.ceil(start + span * i / len(posts)),
                               f'Generating posts ({i + 1}/{len(posts)})')
        return True

    def generate_tags(self, pass_context: PassContext, env, emitter: PageEmitter,
                      builder: ContextBuilder) -> bool:
        tags = builder.visible_tags()
        declared = self.theme.variants.declared(TAG)
        slugs = [TemplateResolver.resolve_slug(tag.template, declared) for tag in tags]

        resolver = TemplateResolver('tag', env, amp=pass_context.amp)
        if not self._prepare(resolver, dict.fromkeys(slugs)):
            return False

        global_context = builder.global_context(CONTEXT_NAMES[TAG])
        page_size = self.theme.page_size(TAG)
        start, span = (97, 2) if pass_context.amp else (60, 10)

        for i, tag in enumerate(tags):
            self._listing(pass_context, emitter, resolver, global_context, TAG, tag.slug,
                          slugs[i], tag.post_count, page_size,
                          lambda offset, limit, tag_id=tag.id: builder.tag(tag_id, offset, limit))
            self.send_progress(math.ceil(start + span * i / len(tags)),
                               f'Generating tag pages ({i + 1}/{len(tags)})')
        return True

    def generate_authors(self, pass_context: PassContext, env, emitter: PageEmitter,
                         builder: ContextBuilder) -> bool:
        authors = builder.visible_authors()
        declared = self.theme.variants.declared(AUTHOR)
        slugs = [TemplateResolver.resolve_slug(author.template, declared) for author in authors]

        resolver = TemplateResolver('author', env, amp=pass_context.amp)
        if not self._prepare(resolver, dict.fromkeys(slugs)):
            return False

        global_context = builder.global_context(CONTEXT_NAMES[AUTHOR])
        page_size = self.theme.page_size(AUTHOR)

        for i, author in enumerate(authors):
            self._listing(pass_context, emitter, resolver, global_context, AUTHOR, author.slug,
                          slugs[i], author.post_count, page_size,
                          lambda offset, limit, author_id=author.id: builder.author(author_id, offset, limit))
        return True

    def _single_page(self, pass_context: PassContext, env, emitter: PageEmitter,
                     builder: ContextBuilder, base_name: str, page_context: Dict[str, Any],
                     target: str) -> bool:
        resolver = TemplateResolver(base_name, env)
        if not self._prepare(resolver):
            return False

        global_context = builder.global_context(base_name)
        global_context['menu_context'] = [base_name]
        global_context['website']['page_url'] = f'{pass_context.site_url}/'
        global_context['website']['canonical_url'] = f'{pass_context.site_url}/'
        template_name, template = resolver.template_for(DEFAULT)
        return emitter.emit(template, template_name, page_context, global_context, target)

    def generate_404(self, pass_context: PassContext, env, emitter: PageEmitter,
                     builder: ContextBuilder) -> bool:
        """Generate the error page (when the theme supports it)."""
        if not self.theme.create_404_page:
            return False
        written = self._single_page(pass_context, env, emitter, builder, '404',
                                    builder.error_page(), self.config.urls.error_page)
        self.logger.info("Building 404 page")
        return written

    def generate_search(self, pass_context: PassContext, env, emitter: PageEmitter,
                        builder: ContextBuilder) -> bool:
        """Generate the search page (when the theme supports it)."""
        if not self.theme.create_search_page:
            return False
        return self._single_page(pass_context, env, emitter, builder, 'search',
                                 builder.search(), self.config.urls.search_page)

    def generate_feeds(self, env, emitter: PageEmitter, builder: ContextBuilder) -> None:
        """Create the XML and JSON feed files."""
        for fmt in ('xml', 'json'):
            resolver = TemplateResolver('feed', env, extension=fmt)
            if not self._prepare(resolver):
                continue
            template_name, template = resolver.template_for(DEFAULT)
            context = builder.feed(self.config.feed_items)
            if emitter.emit(template, template_name, context, None, f'feed.{fmt}'):
                self.logger.info(f"Generating {fmt.upper()} feed")
