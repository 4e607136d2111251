"""
Template lookup, lazy compilation and per-entity variant resolution.
"""

import logging
from typing import Dict, Iterable, Tuple

from jinja2 import (ChoiceLoader, Environment, FileSystemLoader, PackageLoader, Template,
                    TemplateNotFound, TemplateSyntaxError)

from .errors import CompileError
from .paginator import pagination_links
from .theme import DEFAULT

logger = logging.getLogger('Rendition.TemplateResolver')


def create_environment(theme_dir: str) -> Environment:
    """
    Jinja2 environment for a theme.

    Templates are looked up in the theme first; feed templates the theme does
    not ship come from the package defaults.
    """
    env = Environment(loader=ChoiceLoader([
        FileSystemLoader(theme_dir),
        PackageLoader('rendition_pkg', 'defaults'),
    ]))
    env.globals['pagination_links'] = pagination_links
    return env


class TemplateResolver:
    """
    Resolves and compiles the templates of one listing kind for one pass.

    Compiled templates are memoised by variant slug, so every entity using
    the same variant shares one compiled template.
    """

    def __init__(self, base_name: str, env: Environment, amp: bool = False,
                 extension: str = 'html'):
        self.base_name = base_name
        self.env = env
        self.amp = amp
        self.extension = extension
        self._compiled: Dict[str, Template] = {}

    @staticmethod
    def resolve_slug(override: str, declared: Iterable[str]) -> str:
        """Return the override when the theme declares it, DEFAULT otherwise."""
        if override and override != DEFAULT and override in declared:
            return override
        return DEFAULT

    def template_name(self, slug: str = DEFAULT) -> str:
        prefix = 'amp-' if self.amp else ''
        if slug == DEFAULT:
            return f'{prefix}{self.base_name}.{self.extension}'
        return f'{prefix}{self.base_name}-{slug}.{self.extension}'

    def compile(self, slug: str = DEFAULT) -> Template:
        """
        Compile a variant once and keep it for the rest of the pass.

        Raises:
            CompileError: if the template file is missing or cannot be parsed
        """
        if slug in self._compiled:
            return self._compiled[slug]

        name = self.template_name(slug)
        try:
            template = self.env.get_template(name)
        except TemplateNotFound:
            raise CompileError(name, missing=True)
        except TemplateSyntaxError as e:
            raise CompileError(name, f"line {e.lineno}: {e.message}")

        logger.debug(f"Compiled template {name}")
        self._compiled[slug] = template
        return template

    def prepare(self, slugs: Iterable[str] = ()) -> None:
        """
        Compile DEFAULT and, outside AMP mode, every requested variant.

        Any failure propagates, so a kind with a broken variant renders nothing.
        """
        self.compile(DEFAULT)
        if self.amp:
            return
        for slug in slugs:
            if slug and slug != DEFAULT:
                self.compile(slug)

    def is_compiled(self, slug: str) -> bool:
        return slug in self._compiled

    def template_for(self, slug: str) -> Tuple[str, Template]:
        """
        Return ``(template name, template)`` for an already resolved slug.

        A slug without a compiled template (AMP mode only compiles DEFAULT)
        falls back to DEFAULT instead of failing.
        """
        if slug not in self._compiled:
            slug = DEFAULT
        return self.template_name(slug), self.compile(slug)
