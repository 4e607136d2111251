"""
Rendition - renders a static website from a content database and a theme.

Content (posts, tags, authors, menus) is read from a SQLite database and
rendered through the Jinja2 templates of a theme. Sites can optionally get an
AMP twin rendered under ``<output>/amp``.
"""

__version__ = "1.0.0"

from .errors import CompileError, ConfigError, DataError, ErrorLog, RenderError
from .pipeline import GenerationPipeline, PassContext
from .settings import RenditionSettings, SiteConfig

__all__ = [
    'GenerationPipeline', 'PassContext', 'RenditionSettings', 'SiteConfig',
    'ErrorLog', 'ConfigError', 'CompileError', 'RenderError', 'DataError',
]
