"""
Publishing helpers used after the pages are rendered: static file copies,
the stylesheet and the XML sitemap.
"""

import logging
import os
import shutil
from typing import Iterable, Tuple
from xml.sax.saxutils import escape

import csscompressor
from jinja2 import TemplateNotFound, TemplateSyntaxError

from .errors import ErrorLog

logger = logging.getLogger('Rendition.Publish')


def copy_files(input_dir: str, theme_dir: str, assets_path: str, output_dir: str) -> None:
    """Copy root files, theme assets and media into the output directory."""
    root_files = os.path.join(input_dir, 'root-files')
    if os.path.isdir(root_files):
        for item in sorted(os.listdir(root_files)):
            source = os.path.join(root_files, item)
            if os.path.isfile(source):
                shutil.copy2(source, os.path.join(output_dir, item))

    theme_assets = os.path.join(theme_dir, assets_path)
    if os.path.isdir(theme_assets):
        shutil.copytree(theme_assets, os.path.join(output_dir, assets_path), dirs_exist_ok=True)

    media_dir = os.path.join(input_dir, 'media')
    if os.path.isdir(media_dir):
        shutil.copytree(media_dir, os.path.join(output_dir, 'media'), dirs_exist_ok=True)

    logger.debug(f"Copied static files to {output_dir}")


def generate_css(env, theme, input_dir: str, output_dir: str, compress: bool,
                 error_log: ErrorLog) -> bool:
    """
    Build ``<assets>/css/style.css`` from the theme's main.css, the optional
    ``visual-override.css`` template rendered with the theme's custom options,
    and the site's custom CSS.
    """
    main_css_path = os.path.join(theme.directory, theme.assets_path, 'css', 'main.css')
    if not os.path.exists(main_css_path):
        logger.warning(f"Theme stylesheet {main_css_path} not found, skipping style.css")
        return False

    with open(main_css_path, 'r', encoding='utf-8') as f:
        style_css = f.read()

    try:
        override = env.get_template('visual-override.css')
    except TemplateNotFound:
        override = None
    except TemplateSyntaxError as e:
        override = None
        error_log.add("An error (1003) occurred during preparing CSS overrides.", str(e))

    if override is not None:
        try:
            style_css += override.render(options=dict(theme.custom_config))
        except Exception as e:
            error_log.add("An error (1003) occurred during preparing CSS overrides.", str(e))

    custom_css_path = os.path.join(input_dir, 'config', 'custom-css.css')
    if os.path.exists(custom_css_path):
        with open(custom_css_path, 'r', encoding='utf-8') as f:
            style_css += f.read()

    if compress:
        style_css = csscompressor.compress(style_css)

    css_dir = os.path.join(output_dir, theme.assets_path, 'css')
    os.makedirs(css_dir, exist_ok=True)
    style_path = os.path.join(css_dir, 'style.css')
    try:
        with open(style_path, 'w', encoding='utf-8') as f:
            f.write(style_css)
    except (IOError, OSError) as e:
        logger.error(f"Failed to write stylesheet {style_path}: {e}")
        error_log.add("File style.css could not be saved.", str(e))
        return False

    logger.debug(f"Generated stylesheet {style_path}")
    return True


def format_xml_sitemap_entry(url: str, lastmod: str) -> str:
    """Format a single sitemap entry."""
    entry = f'<url>\n<loc>{escape(url)}</loc>\n'
    if lastmod:
        entry += f'<lastmod>{escape(lastmod[:10])}</lastmod>\n'
    return entry + '</url>\n'


def generate_xml_sitemap(entries: Iterable[Tuple[str, str]], output_dir: str,
                         error_log: ErrorLog) -> bool:
    """Write sitemap.xml from ``(url, lastmod)`` pairs, in the given order."""
    sitemap_content = '''<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
'''
    for url, lastmod in entries:
        sitemap_content += format_xml_sitemap_entry(url, lastmod)
    sitemap_content += '</urlset>\n'

    sitemap_file = os.path.join(output_dir, 'sitemap.xml')
    try:
        with open(sitemap_file, 'w', encoding='utf-8') as f:
            f.write(sitemap_content)
        logger.info("Generating XML sitemap")
    except (IOError, OSError) as e:
        logger.error(f"Failed to write sitemap file {sitemap_file}: {e}")
        error_log.add("File sitemap.xml could not be saved.", str(e))
        return False

    return True
