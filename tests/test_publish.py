"""Tests for static file copies, the stylesheet and the sitemap."""

import os
import sys
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rendition_pkg.errors import ErrorLog
from rendition_pkg.publish import (copy_files, format_xml_sitemap_entry, generate_css,
                                   generate_xml_sitemap)
from rendition_pkg.templates import create_environment
from rendition_pkg.theme import load_theme


class TestCopyFiles:
    def test_copies_root_files_assets_and_media(self, site_dir, theme_dir, output_dir):
        output_dir.mkdir()
        copy_files(str(site_dir), str(theme_dir), 'assets', str(output_dir))

        assert (output_dir / 'robots.txt').is_file()
        assert (output_dir / 'assets' / 'css' / 'main.css').is_file()
        assert (output_dir / 'media' / 'posts' / '2' / 'cover.jpg').read_bytes() == b'jpeg'


class TestGenerateCss:
    def test_override_error_is_logged(self, site_dir, theme_dir, output_dir):
        (theme_dir / 'visual-override.css').write_text('{{ options.missing.value }}')
        theme = load_theme(str(theme_dir))
        error_log = ErrorLog()

        assert generate_css(create_environment(str(theme_dir)), theme, str(site_dir),
                            str(output_dir), False, error_log)

        assert error_log.entries[0].message == 'An error (1003) occurred during preparing CSS overrides.'

    def test_without_override_template(self, site_dir, theme_dir, output_dir):
        (theme_dir / 'visual-override.css').unlink()
        theme = load_theme(str(theme_dir))
        error_log = ErrorLog()

        generate_css(create_environment(str(theme_dir)), theme, str(site_dir),
                     str(output_dir), False, error_log)

        assert error_log.ok
        css = (output_dir / 'assets' / 'css' / 'style.css').read_text()
        assert css == 'body { color: black; }\n.custom { margin: 0; }\n'


class TestSitemap:
    def test_entry_format(self):
        entry = format_xml_sitemap_entry('https://example.com/a&b/', '2024-02-03 10:00:00')

        assert '<loc>https://example.com/a&amp;b/</loc>' in entry
        assert '<lastmod>2024-02-03</lastmod>' in entry

    def test_entry_without_lastmod(self):
        assert '<lastmod>' not in format_xml_sitemap_entry('https://example.com/', '')

    def test_write_failure(self, output_dir):
        error_log = ErrorLog()

        with patch('builtins.open', side_effect=OSError('disk full')):
            assert not generate_xml_sitemap([('https://example.com/', '')], str(output_dir), error_log)

        assert error_log.entries[0].message == 'File sitemap.xml could not be saved.'
