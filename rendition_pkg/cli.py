#!/usr/bin/env python3
"""
Command-line interface for Rendition - site renderer.
"""

import os
import sys
import argparse
import logging
import shutil
import time
from datetime import datetime

from .errors import ConfigError
from .pipeline import GenerationPipeline
from .settings import RenditionSettings, SiteConfig
from .store import initialize_schema


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total pages generated:",
            "Building index page",
            "Building 404 page",
            "Generating AMP pages",
            "Generating XML feed",
            "Generating JSON feed",
            "Generating XML sitemap",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def setup_logging() -> logging.Logger:
    """Set up logging configuration."""
    logger = logging.getLogger('Rendition')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        # Console handler with filter
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console_handler)

        # File handler for all logs
        logs_dir = os.path.join(os.getcwd(), 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = datetime.now().strftime('rendition_%Y-%m-%d_%H-%M-%S.log')
        file_handler = logging.FileHandler(os.path.join(logs_dir, log_filename))
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

    return logger


def create_starter_structure(input_dir: str) -> None:
    """Create the input directory with an empty database and the default theme."""
    for directory in ('media', 'root-files', 'config', 'themes'):
        dir_path = os.path.join(input_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {dir_path}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {dir_path}")

    db_path = os.path.join(input_dir, 'db.sqlite')
    if os.path.exists(db_path):
        print(f"Database already exists: {db_path}")
    else:
        initialize_schema(db_path)
        print(f"Created database: {db_path}")

    theme_source = os.path.join(os.path.dirname(__file__), 'themes', 'default')
    theme_dest = os.path.join(input_dir, 'themes', 'default')
    if os.path.exists(theme_dest):
        print(f"Theme already exists: {theme_dest}")
    else:
        shutil.copytree(theme_source, theme_dest)
        print(f"Created theme: {theme_dest}")


def print_progress(progress: int, message: str) -> None:
    logging.getLogger('Rendition').debug(f"[{progress:3d}%] {message}")


def main(argv=None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='Rendition - Site Renderer')
    parser.add_argument('--input', type=str,
                        help='Input directory with the database, media and themes')
    parser.add_argument('--output', type=str,
                        help='Output directory for the rendered site')
    parser.add_argument('--database', type=str,
                        help='Path to the SQLite content database')
    parser.add_argument('--theme', type=str, help='Theme directory name under <input>/themes')
    parser.add_argument('--domain', type=str, help='Site URL used for absolute links')
    parser.add_argument('--language', type=str, help='Site language code')
    parser.add_argument('--amp', dest='amp_enabled', action='store_const', const=True,
                        help='Also render AMP pages under <output>/amp')
    parser.add_argument('--no-clean-urls', dest='clean_urls', action='store_const', const=False,
                        help='Write posts as <slug>.html instead of <slug>/index.html')
    parser.add_argument('--minify', dest='css_compression', action='store_const', const=True,
                        help='Minify the generated stylesheet')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and input directory')
    parser.add_argument('--version', action='version', version='%(prog)s 1.0.0')

    args = parser.parse_args(argv)

    settings_loader = RenditionSettings()

    # Handle init command
    if args.init:
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter input structure...")
        create_starter_structure(args.input or RenditionSettings.DEFAULT_SETTINGS['input'])
        print("\nEdit the configuration file and theme, then run 'rendition' to render your site.")
        return

    logger = setup_logging()
    overall_start_time = time.time()

    try:
        settings_loader.load_settings()
        args_dict = {k: v for k, v in vars(args).items() if v is not None}
        final_settings = settings_loader.merge_with_args(args_dict)
        if final_settings['output'].startswith('~/'):
            final_settings['output'] = os.path.expanduser(final_settings['output'])

        config = SiteConfig.from_settings(final_settings)
        pipeline = GenerationPipeline(config, progress=print_progress)
        error_log = pipeline.run()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    total_time = time.time() - overall_start_time
    logger.info(f"Site build completed in {total_time:.6f} seconds.")

    if pipeline.warnings:
        logger.info(f"Content warnings: {len(pipeline.warnings)}")

    if not error_log.ok:
        for entry in error_log:
            print(f"Error: {entry.message}", file=sys.stderr)
            if entry.detail:
                print(f"  {entry.detail}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
