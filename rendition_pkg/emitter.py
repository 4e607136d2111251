"""Render compiled templates and write the resulting pages."""

import logging
import os
from typing import Any, Dict, Optional

from .errors import ErrorLog, RenderError


class PageEmitter:
    """Writes one output file per successfully rendered page."""

    def __init__(self, output_dir: str, error_log: ErrorLog):
        self.output_dir = output_dir
        self.error_log = error_log
        self.logger = logging.getLogger('Rendition.PageEmitter')
        self.files_written = 0

    def render(self, template, template_name: str, page_context: Dict[str, Any],
               global_context: Optional[Dict[str, Any]] = None) -> str:
        """
        Render a template with the page context as its variables and the
        global context available as ``data``.

        Returns the rendered text, or '' after recording the error.
        """
        try:
            return template.render(page_context, data=global_context or {})
        except Exception as e:
            error = RenderError(template_name, str(e))
            self.logger.error(f"Render error in {template_name}: {e}")
            self.error_log.add(error.message, error.detail)
            return ''

    def write(self, target_path: str, content: str) -> bool:
        """Write ``content`` to ``target_path`` (relative, '/'-separated)."""
        output_file = os.path.join(self.output_dir, *target_path.split('/'))
        try:
            os.makedirs(os.path.dirname(output_file), exist_ok=True)
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(content)
        except (IOError, OSError) as e:
            self.logger.error(f"Failed to write {output_file}: {e}")
            self.error_log.add(f"File {target_path} could not be saved.", str(e))
            return False

        self.files_written += 1
        self.logger.debug(f"Generated {output_file}")
        return True

    def emit(self, template, template_name: str, page_context: Dict[str, Any],
             global_context: Optional[Dict[str, Any]], target_path: str) -> bool:
        """Render one page and write it. Nothing is written when rendering fails."""
        errors_before = len(self.error_log)
        output = self.render(template, template_name, page_context, global_context)
        if len(self.error_log) > errors_before:
            return False
        return self.write(target_path, output)
