"""
Error types and the error log collected during a render run.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List


class RenditionError(Exception):
    """Base class for all Rendition errors."""


class ConfigError(RenditionError):
    """Invalid site settings or theme descriptor. The run never starts."""


class CompileError(RenditionError):
    """A template could not be loaded or compiled."""

    def __init__(self, template_name: str, detail: str = '', missing: bool = False):
        self.template_name = template_name
        self.detail = detail
        self.missing = missing
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.missing:
            return f"File {self.template_name} does not exist."
        return f"An error (1001) occurred during parsing {self.template_name} file."


class RenderError(RenditionError):
    """A compiled template raised while rendering one page."""

    def __init__(self, template_name: str, detail: str = ''):
        self.template_name = template_name
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return f"An error (1002) occurred during parsing {self.template_name} file."


class DataError(RenditionError):
    """Malformed or unusable per-entity data (a JSON column or a slug)."""


@dataclass(frozen=True)
class ErrorEntry:
    message: str
    detail: str = ''

    def as_dict(self) -> Dict[str, str]:
        return {'message': self.message, 'detail': self.detail}


class ErrorLog:
    """Append-only, ordered log of errors for one run."""

    def __init__(self):
        self._entries: List[ErrorEntry] = []

    def add(self, message: str, detail: str = '') -> ErrorEntry:
        entry = ErrorEntry(message, detail)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> List[ErrorEntry]:
        return list(self._entries)

    @property
    def ok(self) -> bool:
        return not self._entries

    def as_dicts(self) -> List[Dict[str, str]]:
        return [entry.as_dict() for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ErrorEntry]:
        return iter(self._entries)
