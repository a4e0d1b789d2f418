from __future__ import annotations

from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


class MarieError(Exception):
    """Base class for every error that terminates a build."""


class ConfigError(MarieError):
    def __init__(self, path: PathLike, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"Failed to load configuration {self.path}: {message}")


class ContentError(MarieError):
    """A single content item could not be loaded or transformed."""

    kind = "Content error"

    def __init__(self, path: PathLike, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.kind} in {self.path}: {message}")


class ContentIOError(ContentError):
    kind = "I/O error"


class MetadataError(ContentError):
    kind = "Invalid metadata"


class MarkdownError(ContentError):
    kind = "Markdown conversion failed"


class HighlightError(ContentError):
    kind = "Syntax highlighting failed"


class OutputPathError(ContentError):
    kind = "Output path escapes the output directory"


class OutputCollisionError(ContentError):
    kind = "Output path collision"


class StaticError(MarieError):
    def __init__(self, path: PathLike, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"Failed to process static file {self.path}: {message}")


class TemplateError(MarieError):
    def __init__(self, name: str, message: str) -> None:
        self.name = name
        self.message = message
        super().__init__(f"Failed to render template {name}: {message}")


class WriteError(MarieError):
    def __init__(self, path: PathLike, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"Failed to write {self.path}: {message}")


def error_chain(exc: BaseException) -> list[str]:
    """Return the message of ``exc`` followed by each chained cause."""
    messages = []
    seen = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        messages.append(str(current) or current.__class__.__name__)
        current = current.__cause__
    return messages
