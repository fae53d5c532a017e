"""Restload error hierarchy.

All project exceptions inherit from RestloadError, enabling:
- ``except RestloadError`` at top-level boundaries (CLI, HTTP handlers)
- Fine-grained catches deeper in the stack (``except SourceUnavailable``)

Hierarchy:
    RestloadError
    ├── ConfigError                 # invalid settings or config document
    ├── SourceUnavailable           # a file/URL could not be read
    ├── UnsupportedFormat           # unknown import format tag
    ├── MalformedDocument           # parsed, but invalid for its format
    ├── ConfigResolutionError       # auto-load config/data could not be obtained
    ├── ReadinessTimeout            # cache service never reported initialized
    └── CommitFailure               # workspace store rejected the batch

Only the last three abort an auto-load run; the others are recovered per source.
"""

from __future__ import annotations


class RestloadError(Exception):
    """Base class for all Restload errors."""


class ConfigError(RestloadError):
    pass


class SourceUnavailable(RestloadError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason


class UnsupportedFormat(RestloadError):
    pass


class MalformedDocument(RestloadError):
    pass


class ConfigResolutionError(RestloadError):
    pass


class ReadinessTimeout(ConfigResolutionError):
    pass


class CommitFailure(RestloadError):
    pass
