"""cpp2ls exception hierarchy.

All exceptions inherit from Cpp2lsError so callers can catch the base
class when they want to handle any cpp2ls-specific failure uniformly.
"""

from __future__ import annotations


class Cpp2lsError(Exception):
    """Base exception for all cpp2ls errors."""


class ConfigError(Cpp2lsError):
    """Configuration-related errors (invalid values, unknown extensions, etc.)."""


class FrontendError(Cpp2lsError):
    """The front-end could not be run on a piece of source text.

    Raised when the text cannot be materialized for parsing. Syntax and
    semantic problems are never raised; they are reported as diagnostics.
    """


class IndexerError(Cpp2lsError):
    """Errors during workspace scanning or file indexing."""


class CacheError(Cpp2lsError):
    """The on-disk index cache could not be written."""

