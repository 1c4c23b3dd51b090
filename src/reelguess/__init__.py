"""reelguess core package.

The package is organized into focused modules:

- **guesser**: ``Guesser``, the public entry point for single and batch parsing
- **engine**: rule ordering, extraction, post-processing and conflict resolution
- **assembler**: turning resolved matches into a ``ParsedRecord``
- **rules**: the built-in extraction rules and the pattern descriptors they use
- **config** / **validation**: YAML rule tables, overrides and schema checks
- **patterns**: the thread-safe compiled pattern cache
- **cli**: the ``reelguess`` command

Most modules are internal; ``from reelguess import Guesser`` covers common use.
"""

from .errors import (
    ConfigurationError,
    ConflictResolutionError,
    InvalidInputError,
    ParseError,
    RuleExecutionError,
)
from .guesser import AnalysisResult, Guesser
from .models import Match, MediaType, ParsedRecord, ParseOptions, ParseOutcome
from .version import __version__

__all__ = [
    "__version__",
    "AnalysisResult",
    "ConfigurationError",
    "ConflictResolutionError",
    "Guesser",
    "InvalidInputError",
    "Match",
    "MediaType",
    "ParseError",
    "ParseOptions",
    "ParseOutcome",
    "ParsedRecord",
    "RuleExecutionError",
]
