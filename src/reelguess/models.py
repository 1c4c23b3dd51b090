"""Match, context and result models shared by rules, engine and assembler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Iterable, Optional, TYPE_CHECKING

from .errors import ParseError
from .utils import file_extension

if TYPE_CHECKING:  # pragma: no cover
    from .config import RuleConfiguration
    from .patterns import PatternCache


class MediaType(str, Enum):
    MOVIE = "movie"
    EPISODE = "episode"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class Match:
    """One candidate extraction produced by a single rule execution.

    Attributes:
        property: Property identifier (e.g. "video_codec")
        value: Canonical value after formatting (e.g. "H.264" for "x264")
        span: Half-open character range into the parsed filename
        confidence: Rule-declared confidence in [0, 1]
        rule_id: Name of the producing rule
        tags: Provenance labels used by post-processing (e.g. "season_episode")
    """

    property: str
    value: str
    span: tuple[int, int]
    confidence: float
    rule_id: str
    tags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Match confidence must be within [0, 1], got {self.confidence}")
        start, end = self.span
        if start < 0 or end < start:
            raise ValueError(f"Invalid match span {self.span!r}")
        object.__setattr__(self, "span", (int(start), int(end)))
        object.__setattr__(self, "tags", frozenset(self.tags))

    @property
    def start(self) -> int:
        return self.span[0]

    @property
    def end(self) -> int:
        return self.span[1]

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def overlaps(self, span: tuple[int, int]) -> bool:
        return self.span[0] < span[1] and span[0] < self.span[1]


@dataclass(frozen=True, slots=True)
class ParseOptions:
    """Per-call options.

    ``exclude`` wins over ``include_only`` when both name the same property.
    """

    media_type: Optional[MediaType] = None
    include_only: Optional[frozenset[str]] = None
    exclude: frozenset[str] = frozenset()
    allowed_languages: Optional[frozenset[str]] = None
    allowed_countries: Optional[frozenset[str]] = None
    output_input_string: bool = False

    def __post_init__(self) -> None:
        if self.media_type is not None and not isinstance(self.media_type, MediaType):
            object.__setattr__(self, "media_type", MediaType(str(self.media_type).lower()))
        object.__setattr__(self, "exclude", frozenset(self.exclude or ()))
        for name in ("include_only", "allowed_languages", "allowed_countries"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, frozenset(value))

    def should_process(self, property: str) -> bool:
        if property in self.exclude:
            return False
        if self.include_only is not None:
            return property in self.include_only
        return True


class ParseContext:
    """State for a single parse call.

    The original text, options and configuration are read-only; ``matches`` grows as rules
    run so that later rules can see what earlier rules claimed.
    """

    __slots__ = ("_original", "options", "configuration", "patterns", "matches", "_suffix", "_extension")

    def __init__(
        self,
        original: str,
        options: ParseOptions,
        configuration: RuleConfiguration,
        patterns: PatternCache,
    ) -> None:
        self._original = original
        self.options = options
        self.configuration = configuration
        self.patterns = patterns
        self.matches: list[Match] = []
        self._suffix = self._detect_suffix()
        self._extension = self._suffix if self._suffix and configuration.container_kind(self._suffix) else None

    def _detect_suffix(self) -> Optional[str]:
        extension = file_extension(self._original)
        if extension is None:
            return None
        if self.configuration.container_kind(extension) is None and self.configuration.is_keyword(extension):
            return None
        return extension

    @property
    def original(self) -> str:
        return self._original

    @property
    def extension(self) -> Optional[str]:
        """Known container extension, lower-cased, or None."""
        return self._extension

    @property
    def suffix(self) -> Optional[str]:
        """Trailing extension stripped from the stem, known or not, lower-cased."""
        return self._suffix

    @property
    def stem(self) -> str:
        """The input without its trailing extension.

        Unknown extensions are stripped too, unless they are a vocabulary word such as
        ``HDTV`` or ``x264``. The stem is a prefix of the input, so spans found in it are
        valid input spans.
        """
        if self._suffix is None:
            return self._original
        return self._original[: -(len(self._suffix) + 1)]

    def add_match(self, match: Match) -> None:
        if match.end > len(self._original):
            raise ValueError(
                f"Match span {match.span!r} exceeds input length {len(self._original)}"
            )
        self.matches.append(match)

    def matches_for(self, property: str, *, exclude_rule: Optional[str] = None) -> list[Match]:
        return [
            match
            for match in self.matches
            if match.property == property and (exclude_rule is None or match.rule_id != exclude_rule)
        ]

    def has_match(self, property: str, *, exclude_rule: Optional[str] = None) -> bool:
        return bool(self.matches_for(property, exclude_rule=exclude_rule))

    def is_claimed(self, span: tuple[int, int], *, ignore: Iterable[str] = ()) -> bool:
        """Return True when an earlier match (outside ``ignore`` properties) overlaps ``span``."""
        ignored = set(ignore)
        return any(match.overlaps(span) for match in self.matches if match.property not in ignored)


@dataclass(slots=True)
class ParsedRecord:
    """Typed result of a parse.

    Single-valued properties hold at most one value; multi-valued ones hold ordered,
    duplicate-free lists.
    """

    title: Optional[str] = None
    year: Optional[int] = None
    media_type: MediaType = MediaType.UNKNOWN
    season: Optional[int] = None
    episode: Optional[int] = None
    episode_title: Optional[str] = None
    video_codec: Optional[str] = None
    video_profile: Optional[str] = None
    audio_codec: Optional[str] = None
    audio_channels: Optional[str] = None
    audio_profile: Optional[str] = None
    screen_size: Optional[str] = None
    source: Optional[str] = None
    release_group: Optional[str] = None
    container: Optional[str] = None
    mimetype: Optional[str] = None
    language: list[str] = field(default_factory=list)
    subtitle_language: list[str] = field(default_factory=list)
    country: list[str] = field(default_factory=list)
    edition: list[str] = field(default_factory=list)
    other: list[str] = field(default_factory=list)
    episode_details: list[str] = field(default_factory=list)
    confidence: float = 0.0
    input_string: Optional[str] = None
    processing_time: float = field(default=0.0, compare=False)
    matches: tuple[Match, ...] = field(default=(), repr=False)

    @property
    def is_movie(self) -> bool:
        return self.media_type is MediaType.MOVIE

    @property
    def is_episode(self) -> bool:
        return self.media_type is MediaType.EPISODE

    @property
    def season_episode(self) -> Optional[str]:
        if self.season is None or self.episode is None:
            return None
        return f"S{self.season:02d}E{self.episode:02d}"

    def detected_properties(self) -> list[str]:
        return [name for name, accessor in PROPERTY_REGISTRY.items() if accessor.is_populated(self)]

    def to_dict(self, *, include_timing: bool = False) -> dict[str, Any]:
        """Convert populated properties to a JSON-serializable dictionary."""
        data: dict[str, Any] = {}
        for name in self.detected_properties():
            value = PROPERTY_REGISTRY[name].get(self)
            if isinstance(value, MediaType):
                value = value.value
            elif isinstance(value, list):
                value = list(value)
            data[name] = value
        data["confidence"] = round(self.confidence, 4)
        if self.input_string is not None:
            data["input_string"] = self.input_string
        if include_timing:
            data["processing_time"] = self.processing_time
        return data


@dataclass(frozen=True, slots=True)
class PropertyAccessor:
    """Static description of one result slot."""

    name: str
    kind: str
    get: Callable[[ParsedRecord], Any]

    @property
    def multi_valued(self) -> bool:
        return self.kind == "list"

    def is_populated(self, record: ParsedRecord) -> bool:
        value = self.get(record)
        if value is None:
            return False
        if isinstance(value, list):
            return bool(value)
        if isinstance(value, MediaType):
            return value is not MediaType.UNKNOWN
        return True


def _accessor(name: str, kind: str) -> PropertyAccessor:
    return PropertyAccessor(name=name, kind=kind, get=attrgetter(name))


PROPERTY_REGISTRY: dict[str, PropertyAccessor] = {
    accessor.name: accessor
    for accessor in (
        _accessor("title", "str"),
        _accessor("year", "int"),
        _accessor("media_type", "type"),
        _accessor("season", "int"),
        _accessor("episode", "int"),
        _accessor("episode_title", "str"),
        _accessor("video_codec", "str"),
        _accessor("video_profile", "str"),
        _accessor("audio_codec", "str"),
        _accessor("audio_channels", "str"),
        _accessor("audio_profile", "str"),
        _accessor("screen_size", "str"),
        _accessor("source", "str"),
        _accessor("release_group", "str"),
        _accessor("container", "str"),
        _accessor("mimetype", "str"),
        _accessor("language", "list"),
        _accessor("subtitle_language", "list"),
        _accessor("country", "list"),
        _accessor("edition", "list"),
        _accessor("other", "list"),
        _accessor("episode_details", "list"),
    )
}

MULTI_VALUED_PROPERTIES = frozenset(name for name, accessor in PROPERTY_REGISTRY.items() if accessor.multi_valued)


@dataclass(frozen=True, slots=True)
class ParseOutcome:
    """Tagged success/failure value for one filename."""

    filename: str
    record: Optional[ParsedRecord] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None

    def unwrap(self) -> ParsedRecord:
        if self.error is not None:
            raise self.error
        if self.record is None:
            raise ParseError("Outcome carries neither a record nor an error", self.filename)
        return self.record

    @classmethod
    def success(cls, filename: str, record: ParsedRecord) -> ParseOutcome:
        return cls(filename=filename, record=record)

    @classmethod
    def failure(cls, filename: str, error: ParseError) -> ParseOutcome:
        return cls(filename=filename, error=error)
