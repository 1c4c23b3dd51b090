"""Rule contract and the pattern descriptors rules are built from.

A rule is a small bundle: a name, a priority, the properties it may produce, an
applicability check and a matching function. Rules that also need to reshape the
full match stream after extraction implement :class:`PostProcessor`.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, Iterable, Optional, Protocol, Sequence, Union, runtime_checkable

from ..models import Match, ParseContext

Formatter = Callable[[str], str]
Validator = Callable[[str], bool]

WORD_LEFT = r"(?<![a-z0-9])"
WORD_RIGHT = r"(?![a-z0-9])"



class RulePriority:
    VERY_LOW = 10
    LOW = 25
    NORMAL = 50
    HIGH = 75
    VERY_HIGH = 90
    CRITICAL = 100


class Rule:
    """Base extraction rule."""

    name: str = "Rule"
    priority: int = RulePriority.NORMAL
    properties: tuple[str, ...] = ()

    def should_apply(self, context: ParseContext) -> bool:
        """False once every declared property has been filtered out by the options."""
        return any(context.options.should_process(prop) for prop in self.properties)

    def matches(self, context: ParseContext) -> list[Match]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.name} priority={self.priority} properties={list(self.properties)}>"


@runtime_checkable
class PostProcessor(Protocol):
    def post_process(self, matches: list[Match], context: ParseContext) -> list[Match]:
        ...


# Formatters receive only the captured text.


def to_integer(value: str) -> str:
    return str(int(value))


def constant(result: str) -> Formatter:
    def _format(_: str) -> str:
        return result

    return _format


def is_media_year(value: str) -> bool:
    """Year within [1888, current year + 2]."""
    if not value.isdigit() or len(value) != 4:
        return False
    return 1888 <= int(value) <= dt.date.today().year + 2


def is_season_number(value: str) -> bool:
    return value.isdigit() and 0 <= int(value) <= 99


def is_episode_number(value: str) -> bool:
    return value.isdigit() and 0 <= int(value) <= 999


def has_letter(value: str) -> bool:
    return any(char.isalpha() for char in value)


@dataclass(frozen=True)
class RegexPattern:
    """A regular expression producing matches for one property.

    The value comes from ``group`` (default: group 1 when the pattern captures, else the
    whole hit); the match span is that group's span.
    """

    pattern: str
    property: str
    confidence: float = 1.0
    tags: frozenset[str] = frozenset()
    formatter: Optional[Formatter] = None
    validator: Optional[Validator] = None
    group: Optional[int] = None
    flags: int = re.IGNORECASE

    def extract(self, rule_name: str, context: ParseContext) -> list[Match]:
        text = context.stem
        found: list[Match] = []
        for hit in context.patterns.find_all(self.pattern, text, self.flags):
            index = self.group if self.group is not None else (1 if hit.groups else 0)
            raw = hit.group(index)
            if raw is None:
                continue
            if self.validator is not None and not self.validator(raw):
                continue
            value = self.formatter(raw) if self.formatter is not None else raw
            if not value:
                continue
            found.append(
                Match(
                    property=self.property,
                    value=value,
                    span=hit.group_span(index),
                    confidence=self.confidence,
                    rule_id=rule_name,
                    tags=self.tags,
                )
            )
        return found


def is_case_sensitive(word: str) -> bool:
    """Short alphabetic forms (``TS``, ``AVC``, ``ENG``) only match as spelled."""
    return len(word) <= 3 and word.isalpha()


def keyword_regex(word: str, *, strict_separators: bool = False) -> str:
    """Translate a surface form into a regex body.

    Spaces match any run of separators, ``.`` and ``-`` match an optional separator
    (a mandatory ``.`` or space when ``strict_separators``), apostrophes are optional.
    """
    optional = r"[\s.]" if strict_separators else r"[\s._-]?"
    parts: list[str] = []
    for char in word:
        if char == " ":
            parts.append(r"[\s._-]+")
        elif char in ".-":
            parts.append(optional)
        elif char == "'":
            parts.append("'?")
        else:
            parts.append(re.escape(char))
    body = "".join(parts)
    if is_case_sensitive(word):
        return f"(?-i:{body})"
    return body


@dataclass(frozen=True)
class KeywordPattern:
    """A set of surface forms that all canonicalize to ``value``."""

    words: tuple[str, ...]
    property: str
    value: str
    confidence: float = 0.9
    tags: frozenset[str] = frozenset()
    left: str = WORD_LEFT
    right: str = WORD_RIGHT
    strict_separators: bool = False

    @cached_property
    def regex(self) -> RegexPattern:
        alternatives = [
            keyword_regex(word, strict_separators=self.strict_separators)
            for word in sorted(self.words, key=len, reverse=True)
        ]
        return RegexPattern(
            pattern=f"{self.left}(?:{'|'.join(alternatives)}){self.right}",
            property=self.property,
            confidence=self.confidence,
            tags=self.tags,
            formatter=constant(self.value),
            group=0,
        )

    def extract(self, rule_name: str, context: ParseContext) -> list[Match]:
        return self.regex.extract(rule_name, context)


Pattern = Union[RegexPattern, KeywordPattern]


def keyword_patterns(
    table: Mapping[str, Sequence[str]] | Iterable[tuple[str, Sequence[str]]],
    property: str,
    *,
    confidence: float = 0.9,
    skip: Iterable[str] = (),
    **options: object,
) -> list[KeywordPattern]:
    """Build one keyword pattern per canonical value of a synonym table."""
    skipped = {word.lower() for word in skip}
    items = table.items() if isinstance(table, Mapping) else table
    patterns: list[KeywordPattern] = []
    for canonical, words in items:
        usable = tuple(word for word in words if word and word.lower() not in skipped)
        if not usable:
            continue
        patterns.append(
            KeywordPattern(
                words=usable,
                property=property,
                value=canonical,
                confidence=confidence,
                **options,  # type: ignore[arg-type]
            )
        )
    return patterns


class PatternRule(Rule):
    """Rule whose matches come from a fixed list of pattern descriptors."""

    patterns: tuple[Pattern, ...] = ()

    def matches(self, context: ParseContext) -> list[Match]:
        found: list[Match] = []
        for pattern in self.patterns:
            found.extend(pattern.extract(self.name, context))
        return drop_overlaps(found)


def drop_overlaps(matches: Sequence[Match]) -> list[Match]:
    """Keep the longest of overlapping matches for the same property.

    Ties go to the higher confidence, then to the earlier pattern. Survivors are
    returned in input order.
    """
    ranked = sorted(
        enumerate(matches),
        key=lambda item: (-(item[1].end - item[1].start), -item[1].confidence, item[0]),
    )
    kept: list[tuple[int, Match]] = []
    for index, match in ranked:
        if any(other.property == match.property and other.overlaps(match.span) for _, other in kept):
            continue
        kept.append((index, match))
    return [match for _, match in sorted(kept, key=lambda item: (item[1].start, item[0]))]


def select_by_priority(matches: Sequence[Match], rank: Callable[[Match], int]) -> Optional[Match]:
    """Pick one match: best confidence per canonical value, then highest rank."""
    best: dict[str, Match] = {}
    for match in matches:
        current = best.get(match.value)
        if current is None or match.confidence > current.confidence:
            best[match.value] = match
    if not best:
        return None
    return max(best.values(), key=lambda match: (rank(match), match.confidence))


def keep_only(matches: Sequence[Match], property: str, selected: Iterable[Match]) -> list[Match]:
    """Drop every ``property`` match that is not one of ``selected``; order is preserved."""
    chosen = [match for match in selected if match is not None]
    return [
        match
        for match in matches
        if match.property != property or any(match is keep for keep in chosen)
    ]
