from __future__ import annotations

import re
from dataclasses import replace
from typing import Mapping, Optional, Sequence

from ..config import RuleConfiguration
from ..models import Match, ParseContext
from .base import Rule, RulePriority, drop_overlaps, keyword_patterns


def _alternation(words: Sequence[str]) -> str:
    return "|".join(re.escape(word) for word in sorted(words, key=len, reverse=True))


def _is_allowed(value: str, allowed: Optional[frozenset[str]], table: Mapping[str, Sequence[str]]) -> bool:
    if allowed is None:
        return True
    wanted = {item.lower() for item in allowed}
    names = {value.lower(), *(word.lower() for word in table.get(value, ()))}
    return bool(wanted & names)


class LanguageRule(Rule):
    """Audio languages, subtitle languages and countries.

    A language next to a subtitle marker ("SUBS.French", "ENG.Subbed") is reported as a
    subtitle language. Words listed as common words are never read as codes.
    """

    name = "LanguageRule"
    priority = RulePriority.NORMAL
    properties = ("language", "subtitle_language", "country")

    def __init__(self, configuration: RuleConfiguration) -> None:
        self.configuration = configuration
        common = configuration.common_words
        self.language_patterns = keyword_patterns(configuration.languages, "language", confidence=0.8, skip=common)
        self.country_patterns = keyword_patterns(configuration.countries, "country", confidence=0.75, skip=common)
        self.prefix_pattern = None
        self.suffix_pattern = None
        if configuration.subtitle_prefixes:
            self.prefix_pattern = rf"(?<![a-z0-9])(?:{_alternation(configuration.subtitle_prefixes)})[\s._-]*$"
        if configuration.subtitle_suffixes:
            self.suffix_pattern = rf"^[\s._-]*(?:{_alternation(configuration.subtitle_suffixes)})(?![a-z0-9])"

    def _is_subtitle(self, match: Match, context: ParseContext) -> bool:
        if self.prefix_pattern and context.patterns.find_first(self.prefix_pattern, context.original[: match.start]):
            return True
        if self.suffix_pattern and context.patterns.find_first(self.suffix_pattern, context.stem[match.end :]):
            return True
        return False

    def matches(self, context: ParseContext) -> list[Match]:
        options = context.options
        found: list[Match] = []
        for pattern in self.language_patterns:
            for match in pattern.extract(self.name, context):
                if not _is_allowed(match.value, options.allowed_languages, self.configuration.languages):
                    continue
                if self._is_subtitle(match, context):
                    match = replace(match, property="subtitle_language", tags=match.tags | {"subtitle"})
                found.append(match)
        for pattern in self.country_patterns:
            for match in pattern.extract(self.name, context):
                if _is_allowed(match.value, options.allowed_countries, self.configuration.countries):
                    found.append(match)
        return drop_overlaps(found)
