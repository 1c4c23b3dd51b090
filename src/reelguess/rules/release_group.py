from __future__ import annotations

import re

from ..config import RuleConfiguration
from ..models import Match, ParseContext
from ..utils import normalize_token
from .base import RegexPattern, RulePriority, Rule, has_letter, keep_only, select_by_priority

TAG_RANK = {"brackets": 4, "end": 3, "prefix": 2, "parentheses": 1, "braces": 1}

# Enclosure tag and confidence by opening marker; unlisted markers count as brackets.
_ENCLOSURES = {"[": ("brackets", 0.9), "(": ("parentheses", 0.8), "{": ("braces", 0.8)}


def enclosure_patterns(starts: tuple[str, ...], ends: tuple[str, ...]) -> tuple[RegexPattern, ...]:
    """Group patterns for each ``start``/``end`` marker pair.

    Every pair yields a trailing ``<start>GROUP<end>`` pattern; square brackets also
    yield the leading ``[GROUP]`` form.
    """
    patterns: list[RegexPattern] = []
    for start, end in zip(starts, ends):
        tag, confidence = _ENCLOSURES.get(start, ("brackets", 0.9))
        opening, closing = re.escape(start), re.escape(end)
        body = f"([^{opening}{closing}]+)"
        patterns.append(RegexPattern(f"{opening}{body}{closing}$", "release_group", confidence, frozenset({tag})))
        if start == "[":
            patterns.append(RegexPattern(f"^{opening}{body}{closing}", "release_group", 0.8, frozenset({"prefix"})))
    return tuple(patterns)


class ReleaseGroupRule(Rule):
    """Release group, usually ``-GROUP`` or ``[GROUP]`` right before the extension.

    Runs after the technical rules so a bracketed codec or resolution is already
    claimed and cannot be mistaken for a group. Enclosing markers come from the
    ``group_markers`` table.
    """

    name = "ReleaseGroupRule"
    priority = RulePriority.LOW + 10
    properties = ("release_group",)

    def __init__(self, configuration: RuleConfiguration) -> None:
        markers = configuration.group_markers
        self.patterns = (
            RegexPattern(r"-([a-z0-9_@]+)$", "release_group", 0.85, frozenset({"end"})),
            *enclosure_patterns(markers.get("start", ()), markers.get("end", ())),
        )
        technical: set[str] = {normalize_token(word) for word in configuration.release_group_false_positives}
        for table in (
            configuration.video_codecs,
            configuration.sources,
            configuration.screen_sizes,
            configuration.audio_codecs,
        ):
            for canonical, words in table.items():
                technical.add(normalize_token(canonical))
                technical.update(normalize_token(word) for word in words)
        for extensions in configuration.containers.values():
            technical.update(extensions)
        self.technical = frozenset(technical)

    def _is_valid(self, match: Match, context: ParseContext) -> bool:
        value = match.value
        if len(value) < 2 or not has_letter(value):
            return False
        if normalize_token(value) in self.technical:
            return False
        return not context.is_claimed(match.span)

    def matches(self, context: ParseContext) -> list[Match]:
        found: list[Match] = []
        for pattern in self.patterns:
            for match in pattern.extract(self.name, context):
                if self._is_valid(match, context):
                    found.append(match)
        return found

    @staticmethod
    def _rank(match: Match) -> int:
        return max((TAG_RANK.get(tag, 0) for tag in match.tags), default=0)

    def post_process(self, matches: list[Match], context: ParseContext) -> list[Match]:
        groups = [match for match in matches if match.property == "release_group"]
        if len(groups) < 2:
            return matches
        return keep_only(matches, "release_group", [select_by_priority(groups, self._rank)])
