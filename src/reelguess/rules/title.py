"""Main title: the leading tokens up to the first stop boundary."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from ..config import RuleConfiguration
from ..models import Match, ParseContext
from ..utils import MINOR_WORDS, format_title, normalize_token, replace_separators
from .base import Rule, RulePriority, is_case_sensitive, is_media_year

# Titles before this year are often part of the name ("2001 A Space Odyssey").
MODERN_YEAR = 1980

AUDIO_WORDS = frozenset({"aac", "ac3", "dts", "flac", "mp3", "5.1", "7.1", "stereo", "mono"})

_MARKER_SHAPES = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"s\d{1,2}e\d{1,3}(?:e\d{1,3})*",
        r"\d{1,2}x\d{1,3}",
        r"s\d{1,2}",
        r"e\d{1,3}",
        r"ep\d{1,3}",
        r"\d{3,4}[pi]",
    )
)

# Absolute episode numbers of fansub releases: "Anime Title - 01 [1080p]".
_ABSOLUTE_EPISODE = re.compile(r"\s-\s+\d{1,3}(?:v\d)?(?![\w.])", re.IGNORECASE)


class TitleRule(Rule):
    """Title from the text before the first episode marker, technical keyword or year.

    The right-most valid year is the year boundary, so "2001.A.Space.Odyssey.1968"
    stops at 1968. A year older than 1980 only stops the title when no technical
    keyword follows it: "Metropolis.1927.720p" yields "Metropolis 1927".
    """

    name = "TitleRule"
    priority = RulePriority.VERY_LOW
    properties = ("title",)

    def __init__(self, configuration: RuleConfiguration) -> None:
        self.separators = configuration.separators
        exact: set[str] = set()
        normalized: set[str] = set()
        for table in (configuration.screen_sizes, configuration.sources, configuration.video_codecs):
            for canonical, words in table.items():
                for word in (canonical, *words):
                    if is_case_sensitive(word):
                        exact.add(word)
                    else:
                        normalized.add(normalize_token(word))
        self.exact_keywords = frozenset(exact)
        self.keywords = frozenset(normalized)
        markers = configuration.episodes.get("season_words", ()) + configuration.episodes.get("episode_words", ())
        self.marker_words = frozenset(word.lower() for word in markers)
        self.extensions = frozenset(
            extension for extensions in configuration.containers.values() for extension in extensions
        )

    def is_stop_token(self, tokens: Sequence[str], index: int) -> bool:
        token = tokens[index]
        if any(shape.fullmatch(token) for shape in _MARKER_SHAPES):
            return True
        if token.lower() in self.marker_words:
            return True
        if token in self.exact_keywords or normalize_token(token) in self.keywords:
            return True
        if index + 1 < len(tokens):
            return normalize_token(token + tokens[index + 1]) in self.keywords
        return False

    def stop_boundary(self, tokens: Sequence[str]) -> int:
        """Index of the first token that does not belong to the title."""
        keyword_index: Optional[int] = next(
            (index for index in range(len(tokens)) if self.is_stop_token(tokens, index)), None
        )
        year_index: Optional[int] = None
        for index, token in enumerate(tokens):
            if is_media_year(token):
                year_index = index

        candidates: list[int] = []
        if keyword_index is not None:
            candidates.append(keyword_index)
        if year_index is not None:
            later_stop = keyword_index is not None and keyword_index > year_index
            if int(tokens[year_index]) >= MODERN_YEAR or not later_stop:
                candidates.append(year_index)
        return min(candidates, default=len(tokens))

    def _is_title_token(self, tokens: Sequence[str], index: int, groups: frozenset[str]) -> bool:
        token = tokens[index]
        lowered = token.lower()
        if len(token) == 1 and lowered not in MINOR_WORDS:
            return False
        if lowered in AUDIO_WORDS or lowered in self.extensions:
            return False
        if index in (0, len(tokens) - 1) and token in groups:
            return False
        return True

    def matches(self, context: ParseContext) -> list[Match]:
        stem = context.stem
        absolute = _ABSOLUTE_EPISODE.search(stem)
        text = stem[: absolute.start()] if absolute else stem
        cleaned = replace_separators(text, self.separators)
        if not cleaned:
            return []
        tokens = cleaned.split(" ")
        boundary = self.stop_boundary(tokens)
        groups = frozenset(match.value for match in context.matches_for("release_group"))
        candidate = tokens[:boundary]
        words = [token for index, token in enumerate(candidate) if self._is_title_token(tokens, index, groups)]
        if not words:
            return []
        return [
            Match(
                property="title",
                value=format_title(" ".join(words)),
                span=(0, len(stem)),
                confidence=0.8,
                rule_id=self.name,
                tags=frozenset({"extracted"}),
            )
        ]

    def post_process(self, matches: list[Match], context: ParseContext) -> list[Match]:
        titles = [match for match in matches if match.property == "title"]
        if len(titles) < 2:
            return matches
        best = max(titles, key=lambda match: (len(match.value), match.confidence))
        return [match for match in matches if match.property != "title" or match is best]
