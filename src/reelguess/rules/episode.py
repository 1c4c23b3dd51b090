"""Season and episode detection with paired-form precedence."""

from __future__ import annotations

import re

from ..models import Match, MediaType, ParseContext
from ..patterns import PatternHit
from .base import (
    RegexPattern,
    Rule,
    RulePriority,
    WORD_LEFT,
    WORD_RIGHT,
    is_episode_number,
    is_season_number,
    keep_only,
    to_integer,
)

SEASON_EPISODE_TAG = "season_episode"

# Paired forms, scanned on the unmodified input. The standard form may carry further
# episodes (``S01E01E02``, ``S01E01-E02``) in group 3.
_PAIRED_PATTERNS = (
    (WORD_LEFT + r"s(\d{1,2})[\s._-]?e(\d{1,3})((?:-?e\d{1,3})*)(?!\d)", 0.95, "standard"),
    (WORD_LEFT + r"(\d{1,2})x(\d{1,3})" + WORD_RIGHT, 0.9, "x_format"),
)
_EXTRA_EPISODE = r"e(\d{1,3})"


def _word_alternation(words: tuple[str, ...]) -> str:
    return "|".join(re.escape(word) for word in sorted(words, key=len, reverse=True))


class EpisodeRule(Rule):
    """Season/episode numbers.

    Paired forms (``S01E03``, ``1x03``) emit a season and an episode match tagged
    ``season_episode``. Standalone forms (``Season 2``, ``S02``, ``Ep 5``) are only tried
    when no paired form was found.
    """

    name = "EpisodeRule"
    priority = RulePriority.HIGH
    properties = ("season", "episode")

    def __init__(self, season_words: tuple[str, ...] = ("season",), episode_words: tuple[str, ...] = ("episode",)):
        self.standalone_patterns = (
            RegexPattern(
                WORD_LEFT + rf"(?:{_word_alternation(season_words)})[\s._-]*(\d{{1,2}})" + WORD_RIGHT,
                "season",
                confidence=0.8,
                tags=frozenset({"season_word"}),
                formatter=to_integer,
                validator=is_season_number,
            ),
            RegexPattern(
                WORD_LEFT + r"s(\d{1,2})" + WORD_RIGHT,
                "season",
                confidence=0.7,
                tags=frozenset({"season_marker"}),
                formatter=to_integer,
                validator=is_season_number,
            ),
            RegexPattern(
                WORD_LEFT + rf"(?:{_word_alternation(episode_words)})[\s._-]*(\d{{1,3}})" + WORD_RIGHT,
                "episode",
                confidence=0.8,
                tags=frozenset({"episode_word"}),
                formatter=to_integer,
                validator=is_episode_number,
            ),
            RegexPattern(
                WORD_LEFT + r"e(\d{1,3})" + WORD_RIGHT,
                "episode",
                confidence=0.7,
                tags=frozenset({"episode_marker"}),
                formatter=to_integer,
                validator=is_episode_number,
            ),
        )

    def should_apply(self, context: ParseContext) -> bool:
        if context.options.media_type is MediaType.MOVIE:
            return False
        return super().should_apply(context)

    def matches(self, context: ParseContext) -> list[Match]:
        paired = self._paired_matches(context)
        if paired:
            return paired

        found: list[Match] = []
        for pattern in self.standalone_patterns:
            for match in pattern.extract(self.name, context):
                if not context.is_claimed(match.span):
                    found.append(match)
        return found

    def _paired_matches(self, context: ParseContext) -> list[Match]:
        found: list[Match] = []
        for pattern, confidence, form in _PAIRED_PATTERNS:
            for hit in context.patterns.find_all(pattern, context.original):
                tags = frozenset({SEASON_EPISODE_TAG, form})
                found.append(
                    Match("season", to_integer(hit.group(1)), hit.group_span(1), confidence, self.name, tags)
                )
                found.append(
                    Match("episode", to_integer(hit.group(2)), hit.group_span(2), confidence, self.name, tags)
                )
                if len(hit.groups) > 2 and hit.group(3):
                    found.extend(self._extra_episodes(hit, confidence - 0.05, tags, context))
        return found

    def _extra_episodes(
        self, hit: PatternHit, confidence: float, tags: frozenset[str], context: ParseContext
    ) -> list[Match]:
        """Trailing episodes of a multi-episode token; they rank below the first one."""
        offset = hit.group_span(3)[0]
        return [
            Match(
                "episode",
                to_integer(extra.group(1)),
                (offset + extra.group_span(1)[0], offset + extra.group_span(1)[1]),
                confidence,
                self.name,
                tags | {"multi_episode"},
            )
            for extra in context.patterns.find_all(_EXTRA_EPISODE, hit.group(3))
        ]

    def post_process(self, matches: list[Match], context: ParseContext) -> list[Match]:
        result = matches
        for prop in self.properties:
            candidates = [match for match in result if match.property == prop]
            if len(candidates) < 2:
                continue
            paired = [match for match in candidates if match.has_tag(SEASON_EPISODE_TAG)]
            best = max(paired or candidates, key=lambda match: match.confidence)
            result = keep_only(result, prop, [best])
        return result
