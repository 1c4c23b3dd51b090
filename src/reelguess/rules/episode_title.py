from __future__ import annotations

import re

from ..models import Match, ParseContext
from ..utils import WHITESPACE_PATTERN, format_title
from .base import RulePriority, Rule, has_letter

# Properties whose spans do not end an episode title.
_TRANSPARENT = frozenset({"title", "episode_title", "episode_details", "season", "episode"})
_EDGE_CHARS = " ._-[](){}"


def clean_episode_title(segment: str) -> str:
    text = re.sub(r"[._]+", " ", segment)
    text = WHITESPACE_PATTERN.sub(" ", text).strip(_EDGE_CHARS)
    text = re.sub(r"\s+,", ",", text)
    text = re.sub(r",(?=\S)", ", ", text)
    return format_title(text)


class EpisodeTitleRule(Rule):
    """Text between the season/episode marker and the next technical token."""

    name = "EpisodeTitleRule"
    priority = RulePriority.LOW + 5
    properties = ("episode_title",)

    def matches(self, context: ParseContext) -> list[Match]:
        episodes = context.matches_for("episode")
        if not episodes:
            return []
        markers = episodes + context.matches_for("season")
        start = max(match.end for match in markers)
        stem = context.stem
        if start >= len(stem):
            return []

        stop = min(
            (match.start for match in context.matches if match.property not in _TRANSPARENT and match.start >= start),
            default=len(stem),
        )
        stop = min(stop, len(stem))
        segment = stem[start:stop]
        title = clean_episode_title(segment)
        if len(title) < 3 or not has_letter(title):
            return []

        left = start + len(segment) - len(segment.lstrip(_EDGE_CHARS))
        right = stop - (len(segment) - len(segment.rstrip(_EDGE_CHARS)))
        return [
            Match(
                property="episode_title",
                value=title,
                span=(left, right),
                confidence=0.85,
                rule_id=self.name,
                tags=frozenset({"after_episode"}),
            )
        ]
