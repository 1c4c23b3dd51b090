"""Multi-valued keyword properties: editions, release flags and episode details."""

from __future__ import annotations

from ..config import RuleConfiguration
from .base import PatternRule, RulePriority, keyword_patterns


class EditionRule(PatternRule):
    name = "EditionRule"
    priority = RulePriority.NORMAL
    properties = ("edition",)

    def __init__(self, configuration: RuleConfiguration) -> None:
        self.patterns = tuple(keyword_patterns(configuration.editions, "edition", confidence=0.8))


class OtherRule(PatternRule):
    """Release flags (PROPER, REMUX, HDR10 ...) and episode details (Pilot, Unaired)."""

    name = "OtherRule"
    priority = RulePriority.NORMAL
    properties = ("other", "episode_details")

    def __init__(self, configuration: RuleConfiguration) -> None:
        self.patterns = tuple(
            keyword_patterns(configuration.other, "other", confidence=0.75)
            + keyword_patterns(configuration.episode_details, "episode_details", confidence=0.7)
        )
