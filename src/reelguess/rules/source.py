from __future__ import annotations

from ..config import RuleConfiguration
from ..models import Match, ParseContext
from .base import PatternRule, RulePriority, keep_only, keyword_patterns, select_by_priority


class SourceRule(PatternRule):
    """Release source, ranked by trust (Blu-ray > WEB-DL > ... > CAM)."""

    name = "SourceRule"
    priority = RulePriority.NORMAL
    properties = ("source",)

    def __init__(self, configuration: RuleConfiguration) -> None:
        self.configuration = configuration
        self.patterns = tuple(keyword_patterns(configuration.sources, "source", confidence=0.9))

    def post_process(self, matches: list[Match], context: ParseContext) -> list[Match]:
        sources = [match for match in matches if match.property == "source"]
        if len(sources) < 2:
            return matches
        best = select_by_priority(sources, lambda match: self.configuration.rank("source", match.value))
        return keep_only(matches, "source", [best])
