from __future__ import annotations

from ..models import Match, ParseContext
from .base import RegexPattern, Rule, RulePriority, drop_overlaps, is_media_year, keep_only

# Enclosed years are the strongest signal.
_TAG_RANK = {"parentheses": 2, "brackets": 1}


class YearRule(Rule):
    """Release year.

    Several year-shaped numbers can appear ("2001.A.Space.Odyssey.1968"); the enclosed
    one wins, otherwise the right-most valid year.
    """

    name = "YearRule"
    priority = RulePriority.HIGH
    properties = ("year",)

    patterns = (
        RegexPattern(r"\((\d{4})\)", "year", 0.9, frozenset({"parentheses"}), validator=is_media_year),
        RegexPattern(r"\[(\d{4})\]", "year", 0.85, frozenset({"brackets"}), validator=is_media_year),
        RegexPattern(r"\.(\d{4})\.", "year", 0.8, frozenset({"dots"}), validator=is_media_year),
        RegexPattern(r"\b(\d{4})\b", "year", 0.7, frozenset({"standalone"}), validator=is_media_year),
    )

    def should_apply(self, context: ParseContext) -> bool:
        if context.has_match("year", exclude_rule=self.name):
            return False
        return super().should_apply(context)

    def matches(self, context: ParseContext) -> list[Match]:
        found: list[Match] = []
        for pattern in self.patterns:
            found.extend(
                match for match in pattern.extract(self.name, context) if not context.is_claimed(match.span)
            )
        return drop_overlaps(found)

    @staticmethod
    def _preference(match: Match) -> tuple[int, int, float]:
        enclosed = max((_TAG_RANK.get(tag, 0) for tag in match.tags), default=0)
        return enclosed, match.start, match.confidence

    def post_process(self, matches: list[Match], context: ParseContext) -> list[Match]:
        candidates = [match for match in matches if match.property == "year"]
        if len(candidates) < 2:
            return matches
        return keep_only(matches, "year", [max(candidates, key=self._preference)])
