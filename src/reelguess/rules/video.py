"""Video codec, video profile and screen size rules."""

from __future__ import annotations

from ..config import RuleConfiguration
from ..models import Match, ParseContext
from .base import (
    PatternRule,
    RegexPattern,
    RulePriority,
    keep_only,
    keyword_patterns,
    select_by_priority,
)

# Profiles only make sense for these codecs.
PROFILE_CODECS = frozenset({"H.264", "H.265"})


class VideoCodecRule(PatternRule):
    """Video codec with a freshness tie-break (AV1 > H.265 > VP9 > H.264 ...)."""

    name = "VideoCodecRule"
    priority = RulePriority.NORMAL
    properties = ("video_codec", "video_profile")

    def __init__(self, configuration: RuleConfiguration) -> None:
        self.configuration = configuration
        self.patterns = tuple(
            keyword_patterns(configuration.video_codecs, "video_codec", confidence=0.9)
            + keyword_patterns(configuration.video_profiles, "video_profile", confidence=0.7)
        )

    def post_process(self, matches: list[Match], context: ParseContext) -> list[Match]:
        codecs = [match for match in matches if match.property == "video_codec"]
        codec = select_by_priority(codecs, lambda match: self.configuration.rank("video_codec", match.value))
        result = keep_only(matches, "video_codec", [codec]) if codecs else matches

        profiles = [match for match in result if match.property == "video_profile"]
        if not profiles:
            return result
        if codec is not None and codec.value not in PROFILE_CODECS:
            return keep_only(result, "video_profile", [])
        return keep_only(result, "video_profile", [max(profiles, key=lambda match: match.confidence)])


class ScreenSizeRule(PatternRule):
    """Screen size; progressive beats interlaced at the same height."""

    name = "ScreenSizeRule"
    priority = RulePriority.NORMAL
    properties = ("screen_size",)

    def __init__(self, configuration: RuleConfiguration) -> None:
        self.configuration = configuration
        patterns = []
        for canonical, words in configuration.screen_sizes.items():
            tags = frozenset({"interlaced"}) if canonical.endswith("i") else frozenset({"progressive"})
            patterns.extend(
                keyword_patterns({canonical: words}, "screen_size", confidence=0.9, tags=tags, right=r"(?![a-z])")
            )
        patterns.append(
            RegexPattern(
                r"(?<![a-z0-9])\d{3,4}x(\d{3,4})(?![a-z0-9])",
                "screen_size",
                confidence=0.8,
                tags=frozenset({"dimensions", "progressive"}),
                formatter=self._height_to_size,
            )
        )
        self.patterns = tuple(patterns)

    def _height_to_size(self, height: str) -> str:
        size = f"{int(height)}p"
        if size in self.configuration.screen_sizes:
            return size
        return ""

    def should_apply(self, context: ParseContext) -> bool:
        if context.has_match("screen_size", exclude_rule=self.name):
            return False
        return super().should_apply(context)

    def post_process(self, matches: list[Match], context: ParseContext) -> list[Match]:
        sizes = [match for match in matches if match.property == "screen_size"]
        if len(sizes) < 2:
            return matches
        best = select_by_priority(sizes, lambda match: self.configuration.rank("screen_size", match.value))
        return keep_only(matches, "screen_size", [best])
