"""Built-in extraction rules."""

from __future__ import annotations

from ..config import RuleConfiguration
from .audio import AudioRule
from .base import KeywordPattern, PatternRule, PostProcessor, RegexPattern, Rule, RulePriority
from .container import ContainerRule, mimetype_for
from .episode import SEASON_EPISODE_TAG, EpisodeRule
from .episode_title import EpisodeTitleRule
from .keywords import EditionRule, OtherRule
from .language import LanguageRule
from .release_group import ReleaseGroupRule
from .source import SourceRule
from .title import TitleRule
from .video import ScreenSizeRule, VideoCodecRule
from .year import YearRule


def default_rules(configuration: RuleConfiguration) -> list[Rule]:
    """Instantiate the built-in rules; list order breaks priority ties."""
    return [
        EpisodeRule(
            season_words=configuration.episodes.get("season_words", ("season",)),
            episode_words=configuration.episodes.get("episode_words", ("episode",)),
        ),
        YearRule(),
        VideoCodecRule(configuration),
        AudioRule(configuration),
        ScreenSizeRule(configuration),
        SourceRule(configuration),
        LanguageRule(configuration),
        EditionRule(configuration),
        OtherRule(configuration),
        ContainerRule(),
        ReleaseGroupRule(configuration),
        EpisodeTitleRule(),
        TitleRule(configuration),
    ]


__all__ = [
    "AudioRule",
    "ContainerRule",
    "EditionRule",
    "EpisodeRule",
    "EpisodeTitleRule",
    "KeywordPattern",
    "LanguageRule",
    "OtherRule",
    "PatternRule",
    "PostProcessor",
    "RegexPattern",
    "ReleaseGroupRule",
    "Rule",
    "RulePriority",
    "SEASON_EPISODE_TAG",
    "ScreenSizeRule",
    "SourceRule",
    "TitleRule",
    "VideoCodecRule",
    "YearRule",
    "default_rules",
    "mimetype_for",
]
