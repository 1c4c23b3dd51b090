from __future__ import annotations

from ..config import RuleConfiguration
from .base import PatternRule, RulePriority, keyword_patterns

# Audio tokens are often glued to a channel layout ("DDP5.1", "AAC2.0").
_AUDIO_RIGHT = r"(?![a-z])"
_CHANNELS_LEFT = r"(?<![0-9])"
_CHANNELS_RIGHT = r"(?![0-9a-z])"


class AudioRule(PatternRule):
    """Audio codec, channel layout and audio profile."""

    name = "AudioRule"
    priority = RulePriority.NORMAL
    properties = ("audio_codec", "audio_channels", "audio_profile")

    def __init__(self, configuration: RuleConfiguration) -> None:
        self.patterns = tuple(
            keyword_patterns(configuration.audio_codecs, "audio_codec", confidence=0.85, right=_AUDIO_RIGHT)
            + keyword_patterns(
                configuration.audio_channels,
                "audio_channels",
                confidence=0.8,
                left=_CHANNELS_LEFT,
                right=_CHANNELS_RIGHT,
                strict_separators=True,
            )
            + keyword_patterns(configuration.audio_profiles, "audio_profile", confidence=0.6)
        )
