from __future__ import annotations

from ..models import Match, ParseContext
from .base import RulePriority, Rule

MIME_TYPES = {
    "mp4": "video/mp4",
    "mkv": "video/x-matroska",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    "wmv": "video/x-ms-wmv",
    "flv": "video/x-flv",
    "webm": "video/webm",
    "m4v": "video/x-m4v",
    "3gp": "video/3gpp",
    "ts": "video/mp2t",
    "m2ts": "video/mp2t",
    "vob": "video/dvd",
    "mpg": "video/mpeg",
    "mpeg": "video/mpeg",
    "ogv": "video/ogg",
    "mp3": "audio/mpeg",
    "flac": "audio/flac",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "wma": "audio/x-ms-wma",
    "srt": "application/x-subrip",
    "vtt": "text/vtt",
}


def mimetype_for(container: str | None) -> str | None:
    if not container:
        return None
    return MIME_TYPES.get(container.lower())


class ContainerRule(Rule):
    """Known container extension at the very end of the input."""

    name = "ContainerRule"
    priority = RulePriority.NORMAL - 5
    properties = ("container",)

    def matches(self, context: ParseContext) -> list[Match]:
        extension = context.extension
        if extension is None:
            return []
        end = len(context.original)
        kind = context.configuration.container_kind(extension) or "video"
        return [
            Match(
                property="container",
                value=extension,
                span=(end - len(extension), end),
                confidence=0.95,
                rule_id=self.name,
                tags=frozenset({kind}),
            )
        ]
