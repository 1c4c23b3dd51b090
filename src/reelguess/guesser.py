"""Public entry point: parse one filename or a batch of them."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .assembler import assemble
from .config import RuleConfiguration, default_configuration
from .engine import RuleEngine
from .errors import ParseError
from .logging_utils import render_fields_block
from .models import PROPERTY_REGISTRY, ParsedRecord, ParseOptions, ParseOutcome
from .patterns import PatternCache
from .rules import Rule
from .utils import basename

LOGGER = logging.getLogger(__name__)

TECHNICAL_PROPERTIES = frozenset(
    {
        "video_codec",
        "video_profile",
        "audio_codec",
        "audio_channels",
        "audio_profile",
        "screen_size",
        "source",
        "edition",
        "other",
    }
)
MEDIA_CONTAINER_KINDS = frozenset({"video", "audio"})


@dataclass(slots=True)
class AnalysisResult:
    """A parsed record with the bookkeeping a caller usually wants alongside it."""

    filename: str
    record: ParsedRecord
    detected_properties: list[str] = field(default_factory=list)
    confidence: float = 0.0
    processing_time: float = 0.0

    def summary(self) -> str:
        record = self.record
        head = record.title or "(untitled)"
        if record.season_episode:
            head += f" {record.season_episode}"
        elif record.year is not None:
            head += f" ({record.year})"
        parts = [head]
        parts.extend(value for value in (record.screen_size, record.source, record.video_codec) if value)
        return f"{' | '.join(parts)} [{record.media_type.value}, confidence {self.confidence:.2f}]"


class Guesser:
    """Filename metadata guesser.

    Holds an immutable configuration, the rule engine built from it and the pattern
    cache shared by every parse. Instances are safe to use from several threads.
    """

    def __init__(
        self,
        configuration: Optional[RuleConfiguration] = None,
        *,
        rules: Optional[Sequence[Rule]] = None,
        pattern_cache: Optional[PatternCache] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.configuration = configuration or default_configuration()
        self.pattern_cache = pattern_cache if pattern_cache is not None else PatternCache()
        self.engine = RuleEngine(self.configuration, rules=rules, pattern_cache=self.pattern_cache)
        self.max_workers = max_workers

    def with_configuration(self, configuration: RuleConfiguration) -> Guesser:
        """Return a guesser for ``configuration`` that shares this guesser's pattern cache."""
        return Guesser(configuration, pattern_cache=self.pattern_cache, max_workers=self.max_workers)

    def _parse_record(self, filename: str, options: Optional[ParseOptions]) -> ParsedRecord:
        started = time.perf_counter()
        name = basename(filename) if filename else ""
        resolved = self.engine.run(name, options)
        record = assemble(name, resolved, options)
        record.processing_time = time.perf_counter() - started
        return record

    def parse(self, filename: str, options: Optional[ParseOptions] = None) -> ParseOutcome:
        """Parse one filename; failures come back as a failed outcome instead of raising."""
        try:
            record = self._parse_record(filename, options)
        except ParseError as exc:
            LOGGER.debug(
                render_fields_block(
                    "Parse Failed",
                    {"Filename": filename, "Error Type": type(exc).__name__, "Error": exc},
                )
            )
            return ParseOutcome.failure(filename, exc)
        return ParseOutcome.success(filename, record)

    def _parse_isolated(self, filename: str, options: Optional[ParseOptions]) -> ParseOutcome:
        try:
            return self.parse(filename, options)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning(
                render_fields_block(
                    "Unexpected Parse Failure",
                    {"Filename": filename, "Error Type": type(exc).__name__, "Error": exc},
                )
            )
            error = ParseError(f"Unexpected failure parsing {filename!r}: {exc}", filename)
            error.__cause__ = exc
            return ParseOutcome.failure(filename, error)

    def parse_batch(
        self,
        filenames: Iterable[str],
        options: Optional[ParseOptions] = None,
        *,
        max_workers: Optional[int] = None,
    ) -> list[ParseOutcome]:
        """Parse many filenames; the result list has the input order.

        One element failing never affects the others.
        """
        names = list(filenames)
        if not names:
            return []
        workers = max_workers or self.max_workers
        started = time.perf_counter()
        if workers == 1 or len(names) == 1:
            outcomes = [self._parse_isolated(name, options) for name in names]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(lambda name: self._parse_isolated(name, options), names))

        failures = [outcome for outcome in outcomes if not outcome.ok]
        for outcome in failures:
            LOGGER.warning(
                render_fields_block(
                    "Batch Element Failed",
                    {"Filename": outcome.filename, "Error": outcome.error},
                )
            )
        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug(
                render_fields_block(
                    "Batch Parsed",
                    {
                        "Files": len(names),
                        "Failed": len(failures),
                        "Workers": workers or "default",
                        "Elapsed": time.perf_counter() - started,
                    },
                )
            )
        return outcomes

    def analyze(self, filename: str, options: Optional[ParseOptions] = None) -> AnalysisResult:
        """Parse and summarize; raises :class:`ParseError` on failure."""
        record = self.parse(filename, options).unwrap()
        return AnalysisResult(
            filename=filename,
            record=record,
            detected_properties=record.detected_properties(),
            confidence=record.confidence,
            processing_time=record.processing_time,
        )

    @staticmethod
    def available_properties() -> list[str]:
        return list(PROPERTY_REGISTRY)

    def rules_for(self, property: str) -> list[Rule]:
        return self.engine.rules_for(property)

    def is_valid_media_filename(self, filename: str) -> bool:
        """True when a title or year comes with media information.

        Media information is a season or episode, a technical property, or an audio or
        video container. Subtitle files do not count.
        """
        if not filename or not filename.strip():
            return False
        outcome = self.parse(filename)
        if not outcome.ok:
            return False
        record = outcome.unwrap()
        if not record.title and record.year is None:
            return False
        if record.season is not None or record.episode is not None:
            return True
        if record.container and self.configuration.container_kind(record.container) in MEDIA_CONTAINER_KINDS:
            return True
        return bool(set(record.detected_properties()) & TECHNICAL_PROPERTIES)
