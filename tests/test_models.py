from __future__ import annotations

import pytest

from reelguess.config import default_configuration
from reelguess.errors import InvalidInputError
from reelguess.models import (
    MULTI_VALUED_PROPERTIES,
    PROPERTY_REGISTRY,
    Match,
    MediaType,
    ParseContext,
    ParsedRecord,
    ParseOptions,
    ParseOutcome,
)
from reelguess.patterns import PatternCache


def _context(filename: str, options: ParseOptions | None = None) -> ParseContext:
    return ParseContext(filename, options or ParseOptions(), default_configuration(), PatternCache())


def _match(prop: str = "title", value: str = "Show", span=(0, 4), confidence: float = 0.8) -> Match:
    return Match(property=prop, value=value, span=span, confidence=confidence, rule_id="TestRule")


class TestMatch:
    """Match construction and helpers."""

    @pytest.mark.parametrize("confidence", [-0.1, 1.01, 2.0])
    def test_rejects_confidence_outside_unit_interval(self, confidence) -> None:
        with pytest.raises(ValueError):
            _match(confidence=confidence)

    @pytest.mark.parametrize("span", [(-1, 3), (5, 2)])
    def test_rejects_malformed_span(self, span) -> None:
        with pytest.raises(ValueError):
            _match(span=span)

    def test_accepts_boundary_confidence(self) -> None:
        assert _match(confidence=0.0).confidence == 0.0
        assert _match(confidence=1.0).confidence == 1.0

    def test_tags_are_frozen(self) -> None:
        match = Match("season", "1", (6, 7), 0.9, "EpisodeRule", {"season_episode"})
        assert isinstance(match.tags, frozenset)
        assert match.has_tag("season_episode")
        assert not match.has_tag("standalone")

    def test_overlaps(self) -> None:
        match = _match(span=(2, 6))
        assert match.overlaps((5, 9))
        assert match.overlaps((0, 3))
        assert not match.overlaps((6, 9))
        assert not match.overlaps((0, 2))

    def test_is_immutable(self) -> None:
        match = _match()
        with pytest.raises(AttributeError):
            match.value = "Other"  # type: ignore[misc]


class TestParseOptions:
    """Option filtering semantics."""

    def test_default_processes_everything(self) -> None:
        options = ParseOptions()
        assert all(options.should_process(name) for name in PROPERTY_REGISTRY)

    def test_include_only_restricts(self) -> None:
        options = ParseOptions(include_only={"title", "year"})
        assert options.should_process("title")
        assert not options.should_process("video_codec")

    def test_exclude_wins_over_include_only(self) -> None:
        options = ParseOptions(include_only={"title", "year"}, exclude={"year"})
        assert options.should_process("title")
        assert not options.should_process("year")

    def test_media_type_string_is_coerced(self) -> None:
        assert ParseOptions(media_type="Movie").media_type is MediaType.MOVIE

    def test_collections_become_frozensets(self) -> None:
        options = ParseOptions(include_only=["title"], allowed_languages=["English"])
        assert options.include_only == frozenset({"title"})
        assert options.allowed_languages == frozenset({"English"})
        assert options.allowed_countries is None


class TestParseContext:
    """Extension detection and match bookkeeping."""

    def test_known_extension_is_detected(self) -> None:
        context = _context("Show.S01E01.MKV")
        assert context.extension == "mkv"
        assert context.stem == "Show.S01E01"

    @pytest.mark.parametrize("filename", ["Movie.2019", "README", "Show.S01E01.HDTV", "Movie.2019.x264"])
    def test_no_extension_keeps_full_stem(self, filename) -> None:
        context = _context(filename)
        assert context.extension is None
        assert context.suffix is None
        assert context.stem == filename

    def test_unknown_extension_is_stripped_from_stem(self) -> None:
        context = _context("Some.Movie.RMVB")
        assert context.extension is None
        assert context.suffix == "rmvb"
        assert context.stem == "Some.Movie"

    def test_add_match_rejects_span_past_input(self) -> None:
        context = _context("Show.mkv")
        with pytest.raises(ValueError):
            context.add_match(_match(span=(0, 20)))

    def test_matches_for_and_has_match(self) -> None:
        context = _context("Show.2019.mkv")
        context.add_match(Match("year", "2019", (5, 9), 0.8, "YearRule"))
        context.add_match(Match("year", "2019", (5, 9), 0.7, "OtherYearRule"))
        assert len(context.matches_for("year")) == 2
        assert len(context.matches_for("year", exclude_rule="YearRule")) == 1
        assert context.has_match("year")
        assert not context.has_match("title")

    def test_is_claimed_respects_ignore(self) -> None:
        context = _context("Show.2019.mkv")
        context.add_match(Match("year", "2019", (5, 9), 0.8, "YearRule"))
        assert context.is_claimed((6, 8))
        assert not context.is_claimed((0, 4))
        assert not context.is_claimed((6, 8), ignore=("year",))


class TestParsedRecord:
    """Result record helpers and serialization."""

    def test_season_episode_label(self) -> None:
        record = ParsedRecord(season=1, episode=3)
        assert record.season_episode == "S01E03"
        assert ParsedRecord(season=1).season_episode is None

    def test_media_type_flags(self) -> None:
        assert ParsedRecord(media_type=MediaType.MOVIE).is_movie
        assert ParsedRecord(media_type=MediaType.EPISODE).is_episode
        assert not ParsedRecord().is_movie

    def test_to_dict_only_contains_populated_fields(self) -> None:
        record = ParsedRecord(title="Treme", season=1, episode=3, media_type=MediaType.EPISODE, confidence=0.88123)
        data = record.to_dict()
        assert data == {
            "title": "Treme",
            "media_type": "episode",
            "season": 1,
            "episode": 3,
            "confidence": 0.8812,
        }

    def test_to_dict_timing_and_input(self) -> None:
        record = ParsedRecord(title="Movie", input_string="Movie.mkv", processing_time=0.5)
        data = record.to_dict(include_timing=True)
        assert data["input_string"] == "Movie.mkv"
        assert data["processing_time"] == 0.5

    def test_equality_ignores_processing_time(self) -> None:
        assert ParsedRecord(title="Movie", processing_time=0.1) == ParsedRecord(title="Movie", processing_time=0.9)

    def test_detected_properties_follow_registry_order(self) -> None:
        record = ParsedRecord(container="mkv", title="Movie", language=["English"])
        assert record.detected_properties() == ["title", "container", "language"]


class TestPropertyRegistry:
    """Static property table."""

    def test_multi_valued_set(self) -> None:
        assert MULTI_VALUED_PROPERTIES == {
            "language",
            "subtitle_language",
            "country",
            "edition",
            "other",
            "episode_details",
        }

    def test_accessors_read_record_fields(self) -> None:
        record = ParsedRecord(title="Movie", year=2019)
        assert PROPERTY_REGISTRY["title"].get(record) == "Movie"
        assert PROPERTY_REGISTRY["year"].get(record) == 2019
        assert not PROPERTY_REGISTRY["season"].is_populated(record)


class TestParseOutcome:
    """Tagged success/failure values."""

    def test_success_unwraps(self) -> None:
        record = ParsedRecord(title="Movie")
        outcome = ParseOutcome.success("Movie.mkv", record)
        assert outcome.ok
        assert outcome.unwrap() is record

    def test_failure_raises_carried_error(self) -> None:
        error = InvalidInputError("Filename is empty", "")
        outcome = ParseOutcome.failure("", error)
        assert not outcome.ok
        with pytest.raises(InvalidInputError):
            outcome.unwrap()
