from __future__ import annotations

import logging

import pytest

from reelguess import Guesser, InvalidInputError, MediaType, ParseError, ParseOptions, RuleExecutionError
from reelguess.config import default_configuration
from reelguess.guesser import AnalysisResult
from reelguess.models import PROPERTY_REGISTRY
from reelguess.rules import SEASON_EPISODE_TAG, Rule

TREME = "Treme.1x03.Right.Place,.Wrong.Time.HDTV.XviD-NoTV.avi"


@pytest.fixture(scope="module")
def guesser() -> Guesser:
    return Guesser()


def _parse(guesser: Guesser, filename: str, **options):
    return guesser.parse(filename, ParseOptions(**options) if options else None).unwrap()


class _ExplodingRule(Rule):
    name = "ExplodingRule"
    properties = ("title",)

    def matches(self, context):
        if "boom" in context.original:
            raise RuntimeError("boom")
        return []


class TestEpisodeFilenames:
    """Full parses of TV episode names."""

    def test_treme(self, guesser) -> None:
        record = _parse(guesser, TREME)
        assert record.title == "Treme"
        assert record.season == 1
        assert record.episode == 3
        assert record.episode_title == "Right Place, Wrong Time"
        assert record.source == "HDTV"
        assert record.video_codec == "XviD"
        assert record.release_group == "NoTV"
        assert record.container == "avi"
        assert record.mimetype == "video/x-msvideo"
        assert record.media_type is MediaType.EPISODE
        assert record.confidence > 0.8

    def test_x_format_pairing_is_tagged(self, guesser) -> None:
        record = _parse(guesser, "Show.1x03.Title.mkv")
        assert (record.season, record.episode) == (1, 3)
        assert record.title == "Show"
        assert record.episode_title == "Title"
        paired = [match for match in record.matches if match.property in ("season", "episode")]
        assert len(paired) == 2
        assert all(match.has_tag(SEASON_EPISODE_TAG) for match in paired)

    def test_standard_episode(self, guesser) -> None:
        record = _parse(guesser, "Breaking.Bad.S05E14.Ozymandias.720p.WEB-DL.DDP5.1.H.264-NTb.mkv")
        assert record.title == "Breaking Bad"
        assert record.season_episode == "S05E14"
        assert record.episode_title == "Ozymandias"
        assert record.screen_size == "720p"
        assert record.source == "WEB-DL"
        assert record.audio_codec == "Dolby Digital Plus"
        assert record.audio_channels == "5.1"
        assert record.video_codec == "H.264"
        assert record.release_group == "NTb"

    def test_season_pack(self, guesser) -> None:
        record = _parse(guesser, "Show.Season.2.Complete.mkv")
        assert record.season == 2
        assert record.episode is None
        assert record.episode_title is None
        assert record.title == "Show"
        assert record.is_episode

    def test_prefix_release_group(self, guesser) -> None:
        record = _parse(guesser, "[Group] Show.S01E02.720p.mkv")
        assert record.release_group == "Group"
        assert record.title == "Show"

    def test_multi_episode_keeps_first_episode(self, guesser) -> None:
        record = _parse(guesser, "Show.S01E01E02.720p.HDTV.x264-GRP.mkv")
        assert record.title == "Show"
        assert record.season == 1
        assert record.episode == 1
        assert record.episode_title is None
        assert record.media_type is MediaType.EPISODE
        assert record.release_group == "GRP"

    def test_absolute_episode_ends_title(self, guesser) -> None:
        record = _parse(guesser, "[SubGroup] Anime Title - 01 [1080p].mkv")
        assert record.title == "Anime Title"
        assert record.release_group == "SubGroup"
        assert record.screen_size == "1080p"

    def test_directory_components_are_stripped(self, guesser) -> None:
        record = _parse(guesser, "/media/tv/Treme/Season 1/" + TREME)
        assert record.title == "Treme"
        assert record.season == 1


class TestMovieFilenames:
    """Full parses of movie names."""

    def test_year_inside_title(self, guesser) -> None:
        record = _parse(guesser, "2001.A.Space.Odyssey.1968.mkv")
        assert record.year == 1968
        assert "2001" in record.title
        assert "Odyssey" in record.title
        assert "1968" not in record.title
        assert record.is_movie

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("The.Matrix.1999.1080p.BluRay.x264-GROUP.mkv", "The Matrix"),
            ("The.Lord.of.the.Rings.2001.mkv", "The Lord of the Rings"),
            ("Blade.Runner.2049.2017.mkv", "Blade Runner 2049"),
            ("Metropolis.1927.720p.mkv", "Metropolis 1927"),
            ("movie_name_here.2010.mkv", "Movie Name Here"),
            ("Some.Movie-GRP.mkv", "Some Movie"),
            ("Movie.Name.WEB.DL.x264.mkv", "Movie Name"),
            ("Movie (2019).mkv", "Movie"),
        ],
    )
    def test_titles(self, guesser, filename, expected) -> None:
        assert _parse(guesser, filename).title == expected

    def test_full_movie(self, guesser) -> None:
        record = _parse(guesser, "The.Matrix.1999.1080p.BluRay.x264-GROUP.mkv")
        assert record.to_dict() == {
            "title": "The Matrix",
            "year": 1999,
            "media_type": "movie",
            "video_codec": "H.264",
            "screen_size": "1080p",
            "source": "Blu-ray",
            "release_group": "GROUP",
            "container": "mkv",
            "mimetype": "video/x-matroska",
            "confidence": pytest.approx(record.confidence, abs=1e-4),
        }

    def test_codec_freshness_tie_break(self, guesser) -> None:
        assert _parse(guesser, "Movie.2019.x264.HEVC.mkv").video_codec == "H.265"

    def test_multi_valued_properties_are_unique(self, guesser) -> None:
        record = _parse(guesser, "Movie.2019.FRENCH.English.French.PROPER.PROPER.1080p.mkv")
        assert record.language == ["French", "English"]
        assert record.other == ["Proper"]

    def test_unknown_extension_has_no_container(self, guesser) -> None:
        record = _parse(guesser, "Movie.2019")
        assert record.container is None
        assert record.mimetype is None

    def test_unknown_extension_is_not_part_of_title(self, guesser) -> None:
        record = _parse(guesser, "Some.Movie.rmvb")
        assert record.title == "Some Movie"
        assert record.container == "rmvb"

    def test_unknown_extension_falls_back_to_container(self, guesser) -> None:
        record = _parse(guesser, "Some.Movie.2019.1080p.rmvb")
        assert record.title == "Some Movie"
        assert record.year == 2019
        assert record.container == "rmvb"
        assert record.mimetype is None

    def test_trailing_keyword_is_not_a_container(self, guesser) -> None:
        record = _parse(guesser, "Show.S01E01.HDTV")
        assert record.source == "HDTV"
        assert record.container is None


class TestOptions:
    """Per-call options."""

    def test_exclude(self, guesser) -> None:
        record = _parse(guesser, "Movie.2019.x264.mkv", exclude={"video_codec"})
        assert record.video_codec is None
        assert record.year == 2019

    def test_include_only(self, guesser) -> None:
        record = _parse(guesser, "Movie.2019.1080p.x264-GRP.mkv", include_only={"title", "year"})
        assert record.detected_properties() == ["title", "year", "media_type"]

    def test_exclude_wins_over_include(self, guesser) -> None:
        record = _parse(guesser, "Movie.2019.mkv", include_only={"title", "year"}, exclude={"year"})
        assert record.year is None
        assert record.title == "Movie"

    def test_movie_hint_suppresses_episode(self, guesser) -> None:
        record = _parse(guesser, "Show.S01E02.mkv", media_type=MediaType.MOVIE)
        assert record.season is None
        assert record.episode is None
        assert record.media_type is MediaType.MOVIE

    def test_allowed_languages(self, guesser) -> None:
        record = _parse(guesser, "Movie.2019.French.English.mkv", allowed_languages={"English"})
        assert record.language == ["English"]

    def test_output_input_string(self, guesser) -> None:
        record = _parse(guesser, "Movie.2019.mkv", output_input_string=True)
        assert record.input_string == "Movie.2019.mkv"


class TestParse:
    """Outcome handling and determinism."""

    @pytest.mark.parametrize("filename", ["", "   ", None])
    def test_empty_input_fails(self, guesser, filename) -> None:
        outcome = guesser.parse(filename)
        assert not outcome.ok
        assert isinstance(outcome.error, InvalidInputError)
        assert "empty" in str(outcome.error)

    def test_idempotent(self, guesser) -> None:
        assert _parse(guesser, TREME) == _parse(guesser, TREME)

    def test_rule_fault_becomes_failed_outcome(self) -> None:
        outcome = Guesser(rules=[_ExplodingRule()]).parse("boom.mkv")
        assert not outcome.ok
        assert isinstance(outcome.error, RuleExecutionError)
        with pytest.raises(ParseError):
            outcome.unwrap()

    def test_processing_time_recorded(self, guesser) -> None:
        assert _parse(guesser, TREME).processing_time >= 0.0


class TestParseBatch:
    """Batch parsing."""

    def test_order_preserved(self, guesser) -> None:
        names = [f"Show.S01E{number:02d}.mkv" for number in range(1, 21)]
        outcomes = guesser.parse_batch(names, max_workers=4)
        assert [outcome.filename for outcome in outcomes] == names
        assert [outcome.unwrap().episode for outcome in outcomes] == list(range(1, 21))

    def test_failures_are_isolated(self, guesser, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="reelguess.guesser"):
            outcomes = guesser.parse_batch(["Movie.2019.mkv", "", TREME])
        assert [outcome.ok for outcome in outcomes] == [True, False, True]
        assert "Batch Element Failed" in caplog.text

    def test_rule_fault_in_batch(self) -> None:
        outcomes = Guesser(rules=[_ExplodingRule()]).parse_batch(["fine.mkv", "boom.mkv"], max_workers=2)
        assert outcomes[0].ok
        assert isinstance(outcomes[1].error, RuleExecutionError)

    def test_sequential_matches_parallel(self, guesser) -> None:
        names = [TREME, "Movie.2019.x264.HEVC.mkv", "2001.A.Space.Odyssey.1968.mkv"]
        sequential = [outcome.unwrap() for outcome in guesser.parse_batch(names, max_workers=1)]
        parallel = [outcome.unwrap() for outcome in guesser.parse_batch(names, max_workers=3)]
        assert sequential == parallel

    def test_empty_batch(self, guesser) -> None:
        assert guesser.parse_batch([]) == []


class TestGuesserHelpers:
    """Analysis and introspection helpers."""

    def test_analyze(self, guesser) -> None:
        result = guesser.analyze(TREME)
        assert isinstance(result, AnalysisResult)
        assert "season" in result.detected_properties
        assert result.confidence == result.record.confidence
        assert result.summary().startswith("Treme S01E03 | HDTV | XviD")

    def test_analyze_raises_on_failure(self, guesser) -> None:
        with pytest.raises(InvalidInputError):
            guesser.analyze("")

    def test_available_properties(self, guesser) -> None:
        assert guesser.available_properties() == list(PROPERTY_REGISTRY)

    def test_rules_for(self, guesser) -> None:
        assert [rule.name for rule in guesser.rules_for("video_profile")] == ["VideoCodecRule"]

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("Movie.mkv", True),
            ("Album.flac", True),
            ("Movie.2019.1080p.BluRay", True),
            ("Movie.English.srt", False),
            ("notes.txt", False),
            ("1080p.x264", False),
            ("Show.S01E01", True),
            ("", False),
        ],
    )
    def test_is_valid_media_filename(self, guesser, filename, expected) -> None:
        assert guesser.is_valid_media_filename(filename) is expected

    def test_with_configuration_shares_cache(self, guesser) -> None:
        custom = default_configuration().merged({"sources": {"Laserdisc": ["LaserDisc"]}})
        derived = guesser.with_configuration(custom)
        assert derived.pattern_cache is guesser.pattern_cache
        assert derived.parse("Movie.1985.LaserDisc.mkv").unwrap().source == "Laserdisc"
        assert guesser.parse("Movie.1985.LaserDisc.mkv").unwrap().source is None
