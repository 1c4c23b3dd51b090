from __future__ import annotations

import pytest

from reelguess.utils import (
    basename,
    capitalize_word,
    dump_yaml_file,
    file_extension,
    format_title,
    load_yaml_file,
    normalize_token,
    replace_separators,
)


def test_normalize_token_removes_non_alphanumerics() -> None:
    assert normalize_token("WEB-DL") == "webdl"
    assert normalize_token("H.264") == "h264"


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/media/tv/Show.S01E01.mkv", "Show.S01E01.mkv"),
        ("C:\\Videos\\Movie.2019.avi", "Movie.2019.avi"),
        ("Movie.mkv", "Movie.mkv"),
        ("dir/", ""),
    ],
)
def test_basename(path, expected) -> None:
    assert basename(path) == expected


@pytest.mark.parametrize(
    "filename,expected",
    [("Movie.MKV", "mkv"), ("Movie.2019", None), ("Movie", None), ("Movie.m2ts", "m2ts"), ("Movie.BluRay", None)],
)
def test_file_extension(filename, expected) -> None:
    assert file_extension(filename) == expected


def test_replace_separators() -> None:
    assert replace_separators("The.Matrix_(1999)-x264", [".", "_", "(", ")", "-"]) == "The Matrix 1999 x264"


class TestFormatTitle:
    """Word capitalization with minor words."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("the lord of the rings", "The Lord of the Rings"),
            ("GAME OF THRONES", "Game of Thrones"),
            ("a space odyssey", "A Space Odyssey"),
            ("2001 a space odyssey", "2001 a Space Odyssey"),
            ("  right   place,  wrong time ", "Right Place, Wrong Time"),
            ("", ""),
        ],
    )
    def test_format_title(self, text, expected) -> None:
        assert format_title(text) == expected

    def test_mixed_case_words_are_kept(self) -> None:
        assert capitalize_word("McQueen") == "McQueen"
        assert capitalize_word("XVID") == "Xvid"
        assert capitalize_word("") == ""


def test_yaml_round_trip(tmp_path) -> None:
    path = tmp_path / "nested" / "rules.yaml"
    dump_yaml_file(path, {"audio_channels": {"5.1": ["5.1", "6ch"]}, "common_words": ["no", "it"]})
    assert load_yaml_file(path) == {"audio_channels": {"5.1": ["5.1", "6ch"]}, "common_words": ["no", "it"]}


def test_load_yaml_rejects_non_mapping(tmp_path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml_file(path)


def test_load_yaml_empty_file(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_yaml_file(path) == {}
