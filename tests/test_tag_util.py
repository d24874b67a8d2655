import pytest

from openlyrics.tag_util import (
    Track,
    compute_edit_distance,
    tag_values_match,
    track_is_remote,
    track_metadata,
    trim_surrounding_whitespace,
    trim_trailing_text_in_brackets,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("  hello  ", "hello"),
        ("\r\nhello world\n", "hello world"),
        ("\r\n \n", ""),
        ("", ""),
        ("\tkeep\t", "\tkeep\t"),
    ],
)
def test_trim_surrounding_whitespace(text, expected):
    assert trim_surrounding_whitespace(text) == expected


def test_trim_trailing_brackets_removes_suffix():
    assert trim_trailing_text_in_brackets("Song (Live)") == "Song "


def test_trim_trailing_brackets_removes_multiple_suffixes():
    assert trim_trailing_text_in_brackets("Song [Remastered] (Live) {x}") == "Song "


def test_trim_trailing_brackets_keeps_whole_bracketed_string():
    assert trim_trailing_text_in_brackets("(Live)") == "(Live)"


def test_trim_trailing_brackets_stops_at_unmatched_open():
    assert trim_trailing_text_in_brackets("Song (unclosed") == "Song (unclosed"


def test_trim_trailing_brackets_no_brackets():
    assert trim_trailing_text_in_brackets("Plain title") == "Plain title"


def test_edit_distance_known_value():
    assert compute_edit_distance("kitten", "sitting") == 3


def test_edit_distance_is_case_insensitive():
    assert compute_edit_distance("HeLLo", "hello") == 0


@pytest.mark.parametrize("text", ["", "a", "abc", "longer text"])
def test_edit_distance_to_empty_is_length(text):
    assert compute_edit_distance(text, "") == len(text)
    assert compute_edit_distance("", text) == len(text)


@pytest.mark.parametrize("a, b", [("abc", "abd"), ("flaw", "lawn"), ("x", "xyz")])
def test_edit_distance_is_symmetric(a, b):
    assert compute_edit_distance(a, b) == compute_edit_distance(b, a)


def test_tag_values_match_close_values():
    assert tag_values_match("Hello", "hallo")


def test_tag_values_match_rejects_distant_values():
    assert not tag_values_match("Completely", "Different text")


def test_tag_values_match_brackets_only_when_excluded():
    assert not tag_values_match("Song (Live at Wembley)", "Song", exclude_trailing_brackets=False)
    assert tag_values_match("Song (Live at Wembley)", "Song", exclude_trailing_brackets=True)


def test_track_metadata_first_value():
    track = Track("C:/music/a.mp3", {"artist": ["First", "Second"]})
    assert track_metadata(track, "artist") == "First"


def test_track_metadata_missing_or_empty():
    track = Track("C:/music/a.mp3", {"album": []})
    assert track_metadata(track, "title") == ""
    assert track_metadata(track, "album") == ""


def test_track_metadata_key_is_case_insensitive():
    track = Track("C:/music/a.mp3", {"TITLE": ["Name"]})
    assert track_metadata(track, "title") == "Name"


def test_track_is_remote():
    assert track_is_remote(Track("http://stream.example.com/live"))
    assert track_is_remote(Track("https://stream.example.com/live"))
    assert not track_is_remote(Track("file://C:/music/a.mp3"))