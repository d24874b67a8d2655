import re

import pytest
import requests
import responses

from openlyrics.sources.base import LyricDataRaw, LyricSourceError
from openlyrics.sources.metalarchives import MetalArchivesSource
from openlyrics.tag_util import Track

SEARCH_PATTERN = re.compile(r"https://www\.metal-archives\.com/search/.*")
LYRICS_PATTERN = re.compile(r"https://www\.metal-archives\.com/release/ajax-view-lyrics/.*")


def _row(artist="Iron Maiden", album="Powerslave", title="Aces High", lyric_id="lyricsLink_12345"):
    return [
        f'<a href="https://example.com/band">{artist}</a>',
        f'<a href="https://example.com/album">{album}</a>',
        "Full-length",
        title,
        f'<a href="javascript:;" id="{lyric_id}">Show lyrics</a>',
    ]


@pytest.fixture
def source():
    return MetalArchivesSource(session=requests.Session())


def test_parse_song_ids_reads_fields(source):
    results = source.parse_song_ids({"aaData": [_row()]})
    assert len(results) == 1
    result = results[0]
    assert result.artist == "Iron Maiden"
    assert result.album == "Powerslave"
    assert result.title == "Aces High"
    assert result.lookup_id == "12345"
    assert result.source_id == MetalArchivesSource.id


@pytest.mark.parametrize("payload", [None, [], "text", {}, {"aaData": "nope"}])
def test_parse_song_ids_rejects_malformed_roots(source, payload):
    assert source.parse_song_ids(payload) == []


def test_parse_song_ids_skips_non_array_entries(source):
    results = source.parse_song_ids({"aaData": [{"x": 1}, _row(title="Flash of the Blade")]})
    assert [r.title for r in results] == ["Flash of the Blade"]


def test_parse_song_ids_wrong_field_count_raises(source):
    with pytest.raises(LyricSourceError):
        source.parse_song_ids({"aaData": [_row()[:4]]})


def test_parse_song_ids_non_string_field_raises(source):
    row = _row()
    row[3] = 7
    with pytest.raises(LyricSourceError):
        source.parse_song_ids({"aaData": [row]})


def test_parse_song_ids_bad_id_prefix_raises(source):
    with pytest.raises(LyricSourceError):
        source.parse_song_ids({"aaData": [_row(lyric_id="other_12345")]})


def test_parse_song_ids_empty_artist_raises(source):
    row = _row()
    row[0] = "<a href='x'></a>"
    with pytest.raises(LyricSourceError):
        source.parse_song_ids({"aaData": [row]})


def test_query_builds_url_and_parses(source):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, SEARCH_PATTERN, json={"aaData": [_row()]})
        results = source.query("Iron Maiden", "Powerslave", "Aces High")
        url = rsps.calls[0].request.url
    assert "bandName=Iron%20Maiden&releaseTitle=Powerslave&songTitle=Aces%20High" in url
    assert [r.lookup_id for r in results] == ["12345"]


def test_query_http_error_returns_empty(source):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, SEARCH_PATTERN, status=500)
        assert source.query("Iron Maiden", "Powerslave", "Aces High") == []


def test_query_invalid_json_returns_empty(source):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, SEARCH_PATTERN, body="not json")
        assert source.query("Iron Maiden", "Powerslave", "Aces High") == []


def test_search_trims_brackets_when_configured():
    source = MetalArchivesSource(session=requests.Session(), exclude_trailing_brackets=True)
    track = Track(
        "/music/aces.flac",
        {"artist": ["Iron Maiden"], "album": ["Powerslave"], "title": ["Aces High (Live)"]},
    )
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, SEARCH_PATTERN, json={"aaData": []})
        assert source.search(track) == []
        url = rsps.calls[0].request.url
    assert url.endswith("songTitle=Aces%20High")


def test_lookup_collects_text(source):
    data = LyricDataRaw(source_id=MetalArchivesSource.id, lookup_id="12345")
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, LYRICS_PATTERN, body="Line one<br />\nLine two<br />\n")
        assert source.lookup(data) is True
    assert data.text_bytes == b"Line one\r\nLine two\r\n"
    assert data.source_path.endswith("/ajax-view-lyrics/id/12345")


def test_lookup_without_id_makes_no_request(source):
    data = LyricDataRaw(source_id=MetalArchivesSource.id)
    with responses.RequestsMock() as rsps:
        assert source.lookup(data) is False
        assert len(rsps.calls) == 0


def test_lookup_http_error_returns_false(source):
    data = LyricDataRaw(source_id=MetalArchivesSource.id, lookup_id="12345")
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, LYRICS_PATTERN, status=404)
        assert source.lookup(data) is False
    assert data.text_bytes == b""


def test_lookup_empty_page_returns_false(source):
    data = LyricDataRaw(source_id=MetalArchivesSource.id, lookup_id="12345")
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, LYRICS_PATTERN, body="")
        assert source.lookup(data) is False