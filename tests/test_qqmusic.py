import base64

import pytest
import requests
import responses

from openlyrics.sources.qqmusic import LYRIC_URL, SEARCH_URL, QQMusicSource


@pytest.fixture
def source():
    return QQMusicSource(requests.Session())


def _payload(items):
    return {"data": {"song": {"itemlist": items}}}


def test_parse_song_ids_reads_fields(source):
    results = source.parse_song_ids(_payload([{"singer": "Band", "name": "Song", "mid": "abc"}]))
    assert len(results) == 1
    assert results[0].artist == "Band"
    assert results[0].title == "Song"
    assert results[0].lookup_id == "abc"
    assert results[0].source_id == QQMusicSource.id


def test_parse_song_ids_skips_entries_without_id(source):
    results = source.parse_song_ids(
        _payload([{"singer": "A", "name": "B"}, "junk", {"mid": "xyz"}])
    )
    assert [r.lookup_id for r in results] == ["xyz"]
    assert results[0].artist == ""


@pytest.mark.parametrize(
    "payload",
    [None, [], {"data": []}, {"data": {"song": None}}, {"data": {"song": {"itemlist": {}}}}, _payload([])],
)
def test_parse_song_ids_malformed(source, payload):
    assert source.parse_song_ids(payload) == []


def test_query_sends_search_request(source):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, SEARCH_URL, json=_payload([{"singer": "A", "name": "T", "mid": "m1"}]))
        results = source.query("A", "Album", "T")
        sent = rsps.calls[0].request
    assert [r.lookup_id for r in results] == ["m1"]
    assert "key=A+T" in sent.url
    assert sent.headers["Referer"] == "http://y.qq.com/portal/player.html"


def test_query_network_failure_returns_empty(source):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, SEARCH_URL, body=requests.ConnectionError("down"))
        assert source.query("A", "B", "C") == []


def test_lookup_decodes_base64_lyrics(source):
    from openlyrics.sources.base import LyricDataRaw

    text = "[00:01.00]hello"
    data = LyricDataRaw(source_id=QQMusicSource.id, lookup_id="m1")
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, LYRIC_URL, json={"lyric": base64.b64encode(text.encode()).decode()})
        assert source.lookup(data) is True
    assert data.text_bytes.decode("utf-8") == text
    assert data.source_path.endswith("songmid=m1")


def test_lookup_without_lyric_fails(source):
    from openlyrics.sources.base import LyricDataRaw

    data = LyricDataRaw(source_id=QQMusicSource.id, lookup_id="m1")
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, LYRIC_URL, json={"code": -1})
        assert source.lookup(data) is False
    assert data.text_bytes == b""


def test_lookup_empty_id_fails(source):
    from openlyrics.sources.base import LyricDataRaw

    assert source.lookup(LyricDataRaw(source_id=QQMusicSource.id)) is False