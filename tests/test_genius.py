import pytest
import responses

from openlyrics.sources.base import LyricDataRaw, LyricSourceError
from openlyrics.sources.genius import GeniusSource, remove_chars_for_url

URL = "https://genius.com/simon-and-garfunkel-the-boxer-lyrics"

NEW_PAGE = """<html><body>
<div class="Lyrics__Container-abc"><span>Line one</span><br/>Line two</div>
<div class="Other">ignored</div>
<div class="Lyrics__Container-abc"><br/>Line three</div>
</body></html>"""

OLD_PAGE = """<html><body>
<div class="lyrics"><p>Old one<br>Old two</p></div>
<div class="Lyrics__Container-abc">New text</div>
</body></html>"""


@pytest.fixture
def mocked():
    with responses.RequestsMock() as rsps:
        yield rsps


def test_remove_chars_for_url_spells_out_symbols():
    assert remove_chars_for_url("Simon & Garfunkel") == "simon-and-garfunkel"
    assert remove_chars_for_url("me@home") == "meathome"


def test_query_collects_all_new_style_containers(mocked):
    mocked.add(responses.GET, URL, body=NEW_PAGE, status=200)
    results = GeniusSource().query("Simon & Garfunkel", "Bridge", "The Boxer")
    assert len(results) == 1
    result = results[0]
    assert result.text_bytes == b"Line one\r\nLine two\r\nLine three"
    assert result.source_path == URL
    assert result.album == "Bridge"
    assert result.source_id == GeniusSource.id


def test_query_prefers_old_style_container(mocked):
    mocked.add(responses.GET, URL, body=OLD_PAGE, status=200)
    results = GeniusSource().query("Simon & Garfunkel", "", "The Boxer")
    assert results[0].text_bytes == b"Old one\r\nOld two"


def test_query_raises_without_lyrics(mocked):
    mocked.add(responses.GET, URL, body="<html><body></body></html>", status=200)
    with pytest.raises(LyricSourceError):
        GeniusSource().query("Simon & Garfunkel", "", "The Boxer")


def test_query_returns_nothing_on_http_error(mocked):
    mocked.add(responses.GET, URL, status=404)
    assert GeniusSource().query("Simon & Garfunkel", "", "The Boxer") == []


def test_lookup_is_not_supported():
    with pytest.raises(LyricSourceError):
        GeniusSource().lookup(LyricDataRaw())