"""Lyrics looked up through the Metal-Archives.com song search."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, ClassVar

import requests
from bs4 import BeautifulSoup, NavigableString, Tag

from openlyrics.sources.base import (
    LyricDataRaw,
    LyricSourceError,
    RemoteLyricSource,
    string_to_raw_bytes,
    urlencode,
)
from openlyrics.tag_util import trim_surrounding_whitespace

log = logging.getLogger(__name__)

_SEARCH_URL = "https://www.metal-archives.com/search/ajax-advanced/searching/songs"
_LYRICS_URL = "https://www.metal-archives.com/release/ajax-view-lyrics/id/"
_ID_PREFIX = "lyricsLink_"
_FIELD_COUNT = 5


def _collect_text(node: object) -> str:
    """Text of the node and its following siblings, up to the next heading or div."""
    parts = []
    current = node
    while current is not None:
        if type(current) is NavigableString:
            parts.append(trim_surrounding_whitespace(str(current)))
        elif isinstance(current, Tag):
            if current.name == "br":
                parts.append("\r\n")
            elif current.name in ("h3", "div"):
                break
            else:
                parts.append(_collect_text(current.contents[0] if current.contents else None))
        current = current.next_sibling
    return "".join(parts)


def _html_text(markup: str) -> str:
    soup = BeautifulSoup(markup, "html.parser")
    return _collect_text(soup.contents[0] if soup.contents else None)


def _root_element_id(markup: str) -> str:
    soup = BeautifulSoup(markup, "html.parser")
    first = soup.contents[0] if soup.contents else None
    if not isinstance(first, Tag):
        return ""
    value = first.get("id", "")
    return value if isinstance(value, str) else " ".join(value)


def _decode_json(content: bytes) -> Any:
    try:
        return json.loads(content.decode("utf-8", errors="replace"))
    except ValueError:
        return None


class MetalArchivesSource(RemoteLyricSource):
    """Searches Metal-Archives for songs and fetches the lyrics of a chosen result."""

    id: ClassVar[uuid.UUID] = uuid.UUID("a7ac869e-a867-49e6-979e-7b6158842117")
    friendly_name: ClassVar[str] = "Metal-Archives.com"

    def parse_song_ids(self, payload: Any) -> list[LyricDataRaw]:
        """Turn a decoded search response into search results awaiting lookup."""
        if not isinstance(payload, dict):
            log.info("Root object is null or not an object")
            return []

        songs = payload.get("aaData")
        if not isinstance(songs, list):
            log.info("No valid 'aaData' property available")
            return []

        output = []
        for index, song in enumerate(songs):
            if not isinstance(song, list):
                log.info("Song array entry %d not available or invalid", index)
                continue
            if len(song) != _FIELD_COUNT:
                raise LyricSourceError("Unexpected number of fields, the page format may have changed")

            artist_html, album_html, _release_type, title, lyrics_html = song
            if not all(isinstance(value, str) for value in (artist_html, album_html, title, lyrics_html)):
                raise LyricSourceError("Unexpected data-field format, the page format may have changed")

            artist = _html_text(artist_html)
            album = _html_text(album_html)

            result_id = _root_element_id(lyrics_html)
            if result_id and not result_id.startswith(_ID_PREFIX):
                raise LyricSourceError("Unrecognised lyric ID format, the page format may have changed")
            result_id = result_id[len(_ID_PREFIX) :]

            if not artist or not album:
                raise LyricSourceError("Failed to parse metadata component XML, the page format may have changed")

            output.append(
                LyricDataRaw(
                    source_id=self.id,
                    artist=artist,
                    album=album,
                    title=title,
                    lookup_id=result_id,
                )
            )
        return output

    def query(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        url = (
            f"{_SEARCH_URL}?bandName={urlencode(artist)}"
            f"&releaseTitle={urlencode(album)}"
            f"&songTitle={urlencode(title)}"
        )
        log.info("Querying for lyrics from %s...", url)

        try:
            response = self.session.get(url)
            response.raise_for_status()
        except requests.RequestException as ex:
            log.warning("Failed to download metal-archives.com page %s: %s", url, ex)
            return []

        songs = self.parse_song_ids(_decode_json(response.content))
        log.info("Retrieved %d tracks from %s", len(songs), url)
        return songs

    def lookup(self, data: LyricDataRaw) -> bool:
        if not data.lookup_id:
            return False

        url = _LYRICS_URL + data.lookup_id
        log.info("Looking up lyrics at %s...", url)
        try:
            response = self.session.get(url)
            response.raise_for_status()
        except requests.RequestException as ex:
            log.warning("Failed to download metal-archives.com page %s: %s", url, ex)
            return False

        lyric_text = _html_text(response.content.decode("utf-8", errors="replace"))
        data.text_bytes = string_to_raw_bytes(lyric_text)
        data.source_path = url
        return bool(data.text_bytes)