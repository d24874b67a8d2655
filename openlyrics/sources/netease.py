"""Lyrics from the NetEase Online Music service."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, ClassVar

import requests

from openlyrics.sources.base import (
    LyricDataRaw,
    RemoteLyricSource,
    string_to_raw_bytes,
    urlencode,
)
from openlyrics.tag_util import trim_surrounding_whitespace

log = logging.getLogger(__name__)

BASE_URL = "https://music.163.com/api"
_HEADERS = {
    "Referer": "https://music.163.com",
    "Cookie": "appver=2.0.2",
    "charset": "utf-8",
    "Content-Type": "application/x-www-form-urlencoded",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _string_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _decode_json(content: bytes) -> Any:
    try:
        return json.loads(content.decode("utf-8", errors="replace"))
    except ValueError:
        return None


class NetEaseSource(RemoteLyricSource):
    """Searches NetEase for song ids and fetches the LRC lyrics of a chosen result."""

    id: ClassVar[uuid.UUID] = uuid.UUID("aac13215-e32e-4667-acd7-1f0dbd8427e4")
    friendly_name: ClassVar[str] = "NetEase Online Music"

    def _post(self, url: str) -> requests.Response:
        response = self.session.post(url, headers=_HEADERS)
        response.raise_for_status()
        return response

    def parse_song_ids(self, payload: Any) -> list[LyricDataRaw]:
        """Turn a decoded search response into search results awaiting lookup."""
        if not isinstance(payload, dict):
            log.info("Root object is null or not an object")
            return []
        result = payload.get("result")
        if not isinstance(result, dict):
            log.info("No valid 'result' property available")
            return []
        songs = result.get("songs")
        if not isinstance(songs, list):
            log.info("No valid 'songs' property available")
            return []
        if not songs:
            log.info("Songs array has no items available")
            return []

        output = []
        for index, song in enumerate(songs):
            if not isinstance(song, dict):
                log.info("Song array entry %d not available or invalid", index)
                continue

            artist = ""
            artists = song.get("artists")
            if isinstance(artists, list) and artists and isinstance(artists[0], dict):
                artist = _string_or_empty(artists[0].get("name"))

            album = ""
            album_item = song.get("album")
            if isinstance(album_item, dict):
                album = _string_or_empty(album_item.get("name"))

            song_id = song.get("id")
            if not _is_number(song_id):
                log.info("Song item ID field is not available or invalid")
                continue

            output.append(
                LyricDataRaw(
                    source_id=self.id,
                    artist=artist,
                    album=album,
                    title=_string_or_empty(song.get("name")),
                    lookup_id=str(int(song_id)),
                )
            )
        return output

    def query(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        url = (
            f"{BASE_URL}/search/get?s={urlencode(artist)}+{urlencode(title)}"
            "&type=1&offset=0&sub=false&limit=5"
        )
        log.info("Querying for song ID from %s...", url)
        try:
            response = self._post(url)
        except requests.RequestException as ex:
            log.warning("Failed to download netease page %s: %s", url, ex)
            return []
        return self.parse_song_ids(_decode_json(response.content))

    def lookup(self, data: LyricDataRaw) -> bool:
        if not data.lookup_id:
            return False

        url = f"{BASE_URL}/song/lyric?tv=-1&kv=-1&lv=-1&os=pc&id={data.lookup_id}"
        data.source_path = url
        log.info("Get NetEase lyrics for song ID %s from %s...", data.lookup_id, url)
        try:
            response = self._post(url)
        except requests.RequestException as ex:
            log.warning("Failed to download NetEase page %s: %s", url, ex)
            return False

        payload = _decode_json(response.content)
        if not isinstance(payload, dict):
            return False
        lrc = payload.get("lrc")
        if not isinstance(lrc, dict):
            return False
        lyric = lrc.get("lyric")
        if not isinstance(lyric, str):
            return False

        data.text_bytes = string_to_raw_bytes(trim_surrounding_whitespace(lyric))
        return True