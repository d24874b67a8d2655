"""Lyrics from the QQ Music service."""

from __future__ import annotations

import base64
import binascii
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

log = logging.getLogger(__name__)

SEARCH_URL = "https://c.y.qq.com/splcloud/fcgi-bin/smartbox_new.fcg"
LYRIC_URL = "http://c.y.qq.com/lyric/fcgi-bin/fcg_query_lyric_new.fcg"
_HEADERS = {"Referer": "http://y.qq.com/portal/player.html"}


def _string_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _decode_json(content: bytes) -> Any:
    try:
        return json.loads(content.decode("utf-8", errors="replace"))
    except ValueError:
        return None


class QQMusicSource(RemoteLyricSource):
    """Searches QQ Music for song ids and fetches the lyrics of a chosen result."""

    id: ClassVar[uuid.UUID] = uuid.UUID("4b0b5722-3a84-4b8e-827a-26b9eab3b4e8")
    friendly_name: ClassVar[str] = "QQ Music"

    def _get(self, url: str) -> requests.Response:
        response = self.session.get(url, headers=_HEADERS)
        response.raise_for_status()
        return response

    def parse_song_ids(self, payload: Any) -> list[LyricDataRaw]:
        """Turn a decoded search response into search results awaiting lookup."""
        if not isinstance(payload, dict):
            log.info("Root object is null or not an object")
            return []
        data = payload.get("data")
        if not isinstance(data, dict):
            log.info("No valid 'data' property available")
            return []
        song = data.get("song")
        if not isinstance(song, dict):
            log.info("No valid 'song' property available")
            return []
        songs = song.get("itemlist")
        if not isinstance(songs, list):
            log.info("No valid 'list' property available")
            return []
        if not songs:
            log.info("Songs array has no items available")
            return []

        output = []
        for index, item in enumerate(songs):
            if not isinstance(item, dict):
                log.info("Song array entry %d not available or invalid", index)
                continue

            song_id = item.get("mid")
            if not isinstance(song_id, str):
                log.info("Song item ID field is not available or invalid")
                continue

            output.append(
                LyricDataRaw(
                    source_id=self.id,
                    artist=_string_or_empty(item.get("singer")),
                    title=_string_or_empty(item.get("name")),
                    lookup_id=song_id,
                )
            )
        return output

    def query(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        url = f"{SEARCH_URL}?inCharset=utf-8&outCharset=utf-8&key={urlencode(artist)}+{urlencode(title)}"
        log.info("Querying for song ID from %s...", url)
        try:
            response = self._get(url)
        except requests.RequestException as ex:
            log.warning("Failed to download QQMusic page %s: %s", url, ex)
            return []
        return self.parse_song_ids(_decode_json(response.content))

    def lookup(self, data: LyricDataRaw) -> bool:
        if not data.lookup_id:
            return False

        url = f"{LYRIC_URL}?g_tk=5381&format=json&inCharset=utf-8&outCharset=utf-8&songmid={data.lookup_id}"
        data.source_path = url
        log.info("Get QQMusic lyrics for song ID %s from %s...", data.lookup_id, url)
        try:
            response = self._get(url)
        except requests.RequestException as ex:
            log.warning("Failed to download QQMusic page %s: %s", url, ex)
            return False

        payload = _decode_json(response.content)
        if not isinstance(payload, dict):
            return False
        lyric = payload.get("lyric")
        if not isinstance(lyric, str):
            return False

        try:
            decoded = base64.b64decode(lyric)
        except (binascii.Error, ValueError) as ex:
            log.warning("Failed to decode QQMusic lyrics for song ID %s: %s", data.lookup_id, ex)
            return False
        text = decoded.decode("utf-8", errors="replace")
        data.text_bytes = string_to_raw_bytes(text)
        return True