"""Lyrics from the Musixmatch desktop API."""

from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, ClassVar

import requests

from openlyrics.sources.base import (
    LyricDataRaw,
    RemoteLyricSource,
    string_to_raw_bytes,
    urlencode,
)

log = logging.getLogger(__name__)

API_URL = "https://apic-desktop.musixmatch.com/ws/1.1/"
COMMON_PARAMS = "user_language=en&app_id=web-desktop-app-v1.0"
# Without these the service redirects back to itself asking for the cookies to be set
_HEADERS = {"cookie": "AWSELBCORS=0; AWSELB=0"}
_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass
class SongSearchResult:
    """What a search told us about a track, packed into the lookup id."""

    track_id: int = 0
    has_synced_lyrics: bool = False
    has_unsynced_lyrics: bool = False


def encode_search_result(result: SongSearchResult) -> str:
    """Unsynced flag, synced flag, then the track id, as one string."""
    unsynced = "1" if result.has_unsynced_lyrics else "0"
    synced = "1" if result.has_synced_lyrics else "0"
    return f"{unsynced}{synced}{result.track_id}"


def decode_search_result(text: str) -> SongSearchResult | None:
    """The inverse of encode_search_result, or None if the text is not of that form."""
    if len(text) < 3 or text[0] not in "01" or text[1] not in "01":
        return None
    match = _LEADING_INTEGER.match(text, 2)
    track_id = int(match.group(1)) if match else 0
    return SongSearchResult(
        track_id=min(max(track_id, _INT64_MIN), _INT64_MAX),
        has_synced_lyrics=text[1] == "1",
        has_unsynced_lyrics=text[0] == "1",
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _fetch_json(session: requests.Session, url: str) -> tuple[Any, str]:
    response = session.get(url, headers=_HEADERS)
    response.raise_for_status()
    content = response.content.decode("utf-8", errors="replace")
    try:
        return json.loads(content), content
    except ValueError:
        return None, content


def _message_body(payload: Any, content: str, context: str) -> dict | None:
    """The message.body object of a response, logging where the structure broke."""
    if not isinstance(payload, dict):
        log.warning("Received musixmatch %s but root was malformed: %s", context, content)
        return None
    message = payload.get("message")
    if not isinstance(message, dict):
        log.warning("Received musixmatch %s but message was malformed: %s", context, content)
        return None
    body = message.get("body")
    if not isinstance(body, dict):
        log.warning("Received musixmatch %s but body was malformed: %s", context, content)
        return None
    return body


def get_token(session: requests.Session | None = None) -> str:
    """Request a fresh user token, or return an empty string on failure."""
    if session is None:
        session = requests.Session()
    url = f"{API_URL}token.get?{COMMON_PARAMS}"
    log.info("Attempting to get Musixmatch token from %s...", url)
    try:
        payload, content = _fetch_json(session, url)
    except requests.RequestException as ex:
        log.warning("Failed to get Musixmatch token from %s: %s", url, ex)
        return ""

    body = _message_body(payload, content, "token response")
    if body is None:
        return ""
    token = body.get("user_token")
    if not isinstance(token, str):
        log.warning("Received musixmatch token response but user_token was malformed: %s", content)
        return ""
    return token


class MusixmatchSource(RemoteLyricSource):
    """Searches Musixmatch for tracks and fetches synced or unsynced lyrics for them."""

    id: ClassVar[uuid.UUID] = uuid.UUID("f94ba31a-7b33-49e4-819b-000c364429cd")
    friendly_name: ClassVar[str] = "Musixmatch"

    def __init__(
        self,
        session: requests.Session | None = None,
        exclude_trailing_brackets: bool = False,
        api_key: str = "",
    ) -> None:
        super().__init__(session, exclude_trailing_brackets)
        self.api_key = api_key

    def query(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        if not self.api_key:
            # Skip obviously-bad requests rather than spamming the service with them
            log.info("Skipping request to the Musixmatch source because no API key is available")
            return []
        return self._get_song_ids(artist, album, title)

    def _get_song_ids(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        url = (
            f"{API_URL}track.search?{COMMON_PARAMS}&subtitle_format=lrc"
            f"&q_artist={urlencode(artist)}"
            f"&q_album={urlencode(album)}"
            f"&q_track={urlencode(title)}"
            "&usertoken="
        )
        log.info("Querying for track ID from %s", url)
        url += self.api_key  # Added after logging so the key is never logged

        try:
            payload, content = _fetch_json(self.session, url)
        except requests.RequestException as ex:
            log.warning("Failed to make Musixmatch search request: %s", ex)
            return []

        body = _message_body(payload, content, "search result")
        if body is None:
            return []
        track_list = body.get("track_list")
        if not isinstance(track_list, list):
            log.warning("Received musixmatch search result but track_list was malformed: %s", content)
            return []

        results = []
        for entry in track_list:
            track = entry.get("track") if isinstance(entry, dict) else None
            if not isinstance(track, dict):
                log.warning("Received musixmatch search result but track was malformed: %s", content)
                break
            artist_name = track.get("artist_name")
            album_name = track.get("album_name")
            track_name = track.get("track_name")
            has_lyrics = track.get("has_lyrics")
            has_subtitles = track.get("has_subtitles")
            track_id = track.get("commontrack_id")
            if not all(isinstance(value, str) for value in (artist_name, album_name, track_name)):
                log.warning("Received musixmatch search result but track names were malformed")
                break
            if not all(_is_number(value) for value in (has_lyrics, has_subtitles, track_id)):
                log.warning("Received musixmatch search result but track fields were malformed: %s", content)
                break

            search_result = SongSearchResult(
                track_id=int(track_id),
                has_synced_lyrics=int(has_subtitles) != 0,
                has_unsynced_lyrics=int(has_lyrics) != 0,
            )
            results.append(
                LyricDataRaw(
                    source_id=self.id,
                    artist=artist_name,
                    album=album_name,
                    title=track_name,
                    lookup_id=encode_search_result(search_result),
                )
            )
        return results

    def _get_lyrics(self, data: LyricDataRaw, track_id: int, method: str, body_entry: str, text_entry: str) -> bool:
        url = f"{API_URL}{method}?{COMMON_PARAMS}&commontrack_id={track_id}&usertoken="
        log.info("Get Musixmatch lyrics from %s", url)
        url += self.api_key
        data.source_path = url

        try:
            payload, content = _fetch_json(self.session, url)
        except requests.RequestException as ex:
            log.warning("Failed to make Musixmatch %s request: %s", method, ex)
            return False

        body = _message_body(payload, content, f"{method} response")
        if body is None:
            return False
        lyrics = body.get(body_entry)
        if not isinstance(lyrics, dict):
            log.info("Received musixmatch %s response but %s was malformed: %s", method, body_entry, content)
            return False
        text = lyrics.get(text_entry)
        if not isinstance(text, str):
            log.info("Received musixmatch %s response but %s was malformed: %s", method, text_entry, content)
            return False
        if not text:
            return False

        data.text_bytes = string_to_raw_bytes(text)
        return True

    def lookup(self, data: LyricDataRaw) -> bool:
        search_result = decode_search_result(data.lookup_id)
        if search_result is None:
            log.warning("Attempt to lookup musixmatch lyrics with invalid lookup ID: %s", data.lookup_id)
            return False
        if search_result.track_id == 0:
            log.warning("Attempt to lookup musixmatch lyrics with null lookup track ID: %s", data.lookup_id)
            return False

        if search_result.has_synced_lyrics:
            return self._get_lyrics(data, search_result.track_id, "track.subtitle.get", "subtitle", "subtitle_body")
        if search_result.has_unsynced_lyrics:
            return self._get_lyrics(data, search_result.track_id, "track.lyrics.get", "lyrics", "lyrics_body")
        return False