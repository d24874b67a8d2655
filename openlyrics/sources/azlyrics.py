"""Lyrics scraped from AZLyrics.com pages."""

from __future__ import annotations

import logging
import math
import unicodedata
import uuid
from datetime import datetime, timedelta
from typing import ClassVar

import requests
from bs4 import BeautifulSoup, NavigableString, Tag

from openlyrics.sources.base import (
    LyricDataRaw,
    LyricSourceError,
    RemoteLyricSource,
    string_to_raw_bytes,
)
from openlyrics.tag_util import trim_surrounding_whitespace

log = logging.getLogger(__name__)

_USERAGENT_EPOCH = datetime(2022, 8, 30)
_USERAGENT_EPOCH_VERSION = 103  # The current Firefox release as of the epoch above
_HOURS_PER_MONTH = 24 * 30


def remove_chars_for_url(text: str) -> str:
    """Transliterate to ASCII and keep only lower-cased letters and digits."""
    normalised = unicodedata.normalize("NFKD", text)
    return "".join(char.lower() for char in normalised if char.isascii() and char.isalnum())


def firefox_user_agent(now: datetime | None = None) -> str:
    """A Firefox user agent whose version advances roughly once a month, like real releases.

    Sufficiently outdated browsers get served a captcha instead of the page.
    """
    if now is None:
        now = datetime.now()
    elif now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    hours = math.trunc((now - _USERAGENT_EPOCH) / timedelta(hours=1))
    months = math.trunc(hours / _HOURS_PER_MONTH)
    version = _USERAGENT_EPOCH_VERSION + months
    return f"Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:{version}.0) Gecko/20100101 Firefox/{version}.0"


def _class_attr(tag: Tag) -> str | None:
    value = tag.get("class")
    if value is None:
        return None
    return value if isinstance(value, str) else " ".join(value)


def _is_text(node: object) -> bool:
    return type(node) is NavigableString


def _extract_lyrics(soup: BeautifulSoup, url: str) -> str:
    header = next((div for div in soup.find_all("div") if _class_attr(div) == "lyricsh"), None)
    if header is None:
        log.info("No appropriate lyric header divs found on page: %s", url)
        return ""

    # The lyrics live in the first following sibling div that carries no class at all
    target = header
    while target is not None:
        if isinstance(target, Tag) and target.name == "div" and not target.has_attr("class"):
            break
        target = target.next_sibling
    if target is None:
        return ""

    parts = []
    for child in target.children:
        if _is_text(child):
            parts.append(trim_surrounding_whitespace(str(child)))
        elif isinstance(child, Tag) and child.name == "br":
            parts.append("\r\n")
    return "".join(parts)


class AZLyricsSource(RemoteLyricSource):
    """Fetches the AZLyrics page for a track and reads the lyric text from it."""

    id: ClassVar[uuid.UUID] = uuid.UUID("adf3a1ba-7e88-4539-af9e-a8c4bc6298f1")
    friendly_name: ClassVar[str] = "AZLyrics.com"

    def query(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        url = f"https://www.azlyrics.com/lyrics/{remove_chars_for_url(artist)}/{remove_chars_for_url(title)}.html"
        log.info("Querying for lyrics from %s...", url)

        try:
            response = self.session.get(url, headers={"User-Agent": firefox_user_agent()})
            response.raise_for_status()
        except requests.RequestException as ex:
            log.warning("Failed to download azlyrics.com page %s: %s", url, ex)
            return []
        content = response.content.decode("utf-8", errors="replace")

        lyric_text = _extract_lyrics(BeautifulSoup(content, "html.parser"), url)
        trimmed = trim_surrounding_whitespace(lyric_text)
        if not trimmed:
            raise LyricSourceError("Failed to parse lyrics, the page format may have changed")

        log.info("Successfully retrieved lyrics from %s", url)
        return [
            LyricDataRaw(
                source_id=self.id,
                source_path=url,
                artist=artist,
                title=title,
                text_bytes=string_to_raw_bytes(trimmed),
            )
        ]

    def lookup(self, data: LyricDataRaw) -> bool:
        raise LyricSourceError(f"We should never need to do a lookup of the {self.friendly_name} source")