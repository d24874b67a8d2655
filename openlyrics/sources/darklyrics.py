"""Lyrics scraped from DarkLyrics.com album pages."""

from __future__ import annotations

import logging
import unicodedata
import uuid
from typing import ClassVar

import requests
from bs4 import BeautifulSoup, NavigableString, Tag

from openlyrics.sources.base import (
    LyricDataRaw,
    LyricSourceError,
    RemoteLyricSource,
    string_to_raw_bytes,
)
from openlyrics.tag_util import tag_values_match, trim_surrounding_whitespace

log = logging.getLogger(__name__)


def remove_chars_for_url(text: str) -> str:
    """Transliterate to ASCII and keep only lower-cased letters and digits."""
    normalised = unicodedata.normalize("NFKD", text)
    return "".join(char.lower() for char in normalised if char.isascii() and char.isalnum())


def _class_attr(tag: Tag) -> str | None:
    value = tag.get("class")
    if value is None:
        return None
    return value if isinstance(value, str) else " ".join(value)


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


class DarkLyricsSource(RemoteLyricSource):
    """Fetches the album page for a track and reads the lyrics of the matching song."""

    id: ClassVar[uuid.UUID] = uuid.UUID("5901c128-c67f-4eec-8f10-475d125289e9")
    friendly_name: ClassVar[str] = "DarkLyrics.com"

    def _extract_lyrics(self, soup: BeautifulSoup, title: str) -> str:
        for div in soup.find_all("div"):
            if _class_attr(div) != "lyrics":
                continue
            for heading in div.find_all("h3", recursive=False):
                for anchor in heading.find_all("a", recursive=False):
                    if not anchor.has_attr("name") or not anchor.contents:
                        continue
                    first = anchor.contents[0]
                    if type(first) is not NavigableString:
                        continue

                    title_text = str(first)
                    dot = title_text.find(".")
                    if dot == -1:
                        continue
                    title_text = trim_surrounding_whitespace(title_text[dot + 1 :])
                    if not tag_values_match(title_text, title, self.exclude_trailing_brackets):
                        continue
                    return _collect_text(heading.next_sibling)
        return ""

    def query(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        url = f"http://darklyrics.com/lyrics/{remove_chars_for_url(artist)}/{remove_chars_for_url(album)}.html"
        log.info("Querying for lyrics from %s...", url)

        try:
            response = self.session.get(url)
            response.raise_for_status()
        except requests.RequestException as ex:
            log.warning("Failed to download darklyrics.com page %s: %s", url, ex)
            return []
        content = response.content.decode("utf-8", errors="replace")

        lyric_text = self._extract_lyrics(BeautifulSoup(content, "html.parser"), title)
        trimmed = trim_surrounding_whitespace(lyric_text)
        if not trimmed:
            raise LyricSourceError("Failed to parse lyrics, the page format may have changed")

        log.info("Successfully retrieved lyrics from %s", url)
        return [
            LyricDataRaw(
                source_id=self.id,
                source_path=url,
                artist=artist,
                album=album,
                title=title,
                text_bytes=string_to_raw_bytes(trimmed),
            )
        ]

    def lookup(self, data: LyricDataRaw) -> bool:
        raise LyricSourceError(f"We should never need to do a lookup of the {self.friendly_name} source")