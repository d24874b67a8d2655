"""Lyrics scraped from Genius.com song pages."""

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
from openlyrics.tag_util import trim_surrounding_whitespace

log = logging.getLogger(__name__)

_REPLACEMENTS = {" ": "-", "-": "-", "&": "and", "@": "at"}


def remove_chars_for_url(text: str) -> str:
    """Transliterate to ASCII, lower-case, turn spaces into dashes and spell out & and @."""
    normalised = unicodedata.normalize("NFKD", text)
    parts = []
    for char in normalised:
        if char.isascii() and char.isalnum():
            parts.append(char.lower())
        elif char in _REPLACEMENTS:
            parts.append(_REPLACEMENTS[char])
    return "".join(parts)


def _class_attr(tag: Tag) -> str | None:
    value = tag.get("class")
    if value is None:
        return None
    return value if isinstance(value, str) else " ".join(value)


def _collect_text(node: Tag) -> str:
    """All text below the element, with line breaks for <br>."""
    parts = []
    for child in node.children:
        if type(child) is NavigableString:
            parts.append(trim_surrounding_whitespace(str(child)))
        elif isinstance(child, Tag):
            parts.append("\r\n" if child.name == "br" else _collect_text(child))
    return "".join(parts)


def _find_lyric_containers(soup: BeautifulSoup) -> list[Tag]:
    divs = soup.find_all("div")
    old_style = [div for div in divs if _class_attr(div) == "lyrics"]
    if old_style:
        return old_style
    return [div for div in divs if "Lyrics__Container" in (_class_attr(div) or "")]


class GeniusSource(RemoteLyricSource):
    """Fetches the Genius page for a track and reads the lyric text from it."""

    id: ClassVar[uuid.UUID] = uuid.UUID("b4cf497f-0d2c-45ff-aa46-f145a70f9014")
    friendly_name: ClassVar[str] = "Genius.com"

    def query(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        url = f"https://genius.com/{remove_chars_for_url(artist)}-{remove_chars_for_url(title)}-lyrics"

        try:
            response = self.session.get(url)
            response.raise_for_status()
        except requests.RequestException as ex:
            log.warning("Failed to download genius.com page %s: %s", url, ex)
            return []
        content = response.content.decode("utf-8", errors="replace")
        log.info("Page %s retrieved", url)

        soup = BeautifulSoup(content, "html.parser")
        lyric_text = "".join(_collect_text(container) for container in _find_lyric_containers(soup))
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