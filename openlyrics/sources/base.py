"""Lyric data types, the lyric source interfaces and the registry of sources."""

from __future__ import annotations

import abc
import logging
import sys
import uuid
from dataclasses import dataclass, field
from typing import ClassVar

import requests

from openlyrics.tag_util import (
    Track,
    track_metadata,
    trim_surrounding_whitespace,
    trim_trailing_text_in_brackets,
)

log = logging.getLogger(__name__)

UNTIMED = sys.float_info.max
"""Timestamp given to lyric lines that carry no time."""

_UNRESERVED = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_.~")


class LyricSourceError(Exception):
    """Raised when a lyric source cannot carry out a request."""


@dataclass
class LyricDataRaw:
    """Lyrics as found by a source, before decoding."""

    source_id: uuid.UUID | None = None
    source_path: str = ""
    lookup_id: str = ""
    artist: str = ""
    album: str = ""
    title: str = ""
    text_bytes: bytes = b""


@dataclass
class _LyricMetadata:
    source_id: uuid.UUID | None = None
    source_path: str = ""
    lookup_id: str = ""
    artist: str = ""
    album: str = ""
    title: str = ""
    save_source: uuid.UUID | None = None
    save_path: str = ""


@dataclass
class LyricDataUnstructured(_LyricMetadata):
    """Decoded lyric text that has not yet been split into lines."""

    text: str = ""


@dataclass
class LyricDataLine:
    """One line of lyrics and the time at which it is sung."""

    text: str = ""
    timestamp: float = UNTIMED


@dataclass
class LyricData(_LyricMetadata):
    """Lyrics split into tags and (possibly timed) lines."""

    tags: list[str] = field(default_factory=list)
    lines: list[LyricDataLine] = field(default_factory=list)
    timestamp_offset: float = 0.0

    def is_empty(self) -> bool:
        return not self.lines


class LyricSource(abc.ABC):
    """A place lyrics can be searched for and, for local sources, saved to."""

    id: ClassVar[uuid.UUID]
    friendly_name: ClassVar[str]
    is_local: ClassVar[bool]

    @abc.abstractmethod
    def search(self, track: Track) -> list[LyricDataRaw]:
        """Find candidate lyrics for the track."""

    @abc.abstractmethod
    def lookup(self, data: LyricDataRaw) -> bool:
        """Fill in the text of a search result; return whether that succeeded."""

    @abc.abstractmethod
    def save(self, track: Track, is_timestamped: bool, lyrics: str, allow_overwrite: bool) -> str:
        """Persist lyrics for the track and return where they were stored."""

    @abc.abstractmethod
    def delete_persisted(self, track: Track, path: str) -> bool:
        """Remove lyrics stored at the given path."""

    @abc.abstractmethod
    def get_file_path(self, track: Track, lyrics: LyricData) -> str:
        """The path of the file that holds the given lyrics."""


_sources: dict[uuid.UUID, LyricSource] = {}


def register_source(source: LyricSource) -> LyricSource:
    """Make a source available through get_source and get_all_ids."""
    _sources.setdefault(source.id, source)
    return source


def get_source(source_id: uuid.UUID) -> LyricSource | None:
    """The registered source with the given id, or None."""
    return _sources.get(source_id)


def get_all_ids() -> list[uuid.UUID]:
    """Ids of all registered sources, in registration order."""
    return list(_sources)


def urlencode(text: str) -> str:
    """Percent-encode the UTF-8 form of text, encoding spaces as %20."""
    parts = []
    for byte in text.encode("utf-8"):
        if byte in _UNRESERVED:
            parts.append(chr(byte))
        elif byte == 0x20:
            parts.append("%20")
        else:
            parts.append(f"%{byte:02X}")
    return "".join(parts)


def string_to_raw_bytes(text: str) -> bytes:
    """The UTF-8 bytes of text."""
    return text.encode("utf-8")


class RemoteLyricSource(LyricSource):
    """A read-only source that searches by artist, album and title over the network."""

    is_local: ClassVar[bool] = False

    def __init__(
        self,
        session: requests.Session | None = None,
        exclude_trailing_brackets: bool = False,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.exclude_trailing_brackets = exclude_trailing_brackets

    def search(self, track: Track) -> list[LyricDataRaw]:
        artist, album, title = (track_metadata(track, key) for key in ("artist", "album", "title"))
        if self.exclude_trailing_brackets:
            artist, album, title = (
                trim_surrounding_whitespace(trim_trailing_text_in_brackets(value))
                for value in (artist, album, title)
            )
        return self.query(artist, album, title)

    @abc.abstractmethod
    def query(self, artist: str, album: str, title: str) -> list[LyricDataRaw]:
        """Search the remote service for the given track details."""

    def save(self, track: Track, is_timestamped: bool, lyrics: str, allow_overwrite: bool) -> str:
        raise LyricSourceError("Cannot save lyrics to a remote source")

    def delete_persisted(self, track: Track, path: str) -> bool:
        raise LyricSourceError("Cannot delete lyrics from a remote source")

    def get_file_path(self, track: Track, lyrics: LyricData) -> str:
        raise LyricSourceError("Cannot get file path for lyrics on a remote source")