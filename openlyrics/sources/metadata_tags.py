"""Lyrics stored in a track's own metadata tags."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import ClassVar

from openlyrics.sources.base import (
    LyricData,
    LyricDataRaw,
    LyricSource,
    LyricSourceError,
    string_to_raw_bytes,
)
from openlyrics.tag_util import Track, track_is_remote, track_metadata

log = logging.getLogger(__name__)


def _find_tag(track: Track, name: str) -> str | None:
    """The key under which the tag is stored, matched case-insensitively."""
    wanted = name.lower()
    return next((key for key in track.metadata if key.lower() == wanted), None)


class MetadataTagSource(LyricSource):
    """Searches configured tags for lyrics and saves lyrics into a tag."""

    id: ClassVar[uuid.UUID] = uuid.UUID("3fb0f715-a097-493a-944e-db4866088678")
    friendly_name: ClassVar[str] = "Metadata tags"
    is_local: ClassVar[bool] = True

    def __init__(
        self,
        search_tags: Iterable[str],
        timestamped_tag: str,
        untimed_tag: str,
        local_files: LyricSource | None = None,
    ) -> None:
        self.search_tags = list(search_tags)
        self.timestamped_tag = timestamped_tag
        self.untimed_tag = untimed_tag
        self.local_files = local_files

    def search(self, track: Track) -> list[LyricDataRaw]:
        result = []
        for tag in self.search_tags:
            log.info("Searching for lyrics in tag: '%s'", tag)
            key = _find_tag(track, tag)
            if key is None:
                continue

            text_bytes = string_to_raw_bytes("".join(track.metadata[key]))
            if not text_bytes:
                continue

            log.info("Found lyrics in tag: '%s'", tag)
            result.append(
                LyricDataRaw(
                    source_id=self.id,
                    source_path=tag,
                    artist=track_metadata(track, "artist"),
                    album=track_metadata(track, "album"),
                    title=track_metadata(track, "title"),
                    text_bytes=text_bytes,
                )
            )
        return result

    def lookup(self, data: LyricDataRaw) -> bool:
        raise LyricSourceError(f"We should never need to do a lookup of the {self.friendly_name} source")

    def save(self, track: Track, is_timestamped: bool, lyrics: str, allow_overwrite: bool) -> str:
        # Remote tracks have no file to hold tags, so their lyrics go to local files instead
        if track_is_remote(track):
            if self.local_files is None:
                raise LyricSourceError("Cannot save lyrics for a remote track to metadata tags")
            return self.local_files.save(track, is_timestamped, lyrics, allow_overwrite)

        tag_name = self.timestamped_tag if is_timestamped else self.untimed_tag
        log.info("Saving lyrics to ID3 tag %s...", tag_name)

        existing = _find_tag(track, tag_name)
        if existing is not None:
            if not allow_overwrite:
                log.info("Save tag already exists and overwriting is disallowed. The tag will not be modified")
                return tag_name
            del track.metadata[existing]
        track.metadata[tag_name] = [lyrics]
        log.info("Successfully saved lyrics to %s", tag_name)
        return tag_name

    def delete_persisted(self, track: Track, path: str) -> bool:
        key = _find_tag(track, path)
        if key is None:
            log.warning("Failed to find persisted tag '%s' for deletion", path)
            return False
        del track.metadata[key]
        log.info("Successfully removed lyrics stored in tag '%s'", path)
        return True

    def get_file_path(self, track: Track, lyrics: LyricData) -> str:
        if lyrics.source_id == self.id or lyrics.save_source == self.id:
            return track.path
        log.warning("Attempt to get lyric file path for lyrics that were neither saved nor loaded from metadata tags")
        return ""