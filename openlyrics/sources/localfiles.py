"""Lyrics stored as .lrc or .txt files alongside (or apart from) the music."""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import ClassVar

from openlyrics.sources.base import LyricData, LyricDataRaw, LyricSource, LyricSourceError
from openlyrics.tag_util import Track, track_metadata

log = logging.getLogger(__name__)

_EXTENSIONS = (".lrc", ".txt")


class LocalFileSource(LyricSource):
    """Reads and writes lyric files whose path (without extension) is computed per track."""

    id: ClassVar[uuid.UUID] = uuid.UUID("76d90970-1c98-4fe2-944e-ace493f38e85")
    friendly_name: ClassVar[str] = "Local files"
    is_local: ClassVar[bool] = True

    def __init__(self, filename_for: Callable[[Track], str]) -> None:
        self.filename_for = filename_for

    def search(self, track: Track) -> list[LyricDataRaw]:
        prefix = self.filename_for(track)
        if not prefix:
            log.error("Failed to determine query file path")
            return []

        output = []
        for extension in _EXTENSIONS:
            file_path = prefix + extension
            log.info("Querying for lyrics in %s...", file_path)
            try:
                exists = os.path.exists(file_path)
            except (OSError, ValueError) as ex:
                log.warning("Failed to open lyrics file %s: %s", file_path, ex)
                continue
            if exists:
                output.append(
                    LyricDataRaw(
                        source_id=self.id,
                        source_path=file_path,
                        lookup_id=file_path,
                        artist=track_metadata(track, "artist"),
                        album=track_metadata(track, "album"),
                        title=track_metadata(track, "title"),
                    )
                )

        log.info("Found %d lyrics in local files: %s", len(output), prefix)
        return output

    def lookup(self, data: LyricDataRaw) -> bool:
        file_path = data.lookup_id
        log.info("Lookup local-file %s for lyrics...", file_path)
        try:
            data.text_bytes = Path(file_path).read_bytes()
        except (OSError, ValueError) as ex:
            log.warning("Failed to open lyrics file %s: %s", file_path, ex)
            return False
        log.info("Successfully retrieved lyrics from %s", file_path)
        return True

    def save(self, track: Track, is_timestamped: bool, lyrics: str, allow_overwrite: bool) -> str:
        log.info("Saving lyrics to a local file...")
        prefix = self.filename_for(track)
        if not prefix:
            raise LyricSourceError("Failed to determine save file path")

        output_path = Path(prefix + (".lrc" if is_timestamped else ".txt"))
        if not output_path.name or output_path.name in (".lrc", ".txt") and prefix.endswith(("/", os.sep)):
            raise LyricSourceError("Calculated file path does not contain a file leaf node")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        log.info("Saving lyrics to %s...", output_path)

        if not allow_overwrite and output_path.exists():
            log.info("Save file already exists and overwriting is disallowed. The file will not be modified")
            return str(output_path)

        handle, tmp_name = tempfile.mkstemp(prefix=output_path.name, dir=output_path.parent)
        try:
            with os.fdopen(handle, "wb") as tmp_file:
                tmp_file.write(lyrics.encode("utf-8"))
            os.replace(tmp_name, output_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        log.info("Successfully saved lyrics to %s", output_path)
        return str(output_path)

    def delete_persisted(self, track: Track, path: str) -> bool:
        try:
            os.remove(path)
        except OSError as ex:
            log.warning("Failed to delete lyrics file %s: %s", path, ex)
            return False
        return True

    def get_file_path(self, track: Track, lyrics: LyricData) -> str:
        if lyrics.source_id == self.id:
            return lyrics.source_path
        if lyrics.save_source == self.id:
            return lyrics.save_path
        log.warning("Attempt to get lyric file path for lyrics that were neither saved nor loaded from local files")
        return ""