"""Per-track record of failed searches, used to stop re-searching hopeless tracks."""

from __future__ import annotations

import hashlib
import json
import logging
import struct
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from openlyrics.tag_util import Track, track_is_remote, track_metadata

log = logging.getLogger(__name__)

INT_MAX = 2**31 - 1
ONE_WEEK = 7 * 24 * 60 * 60 * 10_000_000
"""One week in filetime units (100ns ticks)."""

_FILETIME_UNIX_EPOCH = 116_444_736_000_000_000
_RECORD = struct.Struct("<iQQ")


def _system_filetime() -> int:
    return time.time_ns() // 100 + _FILETIME_UNIX_EPOCH


@dataclass
class SearchAvoidance:
    """How often and since when searches for a track have failed."""

    failed_searches: int = 0
    first_fail_time: int = 0
    search_config_generation: int = 0

    def to_bytes(self) -> bytes:
        return _RECORD.pack(self.failed_searches, self.first_fail_time, self.search_config_generation)

    @classmethod
    def from_bytes(cls, data: bytes) -> SearchAvoidance:
        return cls(*_RECORD.unpack(data))


def search_avoidance_hash(track: Track) -> int:
    """A 64-bit key for the track, from an MD5 of its artist, album and title folded in half."""
    key = "".join(track_metadata(track, name) for name in ("artist", "album", "title"))
    digest = hashlib.md5(key.encode("utf-8")).digest()
    folded = bytes(low ^ high for low, high in zip(digest[:8], digest[8:]))
    return int.from_bytes(folded, "little")


class SearchAvoidanceStore:
    """Keeps search-avoidance records, optionally persisted to a JSON file."""

    def __init__(
        self,
        config_generation: int | Callable[[], int] = 0,
        path: str | Path | None = None,
        clock: Callable[[], int] = _system_filetime,
    ) -> None:
        if callable(config_generation):
            self._generation = config_generation
        else:
            self._generation = lambda: config_generation
        self._path = Path(path) if path is not None else None
        self._clock = clock
        self._records: dict[int, bytes] = {}
        if self._path is not None and self._path.exists():
            with self._path.open(encoding="utf-8") as handle:
                stored = json.load(handle)
            self._records = {int(key): bytes.fromhex(value) for key, value in stored.items()}

    def _persist(self) -> None:
        if self._path is None:
            return
        with self._path.open("w", encoding="utf-8") as handle:
            json.dump({str(key): value.hex() for key, value in self._records.items()}, handle)

    def _store(self, track: Track, avoidance: SearchAvoidance) -> None:
        if track_is_remote(track):
            return
        self._records[search_avoidance_hash(track)] = avoidance.to_bytes()
        self._persist()

    def load(self, track: Track) -> SearchAvoidance:
        """The record for the track, or an empty one if none is stored or it is unreadable."""
        data = self._records.get(search_avoidance_hash(track), b"")
        try:
            return SearchAvoidance.from_bytes(data)
        except struct.error as ex:
            log.info("Failed to read search-avoidance info: %s", ex)
            return SearchAvoidance()

    def allows_search(self, track: Track) -> bool:
        """Whether an automatic search should be made for the track."""
        if track_is_remote(track):
            return True
        avoidance = self.load(track)
        expected_to_fail = avoidance.failed_searches > 3
        trial_period_expired = avoidance.first_fail_time + ONE_WEEK < self._clock()
        same_generation = avoidance.search_config_generation == self._generation()
        return not same_generation or not expected_to_fail or not trial_period_expired

    def log_search_failure(self, track: Track) -> None:
        """Record one more failed search for the track."""
        if track_is_remote(track):
            return
        avoidance = self.load(track)
        avoidance.search_config_generation = self._generation()
        if avoidance.first_fail_time == 0:
            avoidance.first_fail_time = self._clock()
        if avoidance.failed_searches < INT_MAX:
            avoidance.failed_searches += 1
        self._store(track, avoidance)

    def force_avoidance(self, track: Track) -> None:
        """Stop automatic searches for the track under the current configuration."""
        if track_is_remote(track):
            return
        avoidance = self.load(track)
        avoidance.search_config_generation = self._generation()
        avoidance.first_fail_time = 0
        avoidance.failed_searches = INT_MAX
        self._store(track, avoidance)

    def clear(self, track: Track) -> None:
        """Forget everything recorded for the track."""
        self._records.pop(search_avoidance_hash(track), None)
        self._persist()