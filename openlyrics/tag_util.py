"""Helpers for reading and comparing track metadata tags."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

log = logging.getLogger(__name__)

_SURROUNDING_WHITESPACE = "\r\n "
_BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}"}
MAX_TAG_EDIT_DISTANCE = 3


@dataclass
class Track:
    """A playable item: its location and its metadata tags, each of which may hold several values."""

    path: str
    metadata: dict[str, list[str]] = field(default_factory=dict)


def _find_values(track: Track, key: str) -> list[str] | None:
    wanted = key.lower()
    for name, values in track.metadata.items():
        if name.lower() == wanted:
            return values
    return None


def trim_surrounding_whitespace(text: str) -> str:
    """Remove leading and trailing spaces, carriage returns and newlines."""
    return text.strip(_SURROUNDING_WHITESPACE)


def trim_trailing_text_in_brackets(text: str) -> str:
    """Repeatedly strip a closed bracketed suffix such as ' (Live)' from the end of the text."""
    result = text
    while True:
        open_index = max(result.rfind(opener) for opener in _BRACKET_PAIRS)
        if open_index <= 0:
            # Either nothing to trim, or trimming would remove the entire string
            break
        closer = _BRACKET_PAIRS[result[open_index]]
        if result.find(closer, open_index) == -1:
            break
        result = result[:open_index]
    return result


def compute_edit_distance(str_a: str, str_b: str) -> int:
    """Case-insensitive (ASCII) Levenshtein distance between the UTF-8 encodings of two strings."""
    bytes_a = str_a.encode("utf-8").lower()
    bytes_b = str_b.encode("utf-8").lower()

    prev_row = list(range(len(bytes_b) + 1))
    for row, char_a in enumerate(bytes_a, start=1):
        cur_row = [row]
        for i, char_b in enumerate(bytes_b):
            cur_row.append(
                min(
                    prev_row[i + 1] + 1,
                    cur_row[i] + 1,
                    prev_row[i] + (char_a != char_b),
                )
            )
        prev_row = cur_row
    return prev_row[-1]


def tag_values_match(tag_a: str, tag_b: str, exclude_trailing_brackets: bool = False) -> bool:
    """Whether two tag values are close enough to be considered the same."""
    if exclude_trailing_brackets:
        tag_a = trim_surrounding_whitespace(trim_trailing_text_in_brackets(tag_a))
        tag_b = trim_surrounding_whitespace(trim_trailing_text_in_brackets(tag_b))
    return compute_edit_distance(tag_a, tag_b) <= MAX_TAG_EDIT_DISTANCE


def track_metadata(track: Track, key: str) -> str:
    """The first value of the given tag, or an empty string if the tag is absent."""
    values = _find_values(track, key)
    if not values:
        return ""

    if len(values) > 1:
        identity = "".join(
            "/" + (found[0] if (found := _find_values(track, name)) else "")
            for name in ("artist", "album", "title")
        )
        all_values = "".join("/" + value for value in values)
        log.info(
            "metadata tag %s appears multiple times for %s. Only the first value will be used of: %s.",
            key,
            identity,
            all_values,
        )

    return values[0]


def track_is_remote(track: Track) -> bool:
    """Whether the track is a network stream rather than a local file."""
    return track.path.startswith("http")