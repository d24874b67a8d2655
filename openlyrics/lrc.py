"""Parsing and printing of lyrics in the LRC format."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import fields
from typing import TypeVar

from openlyrics.sources.base import (
    UNTIMED,
    LyricData,
    LyricDataLine,
    LyricDataUnstructured,
)
from openlyrics.tag_util import trim_surrounding_whitespace

log = logging.getLogger(__name__)

_KNOWN_TAGS = frozenset(
    {
        "ar",  # Artist
        "al",  # Album
        "ti",  # Title
        "by",  # Lyric author (the person who made the lrc)
        "id",  # LRC file ID
        "offset",  # The offset to add to the line timestamps
        "length",  # Track length (e.g '03:40')
        "t_time",  # Track length (e.g '(2:57)')
    }
)
_DIGITS = frozenset("0123456789")
_U64_MASK = 2**64 - 1
_LINE_BREAK = re.compile(r"\r\n|[\r\n\0]")
_BOM = "\ufeff"

_T = TypeVar("_T")


def _parse_unsigned(text: str) -> int | None:
    """Digits-only parse; an empty string is zero."""
    value = 0
    for char in text:
        if char not in _DIGITS:
            return None
        value = (value * 10 + ord(char) - ord("0")) & _U64_MASK
    return value


def _parse_signed(text: str) -> int | None:
    """Integer parse allowing any number of leading minus signs; an empty string is zero."""
    digits = text.lstrip("-")
    sign = -1 if (len(text) - len(digits)) % 2 else 1
    magnitude = _parse_unsigned(digits)
    if magnitude is None:
        return None
    return sign * magnitude


def _split_tag(line: str) -> tuple[str, str] | None:
    """Split a line of the form [key:value] into key and value."""
    if not line.startswith("[") or not line.endswith("]"):
        return None
    colon = line.find(":")
    if colon == -1:
        return None
    return line[1:colon], line[colon + 1 : -1]


def is_tag_line(line: str) -> bool:
    """Whether the line is a recognised LRC metadata tag such as [ar:Artist]."""
    parts = _split_tag(line)
    return parts is not None and parts[0] in _KNOWN_TAGS


def try_parse_offset_tag(line: str) -> float | None:
    """The offset in seconds given by an [offset:ms] tag, or None if the line is not one."""
    parts = _split_tag(line)
    if parts is None:
        return None
    key, value = parts
    if key != "offset":
        return None
    offset_ms = _parse_signed(trim_surrounding_whitespace(value))
    if offset_ms is None:
        return None
    return offset_ms / 1000.0


def set_offset_tag(lyrics: LyricData, offset_seconds: float) -> None:
    """Replace the first offset tag of the lyrics, or add one if there is none."""
    new_tag = f"[offset:{int(offset_seconds * 1000.0)}]"
    for index, tag in enumerate(lyrics.tags):
        if try_parse_offset_tag(tag) is not None:
            lyrics.tags[index] = new_tag
            return
    lyrics.tags.append(new_tag)


def remove_offset_tag(lyrics: LyricData) -> None:
    """Remove every offset tag from the lyrics."""
    lyrics.tags[:] = [tag for tag in lyrics.tags if try_parse_offset_tag(tag) is None]


def get_line_first_timestamp(line: str) -> float:
    """The timestamp at the very start of the line, or UNTIMED if it has none."""
    close = line.find("]")
    if close != -1:
        timestamp = try_parse_timestamp(line[: close + 1])
        if timestamp is not None:
            return timestamp
    return UNTIMED


def _trunc_div(numerator: int, denominator: int) -> int:
    if numerator >= 0:
        return numerator // denominator
    return -((-numerator) // denominator)


def print_timestamp(timestamp: float) -> str:
    """Format seconds as [mm:ss.xx], or [hh:mm:ss.xx] from one hour onwards."""
    whole = math.floor(timestamp)
    total_seconds = int(whole)
    hours = _trunc_div(total_seconds, 3600)
    minutes = _trunc_div(total_seconds - 3600 * hours, 60)
    seconds = total_seconds - hours * 3600 - minutes * 60
    centiseconds = int((timestamp - whole) * 100.0)

    if hours == 0:
        return f"[{minutes:02d}:{seconds:02d}.{centiseconds:02d}]"
    return f"[{hours:02d}:{minutes:02d}:{seconds:02d}.{centiseconds:02d}]"


def try_parse_timestamp(tag: str) -> float | None:
    """Seconds given by a tag of the form [mm:ss.xx] or [hh:mm:ss.xx], or None."""
    if not tag.startswith("[") or not tag.endswith("]"):
        # The tag must be the entire string
        return None

    second_separator = tag.rfind(".")
    minsec_separator = tag.rfind(":")
    if second_separator == -1 or minsec_separator == -1:
        return None
    if second_separator < minsec_separator:
        # The seconds field would run into the closing bracket
        return None
    hourmin_separator = tag.rfind(":", 0, minsec_separator)

    subsec_str = tag[second_separator + 1 : -1]
    sec_str = tag[minsec_separator + 1 : second_separator]
    if hourmin_separator == -1:
        min_str = tag[1:minsec_separator]
        hour_str = ""
    else:
        min_str = tag[hourmin_separator + 1 : minsec_separator]
        hour_str = tag[1:hourmin_separator]

    subsec = _parse_unsigned(subsec_str)
    sec = _parse_unsigned(sec_str)
    minutes = _parse_unsigned(min_str)
    hours = _parse_unsigned(hour_str)
    if subsec is None or sec is None or minutes is None:
        return None

    subsec_coefficient = 1.0
    for _ in subsec_str:
        subsec_coefficient *= 0.1

    timestamp = 0.0
    timestamp += float(subsec) * subsec_coefficient
    timestamp += float(sec)
    timestamp += float(minutes) * 60.0
    if hours is not None:
        timestamp += float(hours) * 3600.0
    return timestamp


def _leading_timestamp(line: str) -> tuple[float, int] | None:
    """The timestamp tag at the start of the line and the number of characters it spans."""
    if not line.startswith("["):
        return None
    close = line.find("]")
    end = len(line) if close == -1 else close + 1
    timestamp = try_parse_timestamp(line[:end])
    if timestamp is None:
        return None
    return timestamp, end


def _split_line_times(line: str) -> tuple[list[float], str]:
    """All leading timestamps of the line, and the text that follows them."""
    timestamps = []
    while (found := _leading_timestamp(line)) is not None:
        timestamp, consumed = found
        timestamps.append(timestamp)
        line = line[consumed:]
    return timestamps, line


def collapse_concurrent_lines(lines: list[LyricDataLine]) -> list[LyricDataLine]:
    """Merge adjacent timed lines with identical timestamps into one multi-line entry."""
    if len(lines) <= 1:
        return list(lines)

    result = []
    current = lines[0]
    for following in lines[1:]:
        if current.timestamp == UNTIMED or current.timestamp != following.timestamp:
            result.append(current)
            current = following
        else:
            current = LyricDataLine(current.text + "\n" + following.text, current.timestamp)
    result.append(current)
    return result


def _split_text_lines(text: str) -> list[str]:
    parts = _LINE_BREAK.split(text)
    if parts[-1] == "":
        parts.pop()
    return parts


def _copy_metadata(source: object, target_cls: type[_T], **extra: object) -> _T:
    target_names = {f.name for f in fields(target_cls)}
    values = {f.name: getattr(source, f.name) for f in fields(source) if f.name in target_names}
    values.update(extra)
    return target_cls(**values)


def parse(unstructured: LyricDataUnstructured) -> LyricData:
    """Split LRC text into metadata tags and lines sorted by timestamp."""
    log.info("Parsing LRC lyric text...")

    lines: list[LyricDataLine] = []
    tags: list[str] = []
    tag_section_passed = False  # Tags only count as such at the top of the file
    timestamp_offset = 0.0

    for line in _split_text_lines(unstructured.text):
        # Byte-order marks can turn up at the start of any line, not only the first
        if line.startswith(_BOM):
            line = line[len(_BOM) :]

        timestamps, content = _split_line_times(line)
        if timestamps:
            tag_section_passed = True
            lines.extend(LyricDataLine(content, timestamp) for timestamp in timestamps)
        elif not tag_section_passed and is_tag_line(line):
            tags.append(line)
            offset = try_parse_offset_tag(line)
            if offset is not None:
                timestamp_offset = offset
                log.info("Found LRC offset: %dms", int(timestamp_offset * 1000.0))
        else:
            # Lines without a timestamp are kept, sorted after every timed line
            tag_section_passed |= bool(line)
            lines.append(LyricDataLine(line, UNTIMED))

    lines.sort(key=lambda entry: entry.timestamp)
    return _copy_metadata(
        unstructured,
        LyricData,
        tags=tags,
        lines=collapse_concurrent_lines(lines),
        timestamp_offset=timestamp_offset,
    )


def serialise(lyrics: LyricData) -> LyricDataUnstructured:
    """Turn parsed lyrics back into LRC text, keeping their metadata."""
    return _copy_metadata(lyrics, LyricDataUnstructured, text=expand_text(lyrics))


def expand_text(lyrics: LyricData) -> str:
    """The LRC text for the lyrics: tags, a blank line, then each line with its timestamp."""
    log.info("Expanding lyric text...")
    parts = [f"{tag}\r\n" for tag in lyrics.tags]
    if parts:
        parts.append("\r\n")

    for line in lyrics.lines:
        if line.timestamp == UNTIMED:
            # Empty untimed lines get a space so that an editor selection on them is visible
            parts.append(f"{line.text or ' '}\r\n")
        else:
            stamp = print_timestamp(line.timestamp)
            parts.extend(f"{stamp}{piece}\r\n" for piece in line.text.split("\n"))
    return "".join(parts)