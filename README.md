# openlyrics

A library for finding, loading, parsing and saving song lyrics.

- **LRC parsing and writing** (`openlyrics.lrc`): timestamps of the form `[mm:ss.xx]`
  and `[hh:mm:ss.xx]`, metadata tags such as `[ar:...]` and `[ti:...]`, the
  `[offset:...]` tag, several lines that share a timestamp, and untimed lines.
- **Local lyric sources**: `.lrc` and `.txt` files
  (`openlyrics.sources.localfiles.LocalFileSource`) and lyrics kept in a track's
  metadata tags (`openlyrics.sources.metadata_tags.MetadataTagSource`).
- **Online lyric sources** built on `requests` and `beautifulsoup4`:
  `AZLyricsSource`, `DarkLyricsSource`, `GeniusSource`, `MetalArchivesSource`,
  `NetEaseSource`, `QQMusicSource` and `MusixmatchSource`, each in its own module
  under `openlyrics.sources`.
- **Search avoidance** (`openlyrics.search_avoidance.SearchAvoidanceStore`): once a
  track has failed to find lyrics more than three times and a week has passed since
  the first failure, automatic searches for it are refused until the search
  configuration generation changes.
- **Tag helpers** (`openlyrics.tag_util`): the `Track` record, whitespace trimming,
  removal of a bracketed suffix such as ` (Live)`, and fuzzy matching of tag values
  by edit distance.

## Installation

```
pip install openlyrics
```

## Tracks

A `Track` is a path and a mapping of tag names to lists of values. Tag names are
matched without regard to case, and where a tag has several values the first is used.
A track whose path starts with `http` counts as a network stream.

```python
from openlyrics.tag_util import Track, track_metadata

track = Track("/music/song.flac", {"ARTIST": ["Artist"], "title": ["Title"]})
print(track_metadata(track, "artist"))  # Artist
```

## Parsing LRC text

```python
from openlyrics import lrc
from openlyrics.sources.base import LyricDataUnstructured

raw = LyricDataUnstructured(text="[ti:Song]\n[00:01.00]Hello\n[00:02.50]World\n")
lyrics = lrc.parse(raw)

for line in lyrics.lines:
    print(line.timestamp, line.text)

print(lrc.print_timestamp(62.5))   # [01:02.50]
lrc.set_offset_tag(lyrics, 0.25)   # adds or replaces [offset:250]
print(lrc.expand_text(lyrics))
```

`parse` keeps tags found at the top of the text in `lyrics.tags`, sorts lines by
timestamp (untimed lines last, in their original order) and merges lines with the
same timestamp. `serialise` turns a `LyricData` back into `LyricDataUnstructured`.

## Searching an online source

```python
import requests
from openlyrics.sources.netease import NetEaseSource

source = NetEaseSource(requests.Session(), exclude_trailing_brackets=True)
for candidate in source.query("Artist", "Album", "Title"):
    if source.lookup(candidate):
        print(candidate.text_bytes.decode("utf-8"))
        break
```

Every source follows the interface of `openlyrics.sources.base.LyricSource`.
`search(track)` returns candidate `LyricDataRaw` records and `lookup(data)` fills
in the lyric bytes where a further request is needed. Online sources also offer
`query(artist, album, title)`. The AZLyrics, DarkLyrics and Genius sources return
the lyrics directly from `query` and raise `LyricSourceError` from `lookup`; they
also raise `LyricSourceError` when a page was fetched but no lyrics could be read
from it. `MusixmatchSource` searches only when given an `api_key`; a user token can
be requested with `openlyrics.sources.musixmatch.get_token()`.

Online sources cannot store lyrics: their `save`, `delete_persisted` and
`get_file_path` raise `LyricSourceError`.

## Local sources

```python
from openlyrics.sources.localfiles import LocalFileSource
from openlyrics.tag_util import Track, track_metadata

files = LocalFileSource(lambda t: f"/lyrics/{track_metadata(t, 'artist')} - {track_metadata(t, 'title')}")
track = Track("/music/song.flac", {"artist": ["Artist"], "title": ["Title"]})
path = files.save(track, is_timestamped=True, lyrics="[00:01.00]Hello", allow_overwrite=False)
```

`LocalFileSource` adds `.lrc` for timestamped lyrics and `.txt` otherwise, creates
missing directories and writes through a temporary file. `MetadataTagSource` reads
the configured tags and, when saving, stores lyrics in `track.metadata` under the
timestamped or untimed tag name; for network streams it hands the save to the
`local_files` source it was given.

## Registering sources

`register_source(source)` makes a source available to `get_source(source_id)` and
`get_all_ids()`. Nothing is registered until you do so.

## Search avoidance

```python
from openlyrics.search_avoidance import SearchAvoidanceStore

store = SearchAvoidanceStore(config_generation=1, path="avoidance.json")
if store.allows_search(track):
    ...  # search, and on failure:
    store.log_search_failure(track)
```

`force_avoidance(track)` stops automatic searches under the current configuration
generation and `clear(track)` forgets the record. Without a `path`, records live
only in memory.

## What this package does not do

It is a library only: there is no command-line program, no lyric display or editor,
and no music-player integration. `MetadataTagSource` changes the tags held in a
`Track` object; it does not write tags into audio files.

## Running the tests

```
pip install "openlyrics[test]"
pytest
```