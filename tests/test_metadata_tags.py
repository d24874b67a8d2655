import uuid

import pytest

from openlyrics.sources.base import LyricData, LyricDataRaw, LyricSourceError
from openlyrics.sources.localfiles import LocalFileSource
from openlyrics.sources.metadata_tags import MetadataTagSource
from openlyrics.tag_util import Track


def make_source(local_files=None):
    return MetadataTagSource(["LYRICS", "UNSYNCEDLYRICS"], "LYRICS", "UNSYNCEDLYRICS", local_files)


def make_track(**extra):
    metadata = {"artist": ["Band"], "album": ["Record"], "title": ["Song"]}
    metadata.update(extra)
    return Track(path="/music/song.flac", metadata=metadata)


def test_source_id_is_fixed():
    source = make_source()
    track = make_track()
    fixed_id = uuid.UUID("3fb0f715-a097-493a-944e-db4866088678")
    assert source.get_file_path(track, LyricData(source_id=fixed_id)) == track.path
    assert source.friendly_name == "Metadata tags"


def test_search_concatenates_tag_values():
    track = make_track(lyrics=["first\n", "second"])
    results = make_source().search(track)
    assert len(results) == 1
    found = results[0]
    assert found.text_bytes == b"first\nsecond"
    assert found.source_path == "LYRICS"
    assert found.source_id == MetadataTagSource.id
    assert (found.artist, found.album, found.title) == ("Band", "Record", "Song")


def test_search_follows_tag_order_and_skips_empty_and_missing():
    track = make_track(UNSYNCEDLYRICS=["words"], LYRICS=[""])
    results = make_source().search(track)
    assert [result.source_path for result in results] == ["UNSYNCEDLYRICS"]

    assert make_source().search(make_track()) == []


def test_lookup_is_an_error():
    with pytest.raises(LyricSourceError):
        make_source().lookup(LyricDataRaw())


def test_save_picks_tag_by_timing_and_round_trips():
    source = make_source()
    track = make_track()
    assert source.save(track, True, "[00:01.00]a", allow_overwrite=False) == "LYRICS"
    assert source.save(track, False, "plain", allow_overwrite=False) == "UNSYNCEDLYRICS"
    texts = [result.text_bytes for result in source.search(track)]
    assert texts == [b"[00:01.00]a", b"plain"]


def test_save_without_overwrite_keeps_existing_tag():
    track = make_track(lyrics=["old"])
    make_source().save(track, True, "new", allow_overwrite=False)
    assert track.metadata["lyrics"] == ["old"]


def test_save_with_overwrite_replaces_case_insensitively():
    track = make_track(lyrics=["old"])
    make_source().save(track, True, "new", allow_overwrite=True)
    assert "lyrics" not in track.metadata
    assert track.metadata["LYRICS"] == ["new"]


def test_remote_track_save_goes_to_local_files(tmp_path):
    local = LocalFileSource(lambda track: str(tmp_path / "stream"))
    track = Track(path="http://radio.example.com/live", metadata={"title": ["Song"]})
    path = make_source(local).save(track, True, "x", allow_overwrite=True)
    assert path == str(tmp_path / "stream.lrc")
    assert "LYRICS" not in track.metadata


def test_remote_track_save_without_local_files_fails():
    track = Track(path="http://radio.example.com/live")
    with pytest.raises(LyricSourceError):
        make_source().save(track, True, "x", allow_overwrite=True)


def test_delete_persisted():
    track = make_track(Lyrics=["text"])
    source = make_source()
    assert source.delete_persisted(track, "LYRICS") is True
    assert source.search(track) == []
    assert source.delete_persisted(track, "LYRICS") is False


def test_get_file_path():
    source = make_source()
    track = make_track()
    assert source.get_file_path(track, LyricData(source_id=MetadataTagSource.id)) == track.path
    saved = LyricData(source_id=uuid.uuid4(), save_source=MetadataTagSource.id)
    assert source.get_file_path(track, saved) == track.path
    assert source.get_file_path(track, LyricData(source_id=uuid.uuid4())) == ""