"""Lyric sources: the common interface, local files, metadata tags and online lyric services."""

__all__ = [
    "base",
    "localfiles",
    "metadata_tags",
    "azlyrics",
    "darklyrics",
    "genius",
    "metalarchives",
    "netease",
    "qqmusic",
    "musixmatch",
]