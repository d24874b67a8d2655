"""Lyric retrieval from local and online sources, with LRC parsing, tag helpers and search avoidance."""

__version__ = "1.7.0.dev0"