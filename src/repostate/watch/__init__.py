"""Filesystem-driven repository updates."""

from ._watcher import make_filter, watch_repository, watched_paths

__all__ = ["make_filter", "watch_repository", "watched_paths"]
