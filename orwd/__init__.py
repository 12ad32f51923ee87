"""orwd - HTTP daemon for the orw catalog watcher.

Serves the stored catalog, removed models, per-model history, recent
changes and an RSS feed, backed by the file cache in orw_library.cache.
"""

__version__ = "0.1.0"
