"""
AltFinder Pins - pinned-files manifest and reconciliation engine.

Persists per-directory ordered pins into sidecar manifests, keeps a global
index of pinned directories and follows entries across renames through
bookmarks.
"""
__version__ = "0.3.0"
