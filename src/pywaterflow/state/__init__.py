"""State/store layer.

This package is the single source of truth for how readings from the live
websocket feed and the synthetic fallback are merged into a deterministic
per-sensor snapshot.
"""
