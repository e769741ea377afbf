"""Task store and derived-view engine.

This package provides the task model, the file-backed key-value store the
collection is persisted to, the :class:`TaskEngine` that owns the collection,
and the pure filter/stats functions that derive views from it.
"""
