"""Concrete provider implementations (track sources, music databases, storage, cache)."""
