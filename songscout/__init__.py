"""songscout: unsigned-songwriter discovery and enrichment pipeline."""

__version__ = "0.1.0"
