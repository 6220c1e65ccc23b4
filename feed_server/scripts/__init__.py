"""Maintenance jobs: daily feed generation and vector re-indexing."""
