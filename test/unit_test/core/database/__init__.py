"""Unit tests for the immopro database layer.

Entities and repositories are exercised against an in-memory SQLite
database, so no external database service is required.
"""
