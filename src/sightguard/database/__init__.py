"""
Database package for SightGuard.

Provides the shared aiosqlite connection, schema creation and the
``Database`` lifecycle coordinator.
"""
